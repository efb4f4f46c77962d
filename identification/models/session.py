"""
Session models: status, chips, and the typed events a session streams out.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .candidate import FilmCandidate, FilmDetails


class SessionStatus(str, Enum):
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    NEEDS_INPUT = "needs_input"
    CANCELLED = "cancelled"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.ANALYZING


class ChipKind(str, Enum):
    DECADE = "decade"
    GENRE = "genre"
    OBJECT = "object"
    ACTOR = "actor"


class Chip(BaseModel):
    """A user-toggleable refinement tag derived from one frame's analysis."""

    value: str
    label: str
    selected: bool = False
    kind: ChipKind


class UpdateType(str, Enum):
    CHIPS = "chips"
    CANDIDATES = "candidates"
    COMPLETE = "complete"
    NEEDS_INPUT = "needs_input"
    CANCELLED = "cancelled"


class ChipsPayload(BaseModel):
    session_id: str
    chips: List[Chip] = Field(default_factory=list)


class CandidatesPayload(BaseModel):
    candidates: List[FilmCandidate] = Field(default_factory=list)
    frame: int
    confidence: float


class IdentificationResult(BaseModel):
    """Payload of the complete event."""

    session_id: str
    video_id: str
    film_details: FilmDetails
    confidence: float
    frames_used: int
    time_elapsed: float


class MessagePayload(BaseModel):
    message: str


class SessionUpdate(BaseModel):
    """One outbound event: a type tag and its payload."""

    type: UpdateType
    data: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def of(cls, update_type: UpdateType, payload: Optional[BaseModel] = None) -> "SessionUpdate":
        data = payload.model_dump(mode="json") if payload is not None else {}
        return cls(type=update_type, data=data)
