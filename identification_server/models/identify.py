"""Identification session request/response models."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from identification.models import FilmCandidate


class FeedbackRequest(BaseModel):
    chip: str = Field(min_length=1)
    selected: bool


class SessionInfoResponse(BaseModel):
    session_id: str
    video_id: str
    status: str
    current_frame: int
    candidates: List[FilmCandidate] = []
    confidence: float
    feedback: Dict[str, bool] = {}
    started_at: datetime
    completed_at: Optional[datetime] = None
    elapsed_seconds: float
    stream_url: str


class FeedbackResponse(BaseModel):
    session_id: str
    chip: str
    selected: bool
    feedback: Dict[str, bool]


class CancelResponse(BaseModel):
    session_id: str
    status: str
    cancelled: bool = True
