"""Data models for the identification engine."""

from .analysis import BoundingBox, ColorInfo, FaceDetection, FrameAnalysis, FrameAnalysisRecord, Label
from .candidate import CastMember, Credits, CrewMember, FilmCandidate, FilmDetails, Genre, SearchResult
from .session import (
    CandidatesPayload,
    Chip,
    ChipKind,
    ChipsPayload,
    IdentificationResult,
    MessagePayload,
    SessionStatus,
    SessionUpdate,
    UpdateType,
)

__all__ = [
    "BoundingBox",
    "CandidatesPayload",
    "CastMember",
    "Chip",
    "ChipKind",
    "ChipsPayload",
    "ColorInfo",
    "Credits",
    "CrewMember",
    "FaceDetection",
    "FilmCandidate",
    "FilmDetails",
    "FrameAnalysis",
    "FrameAnalysisRecord",
    "Genre",
    "IdentificationResult",
    "Label",
    "MessagePayload",
    "SearchResult",
    "SessionStatus",
    "SessionUpdate",
    "UpdateType",
]
