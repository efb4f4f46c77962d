"""Pydantic request/response models for the API."""

from .identify import CancelResponse, FeedbackRequest, FeedbackResponse, SessionInfoResponse

__all__ = [
    "CancelResponse",
    "FeedbackRequest",
    "FeedbackResponse",
    "SessionInfoResponse",
]
