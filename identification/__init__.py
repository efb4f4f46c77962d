"""
Film identification engine.

Incrementally analyzes frames of a stored clip, searches the web for matching
films, scores candidates against the analysis and user chip feedback, and
streams progressive updates until a confidence threshold is met.
"""

from .config import DEFAULT_CONFIG, IdentificationConfig, resolve_config
from .errors import (
    FrameExtractionError,
    IdentificationError,
    MissingAPIKeyError,
    OutboxClosedError,
    ProviderError,
    SessionNotFoundError,
    VideoNotFoundError,
)
from .loop import IdentificationLoop
from .outbox import SessionOutbox
from .session import IdentificationSession
from .session_manager import SessionManager

__version__ = "1.0.0"

__all__ = [
    "DEFAULT_CONFIG",
    "FrameExtractionError",
    "IdentificationConfig",
    "IdentificationError",
    "IdentificationLoop",
    "IdentificationSession",
    "MissingAPIKeyError",
    "OutboxClosedError",
    "ProviderError",
    "SessionManager",
    "SessionNotFoundError",
    "SessionOutbox",
    "VideoNotFoundError",
    "resolve_config",
]
