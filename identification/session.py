"""
IdentificationSession: mutable state for one in-flight identification attempt.

The bound loop task owns every write to frame cursor, candidates, confidence,
and status. The feedback map is the only field written from outside that task
and is guarded by a per-session lock; the loop reads it through
feedback_snapshot().
"""

import asyncio
import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .models.candidate import FilmCandidate
from .models.session import SessionStatus
from .outbox import SessionOutbox

logger = logging.getLogger(__name__)


class IdentificationSession:
    """One identification attempt tied to one stored video."""

    def __init__(self, session_id: str, video_id: str, event_queue_size: int = 100):
        self.id = session_id
        self.video_id = video_id
        self.current_frame = 0
        self.candidates: List[FilmCandidate] = []
        self.confidence = 0.0
        self.status = SessionStatus.ANALYZING
        self.started_at = datetime.now(timezone.utc)
        self.completed_at: Optional[datetime] = None
        self.updates = SessionOutbox(maxsize=event_queue_size)
        self.task: Optional[asyncio.Task] = None

        self._started_monotonic = time.monotonic()
        self._feedback: Dict[str, bool] = {}
        self._feedback_lock = threading.Lock()
        # Single slot: a pending signal already means "there is new feedback".
        self._feedback_changed: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._cancelled = asyncio.Event()

    # ------------------------------------------------------------------
    # Feedback
    # ------------------------------------------------------------------

    def set_feedback(self, chip: str, selected: bool) -> bool:
        """
        Merge one chip selection and nudge the loop.

        Returns True when a new signal was queued, False when one was already
        pending (coalesced).
        """
        with self._feedback_lock:
            self._feedback[chip] = selected
        try:
            self._feedback_changed.put_nowait(None)
            return True
        except asyncio.QueueFull:
            return False

    def feedback_snapshot(self) -> Dict[str, bool]:
        with self._feedback_lock:
            return dict(self._feedback)

    def consume_feedback_signal(self) -> bool:
        """Clear a pending feedback signal without waiting."""
        try:
            self._feedback_changed.get_nowait()
            return True
        except asyncio.QueueEmpty:
            return False

    async def wait_feedback_signal(self) -> None:
        await self._feedback_changed.get()

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    async def wait_cancelled(self) -> None:
        await self._cancelled.wait()

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def set_status(self, status: SessionStatus) -> bool:
        """Move to a new status. Transitions out of a terminal status are refused."""
        if self.status.is_terminal:
            logger.warning(
                "[ident] session %s: refused status change %s -> %s",
                self.id, self.status.value, status.value,
            )
            return False
        self.status = status
        if status.is_terminal:
            self.completed_at = datetime.now(timezone.utc)
        return True

    def elapsed_seconds(self) -> float:
        return time.monotonic() - self._started_monotonic

    def snapshot(self) -> Dict[str, Any]:
        """Read-only view for late readers and the session info endpoint."""
        return {
            "session_id": self.id,
            "video_id": self.video_id,
            "status": self.status.value,
            "current_frame": self.current_frame,
            "candidates": [c.model_dump(mode="json") for c in self.candidates],
            "confidence": self.confidence,
            "feedback": self.feedback_snapshot(),
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "elapsed_seconds": round(self.elapsed_seconds(), 3),
        }
