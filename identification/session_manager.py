"""Session manager: owns live identification sessions and routes feedback/cancel to them."""

import asyncio
import logging
import threading
import uuid
from typing import Dict, List, Optional

from .config import IdentificationConfig, resolve_config
from .errors import SessionNotFoundError, VideoNotFoundError
from .loop import IdentificationLoop
from .providers import (
    FilmDetailProvider,
    FrameAnalysisStore,
    FrameSource,
    VideoLookup,
    VisionProvider,
    WebSearchProvider,
)
from .session import IdentificationSession

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Creates sessions, launches one IdentificationLoop task per session, and
    keeps the session table. Must be used from inside a running event loop.
    """

    def __init__(
        self,
        videos: VideoLookup,
        frame_source: FrameSource,
        frame_store: FrameAnalysisStore,
        vision: VisionProvider,
        search: WebSearchProvider,
        films: FilmDetailProvider,
        config: Optional[IdentificationConfig] = None,
    ):
        self.videos = videos
        self.frame_source = frame_source
        self.frame_store = frame_store
        self.vision = vision
        self.search = search
        self.films = films
        self.config = resolve_config(config)

        self._sessions: Dict[str, IdentificationSession] = {}
        self._lock = threading.Lock()

    def start(self, video_id: str) -> IdentificationSession:
        """
        Begin identifying a stored video.

        Returns the new session as soon as its loop task is scheduled.
        Raises VideoNotFoundError for an unknown video id.
        """
        video = self.videos.get_video(video_id)
        if video is None:
            raise VideoNotFoundError(video_id)

        session = IdentificationSession(
            session_id=str(uuid.uuid4()),
            video_id=video_id,
            event_queue_size=self.config.event_queue_size,
        )
        loop = IdentificationLoop(
            session=session,
            video=video,
            videos=self.videos,
            frame_source=self.frame_source,
            frame_store=self.frame_store,
            vision=self.vision,
            search=self.search,
            films=self.films,
            config=self.config,
        )
        with self._lock:
            self._sessions[session.id] = session
        session.task = asyncio.create_task(loop.run(), name=f"identify-{session.id}")
        logger.info("[sessions] started session %s for video %s", session.id, video_id)
        return session

    def get_session(self, session_id: str) -> Optional[IdentificationSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def _require(self, session_id: str) -> IdentificationSession:
        session = self.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def update_feedback(self, session_id: str, chip: str, selected: bool) -> IdentificationSession:
        """Record a chip toggle and wake the loop. Raises SessionNotFoundError."""
        session = self._require(session_id)
        queued = session.set_feedback(chip, selected)
        logger.info(
            "[sessions] feedback for %s: %s=%s%s",
            session_id, chip, selected, "" if queued else " (coalesced)",
        )
        return session

    def cancel(self, session_id: str) -> IdentificationSession:
        """Signal cancellation without waiting for the loop to observe it."""
        session = self._require(session_id)
        session.cancel()
        logger.info("[sessions] cancellation requested for %s", session_id)
        return session

    def remove(self, session_id: str) -> Optional[IdentificationSession]:
        """Drop a session from the table, cancelling it if still running."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is not None and not session.is_terminal:
            session.cancel()
        return session

    def list_sessions(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def active_count(self) -> int:
        with self._lock:
            return sum(1 for s in self._sessions.values() if not s.is_terminal)

    async def shutdown(self) -> None:
        """Cancel every live session and wait for their loops to exit."""
        with self._lock:
            sessions = list(self._sessions.values())
        tasks = []
        for session in sessions:
            session.cancel()
            if session.task is not None and not session.task.done():
                tasks.append(session.task)
        if tasks:
            logger.info("[sessions] waiting for %d session(s) to stop", len(tasks))
            await asyncio.gather(*tasks, return_exceptions=True)
