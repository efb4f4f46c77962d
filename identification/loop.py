"""
Identification loop: drives one session from frames to a confident answer.

    for each frame (existing analysis or newly extracted + analyzed):
        repeat (feedback-reactive pass):
            query -> web search -> score + rank -> emit chips, candidates
            threshold reached -> fetch film details -> complete
            wait: cancel (stop) | feedback (re-run pass) | idle timeout (next frame)
    frames exhausted -> needs_input

One loop instance is bound to one session for its lifetime. It is the only
writer of the session's frame cursor, candidates, confidence, and status, and
it closes the session outbox exactly once on every exit path.
"""

import asyncio
import logging
from enum import Enum
from typing import Dict, Optional

from .config import IdentificationConfig, resolve_config
from .models.analysis import FrameAnalysis
from .models.session import (
    CandidatesPayload,
    ChipsPayload,
    IdentificationResult,
    MessagePayload,
    SessionStatus,
    SessionUpdate,
    UpdateType,
)
from .providers import (
    FilmDetailProvider,
    FrameAnalysisStore,
    FrameSource,
    VideoLookup,
    VisionProvider,
    WebSearchProvider,
)
from .session import IdentificationSession
from .stages.candidates import build_candidates
from .stages.chips import extract_chips
from .stages.query import build_search_query

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Identification cancelled by user"
NEEDS_INPUT_MESSAGE = (
    "Could not identify film with high confidence. "
    "Please try selecting more chips or uploading a different clip."
)


class _Wake(Enum):
    CANCELLED = "cancelled"
    FEEDBACK = "feedback"
    TIMEOUT = "timeout"


class _PassOutcome(Enum):
    NEXT_FRAME = "next_frame"
    FINISHED = "finished"


class IdentificationLoop:
    """The per-session control loop. Construct once, await run() once."""

    def __init__(
        self,
        session: IdentificationSession,
        video: Dict,
        videos: VideoLookup,
        frame_source: FrameSource,
        frame_store: FrameAnalysisStore,
        vision: VisionProvider,
        search: WebSearchProvider,
        films: FilmDetailProvider,
        config: Optional[IdentificationConfig] = None,
    ):
        self.session = session
        self.video = video
        self.videos = videos
        self.frame_source = frame_source
        self.frame_store = frame_store
        self.vision = vision
        self.search = search
        self.films = films
        self.config = resolve_config(config)

    async def run(self) -> None:
        session = self.session
        logger.info("[ident] starting identification for video %s, session %s", session.video_id, session.id)
        try:
            await self._run()
        except asyncio.CancelledError:
            # Task cancelled from outside (shutdown); report it like a user cancel.
            self._finish_cancelled()
            raise
        except Exception:
            logger.exception("[ident] session %s: unexpected failure", session.id)
            session.set_status(SessionStatus.ERROR)
        finally:
            session.updates.close()

    # ------------------------------------------------------------------
    # Outer loop: frames
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        session = self.session
        config = self.config

        existing = await self._load_existing_analyses()
        if existing is None:
            return

        for frame_num in range(config.max_frames_analyze):
            if session.confidence >= config.score_threshold:
                break
            if session.cancelled:
                self._finish_cancelled()
                return
            session.current_frame = frame_num
            logger.info("[ident] processing frame %d/%d", frame_num + 1, config.max_frames_analyze)

            analysis = existing.get(frame_num)
            if analysis is None:
                analysis = await self._analyze_new_frame(frame_num)
            if session.cancelled:
                self._finish_cancelled()
                return
            if analysis is None:
                continue

            if await self._react(frame_num, analysis) is _PassOutcome.FINISHED:
                return

        logger.info(
            "[ident] loop completed without reaching threshold. Final confidence: %.2f, frames: %d",
            session.confidence, config.max_frames_analyze,
        )
        if session.set_status(SessionStatus.NEEDS_INPUT):
            self._emit(UpdateType.NEEDS_INPUT, MessagePayload(message=NEEDS_INPUT_MESSAGE))

    async def _load_existing_analyses(self) -> Optional[Dict[int, FrameAnalysis]]:
        """Prior analyses keyed by frame number; None (and status error) when the store fails."""
        session = self.session
        try:
            records = await self.frame_store.get_by_video(session.video_id)
        except Exception as e:
            logger.error("[ident] error getting existing analyses for video %s: %s", session.video_id, e)
            session.set_status(SessionStatus.ERROR)
            return None

        existing: Dict[int, FrameAnalysis] = {}
        for record in records:
            try:
                existing[record.frame_number] = record.to_analysis()
            except ValueError as e:
                logger.warning("[ident] unreadable analysis for frame %d: %s", record.frame_number, e)
        logger.info("[ident] found %d existing frame analyses", len(existing))
        return existing

    async def _analyze_new_frame(self, frame_num: int) -> Optional[FrameAnalysis]:
        """Extract frame frame_num + 1 of the clip, analyze it, and persist the analysis."""
        session = self.session
        storage_key = self.video.get("storage_key") or self.video.get("filename") or ""
        try:
            path = self.videos.get_file_path(storage_key)
            frames = await asyncio.to_thread(
                self.frame_source.extract_frames, path, frame_num + 1, self.config.frame_size
            )
        except Exception as e:
            logger.warning("[ident] error extracting frame %d: %s", frame_num, e)
            return None
        if not frames or session.cancelled:
            return None

        try:
            analysis = await self.vision.analyze(frames[-1])
        except Exception as e:
            logger.warning("[ident] error analyzing frame %d: %s", frame_num, e)
            return None
        if session.cancelled:
            return None

        try:
            await self.frame_store.create(session.video_id, frame_num, analysis)
        except Exception as e:
            logger.warning("[ident] error saving frame analysis %d: %s", frame_num, e)
        return analysis

    # ------------------------------------------------------------------
    # Inner loop: feedback-reactive passes over one frame
    # ------------------------------------------------------------------

    async def _react(self, frame_num: int, analysis: FrameAnalysis) -> _PassOutcome:
        session = self.session
        config = self.config

        while True:
            if session.cancelled:
                self._finish_cancelled()
                return _PassOutcome.FINISHED
            if session.consume_feedback_signal():
                logger.info("[ident] feedback changed, re-searching with updated parameters")

            feedback = session.feedback_snapshot()
            query = build_search_query(analysis, feedback, config.max_query_keywords)
            logger.info("[ident] search query: %s", query)

            try:
                results = await self.search.search(query)
            except Exception as e:
                logger.warning("[ident] error searching films: %s", e)
                return _PassOutcome.NEXT_FRAME
            if session.cancelled:
                self._finish_cancelled()
                return _PassOutcome.FINISHED
            logger.info("[ident] found %d search results", len(results))

            candidates = build_candidates(results, analysis, feedback, config)
            session.candidates = candidates
            if candidates:
                session.confidence = candidates[0].score
                logger.info(
                    "[ident] generated %d candidates, top candidate: %s (score: %.2f)",
                    len(candidates), candidates[0].title, candidates[0].score,
                )
            else:
                logger.info("[ident] no candidates generated from search results")

            chips = extract_chips(analysis, feedback, config.significant_label_confidence)
            self._emit(UpdateType.CHIPS, ChipsPayload(session_id=session.id, chips=chips))
            self._emit(
                UpdateType.CANDIDATES,
                CandidatesPayload(candidates=candidates, frame=frame_num, confidence=session.confidence),
            )

            if candidates and session.confidence >= config.score_threshold:
                if await self._try_complete(frame_num):
                    return _PassOutcome.FINISHED
                if session.cancelled:
                    self._finish_cancelled()
                    return _PassOutcome.FINISHED

            wake = await self._wait_for_wake()
            if wake is _Wake.CANCELLED:
                self._finish_cancelled()
                return _PassOutcome.FINISHED
            if wake is _Wake.FEEDBACK:
                logger.info("[ident] feedback changed while waiting, re-searching immediately")
                continue
            return _PassOutcome.NEXT_FRAME

    async def _try_complete(self, frame_num: int) -> bool:
        """Fetch details for the top candidate; True when the session completed."""
        session = self.session
        top = session.candidates[0]
        logger.info(
            "[ident] confidence threshold reached (%.2f >= %.2f), fetching details for: %s",
            session.confidence, self.config.score_threshold, top.title,
        )
        try:
            details = await self.films.get_film(top.catalog_id)
        except Exception as e:
            logger.warning("[ident] error getting film details for %s: %s", top.catalog_id, e)
            return False
        if session.cancelled:
            return False

        elapsed = session.elapsed_seconds()
        if not session.set_status(SessionStatus.COMPLETE):
            return False
        self._emit(
            UpdateType.COMPLETE,
            IdentificationResult(
                session_id=session.id,
                video_id=session.video_id,
                film_details=details,
                confidence=session.confidence,
                frames_used=frame_num + 1,
                time_elapsed=round(elapsed, 3),
            ),
        )
        logger.info(
            "[ident] identification complete! Film: %s, confidence: %.2f, frames: %d, time: %.2fs",
            details.title, session.confidence, frame_num + 1, elapsed,
        )
        return True

    async def _wait_for_wake(self) -> _Wake:
        """Block until cancellation, a feedback signal, or the idle timeout."""
        session = self.session
        cancel_wait = asyncio.ensure_future(session.wait_cancelled())
        feedback_wait = asyncio.ensure_future(session.wait_feedback_signal())
        try:
            done, _ = await asyncio.wait(
                {cancel_wait, feedback_wait},
                timeout=self.config.idle_wait_seconds,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for waiter in (cancel_wait, feedback_wait):
                if not waiter.done():
                    waiter.cancel()
        if cancel_wait in done or session.cancelled:
            return _Wake.CANCELLED
        if feedback_wait in done:
            return _Wake.FEEDBACK
        return _Wake.TIMEOUT

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    def _emit(self, update_type: UpdateType, payload) -> None:
        self.session.updates.emit(SessionUpdate.of(update_type, payload))

    def _finish_cancelled(self) -> None:
        if self.session.set_status(SessionStatus.CANCELLED):
            logger.info("[ident] session %s cancelled", self.session.id)
            self._emit(UpdateType.CANCELLED, MessagePayload(message=CANCELLED_MESSAGE))
