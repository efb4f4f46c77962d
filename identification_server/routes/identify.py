"""Identification endpoints: start, session info, event stream, feedback, cancel."""

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse

from identification import IdentificationSession, SessionManager, SessionNotFoundError, VideoNotFoundError

from ..models import CancelResponse, FeedbackRequest, FeedbackResponse, SessionInfoResponse
from ..state import get_state
from ..utils import HEARTBEAT, SSE_HEADERS, format_update

logger = logging.getLogger(__name__)

router = APIRouter()


def _manager() -> SessionManager:
    state = get_state()
    if state.session_manager is None:
        raise HTTPException(
            status_code=503,
            detail="Identification providers are not configured: "
            + "; ".join(state.provider_errors.values()),
        )
    return state.session_manager


def _session_or_404(session_id: str) -> IdentificationSession:
    session = _manager().get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return session


def _session_info(session: IdentificationSession) -> SessionInfoResponse:
    return SessionInfoResponse(
        **session.snapshot(),
        stream_url=f"/api/identify/sessions/{session.id}/stream",
    )


@router.post("/{video_id}", response_model=SessionInfoResponse)
async def start_identification(video_id: str):
    """Start identifying a stored video. Returns immediately; progress arrives on the stream."""
    try:
        session = _manager().start(video_id)
    except VideoNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _session_info(session)


@router.get("/sessions/{session_id}", response_model=SessionInfoResponse)
async def get_session(session_id: str):
    return _session_info(_session_or_404(session_id))


@router.get("/sessions/{session_id}/stream")
async def stream_session(session_id: str, request: Request):
    """
    Server-sent events for one session: chips, candidates, and exactly one
    terminal event, then the stream ends. A comment heartbeat is sent while
    idle. Disconnecting cancels the session.
    """
    session = _session_or_404(session_id)
    heartbeat_seconds = get_state().config.heartbeat_seconds

    async def event_stream():
        try:
            while True:
                if await request.is_disconnected():
                    logger.info("[sse] client disconnected from session %s", session.id)
                    break
                try:
                    update = await session.updates.next(timeout=heartbeat_seconds)
                except asyncio.TimeoutError:
                    yield HEARTBEAT
                    continue
                if update is None:
                    break
                yield format_update(update)
        finally:
            if not session.is_terminal:
                session.cancel()

    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=SSE_HEADERS)


@router.post("/sessions/{session_id}/feedback", response_model=FeedbackResponse)
async def submit_feedback(session_id: str, request: FeedbackRequest):
    try:
        session = _manager().update_feedback(session_id, request.chip, request.selected)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return FeedbackResponse(
        session_id=session.id,
        chip=request.chip,
        selected=request.selected,
        feedback=session.feedback_snapshot(),
    )


@router.post("/sessions/{session_id}/cancel", response_model=CancelResponse)
async def cancel_session(session_id: str):
    try:
        session = _manager().cancel(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return CancelResponse(session_id=session.id, status=session.status.value)
