"""Root and health endpoints."""

from fastapi import APIRouter

from identification import __version__

from ..state import get_state

router = APIRouter()


@router.get("/")
def root():
    state = get_state()
    manager = state.session_manager
    return {
        "name": "Film Identification API",
        "version": __version__,
        "status": "ready" if state.is_ready else "not_configured",
        "sessions": {
            "total": len(state.session_ids()),
            "active": manager.active_count() if manager else 0,
        },
        "providers": state.available_providers(),
        "endpoints": {
            "identify": [
                "/api/identify/{video_id}",
                "/api/identify/sessions/{session_id}",
                "/api/identify/sessions/{session_id}/stream",
                "/api/identify/sessions/{session_id}/feedback",
                "/api/identify/sessions/{session_id}/cancel",
            ],
        },
    }


@router.get("/api/health")
def health():
    state = get_state()
    return {
        "status": "healthy",
        "ready": state.is_ready,
        "providers": state.available_providers(),
        "errors": state.provider_errors,
    }
