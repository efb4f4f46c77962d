"""
Film Identification API: FastAPI app factory.

Use: uvicorn identification_server.app:app
Or:  from identification_server import app
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from identification import __version__

from .routes import register_routes
from .state import AppState, get_state, set_state


def create_app(state: Optional[AppState] = None) -> FastAPI:
    """Build FastAPI app with CORS, routes, and startup/shutdown hooks."""
    if state is not None:
        set_state(state)

    app = FastAPI(
        title="Film Identification API",
        description="Progressive film identification from video clips with interactive refinement",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_routes(app)

    @app.on_event("startup")
    async def _startup_logging():
        state = get_state()
        config = state.config
        ok, errors = config.validate()
        print("Film Identification API starting...")
        print(f"[startup] Uploads: {config.upload_dir}")
        print(f"[startup] Data: {config.data_dir}")
        print(
            f"[startup] Threshold: {state.identification_config.score_threshold}, "
            f"max frames: {state.identification_config.max_frames_analyze}"
        )
        if not ok:
            for error in errors:
                print(f"[startup] WARNING: {error}")

    @app.on_event("shutdown")
    async def _stop_sessions():
        state = get_state()
        if state.session_manager is not None:
            await state.session_manager.shutdown()
            print("[shutdown] All identification sessions stopped")

    return app


app = create_app()
