"""Application state: stores, provider clients, and the session manager."""

from typing import Any, Dict, List, Optional

from identification import IdentificationConfig, ProviderError, SessionManager

from .config import ServerConfig, get_config
from .services import (
    CompositeVisionService,
    FFmpegFrameExtractor,
    GoogleSearchClient,
    GoogleVisionClient,
    InMemoryFrameAnalysisStore,
    JsonFrameAnalysisStore,
    JsonVideoStore,
    LocalStorage,
    OpenAICaptioner,
    TMDbClient,
)


class AppState:
    """Global application state."""

    def __init__(self, config: ServerConfig, session_manager: Optional[SessionManager] = None):
        self.config = config
        self.identification_config: IdentificationConfig = config.identification_config()

        # Stores
        self.storage = LocalStorage(config.upload_dir)
        self.video_store = JsonVideoStore(config.videos_json_path, self.storage)
        if config.frame_store == "memory":
            self.frame_store: Any = InMemoryFrameAnalysisStore()
        else:
            self.frame_store = JsonFrameAnalysisStore(config.frame_analyses_json_path)
        print(f"[startup] Frame analysis store: {type(self.frame_store).__name__}")

        # Providers; a missing key or binary leaves identification unavailable.
        self.provider_errors: Dict[str, str] = {}
        self.frame_extractor = self._create("frames", lambda: FFmpegFrameExtractor())
        self.vision = self._create("vision", self._create_vision)
        self.search = self._create(
            "search",
            lambda: GoogleSearchClient(
                config.google_search_api_key, config.google_cse_id, timeout=config.provider_timeout_seconds
            ),
        )
        self.films = self._create(
            "films", lambda: TMDbClient(config.tmdb_api_key, timeout=config.provider_timeout_seconds)
        )

        self.session_manager: Optional[SessionManager] = session_manager
        if self.session_manager is None and not self.provider_errors:
            self.session_manager = SessionManager(
                videos=self.video_store,
                frame_source=self.frame_extractor,
                frame_store=self.frame_store,
                vision=self.vision,
                search=self.search,
                films=self.films,
                config=self.identification_config,
            )
        if self.session_manager is None:
            print(f"[startup] Identification unavailable: {'; '.join(self.provider_errors.values())}")

    def _create(self, name: str, factory) -> Optional[Any]:
        try:
            provider = factory()
        except ProviderError as e:
            self.provider_errors[name] = str(e)
            return None
        print(f"[startup] {name.capitalize()} provider: {type(provider).__name__}")
        return provider

    def _create_vision(self) -> CompositeVisionService:
        config = self.config
        captioner = None
        features = None
        if config.openai_api_key:
            captioner = OpenAICaptioner(
                config.openai_api_key,
                model=config.openai_vision_model,
                timeout=config.provider_timeout_seconds,
            )
        if config.google_vision_api_key:
            features = GoogleVisionClient(config.google_vision_api_key, timeout=config.provider_timeout_seconds)
        return CompositeVisionService(captioner=captioner, features=features)

    @property
    def is_ready(self) -> bool:
        return self.session_manager is not None

    def available_providers(self) -> Dict[str, bool]:
        vision = self.vision.providers if self.vision is not None else []
        return {
            "ffmpeg": self.frame_extractor is not None,
            "openai": "openai" in vision,
            "google_vision": "google_vision" in vision,
            "google_search": self.search is not None,
            "tmdb": self.films is not None,
        }

    def session_ids(self) -> List[str]:
        return self.session_manager.list_sessions() if self.session_manager else []


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        config = get_config()
        _state = AppState(config)
    return _state


def set_state(state: Optional[AppState]) -> None:
    """Replace the global state (None resets it to be rebuilt on next access)."""
    global _state
    _state = state
