"""Exception hierarchy for the identification engine and its providers."""

# Environment variable names per provider
API_KEY_ENV_VARS: dict = {
    "openai": "OPENAI_API_KEY",
    "google_vision": "GOOGLE_VISION_API_KEY",
    "google_search": "GOOGLE_SEARCH_API_KEY",
    "tmdb": "TMDB_API_KEY",
}


class IdentificationError(Exception):
    """Base exception for identification failures."""

    pass


class VideoNotFoundError(IdentificationError, LookupError):
    """Raised when identification is started for an unknown video id."""

    def __init__(self, video_id: str):
        super().__init__(f"Video not found: {video_id}")
        self.video_id = video_id


class SessionNotFoundError(IdentificationError, LookupError):
    """Raised when feedback or cancellation targets an unknown session."""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class ProviderError(IdentificationError):
    """Raised by an external collaborator (vision, search, film details, storage)."""

    pass


class MissingAPIKeyError(ProviderError):
    """Raised when a required API key is not configured."""

    def __init__(self, provider: str):
        env_var = API_KEY_ENV_VARS.get(provider, f"{provider.upper()}_API_KEY")
        super().__init__(f"API key for '{provider}' not found. Set the {env_var} environment variable.")
        self.provider = provider


class FrameExtractionError(ProviderError):
    """Raised when no frame could be extracted from a stored clip."""

    pass


class OutboxClosedError(IdentificationError):
    """Raised when an event is emitted into a closed session outbox."""

    pass
