"""
Server Configuration

Loads configuration from environment variables and provides defaults.
A .env file at the project root is loaded with python-dotenv.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from dotenv import load_dotenv

from identification import IdentificationConfig

root_env = Path(__file__).resolve().parent.parent / ".env"
if root_env.exists():
    load_dotenv(root_env)

BASE_DIR = Path(__file__).resolve().parent.parent

FRAME_STORE_KINDS = ("json", "memory")


def _float_env(key: str) -> Optional[float]:
    v = os.getenv(key)
    return float(v) if v else None


def _int_env(key: str) -> Optional[int]:
    v = os.getenv(key)
    return int(v) if v else None


@dataclass
class ServerConfig:
    """Server configuration."""

    # API Keys
    openai_api_key: Optional[str] = None
    openai_vision_model: str = "gpt-4o"
    google_vision_api_key: Optional[str] = None
    google_search_api_key: Optional[str] = None
    google_cse_id: Optional[str] = None
    tmdb_api_key: Optional[str] = None

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000

    # Paths
    upload_dir: Path = BASE_DIR / "uploads"
    data_dir: Path = BASE_DIR / "data"

    # Frame analysis persistence: "json" (data_dir/frame_analyses.json) | "memory"
    frame_store: str = "json"

    # Engine overrides (None -> IdentificationConfig default)
    score_threshold: Optional[float] = None
    max_frames_analyze: Optional[int] = None
    frame_size: Optional[int] = None

    # Transport
    provider_timeout_seconds: float = 30.0
    heartbeat_seconds: float = 15.0

    @property
    def videos_json_path(self) -> Path:
        return self.data_dir / "videos.json"

    @property
    def frame_analyses_json_path(self) -> Path:
        return self.data_dir / "frame_analyses.json"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""

        def _path_env(key: str, default: Path) -> Path:
            v = os.getenv(key)
            if not v:
                return default
            p = Path(v)
            return p if p.is_absolute() else (BASE_DIR / p).resolve()

        frame_store = os.getenv("FRAME_STORE", "json").strip().lower()
        if frame_store not in FRAME_STORE_KINDS:
            frame_store = "json"

        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_vision_model=os.getenv("OPENAI_VISION_MODEL", "gpt-4o"),
            google_vision_api_key=os.getenv("GOOGLE_VISION_API_KEY") or None,
            google_search_api_key=os.getenv("GOOGLE_SEARCH_API_KEY") or None,
            google_cse_id=os.getenv("GOOGLE_CSE_ID") or None,
            tmdb_api_key=os.getenv("TMDB_API_KEY") or None,
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            upload_dir=_path_env("UPLOAD_DIR", BASE_DIR / "uploads"),
            data_dir=_path_env("DATA_DIR", BASE_DIR / "data"),
            frame_store=frame_store,
            score_threshold=_float_env("SCORE_THRESHOLD"),
            max_frames_analyze=_int_env("MAX_FRAMES_ANALYZE"),
            frame_size=_int_env("FRAME_SIZE"),
            provider_timeout_seconds=float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "30")),
            heartbeat_seconds=float(os.getenv("HEARTBEAT_SECONDS", "15")),
        )

    def identification_config(self) -> IdentificationConfig:
        """Engine config with the environment overrides applied."""
        overrides: Dict = {
            "score_threshold": self.score_threshold,
            "max_frames_analyze": self.max_frames_analyze,
            "frame_size": self.frame_size,
        }
        return IdentificationConfig.from_dict(overrides)

    def validate(self) -> Tuple[bool, List[str]]:
        """
        Validate the configuration.

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []

        if not self.openai_api_key and not self.google_vision_api_key:
            errors.append("No vision provider configured: set OPENAI_API_KEY and/or GOOGLE_VISION_API_KEY")

        if not self.google_search_api_key:
            errors.append("GOOGLE_SEARCH_API_KEY is not set")

        if not self.google_cse_id:
            errors.append("GOOGLE_CSE_ID is not set")

        if not self.tmdb_api_key:
            errors.append("TMDB_API_KEY is not set")

        return len(errors) == 0, errors

    def ensure_directories(self):
        """Create required directories if they don't exist."""
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)


# Global config instance
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
        _config.ensure_directories()
    return _config


def reload_config() -> ServerConfig:
    """Reload configuration from environment."""
    global _config
    _config = None
    return get_config()
