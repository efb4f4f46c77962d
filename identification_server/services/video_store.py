"""
Video store: stored clip metadata plus resolution of a clip's storage key to
a path under the upload directory.

Metadata comes from a JSON file (data/videos.json) or memory. Video dicts
carry id, title, description, filename (the storage key), content_type, size
and upload_time.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class LocalStorage:
    """Resolves storage keys to files under a base directory."""

    def __init__(self, base_path: Union[Path, str]):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def get_file_path(self, storage_key: str) -> Path:
        """Absolute path for a storage key. Raises ValueError for keys escaping the base directory."""
        key = Path(storage_key)
        if not storage_key or key.is_absolute() or ".." in key.parts:
            raise ValueError(f"Invalid storage key: {storage_key!r}")
        return (self.base_path / key).resolve()


class InMemoryVideoStore:
    """Video store kept in process memory."""

    def __init__(self, storage: LocalStorage, videos: Optional[List[Dict]] = None):
        self.storage = storage
        self._videos: Dict[str, Dict] = {}
        for video in videos or []:
            self._videos[video["id"]] = video

    def get_video(self, video_id: str) -> Optional[Dict]:
        return self._videos.get(video_id)

    def get_file_path(self, storage_key: str) -> Path:
        return self.storage.get_file_path(storage_key)


class JsonVideoStore(InMemoryVideoStore):
    """Video store read from a JSON file ({"videos": [...]})."""

    def __init__(self, path: Union[Path, str], storage: LocalStorage):
        super().__init__(storage)
        self._path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self._path.exists():
            logger.info("[videos] no video metadata at %s", self._path)
            return
        try:
            with open(self._path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("[videos] could not read %s: %s", self._path, e)
            return
        videos = data.get("videos", []) if isinstance(data, dict) else data
        for video in videos or []:
            if isinstance(video, dict) and video.get("id"):
                self._videos[video["id"]] = video
        logger.info("[videos] loaded %d videos from %s", len(self._videos), self._path)
