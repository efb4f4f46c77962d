"""
Collaborator contracts consumed by the identification loop.

The loop depends only on these protocols. Concrete implementations live in
identification_server.services (OpenAI / Google Vision, Google Custom Search,
TMDb, ffmpeg, JSON stores) and tests supply in-memory fakes.
"""

from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union

from .models.analysis import FrameAnalysis, FrameAnalysisRecord
from .models.candidate import FilmDetails, SearchResult


class VideoLookup(Protocol):
    """Resolves a video id to its stored metadata ({"id", "storage_key", ...})."""

    def get_video(self, video_id: str) -> Optional[Dict]:
        """Return the video dict, or None when the id is unknown."""
        ...

    def get_file_path(self, storage_key: str) -> Path:
        """Absolute path of the stored clip for a storage key."""
        ...


class FrameSource(Protocol):
    def extract_frames(self, path: Union[Path, str], count: int, size: int = 512) -> List[bytes]:
        """
        Return up to count evenly spaced JPEG frames, in timestamp order.
        Raises FrameExtractionError when nothing could be extracted.
        """
        ...


class FrameAnalysisStore(Protocol):
    async def get_by_video(self, video_id: str) -> List[FrameAnalysisRecord]:
        """Prior analyses for a video, ordered by frame number."""
        ...

    async def create(self, video_id: str, frame_number: int, analysis: FrameAnalysis) -> None:
        """Upsert keyed by (video_id, frame_number)."""
        ...


class VisionProvider(Protocol):
    async def analyze(self, image_bytes: bytes) -> FrameAnalysis:
        """Caption, labels, OCR lines, faces, and dominant colors for one frame."""
        ...


class WebSearchProvider(Protocol):
    async def search(self, query: str) -> List[SearchResult]:
        """Ranked web results for a text query."""
        ...


class FilmDetailProvider(Protocol):
    async def get_film(self, catalog_id: str) -> FilmDetails:
        """Full metadata for a film catalog id."""
        ...
