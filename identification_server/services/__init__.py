"""Concrete collaborators for the identification engine."""

from .film_details import TMDbClient, image_url
from .frame_extractor import FFmpegFrameExtractor
from .frame_store import InMemoryFrameAnalysisStore, JsonFrameAnalysisStore
from .video_store import InMemoryVideoStore, JsonVideoStore, LocalStorage
from .vision import CompositeVisionService, GoogleVisionClient, OpenAICaptioner, analysis_confidence
from .web_search import GoogleSearchClient

__all__ = [
    "CompositeVisionService",
    "FFmpegFrameExtractor",
    "GoogleSearchClient",
    "GoogleVisionClient",
    "InMemoryFrameAnalysisStore",
    "InMemoryVideoStore",
    "JsonFrameAnalysisStore",
    "JsonVideoStore",
    "LocalStorage",
    "OpenAICaptioner",
    "TMDbClient",
    "analysis_confidence",
    "image_url",
]
