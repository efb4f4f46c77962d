"""Shared fixtures: in-memory fake collaborators and sample frame analyses."""

import asyncio
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import pytest

from identification import IdentificationConfig, SessionManager
from identification.models import (
    FaceDetection,
    FilmDetails,
    FrameAnalysis,
    FrameAnalysisRecord,
    Label,
    SearchResult,
    SessionUpdate,
)

BTTF_LINK = "https://www.themoviedb.org/movie/105-back-to-the-future"
ALIENS_LINK = "https://www.themoviedb.org/movie/679-aliens"


class FakeVideos:
    def __init__(self, videos: Optional[Dict[str, Dict]] = None, base: Path = Path("/tmp/uploads")):
        self.videos = videos if videos is not None else {
            "video-1": {"id": "video-1", "filename": "clip.mp4"},
        }
        self.base = base

    def get_video(self, video_id: str) -> Optional[Dict]:
        return self.videos.get(video_id)

    def get_file_path(self, storage_key: str) -> Path:
        return self.base / storage_key


class FakeFrameSource:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: List[int] = []

    def extract_frames(self, path: Union[Path, str], count: int, size: int = 512) -> List[bytes]:
        self.calls.append(count)
        if self.fail:
            raise RuntimeError("ffmpeg exploded")
        return [f"frame-{i}".encode() for i in range(1, count + 1)]


class FakeFrameStore:
    def __init__(self, records: Optional[List[FrameAnalysisRecord]] = None, fail_get: bool = False):
        self.records = list(records or [])
        self.fail_get = fail_get
        self.created: List[int] = []

    async def get_by_video(self, video_id: str) -> List[FrameAnalysisRecord]:
        if self.fail_get:
            raise RuntimeError("database unavailable")
        return sorted((r for r in self.records if r.video_id == video_id), key=lambda r: r.frame_number)

    async def create(self, video_id: str, frame_number: int, analysis: FrameAnalysis) -> None:
        self.created.append(frame_number)
        self.records.append(analysis.to_record(video_id, frame_number))


class FakeVision:
    def __init__(self, analysis: FrameAnalysis):
        self.analysis = analysis
        self.frames: List[bytes] = []

    async def analyze(self, image_bytes: bytes) -> FrameAnalysis:
        self.frames.append(image_bytes)
        return self.analysis.model_copy(deep=True)


class FakeSearch:
    """Returns fixed results, or the results of a callable taking the call index."""

    def __init__(self, results: Union[List[SearchResult], Callable[[int], List[SearchResult]]]):
        self.results = results
        self.queries: List[str] = []

    async def search(self, query: str) -> List[SearchResult]:
        self.queries.append(query)
        if callable(self.results):
            return self.results(len(self.queries) - 1)
        return list(self.results)


class FakeFilms:
    def __init__(self, failures: int = 0):
        self.failures = failures
        self.requested: List[str] = []

    async def get_film(self, catalog_id: str) -> FilmDetails:
        self.requested.append(catalog_id)
        if len(self.requested) <= self.failures:
            raise RuntimeError("TMDb API returned status 500")
        return FilmDetails(id=int(catalog_id), title="Back to the Future", release_date="1985-07-03")


def spaceship_analysis() -> FrameAnalysis:
    return FrameAnalysis(
        caption="A spaceship flies over a desert city in 1985, genre sci-fi action",
        labels=[Label(name="Spaceship", confidence=0.92), Label(name="Sky", confidence=0.6)],
        confidence=0.7,
    )


def delorean_analysis(faces: int = 1) -> FrameAnalysis:
    return FrameAnalysis(
        caption="A DeLorean time machine in a 1985 sci-fi movie parking lot",
        labels=[Label(name="Car", confidence=0.95)],
        faces=[FaceDetection(confidence=0.9) for _ in range(faces)],
        confidence=0.8,
    )


def bttf_result() -> SearchResult:
    return SearchResult(
        title="Back to the Future - IMDb",
        link=BTTF_LINK,
        snippet="Back to the Future is a 1985 American sci-fi film directed by Robert Zemeckis.",
    )


def fast_config(**overrides) -> IdentificationConfig:
    values = {"score_threshold": 0.7, "max_frames_analyze": 3, "idle_wait_seconds": 0.01}
    values.update(overrides)
    return IdentificationConfig(**values)


def build_manager(
    vision: FakeVision,
    search: FakeSearch,
    films: Optional[FakeFilms] = None,
    frame_store: Optional[FakeFrameStore] = None,
    frame_source: Optional[FakeFrameSource] = None,
    config: Optional[IdentificationConfig] = None,
) -> SessionManager:
    return SessionManager(
        videos=FakeVideos(),
        frame_source=frame_source or FakeFrameSource(),
        frame_store=frame_store or FakeFrameStore(),
        vision=vision,
        search=search,
        films=films or FakeFilms(),
        config=config or fast_config(),
    )


async def collect_updates(session, timeout: float = 5.0) -> List[SessionUpdate]:
    """Drain a session outbox until it closes."""
    updates: List[SessionUpdate] = []

    async def drain():
        async for update in session.updates:
            updates.append(update)

    await asyncio.wait_for(drain(), timeout)
    return updates


def update_types(updates: List[SessionUpdate]) -> List[str]:
    return [u.type.value for u in updates]


@pytest.fixture
def analysis() -> FrameAnalysis:
    return spaceship_analysis()


@pytest.fixture
def bttf() -> SearchResult:
    return bttf_result()
