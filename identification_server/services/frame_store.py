"""
Frame analysis store: persisted per-frame vision output, upserted by
(video_id, frame_number) and read back in frame order.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Dict, List, Tuple, Union

from identification.models import FrameAnalysis, FrameAnalysisRecord

logger = logging.getLogger(__name__)


class InMemoryFrameAnalysisStore:
    """Frame analyses kept in process memory."""

    def __init__(self):
        self._records: Dict[Tuple[str, int], FrameAnalysisRecord] = {}
        self._lock = asyncio.Lock()

    async def get_by_video(self, video_id: str) -> List[FrameAnalysisRecord]:
        async with self._lock:
            records = [r for (vid, _), r in self._records.items() if vid == video_id]
        return sorted(records, key=lambda r: r.frame_number)

    async def create(self, video_id: str, frame_number: int, analysis: FrameAnalysis) -> None:
        record = analysis.to_record(video_id, frame_number)
        async with self._lock:
            self._records[(video_id, frame_number)] = record
            await self._after_write()

    async def _after_write(self) -> None:
        pass

    def count(self) -> int:
        return len(self._records)


class JsonFrameAnalysisStore(InMemoryFrameAnalysisStore):
    """Frame analyses backed by a JSON file ({"frame_analyses": [...]})."""

    def __init__(self, path: Union[Path, str]):
        super().__init__()
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._load()

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            with open(self._path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("[frames] could not read %s: %s", self._path, e)
            return
        for item in data.get("frame_analyses", []) if isinstance(data, dict) else []:
            try:
                record = FrameAnalysisRecord.model_validate(item)
            except ValueError as e:
                logger.warning("[frames] skipping malformed frame analysis: %s", e)
                continue
            self._records[(record.video_id, record.frame_number)] = record
        logger.info("[frames] loaded %d frame analyses from %s", len(self._records), self._path)

    async def _after_write(self) -> None:
        out = {"frame_analyses": [r.model_dump(mode="json") for r in self._records.values()]}
        await asyncio.to_thread(self._dump, out)

    def _dump(self, out: Dict) -> None:
        with open(self._path, "w") as f:
            json.dump(out, f, indent=2)
