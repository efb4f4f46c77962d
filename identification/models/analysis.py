"""
Frame analysis model: what a vision provider reports for one extracted frame.

FrameAnalysis is the in-memory shape used by the scorer, chip extractor, and
query builder. FrameAnalysisRecord is the persisted shape keyed by
(video_id, frame_number).
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Label(BaseModel):
    name: str
    confidence: float = 0.0


class BoundingBox(BaseModel):
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0


class FaceDetection(BaseModel):
    box: BoundingBox = Field(default_factory=BoundingBox)
    confidence: float = 0.0


class ColorInfo(BaseModel):
    color: str
    score: float = 0.0
    pixel_ratio: float = 0.0


class FrameAnalysis(BaseModel):
    """Structured output of running one frame through the vision provider."""

    model_config = ConfigDict(extra="ignore")

    caption: str = ""
    labels: List[Label] = Field(default_factory=list)
    ocr_lines: List[str] = Field(default_factory=list)
    faces: List[FaceDetection] = Field(default_factory=list)
    colors: List[ColorInfo] = Field(default_factory=list)
    confidence: float = 0.0
    analyzed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def label_text(self) -> str:
        """Caption plus every label name, lowercased and space-joined."""
        parts = [self.caption.lower()]
        parts.extend(label.name.lower() for label in self.labels)
        return " ".join(parts)

    def to_record(self, video_id: str, frame_number: int) -> "FrameAnalysisRecord":
        return FrameAnalysisRecord(
            video_id=video_id,
            frame_number=frame_number,
            caption=self.caption,
            labels=list(self.labels),
            ocr_text=list(self.ocr_lines),
            face_count=len(self.faces),
            analysis_time=self.analyzed_at,
            raw_response=self.model_dump(mode="json"),
        )


class FrameAnalysisRecord(BaseModel):
    """Persisted frame analysis; upserted by (video_id, frame_number)."""

    video_id: str
    frame_number: int
    caption: str = ""
    labels: List[Label] = Field(default_factory=list)
    ocr_text: List[str] = Field(default_factory=list)
    face_count: int = 0
    analysis_time: Optional[datetime] = None
    raw_response: Optional[Dict[str, Any]] = None

    def to_analysis(self) -> FrameAnalysis:
        """
        Rebuild a FrameAnalysis from the record.

        The raw response carries faces and colors; without it those are empty
        and confidence falls back to 0.8 for a previously accepted analysis.
        """
        if self.raw_response:
            analysis = FrameAnalysis.model_validate(self.raw_response)
            if not analysis.caption:
                analysis.caption = self.caption
            return analysis
        return FrameAnalysis(
            caption=self.caption,
            labels=list(self.labels),
            ocr_lines=list(self.ocr_text),
            confidence=0.8,
            analyzed_at=self.analysis_time or datetime.now(timezone.utc),
        )
