"""
ffmpeg frame extractor.

Pulls `count` evenly spaced JPEG frames out of a stored clip: the clip
duration comes from ffprobe (falling back to the "Duration:" line ffmpeg
prints), frame i of count is taken at duration / (count + 1) * i, and each
frame is scaled down and padded onto a black square of `size` pixels.
"""

import logging
import re
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from identification.errors import FrameExtractionError

logger = logging.getLogger(__name__)

DURATION_PATTERN = re.compile(r"Duration:\s*(\d+):(\d+):(\d+(?:\.\d+)?)")


def parse_ffmpeg_duration(output: str) -> Optional[float]:
    """Seconds from an ffmpeg banner ("Duration: 00:01:02.50, ..."), None when absent."""
    match = DURATION_PATTERN.search(output or "")
    if not match:
        return None
    hours, minutes, seconds = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


def frame_timestamps(duration: float, count: int) -> List[float]:
    interval = duration / (count + 1)
    return [interval * i for i in range(1, count + 1)]


def scale_filter(size: int) -> str:
    return (
        f"scale='min({size},iw)':'min({size},ih)':force_original_aspect_ratio=decrease,"
        f"pad={size}:{size}:(ow-iw)/2:(oh-ih)/2:black"
    )


class FFmpegFrameExtractor:
    """Frame source backed by the ffmpeg / ffprobe binaries."""

    def __init__(self, ffmpeg_path: Optional[str] = None, ffprobe_path: Optional[str] = None):
        self.ffmpeg_path = ffmpeg_path or shutil.which("ffmpeg")
        self.ffprobe_path = ffprobe_path or shutil.which("ffprobe")
        if not self.ffmpeg_path:
            raise FrameExtractionError("ffmpeg not found in PATH")
        logger.info("[frames] using ffmpeg at %s", self.ffmpeg_path)

    def extract_frames(self, path: Union[Path, str], count: int, size: int = 512) -> List[bytes]:
        video_path = Path(path)
        if not video_path.is_file():
            raise FrameExtractionError(f"Video file not accessible: {video_path}")

        duration = self.get_duration(video_path)
        if duration <= 0:
            raise FrameExtractionError(f"Invalid video duration: {duration}")

        frames: List[bytes] = []
        for i, timestamp in enumerate(frame_timestamps(duration, count), start=1):
            try:
                frames.append(self._extract_single_frame(video_path, timestamp, size))
            except FrameExtractionError as e:
                logger.warning("[frames] failed to extract frame %d/%d: %s", i, count, e)

        if not frames:
            raise FrameExtractionError(f"Failed to extract any frames from video (attempted {count})")
        logger.info("[frames] extracted %d/%d frames from %s", len(frames), count, video_path.name)
        return frames

    def get_duration(self, video_path: Path) -> float:
        if self.ffprobe_path:
            cmd = [
                self.ffprobe_path,
                "-v", "error",
                "-show_entries", "format=duration",
                "-of", "default=noprint_wrappers=1:nokey=1",
                str(video_path),
            ]
            result = subprocess.run(cmd, capture_output=True, text=True)
            if result.returncode == 0:
                try:
                    duration = float(result.stdout.strip())
                    if duration > 0:
                        return duration
                except ValueError:
                    pass

        cmd = [self.ffmpeg_path, "-i", str(video_path), "-f", "null", "-"]
        result = subprocess.run(cmd, capture_output=True, text=True)
        duration = parse_ffmpeg_duration(result.stderr)
        if duration is None:
            raise FrameExtractionError("Duration not found in ffmpeg output")
        return duration

    def _extract_single_frame(self, video_path: Path, timestamp: float, size: int) -> bytes:
        cmd = [
            self.ffmpeg_path,
            "-ss", f"{timestamp:.2f}",
            "-i", str(video_path),
            "-vframes", "1",
            "-vf", scale_filter(size),
            "-q:v", "2",
            "-f", "mjpeg",
            "pipe:1",
        ]
        result = subprocess.run(cmd, capture_output=True)
        if result.returncode != 0 or not result.stdout:
            stderr = result.stderr.decode("utf-8", errors="replace")[-500:]
            raise FrameExtractionError(f"ffmpeg failed at {timestamp:.2f}s: {stderr}")
        return result.stdout
