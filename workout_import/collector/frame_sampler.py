"""FFmpeg frame sampling for on-screen text the page data does not carry."""
import asyncio
import base64
import math
import os
import subprocess
import tempfile
from typing import List, Optional

from workout_import.core.config import settings
from workout_import.models.extraction import ExtractedFrame
from workout_import.utils.logging import CorrelatedLogger
from workout_import.utils.validators import FrameValidator


def check_ffmpeg(binary: Optional[str] = None) -> bool:
    """Check if FFmpeg is installed."""
    try:
        subprocess.run(
            [binary or settings.ffmpeg_binary, "-version"],
            capture_output=True,
            check=True,
        )
        return True
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False


def frame_count(duration_seconds: float) -> int:
    """One frame per ``frame_seconds_per_sample`` seconds, clamped to the min/max counts."""
    wanted = math.ceil(duration_seconds / settings.frame_seconds_per_sample)
    return min(settings.frame_max_count, max(settings.frame_min_count, wanted))


def compute_frame_timestamps(duration_seconds: float) -> List[int]:
    """Evenly spaced positions in ms, never at the very start or end of the clip.

    For ``N`` frames the clip is split into ``N + 1`` intervals and frame ``i``
    (1-based) sits at ``floor(interval * i)``.
    """
    if not duration_seconds or duration_seconds <= 0:
        return []
    count = frame_count(duration_seconds)
    interval_ms = (duration_seconds * 1000) / (count + 1)
    return [math.floor(interval_ms * i) for i in range(1, count + 1)]


class FrameSampler:
    """Samples still frames from a remote video, one ffmpeg process per frame."""

    def __init__(self, binary: Optional[str] = None, max_chars: Optional[int] = None):
        self.binary = binary or settings.ffmpeg_binary
        self.max_chars = max_chars or settings.frame_max_base64_chars
        self.logger = CorrelatedLogger(__name__)

    async def sample(self, media_url: str, duration_seconds: float) -> List[ExtractedFrame]:
        """Frames in timestamp order. Failed or oversized frames are skipped."""
        frames = []
        timestamps = compute_frame_timestamps(duration_seconds)

        # Sequential: one decoder at a time
        for timestamp_ms in timestamps:
            try:
                data = await asyncio.to_thread(self._grab_frame, media_url, timestamp_ms)
            except (RuntimeError, OSError, subprocess.TimeoutExpired) as e:
                self.logger.warning(f"Frame extraction failed at {timestamp_ms}ms: {str(e)}")
                continue

            if not FrameValidator.within_frame_ceiling(data, self.max_chars):
                self.logger.debug(f"Dropping oversized frame at {timestamp_ms}ms ({len(data)} chars)")
                continue
            frames.append(ExtractedFrame(data=data, timestamp_ms=timestamp_ms))

        self.logger.info(f"Extracted {len(frames)} of {len(timestamps)} frames")
        return frames

    def _grab_frame(self, media_url: str, timestamp_ms: int) -> str:
        """Decode one frame to a temp JPEG and return it base64-encoded."""
        fd, path = tempfile.mkstemp(suffix=".jpg", prefix="frame_")
        os.close(fd)
        try:
            cmd = [
                self.binary,
                "-y",
                "-loglevel", "error",
                "-rw_timeout", str(settings.frame_timeout_seconds * 1_000_000),
                "-ss", f"{timestamp_ms / 1000:.3f}",
                "-i", media_url,
                "-frames:v", "1",
                "-q:v", str(settings.frame_jpeg_quality),
                path,
            ]
            # Stalled CDN reads raise TimeoutExpired; the child is killed by run
            result = subprocess.run(
                cmd, capture_output=True, text=True, timeout=settings.frame_timeout_seconds
            )
            if result.returncode != 0 or os.path.getsize(path) == 0:
                tail = (result.stderr or "")[-500:]
                raise RuntimeError(f"ffmpeg exited with {result.returncode}: {tail}")

            with open(path, "rb") as f:
                return base64.b64encode(f.read()).decode("ascii")
        finally:
            if os.path.exists(path):
                os.unlink(path)
