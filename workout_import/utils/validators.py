"""URL validation and platform detection utilities."""
import re
from typing import Optional

from workout_import.core.config import PlatformConfig, settings
from workout_import.models.extraction import ExtractionSource

class URLValidator:
    """URL validation utilities for supported platforms."""

    @staticmethod
    def detect_platform(url: str) -> ExtractionSource:
        """Map a URL to its platform. Anything that is not Instagram is treated as TikTok."""
        if url and "instagram.com" in url:
            return ExtractionSource.INSTAGRAM
        return ExtractionSource.TIKTOK

    @staticmethod
    def is_supported_url(url: str) -> bool:
        """Check the URL points at one of the supported platforms."""
        if not url or not isinstance(url, str):
            return False
        return "tiktok.com" in url or "instagram.com" in url

    @staticmethod
    def is_short_link(url: str, platform: ExtractionSource) -> bool:
        """Check whether the URL is a short form that must be resolved first."""
        markers = PlatformConfig.get_short_link_markers(platform.value)
        return any(marker in url for marker in markers)

    @staticmethod
    def extract_content_id(url: str) -> Optional[str]:
        """Extract the platform content ID used as the cache key.

        TikTok canonical URLs carry ``/video/<digits>``, Instagram ones ``/reel/<code>``
        or ``/p/<code>``. Short links have no ID until resolved.
        """
        if not url:
            return None

        for platform in (ExtractionSource.TIKTOK, ExtractionSource.INSTAGRAM):
            pattern = PlatformConfig.get_content_id_pattern(platform.value)
            match = re.search(pattern, url)
            if match:
                return match.group(1)

        return None

class FrameValidator:
    """Size checks for base64-encoded still images."""

    @staticmethod
    def is_usable_client_frame(frame: str) -> bool:
        """A client frame is usable when its base64 payload is within the configured bounds."""
        if not frame or not isinstance(frame, str):
            return False
        return settings.client_frame_min_chars < len(frame) < settings.client_frame_max_chars

    @staticmethod
    def within_frame_ceiling(encoded: str, max_chars: Optional[int] = None) -> bool:
        """Check a freshly sampled frame against the upload ceiling."""
        return len(encoded) < (max_chars or settings.frame_max_base64_chars)
