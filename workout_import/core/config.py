"""
Configuration management for the Workout Import Service.
Centralizes environment variable handling and application settings.
"""
import os
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        # API Configuration
        self.api_title = "Workout Import Service"
        self.api_description = "Turns shared TikTok and Instagram workout videos into editable workout templates"
        self.api_version = "1.0.0"
        self.debug_mode = os.getenv("DEBUG_MODE", "false").lower() == "true"

        # Security
        self.api_key = os.getenv("API_KEY", "your-default-api-key-here")
        self.allowed_origins = ["*"]

        # Inference service
        self.openai_api_key = os.getenv("OPENAI_API_KEY", "")
        self.text_model = os.getenv("INFERENCE_TEXT_MODEL", "gpt-4o-mini")
        self.vision_model = os.getenv("INFERENCE_VISION_MODEL", "gpt-4o")
        self.inference_max_tokens = int(os.getenv("INFERENCE_MAX_TOKENS", "2048"))
        self.min_workout_confidence = float(os.getenv("MIN_WORKOUT_CONFIDENCE", "0.4"))

        # Cache Configuration (process memory only, never persisted)
        self.cache_enabled = os.getenv("CACHE_ENABLED", "true").lower() == "true"
        self.page_cache_ttl_seconds = int(os.getenv("PAGE_CACHE_TTL_SECONDS", "300"))
        self.result_cache_ttl_seconds = int(os.getenv("RESULT_CACHE_TTL_SECONDS", "300"))

        # Scraping
        self.http_timeout_seconds = int(os.getenv("HTTP_TIMEOUT_SECONDS", "15"))
        self.full_page_min_bytes = int(os.getenv("FULL_PAGE_MIN_BYTES", "10000"))
        self.embed_page_min_bytes = int(os.getenv("EMBED_PAGE_MIN_BYTES", "5000"))
        self.bot_agent_attempts = int(os.getenv("BOT_AGENT_ATTEMPTS", "2"))

        # Path routing
        self.fast_path_min_stickers = int(os.getenv("FAST_PATH_MIN_STICKERS", "5"))
        self.frames_path_min_frames = int(os.getenv("FRAMES_PATH_MIN_FRAMES", "3"))
        self.max_frames_per_request = int(os.getenv("MAX_FRAMES_PER_REQUEST", "10"))
        self.max_covers_with_frames = int(os.getenv("MAX_COVERS_WITH_FRAMES", "2"))
        self.relevance_min_keyword_hits = int(os.getenv("RELEVANCE_MIN_KEYWORD_HITS", "2"))

        # Images
        self.max_cover_images = int(os.getenv("MAX_COVER_IMAGES", "3"))
        self.cover_image_max_bytes = int(os.getenv("COVER_IMAGE_MAX_BYTES", "1000000"))
        self.cover_image_min_bytes = int(os.getenv("COVER_IMAGE_MIN_BYTES", "1000"))
        self.client_frame_min_chars = int(os.getenv("CLIENT_FRAME_MIN_CHARS", "1000"))
        self.client_frame_max_chars = int(os.getenv("CLIENT_FRAME_MAX_CHARS", "500000"))

        # Collector (headless page renderer + frame sampling)
        self.import_service_url = os.getenv("IMPORT_SERVICE_URL", "http://localhost:8000/process")
        self.import_service_timeout = int(os.getenv("IMPORT_SERVICE_TIMEOUT", "120"))
        self.import_service_api_key = os.getenv("IMPORT_SERVICE_API_KEY", self.api_key)
        self.tiktok_collect_timeout_seconds = float(os.getenv("TIKTOK_COLLECT_TIMEOUT_SECONDS", "15"))
        self.instagram_collect_timeout_seconds = float(os.getenv("INSTAGRAM_COLLECT_TIMEOUT_SECONDS", "20"))
        self.script_inject_delay_seconds = float(os.getenv("SCRIPT_INJECT_DELAY_SECONDS", "0.5"))
        self.instagram_poll_attempts = int(os.getenv("INSTAGRAM_POLL_ATTEMPTS", "20"))
        self.instagram_poll_interval_ms = int(os.getenv("INSTAGRAM_POLL_INTERVAL_MS", "500"))
        self.instagram_poll_start_delay_ms = int(os.getenv("INSTAGRAM_POLL_START_DELAY_MS", "1000"))
        self.frame_min_count = int(os.getenv("FRAME_MIN_COUNT", "4"))
        self.frame_max_count = int(os.getenv("FRAME_MAX_COUNT", "10"))
        self.frame_seconds_per_sample = int(os.getenv("FRAME_SECONDS_PER_SAMPLE", "5"))
        self.frame_max_base64_chars = int(os.getenv("FRAME_MAX_BASE64_CHARS", "200000"))
        self.frame_jpeg_quality = int(os.getenv("FRAME_JPEG_QUALITY", "5"))  # ffmpeg -q:v, 2 (best) .. 31
        self.frame_timeout_seconds = int(os.getenv("FRAME_TIMEOUT_SECONDS", "30"))
        self.ffmpeg_binary = os.getenv("FFMPEG_BINARY", "ffmpeg")
        self.media_resolve_timeout = int(os.getenv("MEDIA_RESOLVE_TIMEOUT", "30"))
        self.media_resolve_retries = int(os.getenv("MEDIA_RESOLVE_RETRIES", "2"))

        # Matching
        self.exercise_catalog_path = os.getenv("EXERCISE_CATALOG_PATH", "")
        self.match_threshold = float(os.getenv("MATCH_THRESHOLD", "0.5"))

        # Logging
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.log_format = os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")

class PlatformConfig:
    """Platform-specific configurations."""

    SUPPORTED_PLATFORMS = {
        "tiktok": {
            "domains": ["tiktok.com", "www.tiktok.com", "vm.tiktok.com", "vt.tiktok.com", "m.tiktok.com"],
            "short_link_markers": ["vm.tiktok.com", "vt.tiktok.com", "/t/"],
            "content_id_pattern": r"/video/(\d+)",
            "features": ["client_extraction", "server_scrape", "stickers", "video_frames", "cover_images"],
            "url_patterns": [
                "https://www.tiktok.com/@{username}/video/{video_id}",
                "https://vm.tiktok.com/{short_id}",
                "https://vt.tiktok.com/{short_id}"
            ]
        },
        "instagram": {
            "domains": ["instagram.com", "www.instagram.com"],
            "short_link_markers": [],
            "content_id_pattern": r"/(?:reel|p)/([A-Za-z0-9_-]+)",
            "features": ["client_extraction", "server_scrape", "video_frames", "cover_images"],
            "url_patterns": [
                "https://www.instagram.com/reel/{shortcode}/",
                "https://www.instagram.com/p/{shortcode}/"
            ]
        }
    }

    @classmethod
    def get_platform_domains(cls, platform: str) -> List[str]:
        """Get supported domains for a platform."""
        return cls.SUPPORTED_PLATFORMS.get(platform, {}).get("domains", [])

    @classmethod
    def get_all_domains(cls) -> List[str]:
        """Get all supported domains."""
        domains = []
        for platform_config in cls.SUPPORTED_PLATFORMS.values():
            domains.extend(platform_config.get("domains", []))
        return domains

    @classmethod
    def get_short_link_markers(cls, platform: str) -> List[str]:
        """Get URL fragments that identify a short link needing resolution."""
        return cls.SUPPORTED_PLATFORMS.get(platform, {}).get("short_link_markers", [])

    @classmethod
    def get_content_id_pattern(cls, platform: str) -> Optional[str]:
        """Get the regex that pulls the content ID out of a canonical URL."""
        return cls.SUPPORTED_PLATFORMS.get(platform, {}).get("content_id_pattern")

    @classmethod
    def get_platform_features(cls, platform: str) -> List[str]:
        """Get supported features for a platform."""
        return cls.SUPPORTED_PLATFORMS.get(platform, {}).get("features", [])

class YTDLPConfig:
    """Configuration for yt-dlp media resolution."""

    BASE_OPTIONS = {
        'quiet': True,
        'no_warnings': True,
        'format': 'best[ext=mp4]/best',
        'skip_download': True,
        'extract_flat': False,
        'ignoreerrors': False,
        'socket_timeout': 30,
        'retries': 2,
        'http_headers': {
            'User-Agent': 'Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1'
        },
    }

    @classmethod
    def get_options(cls, timeout: int = 30, retries: int = 2) -> dict:
        """Get yt-dlp options with custom timeout and retries."""
        options = cls.BASE_OPTIONS.copy()
        options.update({
            'socket_timeout': timeout,
            'retries': retries
        })
        return options

# Create global settings instance
settings = Settings()
