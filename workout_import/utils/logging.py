"""Logging configuration and utilities."""
import logging
import sys
from typing import Optional
from ..core.config import settings

class LoggerSetup:
    """Centralized logging configuration."""

    @staticmethod
    def setup_logging(
        level: Optional[str] = None,
        format_string: Optional[str] = None
    ) -> None:
        """Setup application logging."""
        log_level = level or settings.log_level
        log_format = format_string or settings.log_format

        # Configure root logger
        logging.basicConfig(
            level=getattr(logging, log_level.upper(), logging.INFO),
            format=log_format,
            handlers=[
                logging.StreamHandler(sys.stdout)
            ]
        )

        # Set specific logger levels
        logging.getLogger("uvicorn").setLevel(logging.INFO)
        logging.getLogger("fastapi").setLevel(logging.INFO)
        logging.getLogger("yt_dlp").setLevel(logging.WARNING)
        logging.getLogger("openai").setLevel(logging.WARNING)
        logging.getLogger("aiohttp").setLevel(logging.WARNING)
        logging.getLogger("playwright").setLevel(logging.WARNING)

class CorrelatedLogger:
    """Logger with correlation ID support for request tracking."""

    def __init__(self, name: str, request_id: Optional[str] = None):
        self.logger = logging.getLogger(name)
        self.request_id = request_id

    def _format_message(self, message: str) -> str:
        """Format message with request ID if available."""
        if self.request_id:
            return f"[{self.request_id}] {message}"
        return message

    def debug(self, message: str, **kwargs) -> None:
        """Log debug message with correlation ID."""
        self.logger.debug(self._format_message(message), **kwargs)

    def info(self, message: str, **kwargs) -> None:
        """Log info message with correlation ID."""
        self.logger.info(self._format_message(message), **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        """Log warning message with correlation ID."""
        self.logger.warning(self._format_message(message), **kwargs)

    def error(self, message: str, **kwargs) -> None:
        """Log error message with correlation ID."""
        self.logger.error(self._format_message(message), **kwargs)

    def exception(self, message: str, **kwargs) -> None:
        """Log exception message with correlation ID."""
        self.logger.exception(self._format_message(message), **kwargs)

class MetricsLogger:
    """Logger for performance metrics and monitoring."""

    def __init__(self):
        self.logger = logging.getLogger("metrics")

    def log_import_metrics(
        self,
        request_id: str,
        platform: str,
        success: bool,
        processing_time_ms: int,
        path: Optional[str] = None,
        cache_hit: bool = False,
        exercise_count: int = 0,
        error_code: Optional[str] = None
    ) -> None:
        """Log one import request outcome."""
        status = "success" if success else "failed"
        cache_status = "hit" if cache_hit else "miss"

        log_msg = (
            f"IMPORT_METRICS request_id={request_id} "
            f"platform={platform} status={status} path={path or 'none'} "
            f"exercises={exercise_count} "
            f"processing_time_ms={processing_time_ms} cache={cache_status}"
        )

        if error_code:
            log_msg += f" error_code={error_code}"

        self.logger.info(log_msg)

    def log_scrape_metrics(
        self,
        request_id: Optional[str],
        strategy: str,
        html_bytes: int,
        full_page: bool
    ) -> None:
        """Log which scraping strategy produced the page."""
        self.logger.info(
            f"SCRAPE_METRICS request_id={request_id or '-'} "
            f"strategy={strategy} bytes={html_bytes} full_page={full_page}"
        )
