"""Utility modules for the Workout Import Service."""
from .validators import URLValidator, FrameValidator
from .response_helpers import ResponseHelper
from .logging import LoggerSetup, CorrelatedLogger, MetricsLogger

__all__ = [
    "URLValidator", "FrameValidator", "ResponseHelper",
    "LoggerSetup", "CorrelatedLogger", "MetricsLogger"
]
