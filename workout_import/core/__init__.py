"""Core application modules."""
from .config import settings, PlatformConfig, YTDLPConfig

__all__ = ["settings", "PlatformConfig", "YTDLPConfig"]
