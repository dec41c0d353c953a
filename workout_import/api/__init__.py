"""API module initialization."""
from .imports import router as imports_router
from .health import router as health_router

__all__ = ["imports_router", "health_router"]
