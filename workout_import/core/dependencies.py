"""Dependency injection setup for FastAPI."""
from functools import lru_cache
from fastapi import Depends, Security
from fastapi.security import APIKeyHeader

from .config import settings
from .exceptions import APIKeyInvalidError
from workout_import.services import (
    ImportService, ExerciseCatalog, ExerciseMatcher, get_exercise_catalog
)
from workout_import.utils.logging import CorrelatedLogger

# Security dependency
api_key_header = APIKeyHeader(name="x-api-key")

# Service instances cache
@lru_cache()
def get_import_service() -> ImportService:
    """Get ImportService instance."""
    return ImportService()

@lru_cache()
def get_catalog() -> ExerciseCatalog:
    """Get the bundled exercise catalog."""
    return get_exercise_catalog()

@lru_cache()
def get_exercise_matcher() -> ExerciseMatcher:
    """Get ExerciseMatcher bound to the bundled catalog."""
    return ExerciseMatcher(get_catalog())

@lru_cache()
def get_logger() -> CorrelatedLogger:
    """Get logger instance."""
    return CorrelatedLogger(__name__)

# Authentication dependency
async def verify_api_key(api_key: str = Security(api_key_header)) -> str:
    """Verify API key from request header."""
    if api_key != settings.api_key:
        raise APIKeyInvalidError()
    return api_key

# Service dependencies
def get_import_service_dep(
    service: ImportService = Depends(get_import_service)
) -> ImportService:
    """Dependency for ImportService."""
    return service

def get_catalog_dep(
    catalog: ExerciseCatalog = Depends(get_catalog)
) -> ExerciseCatalog:
    """Dependency for the exercise catalog."""
    return catalog

def get_exercise_matcher_dep(
    matcher: ExerciseMatcher = Depends(get_exercise_matcher)
) -> ExerciseMatcher:
    """Dependency for ExerciseMatcher."""
    return matcher
