"""Schema validation system for inference responses."""

from .workout_schemas import (
    DEFAULT_WORKOUT_NAME,
    InferenceResponse,
    ResponseValidator,
    InferenceValidationError,
    get_response_validator
)

__all__ = [
    'DEFAULT_WORKOUT_NAME',
    'InferenceResponse',
    'ResponseValidator',
    'InferenceValidationError',
    'get_response_validator'
]
