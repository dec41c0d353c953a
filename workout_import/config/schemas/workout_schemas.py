"""
Pydantic schemas for workout inference response validation.
Locates the JSON object in raw model output and validates it.
"""
import json
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from workout_import.models.workout import InferredExercise
from workout_import.utils.logging import CorrelatedLogger

# Greedy on purpose: first "{" to last "}"
JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

DEFAULT_WORKOUT_NAME = "Imported Workout"
DEFAULT_CONFIDENCE = 0.5


class InferenceResponse(BaseModel):
    """Validated shape of the inference service's JSON answer."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    is_workout: bool = Field(False, alias="isWorkout")
    workout_name: Optional[str] = Field(None, alias="workoutName")
    confidence: Optional[float] = None
    exercises: List[InferredExercise] = Field(default_factory=list)

    @field_validator('confidence', mode='before')
    @classmethod
    def coerce_confidence(cls, v):
        """Accept numeric strings; anything unreadable counts as missing."""
        if v is None or isinstance(v, bool):
            return None
        try:
            return float(v)
        except (TypeError, ValueError):
            return None

    @field_validator('exercises', mode='before')
    @classmethod
    def drop_unnamed_exercises(cls, v):
        if not isinstance(v, list):
            return []
        return [e for e in v if isinstance(e, dict) and str(e.get("name") or "").strip()]

    @property
    def effective_confidence(self) -> float:
        """Confidence as reported; a missing or zero value defaults to 0.5 on success."""
        return self.confidence or DEFAULT_CONFIDENCE

    @property
    def effective_workout_name(self) -> str:
        return (self.workout_name or "").strip() or DEFAULT_WORKOUT_NAME


class InferenceValidationError(Exception):
    """Exception raised when the inference output cannot be read."""

    def __init__(self, message: str, validation_errors: Optional[List[Dict[str, Any]]] = None):
        self.message = message
        self.validation_errors = validation_errors or []
        super().__init__(self.message)


class ResponseValidator:
    """Turns raw model text into an ``InferenceResponse``."""

    def __init__(self):
        self.logger = CorrelatedLogger(__name__)

    def extract_json(self, content: str) -> Dict[str, Any]:
        """Find and decode the outermost JSON object in ``content``."""
        match = JSON_OBJECT_RE.search(content or "")
        if not match:
            raise InferenceValidationError("No JSON object found in response")

        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            self.logger.warning(f"JSON decode error: {str(e)}, content: {match.group(0)[:200]}...")
            raise InferenceValidationError(f"Invalid JSON: {str(e)}")

        if not isinstance(data, dict):
            raise InferenceValidationError("Response JSON is not an object")
        return data

    def validate_response(self, content: str) -> InferenceResponse:
        """Extract and validate a response.

        Raises:
            InferenceValidationError: If no valid JSON object can be read
        """
        raw_data = self.extract_json(content)
        try:
            return InferenceResponse.model_validate(raw_data)
        except ValidationError as e:
            raise InferenceValidationError("Response failed validation", e.errors())


# Global validator instance
_response_validator = None

def get_response_validator() -> ResponseValidator:
    """Get global response validator instance."""
    global _response_validator
    if _response_validator is None:
        _response_validator = ResponseValidator()
    return _response_validator
