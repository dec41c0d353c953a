"""Workout-related data models: inference output, catalog matches and templates."""
import re
from enum import Enum
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_SETS = 3
DEFAULT_REPS = 10


class ImportPath(str, Enum):
    """Which inference strategy produced a result. Diagnostic only."""
    FAST = "fast"
    FRAMES = "frames"
    FALLBACK = "fallback"
    CAPTION = "caption"


class InferredExercise(BaseModel):
    """One exercise as returned by the inference service.

    The service output is untrusted: counts may arrive as strings, rep lists as
    ``"10,8,6"`` and any field may be missing. Everything is coerced on the way in.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: str
    sets: int = DEFAULT_SETS
    reps: int = DEFAULT_REPS
    reps_per_set: Optional[List[int]] = Field(None, alias="repsPerSet")
    weight: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def coerce_untrusted_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        raw_reps_per_set = data.get("repsPerSet", data.get("reps_per_set"))
        reps_per_set = _int_list(raw_reps_per_set) if isinstance(raw_reps_per_set, list) else None

        sets = _positive_int(data.get("sets")) or DEFAULT_SETS
        raw_reps = data.get("reps")
        reps = _positive_int(raw_reps) or DEFAULT_REPS

        # Pyramid reps sometimes come back as a comma string
        if isinstance(raw_reps, str) and "," in raw_reps:
            parsed = _int_list(raw_reps.split(","))
            if len(parsed) > 1:
                reps_per_set = parsed

        if reps_per_set:
            sets = len(reps_per_set)
            reps = reps_per_set[0]

        return {
            "name": str(data.get("name") or "").strip(),
            "sets": sets,
            "reps": reps,
            "reps_per_set": reps_per_set or None,
            "weight": _optional_text(data.get("weight")),
            "notes": _optional_text(data.get("notes")),
        }


class ProcessResult(BaseModel):
    """Terminal output of the scrape-and-parse service."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    workout_name: Optional[str] = Field(None, alias="workoutName")
    exercises: Optional[List[InferredExercise]] = None
    error: Optional[str] = None
    confidence: float = 0.0
    path: Optional[ImportPath] = None
    cached: Optional[bool] = None

    @classmethod
    def failure(cls, error: str, confidence: float = 0.0) -> "ProcessResult":
        return cls(success=False, error=error, confidence=confidence)

    def to_response(self) -> dict:
        """JSON body as sent to clients: camelCase keys, nulls omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CatalogExercise(BaseModel):
    """An entry of the canonical exercise catalog."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    display_name: Optional[str] = Field(None, alias="displayName")
    muscle: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    image_url: Optional[str] = Field(None, alias="imageUrl")
    thumbnail_url: Optional[str] = Field(None, alias="thumbnailUrl")

    @property
    def label(self) -> str:
        return self.display_name or self.name


class MatchResult(BaseModel):
    """An inferred exercise paired with its catalog match, if any."""
    model_config = ConfigDict(populate_by_name=True)

    ai_name: str = Field(..., alias="aiName")
    sets: int
    reps: int
    reps_per_set: Optional[List[int]] = Field(None, alias="repsPerSet")
    weight: Optional[str] = None
    notes: Optional[str] = None
    matched_exercise: Optional[CatalogExercise] = Field(None, alias="matchedExercise")
    confidence: float = 0.0
    matched: bool = False


class TemplateSet(BaseModel):
    """Target for a single set in a template."""
    model_config = ConfigDict(populate_by_name=True)

    set_number: int = Field(..., alias="setNumber")
    target_reps: int = Field(..., alias="targetReps")
    target_weight: Optional[float] = Field(None, alias="targetWeight")


class TemplateExercise(BaseModel):
    """An exercise row of a workout template."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    exercise_id: str = Field(..., alias="exerciseId")
    exercise_name: str = Field(..., alias="exerciseName")
    muscle: str = ""
    gif_url: Optional[str] = Field(None, alias="gifUrl")
    thumbnail_url: Optional[str] = Field(None, alias="thumbnailUrl")
    sets: List[TemplateSet]
    rest_timer_seconds: int = Field(90, alias="restTimerSeconds")


class WorkoutTemplate(BaseModel):
    """A workout template ready to be handed to the template store."""
    name: str
    exercises: List[TemplateExercise]


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value) if value > 0 else None
    if isinstance(value, str):
        # "8-12" means aim for the top of the range
        numbers = [int(n) for n in re.findall(r"\d+", value)]
        if numbers:
            top = max(numbers) if "-" in value else numbers[0]
            return top if top > 0 else None
    return None


def _int_list(values: List[Any]) -> List[int]:
    result = []
    for value in values:
        number = _positive_int(value.strip() if isinstance(value, str) else value)
        if number is not None:
            result.append(number)
    return result


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
