"""User review and repair of matched exercises before a template is saved."""
import time
from typing import List, Optional, Sequence

from workout_import.core.exceptions import NoMatchedExercisesError, ValidationError
from workout_import.models.workout import (
    CatalogExercise, MatchResult, TemplateExercise, TemplateSet, WorkoutTemplate
)
from workout_import.services.exercise_catalog import ExerciseCatalog
from workout_import.utils.logging import CorrelatedLogger

DEFAULT_REST_SECONDS = 90


class ReviewSession:
    """Holds the match list while the user fixes it up.

    Every edit touches exactly one index; the other entries are left as they were.
    """

    def __init__(
        self,
        workout_name: str,
        matches: Sequence[MatchResult],
        catalog: Optional[ExerciseCatalog] = None
    ):
        self.workout_name = workout_name
        self.matches: List[MatchResult] = list(matches)
        self.catalog = catalog
        self.logger = CorrelatedLogger(__name__)

    @property
    def matched_count(self) -> int:
        return sum(1 for m in self.matches if m.matched)

    def search(self, query: str, limit: Optional[int] = None) -> List[CatalogExercise]:
        if self.catalog is None:
            return []
        return self.catalog.search(query, limit)

    def replace(self, index: int, exercise: CatalogExercise) -> MatchResult:
        """Pin a user-chosen catalog exercise to one entry."""
        current = self._get(index)
        self.matches[index] = current.model_copy(update={
            "matched_exercise": exercise,
            "confidence": 1.0,
            "matched": True
        })
        self.logger.info(f"Replaced exercise {index} '{current.ai_name}' with '{exercise.label}'")
        return self.matches[index]

    def remove(self, index: int) -> MatchResult:
        self._get(index)
        return self.matches.pop(index)

    def update_sets(self, index: int, sets: int) -> MatchResult:
        current = self._get(index)
        self.matches[index] = current.model_copy(update={"sets": max(1, sets)})
        return self.matches[index]

    def adjust_reps(self, index: int, delta: int) -> MatchResult:
        """Shift reps by ``delta``; per-set targets shift together. Never below 1."""
        current = self._get(index)
        if current.reps_per_set:
            updated = [max(1, r + delta) for r in current.reps_per_set]
            self.matches[index] = current.model_copy(update={"reps_per_set": updated, "reps": updated[0]})
        else:
            self.matches[index] = current.model_copy(update={"reps": max(1, current.reps + delta)})
        return self.matches[index]

    def build_template(self) -> WorkoutTemplate:
        """Template of matched entries only, one target per set.

        Raises:
            NoMatchedExercisesError: If no entry is matched
        """
        matched = [m for m in self.matches if m.matched and m.matched_exercise is not None]
        if not matched:
            raise NoMatchedExercisesError()

        stamp = int(time.time() * 1000)
        exercises = []
        for index, match in enumerate(matched):
            exercise = match.matched_exercise
            exercises.append(TemplateExercise(
                id=f"ex_import_{stamp}_{index}",
                exercise_id=exercise.id,
                exercise_name=exercise.label,
                muscle=exercise.muscle or "",
                gif_url=exercise.image_url,
                thumbnail_url=exercise.thumbnail_url,
                sets=[
                    TemplateSet(set_number=i + 1, target_reps=self._target_reps(match, i))
                    for i in range(match.sets)
                ],
                rest_timer_seconds=DEFAULT_REST_SECONDS
            ))

        return WorkoutTemplate(name=self.workout_name, exercises=exercises)

    @staticmethod
    def _target_reps(match: MatchResult, set_index: int) -> int:
        if match.reps_per_set and set_index < len(match.reps_per_set):
            return match.reps_per_set[set_index]
        return match.reps

    def _get(self, index: int) -> MatchResult:
        if not 0 <= index < len(self.matches):
            raise ValidationError(f"No exercise at position {index}", {"index": index})
        return self.matches[index]
