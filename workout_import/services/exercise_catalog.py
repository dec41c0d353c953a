"""In-memory exercise catalog with ranked search."""
import re
from pathlib import Path
from typing import Iterable, List, Optional

import yaml

from workout_import.core.config import settings
from workout_import.core.exceptions import ConfigurationError
from workout_import.models.workout import CatalogExercise
from workout_import.utils.logging import CorrelatedLogger

DEFAULT_CATALOG_PATH = Path(__file__).parent.parent / "config" / "catalog" / "exercises.yaml"

# Search score weights
PREFIX_SCORE = 100
WHOLE_WORD_SCORE = 50
WORD_PREFIX_SCORE = 30
SUBSTRING_SCORE = 25
MUSCLE_SCORE = 10


def score_exercise(exercise: CatalogExercise, query: str) -> int:
    """Relevance of an exercise for a query. Zero means no match."""
    q = query.lower().strip()
    name = exercise.name.lower()
    muscle = (exercise.muscle or "").lower()
    name_words = re.split(r"\s+", name)

    score = 0
    if name.startswith(q):
        score += PREFIX_SCORE
    if any(word == q for word in name_words):
        score += WHOLE_WORD_SCORE
    if any(word.startswith(q) for word in name_words):
        score += WORD_PREFIX_SCORE
    if q in name:
        score += SUBSTRING_SCORE
    if q in muscle:
        score += MUSCLE_SCORE
    return score


def search_and_rank(exercises: Iterable[CatalogExercise], query: str) -> List[CatalogExercise]:
    """Rank by score, highest first, ties alphabetical by name.

    An empty query returns every exercise in catalog order.
    """
    exercises = list(exercises)
    if not query or not query.strip():
        return exercises

    scored = [(score_exercise(e, query), e) for e in exercises]
    scored = [(score, e) for score, e in scored if score > 0]
    scored.sort(key=lambda item: (-item[0], item[1].name.lower()))
    return [e for _, e in scored]


class ExerciseCatalog:
    """The canonical exercise library, loaded once and searched in memory."""

    def __init__(self, exercises: Optional[Iterable[CatalogExercise]] = None):
        self._exercises: List[CatalogExercise] = list(exercises or [])

    @classmethod
    def from_yaml(cls, path: Optional[str] = None) -> "ExerciseCatalog":
        """Load a catalog file with a top-level ``exercises`` list."""
        catalog_path = Path(path or settings.exercise_catalog_path or DEFAULT_CATALOG_PATH)
        logger = CorrelatedLogger(__name__)

        try:
            with open(catalog_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError("exercise catalog", f"{catalog_path}: {str(e)}")

        exercises = [CatalogExercise.model_validate(entry) for entry in data.get("exercises", [])]
        logger.info(f"Loaded {len(exercises)} exercises from {catalog_path}")
        return cls(exercises)

    @property
    def exercises(self) -> List[CatalogExercise]:
        return list(self._exercises)

    def search(self, query: str, limit: Optional[int] = None) -> List[CatalogExercise]:
        ranked = search_and_rank(self._exercises, query)
        return ranked[:limit] if limit else ranked

    def __len__(self) -> int:
        return len(self._exercises)


# Global catalog instance
_catalog = None

def get_exercise_catalog() -> ExerciseCatalog:
    """Get global catalog instance, loading it on first use."""
    global _catalog
    if _catalog is None:
        _catalog = ExerciseCatalog.from_yaml()
    return _catalog
