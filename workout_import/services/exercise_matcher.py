"""Fuzzy matching of inferred exercise names against the catalog."""
import re
from typing import List, Optional, Sequence, Tuple

from workout_import.core.config import settings
from workout_import.models.workout import CatalogExercise, InferredExercise, MatchResult
from workout_import.services.exercise_catalog import ExerciseCatalog, search_and_rank
from workout_import.utils.logging import CorrelatedLogger

# Common gym abbreviations -> full names
ABBREVIATIONS = {
    "rdl": "romanian deadlift",
    "ohp": "overhead press",
    "bb": "barbell",
    "db": "dumbbell",
    "ez": "ez bar",
    "dl": "deadlift",
    "bp": "bench press",
    "sldl": "stiff leg deadlift",
    "cgbp": "close grip bench press",
    "jm": "jm press",
    "ghr": "glute ham raise",
    "rdls": "romanian deadlift",
    "hip thrust": "barbell hip thrust",
}

EXACT_CONFIDENCE = 1.0
KEYWORD_CONFIDENCE = 0.9
RANKED_BASE_CONFIDENCE = 0.5
RANKED_OVERLAP_WEIGHT = 0.45
RANKED_MAX_CONFIDENCE = 0.95
ABBREVIATION_CONFIDENCE = 0.75
SINGLE_WORD_CONFIDENCE = 0.4
SINGLE_WORD_MIN_LENGTH = 4

Match = Tuple[Optional[CatalogExercise], float]


def expand_abbreviations(name: str) -> str:
    expanded = name
    for abbr, full in ABBREVIATIONS.items():
        expanded = re.sub(rf"\b{re.escape(abbr)}\b", full, expanded, flags=re.IGNORECASE)
    return expanded


def word_overlap_confidence(query: str, exercise: CatalogExercise) -> float:
    """Share of query words found in the exercise label, scaled into 0.5..0.95."""
    query_words = query.split()
    name_words = exercise.label.lower().split()
    if not query_words:
        return RANKED_BASE_CONFIDENCE

    matched = [qw for qw in query_words if any(nw in qw or qw in nw for nw in name_words)]
    confidence = RANKED_BASE_CONFIDENCE + (len(matched) / len(query_words)) * RANKED_OVERLAP_WEIGHT
    return min(RANKED_MAX_CONFIDENCE, confidence)


class ExerciseMatcher:
    """Pairs each inferred exercise with its best catalog entry.

    Strategies run in order and the first hit wins: exact name, keyword alias,
    ranked search, abbreviation expansion, then single significant words.
    """

    def __init__(self, catalog: ExerciseCatalog, threshold: Optional[float] = None):
        self.catalog = catalog
        self.threshold = settings.match_threshold if threshold is None else threshold
        self.logger = CorrelatedLogger(__name__)

    def match(self, inferred: Sequence[InferredExercise]) -> List[MatchResult]:
        """One result per input, same order. Set and rep data is always carried over."""
        exercises = self.catalog.exercises
        results = []
        for item in inferred:
            exercise, confidence = self.find_best_match(item.name, exercises) if exercises else (None, 0.0)
            matched = exercise is not None and confidence >= self.threshold
            results.append(MatchResult(
                ai_name=item.name,
                sets=item.sets,
                reps=item.reps,
                reps_per_set=item.reps_per_set,
                weight=item.weight,
                notes=item.notes,
                matched_exercise=exercise if matched else None,
                confidence=confidence if matched else 0.0,
                matched=matched
            ))

        self.logger.info(
            f"Matched {sum(1 for r in results if r.matched)} of {len(results)} exercises"
        )
        return results

    def find_best_match(self, name: str, exercises: List[CatalogExercise]) -> Match:
        normalized = name.lower().strip()
        if not normalized:
            return None, 0.0

        for exercise in exercises:
            if exercise.name.lower() == normalized or (exercise.display_name or "").lower() == normalized:
                return exercise, EXACT_CONFIDENCE

        for exercise in exercises:
            if any(keyword.lower() == normalized for keyword in exercise.keywords):
                return exercise, KEYWORD_CONFIDENCE

        ranked = search_and_rank(exercises, name)
        if ranked:
            return ranked[0], word_overlap_confidence(normalized, ranked[0])

        expanded = expand_abbreviations(normalized)
        if expanded != normalized:
            ranked = search_and_rank(exercises, expanded)
            if ranked:
                return ranked[0], ABBREVIATION_CONFIDENCE

        for word in normalized.split():
            if len(word) < SINGLE_WORD_MIN_LENGTH:
                continue
            ranked = search_and_rank(exercises, word)
            if ranked:
                return ranked[0], SINGLE_WORD_CONFIDENCE

        return None, 0.0
