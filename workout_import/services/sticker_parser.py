"""On-screen text sticker parsing and workout relevance scoring."""
import json
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

from workout_import.core.config import settings
from workout_import.models.extraction import StickerEntry
from workout_import.utils.logging import CorrelatedLogger

logger = CorrelatedLogger(__name__)

# Sticker schemas differ between payload versions; probe these names in order.
# New variants are added here, not as new branches.
STICKER_TEXT_FIELDS = ["stickerText", "text", "content", "textContent", "displayText", "stickerValue"]
NESTED_TEXT_FIELDS = ["text", "value", "content"]
STICKER_START_FIELDS = ["startTime", "start", "timeStart", "beginTime"]
STICKER_END_FIELDS = ["endTime", "end", "timeEnd"]
STICKER_DURATION_FIELDS = ["duration"]

# Lists on an item that may carry text stickers
STICKER_LIST_FIELDS = ["stickersOnItem", "textStickerInfos"]

EXERCISE_SIGNALS = [
    "squat", "press", "curl", "row", "deadlift", "lunge", "thrust", "fly", "raise",
    "pulldown", "pull down", "extension", "kickback", "crunch", "plank", "pushup",
    "push up", "pullup", "pull up", "dip", "bench", "overhead", "lateral", "cable",
    "dumbbell", "barbell", "superset", "drop set", "circuit", "rdl", "hip thrust",
    "glute bridge", "leg press", "hamstring", "quad", "calf", "lat pull", "tricep",
    "bicep", "shoulder", "chest fly",
]

SET_REP_PATTERNS = [
    re.compile(r"\d\s*[x×]\s*\d"),
    re.compile(r"\d\s*sets?", re.IGNORECASE),
    re.compile(r"\d\s*reps?", re.IGNORECASE),
]


class WorkoutRelevance:
    """Heuristic for "does this text describe a workout".

    Text is relevant when it contains a set/rep pattern such as ``3x12`` or ``4 sets``,
    or at least ``min_keyword_hits`` distinct exercise keywords.
    """

    def __init__(
        self,
        keywords: Optional[Sequence[str]] = None,
        min_keyword_hits: Optional[int] = None,
        patterns: Optional[Sequence[re.Pattern]] = None
    ):
        self.keywords = list(keywords) if keywords is not None else list(EXERCISE_SIGNALS)
        self.min_keyword_hits = min_keyword_hits or settings.relevance_min_keyword_hits
        self.patterns = list(patterns) if patterns is not None else list(SET_REP_PATTERNS)

    def is_relevant(self, text: str) -> bool:
        lower = (text or "").lower()
        if not lower:
            return False

        if any(pattern.search(lower) for pattern in self.patterns):
            return True

        hits = 0
        for keyword in self.keywords:
            if keyword in lower:
                hits += 1
                if hits >= self.min_keyword_hits:
                    return True
        return False

    def stickers_relevant(self, stickers: Iterable[StickerEntry]) -> bool:
        combined = " ".join(sticker.text for sticker in stickers)
        return self.is_relevant(combined)


default_relevance = WorkoutRelevance()


def first_present(data: Dict[str, Any], fields: Sequence[str]) -> Any:
    """Return the first non-empty value among ``fields``."""
    for field in fields:
        value = data.get(field)
        if value not in (None, "", [], {}):
            return value
    return None


def first_defined(data: Dict[str, Any], fields: Sequence[str]) -> Any:
    """Return the first value that is present at all, zero included."""
    for field in fields:
        if data.get(field) is not None:
            return data[field]
    return None


def extract_sticker_text(sticker: Dict[str, Any]) -> str:
    text = first_present(sticker, STICKER_TEXT_FIELDS)
    if isinstance(text, str):
        return text.strip()
    if isinstance(text, dict):
        nested = first_present(text, NESTED_TEXT_FIELDS)
        if isinstance(nested, str):
            return nested.strip()
        return json.dumps(text)
    return ""


def extract_sticker_times(sticker: Dict[str, Any]) -> Dict[str, Optional[float]]:
    start = _to_float(first_defined(sticker, STICKER_START_FIELDS))
    end = _to_float(first_defined(sticker, STICKER_END_FIELDS))

    if start is not None and end is None:
        duration = _to_float(first_defined(sticker, STICKER_DURATION_FIELDS))
        if duration is not None:
            end = start + duration

    return {"start_time": start, "end_time": end}


def parse_stickers(item: Dict[str, Any]) -> List[StickerEntry]:
    """Collect text stickers from every known sticker list on a payload item."""
    stickers: List[StickerEntry] = []
    for list_field in STICKER_LIST_FIELDS:
        entries = item.get(list_field)
        if not isinstance(entries, list):
            continue

        logger.debug(f"{list_field} found: {len(entries)} stickers")
        for raw in entries:
            if not isinstance(raw, dict):
                continue
            text = extract_sticker_text(raw)
            if text:
                stickers.append(StickerEntry(text=text, raw_data=raw, **extract_sticker_times(raw)))
    return stickers


def format_sticker_text(stickers: Iterable[StickerEntry]) -> str:
    """Join stickers into a time-stamped transcript, one per line."""
    return "\n".join(sticker.format_line() for sticker in stickers)


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
