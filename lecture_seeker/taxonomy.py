# lecture_seeker/taxonomy.py
"""
Event-type vocabulary and audience heuristics.

Pure utility: deterministic, no network, no storage.

Adapters emit free-form category strings ("Lecture/Presentation/Talk",
"Symposium", "Music"). normalize_event_type() folds them onto the small
canonical set the query layer filters on.
"""
from __future__ import annotations

import re
from typing import Optional


# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------

EVENT_TYPES: dict[str, str] = {
    "lecture": "Lecture",
    "exhibition": "Exhibition",
    "performance": "Performance",
    "sports": "Sports",
    "workshop": "Workshop",
    "conference": "Conference",
    "seminar": "Seminar",
    "concert": "Concert",
    "film": "Film",
    "astronomy": "Astronomy",
    "social": "Social",
    "other": "Other",
}

EVENT_TYPE_ALIASES: dict[str, str] = {
    # exhibition
    "exhibit": "exhibition",
    "exhibits": "exhibition",
    "gallery": "exhibition",
    "art exhibit": "exhibition",
    "art exhibition": "exhibition",
    # lecture
    "talk": "lecture",
    "talks": "lecture",
    "presentation": "lecture",
    "lecture/panel": "lecture",
    "lecture/presentation/talk": "lecture",
    # performance
    "performing arts": "performance",
    "performances": "performance",
    "theater": "performance",
    "theatre": "performance",
    "dance": "performance",
    "recital": "performance",
    # concert
    "concerts": "concert",
    "music": "concert",
    # workshop
    "workshops": "workshop",
    "training": "workshop",
    # conference
    "symposium": "conference",
    "colloquium": "conference",
    "forum": "conference",
    # seminar
    "seminars": "seminar",
    # film
    "screening": "film",
    "film screening": "film",
    "films": "film",
    # social
    "reception": "social",
    "mixer": "social",
    "networking": "social",
    "career/job": "social",
    # sports
    "athletics": "sports",
    "game": "sports",
    "match": "sports",
}

# Ordered: first audience with a keyword hit wins.
AUDIENCE_VOCAB: list[tuple[str, list[str]]] = [
    ("students", ["students only", "undergrad", "graduate students", "for students"]),
    ("academic", ["colloquium", "seminar", "faculty", "researchers", "thesis defense"]),
    ("family", ["family", "families", "kids", "children", "all ages"]),
    ("public", ["open to the public", "free and open", "general public", "everyone welcome"]),
]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def normalize_event_type(raw: Optional[str]) -> Optional[str]:
    """Return the canonical EVENT_TYPES key for raw, or None if unrecognized."""
    if not raw:
        return None
    key = raw.strip().lower()
    if key in EVENT_TYPES:
        return key
    return EVENT_TYPE_ALIASES.get(key)


def _normalize_for_matching(text: Optional[str]) -> str:
    if not text:
        return ""
    return re.sub(r"\s+", " ", text.casefold()).strip()


def infer_audience_from_text(text: Optional[str]) -> Optional[str]:
    """Keyword heuristic over title + description. None when nothing matches."""
    s = _normalize_for_matching(text)
    if not s:
        return None
    for audience, keywords in AUDIENCE_VOCAB:
        for kw in keywords:
            if kw in s:
                return audience
    return None
