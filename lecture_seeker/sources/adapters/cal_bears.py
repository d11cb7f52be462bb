from __future__ import annotations

import re
from typing import List, Optional

from ...models import NormalizedEvent
from ..ics import UNTITLED_EVENT, IcsRecord
from ..types import SourceSlug
from .generic_ics import GenericIcsAdapter

FEED_URL = "https://calbears.com/calendar.ashx/calendar.ics"

# Order matters: "women's basketball" must be tried before "men's basketball".
SPORT_PATTERNS: List[re.Pattern[str]] = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"women's basketball",
        r"men's basketball",
        r"baseball",
        r"softball",
        r"football",
        r"women's soccer",
        r"men's soccer",
        r"volleyball",
        r"swimming",
        r"track & field",
        r"gymnastics",
        r"tennis",
        r"water polo",
        r"lacrosse",
        r"rowing",
        r"golf",
        r"rugby",
        r"field hockey",
    )
]


def extract_sport(summary: str) -> Optional[str]:
    """First matching sport, as written in the title. None when nothing matches."""
    for pattern in SPORT_PATTERNS:
        m = pattern.search(summary or "")
        if m:
            return m.group(0)
    return None


class CalBearsAdapter(GenericIcsAdapter):
    """Cal athletics schedule feed."""

    def __init__(self, url: str = FEED_URL) -> None:
        super().__init__(SourceSlug.CAL_BEARS, url or FEED_URL)

    def build_event(self, record: IcsRecord) -> NormalizedEvent:
        summary = record.summary or ""
        sport = extract_sport(summary)
        url = record.url.replace("&amp;", "&") if record.url else None

        return NormalizedEvent(
            source_event_id=record.uid,
            title=summary or UNTITLED_EVENT,
            description=record.description,
            start_time=record.start,
            end_time=record.end,
            is_all_day=record.is_all_day,
            timezone=self.feed_timezone,
            location=record.location,
            url=url,
            is_canceled=False,
            is_online=False,
            event_type="sports",
            subjects=[sport] if sport else [],
            raw_data=self.raw_snapshot(record),
        )
