from __future__ import annotations

import re
from datetime import date
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup

from ...config import DEFAULT_TIMEZONE
from ...models import NormalizedEvent
from ..base import BaseAdapter
from ..http import http_get
from ..local_time import local_to_instant, local_today, month_number
from ..types import SourceSlug

PAGE_URL = "https://collegeofsanmateo.edu/astronomy/observatory.asp"

CSM_TITLE = "Jazz Under the Stars"
CSM_DESCRIPTION = (
    "Free public stargazing event at the College of San Mateo Observatory. "
    "Enjoy jazz music while viewing celestial objects through telescopes. "
    "Weather permitting."
)
CSM_LOCATION = "College of San Mateo Observatory, Building 36, 4th Floor"
CSM_ADDRESS = "1700 W Hillsdale Blvd, San Mateo, CA 94402"
CSM_LAT = 37.5385
CSM_LNG = -122.4651

# "Jan 24", "Feb 7"
_DATE_RE = re.compile(r"^([A-Za-z]{3,9})\.?\s+(\d{1,2})$")
# "7:00-9:00PM" (one meridiem for both ends)
_TIME_RANGE_RE = re.compile(
    r"(\d{1,2}):(\d{2})\s*[-–]\s*(\d{1,2}):(\d{2})\s*(AM|PM)", re.IGNORECASE
)


def parse_schedule_date(text: str, year: int) -> Optional[date]:
    m = _DATE_RE.match((text or "").strip())
    if not m:
        return None
    month = month_number(m.group(1))
    if month is None:
        return None
    try:
        return date(year, month, int(m.group(2)))
    except ValueError:
        return None


def parse_time_range(text: str) -> Optional[Tuple[Tuple[int, int], Tuple[int, int]]]:
    """'7:00-9:00PM' -> ((19, 0), (21, 0)). None for 'TBD' or no match."""
    if "tbd" in (text or "").lower():
        return None
    m = _TIME_RANGE_RE.search(text or "")
    if not m:
        return None
    start_h, start_m, end_h, end_m = (int(g) for g in m.group(1, 2, 3, 4))
    if m.group(5).upper() == "PM":
        if start_h < 12:
            start_h += 12
        if end_h < 12:
            end_h += 12
    if start_h > 23 or end_h > 23 or start_m > 59 or end_m > 59:
        return None
    return (start_h, start_m), (end_h, end_m)


class CSMObservatoryAdapter(BaseAdapter):
    """
    Observatory schedule table: first cell "Mon D", second cell a time
    range. One event per night, so the calendar date is the identifier.
    """

    source_slug = SourceSlug.CSM_OBSERVATORY

    def __init__(self, url: str = PAGE_URL) -> None:
        super().__init__()
        self.url = url or PAGE_URL

    def fetch_and_parse(self) -> List[NormalizedEvent]:
        res = http_get(self.url).raise_for_status()
        soup = BeautifulSoup(res.text, "html.parser")
        year = local_today(DEFAULT_TIMEZONE, now=self.now_utc()).year

        out: List[NormalizedEvent] = []
        for table in soup.find_all("table"):
            rows = table.find_all("tr")
            for row in rows[1:]:  # header row
                cells = row.find_all("td")
                if len(cells) < 2:
                    continue

                date_text = cells[0].get_text(" ", strip=True)
                time_text = cells[1].get_text(" ", strip=True)
                if not date_text or not time_text:
                    continue

                try:
                    ev = self.build_event(date_text, time_text, year)
                    if ev:
                        out.append(ev)
                except Exception as e:
                    self.add_error(f"Failed to parse row: {date_text} / {time_text}: {e}")
        return out

    def build_event(self, date_text: str, time_text: str, year: int) -> Optional[NormalizedEvent]:
        day = parse_schedule_date(date_text, year)
        times = parse_time_range(time_text)
        if day is None or times is None:
            return None

        (sh, sm), (eh, em) = times
        start = local_to_instant(DEFAULT_TIMEZONE, day.year, day.month, day.day, sh, sm)
        end = local_to_instant(DEFAULT_TIMEZONE, day.year, day.month, day.day, eh, em)

        return NormalizedEvent(
            source_event_id=f"csm-jazz-{day.isoformat()}",
            title=CSM_TITLE,
            description=CSM_DESCRIPTION,
            start_time=start,
            end_time=end,
            is_all_day=False,
            timezone=DEFAULT_TIMEZONE,
            location=CSM_LOCATION,
            address=CSM_ADDRESS,
            latitude=CSM_LAT,
            longitude=CSM_LNG,
            url=self.url,
            cost="Free",
            is_canceled=False,
            is_online=False,
            event_type="astronomy",
            subjects=["astronomy", "jazz", "stargazing"],
            raw_data={"dateText": date_text, "timeText": time_text},
        )
