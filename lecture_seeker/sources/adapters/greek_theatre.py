from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import List, Optional, Set, Tuple

from bs4 import BeautifulSoup, Tag

from ...config import DEFAULT_TIMEZONE
from ...models import NormalizedEvent
from ..base import BaseAdapter
from ..fields import absolute_url, clean_text
from ..http import BROWSER_HEADERS, http_get
from ..local_time import local_to_instant, month_number, parse_clock_12h
from ..types import SourceSlug

CALENDAR_URL = "https://thegreekberkeley.com/calendar/"
SITE_URL = "https://thegreekberkeley.com"

GREEK_LOCATION = "Greek Theatre"
GREEK_ADDRESS = "2001 Gayley Road, Berkeley, CA 94720"
GREEK_LAT = 37.8741
GREEK_LNG = -122.2538

DEFAULT_SHOW_TIME = (19, 0)
ROLLOVER_DAYS = 60

_DATE_RE = re.compile(
    r"(?:Mon|Tue|Wed|Thu|Fri|Sat|Sun)\s+(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\s+(\d{1,2})",
    re.IGNORECASE,
)
_SHOW_RE = re.compile(r"Show:\s*(\d{1,2}:\d{2}\s*[ap]m)", re.IGNORECASE)
_DOORS_RE = re.compile(r"Doors:\s*(\d{1,2}:\d{2}\s*[ap]m)", re.IGNORECASE)
_DOORS_LINE_RE = re.compile(r"Doors:.*(?:am|pm)", re.IGNORECASE)
_LINK_LABELS = {"More Info", "Buy Tickets"}


def event_slug_from_href(href: str) -> Optional[str]:
    if "thegreekberkeley.com/events/" not in href and not href.startswith("/events/"):
        return None
    slug = re.sub(r".*/events/", "", href).strip("/")
    return slug or None


def resolve_event_date(month: int, day: int, now: datetime) -> date:
    """
    Listings omit the year. Take this year's date unless it is more than
    ROLLOVER_DAYS in the past, then next year's.
    """
    year = now.year
    candidate = local_to_instant(DEFAULT_TIMEZONE, year, month, day)
    if candidate < now - timedelta(days=ROLLOVER_DAYS):
        year += 1
    return date(year, month, day)


def parse_show_time(text: str) -> Optional[Tuple[int, int]]:
    """Start from "Show:", else "Doors:". None when neither is present."""
    for pattern in (_SHOW_RE, _DOORS_RE):
        m = pattern.search(text or "")
        if m:
            return parse_clock_12h(m.group(1))
    return None


class GreekTheatreAdapter(BaseAdapter):
    """
    Calendar listing. Each show is a block with several links to the same
    event page (image, title, "More Info"), so blocks are keyed by slug.
    """

    source_slug = SourceSlug.GREEK_THEATRE

    def __init__(self, url: str = CALENDAR_URL) -> None:
        super().__init__()
        self.url = url or CALENDAR_URL

    def fetch_and_parse(self) -> List[NormalizedEvent]:
        res = http_get(self.url, headers=BROWSER_HEADERS).raise_for_status()
        soup = BeautifulSoup(res.text, "html.parser")
        now = self.now_utc()

        out: List[NormalizedEvent] = []
        seen: Set[str] = set()
        for link in soup.select('a[href*="/events/"]'):
            try:
                ev = self.parse_block(link, seen, now)
                if ev:
                    out.append(ev)
            except Exception as e:
                self.add_error(f"Failed to parse event: {e}")
        return out

    def parse_block(self, link: Tag, seen: Set[str], now: datetime) -> Optional[NormalizedEvent]:
        href = (link.get("href") or "").strip()
        slug = event_slug_from_href(href)
        if not slug or slug in seen:
            return None
        seen.add(slug)

        container = link.find_parent(["div", "article", "section", "li"]) or link
        title = self._title(link, container)
        if not title:
            return None

        container_text = container.get_text(" ")
        date_match = _DATE_RE.search(container_text)
        if not date_match:
            return None
        month = month_number(date_match.group(1))
        if month is None:
            return None
        day = resolve_event_date(month, int(date_match.group(2)), now)

        hour, minute = parse_show_time(container_text) or DEFAULT_SHOW_TIME

        img = link.find("img") or container.find("img")
        image_url = (img.get("src") or None) if img else None

        event_url = href if href.startswith("http") else f"{SITE_URL}/events/{slug}"
        ticket = container.select_one('a[href*="ticketmaster.com"]') or container.select_one(
            'a[href*="tickets"]'
        )
        ticket_url = absolute_url(ticket.get("href"), SITE_URL) if ticket else None

        doors_line = _DOORS_LINE_RE.search(container_text)

        return NormalizedEvent(
            source_event_id=slug,
            title=title,
            start_time=local_to_instant(DEFAULT_TIMEZONE, day.year, day.month, day.day, hour, minute),
            is_all_day=False,
            timezone=DEFAULT_TIMEZONE,
            location=GREEK_LOCATION,
            address=GREEK_ADDRESS,
            latitude=GREEK_LAT,
            longitude=GREEK_LNG,
            url=event_url,
            ticket_url=ticket_url or event_url,
            image_url=image_url,
            cost="Sold Out" if "sold out" in container_text.lower() else None,
            is_canceled=False,
            is_online=False,
            event_type="concert",
            audience="public",
            subjects=[title.lower()],
            raw_data={
                "eventSlug": slug,
                "dateText": clean_text(date_match.group(0)),
                "timeText": clean_text(doors_line.group(0)) if doors_line else "",
            },
        )

    def _title(self, link: Tag, container: Tag) -> Optional[str]:
        for candidate in (link.find(["h2", "h3"]), container.find(["h2", "h3"])):
            text = clean_text(candidate.get_text(" ")) if candidate else None
            if text:
                break
        else:
            text = clean_text(link.get_text(" "))

        if not text or text in _LINK_LABELS:
            heading = container.select_one('a[href*="/events/"] h2, a[href*="/events/"] h3')
            text = clean_text(heading.get_text(" ")) if heading else None
        return text
