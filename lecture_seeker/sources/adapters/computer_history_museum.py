from __future__ import annotations

import re
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup

from ...config import DEFAULT_TIMEZONE
from ...models import NormalizedEvent
from ...taxonomy import normalize_event_type
from ..base import BaseAdapter
from ..fields import absolute_url, clean_text, url_path
from ..http import http_get
from ..local_time import local_to_instant, month_number, parse_clock_12h
from ..types import SourceSlug

BASE_URL = "https://computerhistory.org"
EVENTS_URL = f"{BASE_URL}/events/"

CHM_LOCATION = "Computer History Museum"
CHM_ADDRESS = "1401 N. Shoreline Blvd, Mountain View, CA 94043"
CHM_LAT = 37.4143
CHM_LNG = -122.0777

_DETAIL_PATH_RE = re.compile(r"^/events/([a-z0-9-]+)/?$", re.IGNORECASE)
_CLOCK = r"\d{1,2}(?::\d{2})?\s*[ap]m"
# "March 11, 2026 7:00 PM" with an optional "- 8:30 PM"
_DATETIME_RE = re.compile(
    rf"([A-Z][a-z]+)\s+(\d{{1,2}}),?\s+(\d{{4}})\s+({_CLOCK})(?:\s*[–\-—]\s*({_CLOCK}))?",
    re.IGNORECASE,
)
_EVENTBRITE_ID_RE = re.compile(r"eventId['\":\s]+['\"]?(\d{10,})['\"]?")
_OG_TITLE_SUFFIX_RE = re.compile(r"\s*-\s*CHM$")


def parse_event_datetime(text: str) -> Optional[Tuple[datetime, Optional[datetime], str]]:
    """(start, end, matched text) from free page text, or None."""
    m = _DATETIME_RE.search(text or "")
    if not m:
        return None

    month = month_number(m.group(1))
    start_clock = parse_clock_12h(m.group(4))
    if month is None or start_clock is None:
        return None

    year, day = int(m.group(3)), int(m.group(2))
    start = local_to_instant(DEFAULT_TIMEZONE, year, month, day, *start_clock)

    end = None
    if m.group(5):
        end_clock = parse_clock_12h(m.group(5))
        if end_clock:
            end = local_to_instant(DEFAULT_TIMEZONE, year, month, day, *end_clock)

    return start, end, clean_text(m.group(0)) or ""


def infer_chm_event_type(title: str, description: Optional[str]) -> str:
    direct = normalize_event_type(title)
    if direct:
        return direct
    text = f"{title} {description or ''}".lower()
    if "exhibit" in text:
        return "exhibition"
    if "film" in text or "screening" in text:
        return "film"
    if "workshop" in text or "hands-on" in text:
        return "workshop"
    if "concert" in text or "music" in text:
        return "concert"
    return "lecture"


class ComputerHistoryMuseumAdapter(BaseAdapter):
    """Listing page for links, then one request per event detail page."""

    source_slug = SourceSlug.COMPUTER_HISTORY_MUSEUM

    def __init__(self, url: str = EVENTS_URL) -> None:
        super().__init__()
        self.listing_url = url or EVENTS_URL

    def fetch_and_parse(self) -> List[NormalizedEvent]:
        res = http_get(self.listing_url).raise_for_status()
        detail_urls = self.collect_detail_urls(res.text)

        out: List[NormalizedEvent] = []
        for url in detail_urls:
            try:
                ev = self.scrape_detail(url)
                if ev:
                    out.append(ev)
            except Exception as e:
                self.add_error(f"Failed to scrape {url}: {e}")
        return out

    def collect_detail_urls(self, html: str) -> List[str]:
        soup = BeautifulSoup(html, "html.parser")
        by_path: Dict[str, str] = {}
        for a in soup.select('a[href*="/events/"]'):
            href = (a.get("href") or "").strip()
            path = url_path(href)
            if not _DETAIL_PATH_RE.match(path):
                continue
            key = path.rstrip("/").lower()
            if key not in by_path:
                by_path[key] = absolute_url(href, BASE_URL) or href
        return list(by_path.values())

    def scrape_detail(self, url: str) -> Optional[NormalizedEvent]:
        res = http_get(url)
        if not res.ok:
            self.add_error(f"Event page {url} returned {res.status_code}")
            return None

        soup = BeautifulSoup(res.text, "html.parser")
        slug = url.rstrip("/").split("/")[-1]
        if not slug:
            return None

        title = self._title(soup)
        if not title:
            return None

        parsed = parse_event_datetime(soup.body.get_text(" ") if soup.body else soup.get_text(" "))
        if parsed is None:
            self.add_error(f"Could not parse date/time for {slug}")
            return None
        start, end, datetime_text = parsed

        description = self._description(soup)
        og_image = soup.select_one('meta[property="og:image"]')

        return NormalizedEvent(
            source_event_id=slug,
            title=title,
            description=description,
            start_time=start,
            end_time=end,
            is_all_day=False,
            timezone=DEFAULT_TIMEZONE,
            location=CHM_LOCATION,
            address=CHM_ADDRESS,
            latitude=CHM_LAT,
            longitude=CHM_LNG,
            url=url,
            ticket_url=self._ticket_url(soup),
            image_url=(og_image.get("content") or None) if og_image else None,
            is_canceled=False,
            is_online=False,
            event_type=infer_chm_event_type(title, description),
            audience="public",
            subjects=[],
            raw_data={"slug": slug, "dateTimeText": datetime_text, "url": url},
        )

    def _title(self, soup: BeautifulSoup) -> Optional[str]:
        h1 = soup.find("h1")
        title = clean_text(h1.get_text(" ")) if h1 else None
        if title:
            return title
        og = soup.select_one('meta[property="og:title"]')
        if og and og.get("content"):
            return clean_text(_OG_TITLE_SUFFIX_RE.sub("", og["content"]))
        return None

    def _description(self, soup: BeautifulSoup) -> Optional[str]:
        og = soup.select_one('meta[property="og:description"]')
        if og and clean_text(og.get("content")):
            return clean_text(og.get("content"))

        paragraphs: List[str] = []
        for p in soup.find_all("p"):
            text = clean_text(p.get_text(" "))
            if text and len(text) > 30:
                paragraphs.append(text)
            if len(paragraphs) >= 3:
                break
        return " ".join(paragraphs) or None

    def _ticket_url(self, soup: BeautifulSoup) -> Optional[str]:
        scripts = " ".join(s.string or "" for s in soup.find_all("script"))
        m = _EVENTBRITE_ID_RE.search(scripts)
        if m:
            return f"https://www.eventbrite.com/e/{m.group(1)}"
        link = soup.select_one('a[href*="eventbrite.com"], a[href*="ticket"]')
        return (link.get("href") or None) if link else None
