from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ...config import DEFAULT_TIMEZONE
from ...models import NormalizedEvent
from ..base import BaseAdapter
from ..http import http_get
from ..local_time import parse_iso_instant
from ..types import SourceSlug

API_URL = "https://events.berkeley.edu/live/json/events/"
MAX_PAGES = 200

# "Category | Title"
_PIPE_TITLE_RE = re.compile(r"^(.+?)\s*\|\s*(.+)$")


class _Meta(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total_pages: int = 1
    page: int = 1


class _BerkeleyPage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    meta: _Meta = Field(default_factory=_Meta)
    data: List[Dict[str, Any]] = Field(default_factory=list)


class _BerkeleyEvent(BaseModel):
    """LiveWhale event. Flags are 0/1 integers; date_utc is naive UTC."""

    model_config = ConfigDict(extra="ignore")

    id: int
    title: str
    url: Optional[str] = None
    description: Optional[str] = None
    summary: Optional[str] = None
    date_utc: Optional[str] = None
    date_iso: Optional[str] = None
    date2_utc: Optional[str] = None
    date2_iso: Optional[str] = None
    is_all_day: Optional[int] = None
    is_canceled: Optional[int] = None
    is_online: Optional[int] = None
    online_url: Optional[str] = None
    cost: Optional[str] = None
    timezone: Optional[str] = None
    location: Optional[str] = None


def _instant(utc_value: Optional[str], iso_value: Optional[str]):
    return parse_iso_instant(utc_value, default_tz="UTC") or parse_iso_instant(iso_value)


def split_category_title(title: str) -> tuple[Optional[str], str]:
    m = _PIPE_TITLE_RE.match(title or "")
    if not m:
        return None, title
    return m.group(1).strip().lower(), m.group(2).strip()


class UCBerkeleyAdapter(BaseAdapter):
    source_slug = SourceSlug.UC_BERKELEY

    def __init__(self, url: str = API_URL) -> None:
        super().__init__()
        self.api_url = (url or API_URL).rstrip("/")

    def fetch_and_parse(self) -> List[NormalizedEvent]:
        out: List[NormalizedEvent] = []
        page = 1
        total_pages = 1

        while page <= total_pages and page <= MAX_PAGES:
            res = http_get(f"{self.api_url}/page/{page}")
            if not res.ok:
                self.add_error(f"API returned {res.status_code} on page {page}")
                break

            data = _BerkeleyPage.model_validate(res.json())
            total_pages = data.meta.total_pages

            for raw in data.data:
                try:
                    ev = self.normalize_item(raw)
                    if ev:
                        out.append(ev)
                except Exception as e:
                    item_id = raw.get("id") if isinstance(raw, dict) else None
                    self.add_error(f"Failed to parse event {item_id}: {e}")

            page += 1

        return out

    def normalize_item(self, raw: Dict[str, Any]) -> Optional[NormalizedEvent]:
        e = _BerkeleyEvent.model_validate(raw)

        start = _instant(e.date_utc, e.date_iso)
        if start is None:
            return None

        event_type, title = split_category_title(e.title)

        return NormalizedEvent(
            source_event_id=str(e.id),
            title=title,
            description=e.summary or e.description or None,
            start_time=start,
            end_time=_instant(e.date2_utc, e.date2_iso),
            is_all_day=e.is_all_day == 1,
            timezone=e.timezone or DEFAULT_TIMEZONE,
            location=e.location or None,
            url=e.url or None,
            ticket_url=e.online_url or None,
            cost=e.cost or None,
            is_canceled=e.is_canceled == 1,
            is_online=e.is_online == 1,
            event_type=event_type,
            subjects=[],
            raw_data=raw,
        )
