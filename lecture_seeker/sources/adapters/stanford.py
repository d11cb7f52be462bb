from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ...config import DEFAULT_TIMEZONE
from ...models import NormalizedEvent
from ...taxonomy import normalize_event_type
from ..base import BaseAdapter
from ..fields import clean_text, float_or_none
from ..http import http_get
from ..local_time import parse_iso_instant
from ..types import SourceSlug

API_URL = "https://events.stanford.edu/api/2/events"
PER_PAGE = 100
MAX_PAGES = 200


# ---------------------------------------
# Upstream shape (Localist API v2)
# ---------------------------------------

class _Upstream(BaseModel):
    model_config = ConfigDict(extra="ignore")


class _Named(_Upstream):
    name: str


class _Geo(_Upstream):
    latitude: Optional[str] = None
    longitude: Optional[str] = None


class _Instance(_Upstream):
    start: Optional[str] = None
    end: Optional[str] = None
    all_day: Optional[bool] = None


class _InstanceWrapper(_Upstream):
    event_instance: _Instance


class _Filters(_Upstream):
    event_types: List[_Named] = Field(default_factory=list)
    event_audience: List[_Named] = Field(default_factory=list)
    event_subject: List[_Named] = Field(default_factory=list)


class _StanfordEvent(_Upstream):
    id: int
    title: str
    description_text: Optional[str] = None
    description: Optional[str] = None
    location_name: Optional[str] = None
    room_number: Optional[str] = None
    address: Optional[str] = None
    geo: Optional[_Geo] = None
    localist_url: Optional[str] = None
    ticket_url: Optional[str] = None
    ticket_cost: Optional[str] = None
    free: Optional[bool] = None
    photo_url: Optional[str] = None
    experience: Optional[str] = None
    status: Optional[str] = None
    event_instances: List[_InstanceWrapper] = Field(default_factory=list)
    filters: Optional[_Filters] = None
    departments: List[_Named] = Field(default_factory=list)


class _StanfordItem(_Upstream):
    event: _StanfordEvent


class _PageInfo(_Upstream):
    current: int = 1
    size: int = 0
    total: int = 1


class _StanfordPage(_Upstream):
    events: List[Dict[str, Any]] = Field(default_factory=list)
    page: _PageInfo = Field(default_factory=_PageInfo)


class StanfordAdapter(BaseAdapter):
    """Localist JSON API, page-numbered (page.total is the page count)."""

    source_slug = SourceSlug.STANFORD

    def __init__(self, url: str = API_URL) -> None:
        super().__init__()
        self.api_url = (url or API_URL).split("?")[0]

    def fetch_and_parse(self) -> List[NormalizedEvent]:
        out: List[NormalizedEvent] = []
        page = 1
        total_pages = 1

        while page <= total_pages and page <= MAX_PAGES:
            res = http_get(f"{self.api_url}?page={page}&per_page={PER_PAGE}")
            if not res.ok:
                self.add_error(f"API returned {res.status_code} on page {page}")
                break

            data = _StanfordPage.model_validate(res.json())
            total_pages = data.page.total

            for raw in data.events:
                try:
                    ev = self.normalize_item(raw)
                    if ev:
                        out.append(ev)
                except Exception as e:
                    event_id = (raw.get("event") or {}).get("id") if isinstance(raw, dict) else None
                    self.add_error(f"Failed to parse event {event_id}: {e}")

            page += 1

        return out

    def normalize_item(self, raw: Dict[str, Any]) -> Optional[NormalizedEvent]:
        e = _StanfordItem.model_validate(raw).event

        # multi-instance events: only the first instance is used
        instance = e.event_instances[0].event_instance if e.event_instances else None
        start = parse_iso_instant(instance.start) if instance else None
        if start is None:
            return None

        location = ", ".join(p for p in (clean_text(e.location_name), clean_text(e.room_number)) if p)

        filters = e.filters or _Filters()
        event_type = normalize_event_type(filters.event_types[0].name) if filters.event_types else None
        audience = filters.event_audience[0].name if filters.event_audience else None
        subjects = [s.name for s in filters.event_subject]
        department = e.departments[0].name if e.departments else None

        return NormalizedEvent(
            source_event_id=str(e.id),
            title=e.title,
            description=e.description_text or None,
            description_html=e.description or None,
            start_time=start,
            end_time=parse_iso_instant(instance.end),
            is_all_day=bool(instance.all_day),
            timezone=DEFAULT_TIMEZONE,
            location=location or None,
            address=e.address or None,
            latitude=float_or_none(e.geo.latitude) if e.geo else None,
            longitude=float_or_none(e.geo.longitude) if e.geo else None,
            url=e.localist_url or None,
            ticket_url=e.ticket_url or None,
            image_url=e.photo_url or None,
            cost="Free" if e.free else (e.ticket_cost or None),
            is_canceled=e.status == "canceled",
            is_online=e.experience in ("virtual", "hybrid"),
            event_type=event_type,
            audience=audience or None,
            subjects=subjects,
            department=department or None,
            raw_data=raw,
        )
