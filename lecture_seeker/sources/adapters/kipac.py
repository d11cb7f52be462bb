from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ...config import DEFAULT_TIMEZONE
from ...models import NormalizedEvent
from ...taxonomy import normalize_event_type
from ..base import BaseAdapter
from ..fields import strip_html
from ..http import http_get
from ..local_time import parse_iso_instant
from ..types import SourceSlug

BASE_URL = "https://kipac.stanford.edu"
API_URL = f"{BASE_URL}/jsonapi/node/stanford_event"
PAGE_SIZE = 50

_ONLINE_RE = re.compile(r"zoom\.us|teams\.microsoft|webex", re.IGNORECASE)


# ---------------------------------------
# Upstream shape (Drupal JSON:API)
# ---------------------------------------

class _Upstream(BaseModel):
    model_config = ConfigDict(extra="ignore")


class _Body(_Upstream):
    value: Optional[str] = None
    processed: Optional[str] = None
    summary: Optional[str] = None


class _Path(_Upstream):
    alias: Optional[str] = None


class _DateTime(_Upstream):
    value: Optional[str] = None
    end_value: Optional[str] = None
    duration: Optional[int] = None
    timezone: Optional[str] = None


class _Attributes(_Upstream):
    status: bool = False
    title: str
    body: Optional[_Body] = None
    path: Optional[_Path] = None
    su_event_alt_loc: Optional[str] = None
    su_event_date_time: Optional[_DateTime] = None


class _KipacEvent(_Upstream):
    id: str
    attributes: _Attributes


class _Meta(_Upstream):
    count: int = 0


class _KipacPage(_Upstream):
    data: List[Dict[str, Any]] = Field(default_factory=list)
    meta: _Meta = Field(default_factory=_Meta)


def infer_kipac_event_type(title: str) -> str:
    t = (title or "").lower()
    if "tea talk" in t:
        return "lecture"
    if "colloqui" in t:
        return normalize_event_type("colloquium") or "conference"
    if "thesis defense" in t:
        return "lecture"
    if "workshop" in t:
        return "workshop"
    if "conference" in t:
        return "conference"
    return "lecture"


class KipacAdapter(BaseAdapter):
    """Drupal JSON:API with offset/limit paging; meta.count is the item total."""

    source_slug = SourceSlug.KIPAC

    def __init__(self, url: str = API_URL) -> None:
        super().__init__()
        self.api_url = (url or API_URL).split("?")[0]

    def fetch_and_parse(self) -> List[NormalizedEvent]:
        out: List[NormalizedEvent] = []
        offset = 0
        total: Optional[int] = None

        while total is None or offset < total:
            res = http_get(f"{self.api_url}?page[limit]={PAGE_SIZE}&page[offset]={offset}")
            if not res.ok:
                self.add_error(f"API returned {res.status_code} at offset {offset}")
                break

            data = _KipacPage.model_validate(res.json())
            total = data.meta.count

            for raw in data.data:
                try:
                    ev = self.normalize_item(raw)
                    if ev:
                        out.append(ev)
                except Exception as e:
                    item_id = raw.get("id") if isinstance(raw, dict) else None
                    self.add_error(f"Failed to parse event {item_id}: {e}")

            if not data.data:
                break
            offset += PAGE_SIZE

        return out

    def normalize_item(self, raw: Dict[str, Any]) -> Optional[NormalizedEvent]:
        item = _KipacEvent.model_validate(raw)
        attrs = item.attributes
        if not attrs.status:
            return None

        dt = attrs.su_event_date_time
        start = parse_iso_instant(dt.value) if dt else None
        if start is None:
            return None

        body_html = None
        if attrs.body:
            body_html = attrs.body.value or attrs.body.processed or None

        event_url = f"{BASE_URL}{attrs.path.alias}" if attrs.path and attrs.path.alias else None

        return NormalizedEvent(
            source_event_id=item.id,
            title=attrs.title,
            description=strip_html(body_html),
            description_html=body_html,
            start_time=start,
            end_time=parse_iso_instant(dt.end_value),
            is_all_day=False,
            timezone=DEFAULT_TIMEZONE,
            location=attrs.su_event_alt_loc or None,
            url=event_url,
            is_canceled=False,
            is_online=bool(body_html and _ONLINE_RE.search(body_html)),
            event_type=infer_kipac_event_type(attrs.title),
            audience="academic",
            department="KIPAC",
            subjects=[],
            raw_data=raw,
        )
