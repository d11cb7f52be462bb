from __future__ import annotations

from typing import Any, Dict, List

from ...config import DEFAULT_TIMEZONE
from ...models import NormalizedEvent
from ...taxonomy import infer_audience_from_text
from ..base import BaseAdapter
from ..http import http_get
from ..ics import UNTITLED_EVENT, IcsRecord, iter_vevents, vevent_to_record


class GenericIcsAdapter(BaseAdapter):
    """
    Any ICS feed. Used for user-submitted ICS_FEED sources and as the
    base for built-in feeds with source-specific enrichment.
    """

    feed_timezone = DEFAULT_TIMEZONE

    def __init__(self, slug: str, url: str) -> None:
        super().__init__()
        self.source_slug = slug
        self.url = url

    def fetch_and_parse(self) -> List[NormalizedEvent]:
        res = http_get(self.url).raise_for_status()

        out: List[NormalizedEvent] = []
        for index, component in enumerate(iter_vevents(res.text)):
            try:
                record = vevent_to_record(component, self.feed_timezone)
                if record is None:
                    continue
                out.append(self.build_event(record))
            except Exception as e:
                uid = component.get("UID") or f"#{index}"
                self.add_error(f"Failed to parse VEVENT {uid}: {e}")
        return out

    def raw_snapshot(self, record: IcsRecord) -> Dict[str, Any]:
        return {
            "uid": record.uid,
            "summary": record.summary,
            "location": record.location,
            "start": record.start.isoformat(),
            "end": record.end.isoformat() if record.end else None,
        }

    def build_event(self, record: IcsRecord) -> NormalizedEvent:
        audience = infer_audience_from_text(f"{record.summary or ''} {record.description or ''}")
        return NormalizedEvent(
            source_event_id=record.uid,
            title=record.summary or UNTITLED_EVENT,
            description=record.description,
            start_time=record.start,
            end_time=record.end,
            is_all_day=record.is_all_day,
            timezone=self.feed_timezone,
            location=record.location,
            url=record.url,
            is_canceled=False,
            is_online=False,
            audience=audience,
            subjects=[],
            raw_data=self.raw_snapshot(record),
        )
