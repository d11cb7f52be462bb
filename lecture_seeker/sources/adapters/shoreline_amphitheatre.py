from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ...config import DEFAULT_TIMEZONE
from ...models import NormalizedEvent
from ...taxonomy import normalize_event_type
from ..base import BaseAdapter
from ..embedded_json import extract_json_array_after, iter_next_flight_chunks, unescape_js_string
from ..http import BROWSER_HEADERS, http_get
from ..local_time import parse_iso_instant
from ..types import SourceSlug

VENUE_URL = "https://www.livenation.com/venue/KovZpZA6ta1A/shoreline-amphitheatre-events"
VENUE_DISCOVERY_ID = "KovZpZA6ta1A"

SHORELINE_LOCATION = "Shoreline Amphitheatre"
SHORELINE_ADDRESS = "One Amphitheatre Parkway, Mountain View, CA 94043"
SHORELINE_LAT = 37.426718
SHORELINE_LNG = -122.080722

PREFERRED_IMAGE = "RETINA_PORTRAIT_16_9"
_PAYLOAD_MARKER = "event_data_type"
_DATA_ARRAY_MARKER = '"data":[{'


# ---------------------------------------
# Upstream shape (LiveNation venue events)
# ---------------------------------------

class _Upstream(BaseModel):
    model_config = ConfigDict(extra="ignore")


class _Location(_Upstream):
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class _Venue(_Upstream):
    discovery_id: Optional[str] = None
    name: Optional[str] = None
    location: Optional[_Location] = None


class _Artist(_Upstream):
    name: str
    genre: Optional[str] = None


class _Image(_Upstream):
    url: str
    identifier: Optional[str] = None


class _ImageRef(_Upstream):
    url: Optional[str] = None


class LiveNationEvent(_Upstream):
    discovery_id: str
    name: str
    url: Optional[str] = None
    type: Optional[str] = None
    timezone: Optional[str] = None
    start_datetime_utc: str
    status_code: Optional[str] = None
    genre: Optional[str] = None
    segment: Optional[str] = None
    is_virtual: Optional[bool] = None
    venue: Optional[_Venue] = None
    artists: List[_Artist] = Field(default_factory=list)
    images: List[_Image] = Field(default_factory=list)
    image: Optional[_ImageRef] = None


def map_event_type(segment: Optional[str], genre: Optional[str]) -> Optional[str]:
    if not segment:
        return None
    if segment.lower() == "music":
        return "concert"
    return normalize_event_type(genre) or normalize_event_type(segment)


def is_listed_event(raw: Any) -> bool:
    """
    Regular shows at this venue only; a missing venue id is accepted.
    Checked on the raw record so parking passes and add-ons are dropped
    before validation.
    """
    if not isinstance(raw, dict) or raw.get("type") != "REGULAR":
        return False
    venue = raw.get("venue")
    venue_id = venue.get("discovery_id") if isinstance(venue, dict) else None
    if venue_id and venue_id != VENUE_DISCOVERY_ID:
        return False
    return True


class ShorelineAmphitheatreAdapter(BaseAdapter):
    """
    LiveNation venue page. The event list is not in the DOM; it ships in
    the Next.js flight payload as an escaped JSON string.
    """

    source_slug = SourceSlug.SHORELINE_AMPHITHEATRE

    def __init__(self, url: str = VENUE_URL) -> None:
        super().__init__()
        self.url = url or VENUE_URL

    def fetch_and_parse(self) -> List[NormalizedEvent]:
        res = http_get(self.url, headers=BROWSER_HEADERS).raise_for_status()

        out: List[NormalizedEvent] = []
        for raw in self.extract_raw_events(res.text):
            if not is_listed_event(raw):
                continue
            try:
                out.append(self.normalize(LiveNationEvent.model_validate(raw), raw))
            except Exception as exc:
                item_id = raw.get("discovery_id")
                self.add_error(f"Failed to parse event {item_id}: {exc}")
        return out

    def extract_raw_events(self, html: str) -> List[Dict[str, Any]]:
        for chunk in iter_next_flight_chunks(html):
            if _PAYLOAD_MARKER not in chunk:
                continue
            text = unescape_js_string(chunk)
            try:
                events = extract_json_array_after(text, _DATA_ARRAY_MARKER)
            except json.JSONDecodeError as e:
                self.add_error(f"Failed to parse event JSON: {e}")
                continue
            if events is not None:
                return events

        self.add_error("No event data found in LiveNation page RSC payload")
        return []

    def normalize(self, e: LiveNationEvent, raw: Dict[str, Any]) -> NormalizedEvent:
        start = parse_iso_instant(e.start_datetime_utc, "UTC")
        if start is None:
            raise ValueError(f"unparseable start_datetime_utc {e.start_datetime_utc!r}")

        image_url = next((img.url for img in e.images if img.identifier == PREFERRED_IMAGE), None)
        if image_url is None and e.image:
            image_url = e.image.url

        subjects: List[str] = []
        if e.genre:
            subjects.append(e.genre.lower())
        if e.segment and e.segment.lower() != (e.genre or "").lower():
            subjects.append(e.segment.lower())
        subjects.extend(a.name.lower() for a in e.artists)

        loc = e.venue.location if e.venue else None

        return NormalizedEvent(
            source_event_id=e.discovery_id,
            title=e.name,
            start_time=start,
            is_all_day=False,
            timezone=e.timezone or DEFAULT_TIMEZONE,
            location=SHORELINE_LOCATION,
            address=SHORELINE_ADDRESS,
            latitude=loc.latitude if loc and loc.latitude is not None else SHORELINE_LAT,
            longitude=loc.longitude if loc and loc.longitude is not None else SHORELINE_LNG,
            url=e.url,
            ticket_url=e.url,
            image_url=image_url,
            is_canceled=e.status_code == "cancelled",
            is_online=bool(e.is_virtual),
            event_type=map_event_type(e.segment, e.genre),
            subjects=subjects,
            raw_data=raw,
        )
