from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


class NormalizedEvent(BaseModel):
    """
    Adapter output unit, independent of the upstream shape.

    (source, source_event_id) is the dedupe key: two runs that produce the
    same source_event_id describe the same real-world event.
    """

    source_event_id: str
    title: str

    start_time: datetime
    end_time: Optional[datetime] = None
    is_all_day: bool
    timezone: str

    is_canceled: bool
    is_online: bool

    description: Optional[str] = None
    description_html: Optional[str] = None

    location: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    url: Optional[str] = None
    ticket_url: Optional[str] = None
    image_url: Optional[str] = None
    cost: Optional[str] = None

    event_type: Optional[str] = None
    audience: Optional[str] = None
    subjects: List[str] = Field(default_factory=list)
    department: Optional[str] = None

    raw_data: Any = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _require_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is None:
            raise ValueError("event times must be timezone-aware")
        return v

    @field_validator("source_event_id")
    @classmethod
    def _require_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("source_event_id must not be empty")
        return v


@dataclass(frozen=True)
class Source:
    id: str
    slug: str
    name: str
    kind: str
    url: str
    enabled: bool = True
    is_built_in: bool = False


@dataclass
class SourceStatus:
    """Rolling status record written back to the source after every run."""

    last_scraped_at: datetime
    last_error: Optional[str] = None
    last_scrape_events: Optional[int] = None
    last_scrape_new: Optional[int] = None
    last_scrape_duration: Optional[float] = None
    total_events: Optional[int] = None


@dataclass
class ScrapeRunResult:
    events: List[NormalizedEvent] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
