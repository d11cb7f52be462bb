from __future__ import annotations

import logging
import random
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Protocol, Set
from urllib.parse import urlparse

import httpx
from supabase import Client

from .db.supabase_client import get_supabase_client
from .models import NormalizedEvent, Source, SourceStatus
from .sources.fields import slugify
from .sources.types import SourceKind

logger = logging.getLogger(__name__)

EVENTS_TABLE = "events"
SOURCES_TABLE = "sources"
SOURCE_COLUMNS = "id,slug,name,kind,url,enabled,is_built_in"
ID_PAGE_SIZE = 1000


class SourceConflictError(ValueError):
    """A source with this slug already exists."""


class EventStore(Protocol):
    def upsert_event(self, source_id: str, source_event_id: str, fields: Mapping[str, Any]) -> None: ...

    def list_source_event_ids(self, source_id: str) -> Set[str]: ...

    def count_events(self, source_id: str) -> int: ...

    def update_source_status(self, source_id: str, status: SourceStatus) -> None: ...

    def list_enabled_sources(self) -> List[Source]: ...

    def upsert_source_by_slug(self, slug: str, fields: Mapping[str, Any]) -> None: ...

    def get_source_by_slug(self, slug: str) -> Optional[Source]: ...

    def insert_source(self, fields: Mapping[str, Any]) -> Source: ...


# -----------------------------------------------------------------------------
# Small utilities
# -----------------------------------------------------------------------------

def execute_with_retry(rb, *, tries: int = 6, base_sleep: float = 0.5):
    """
    Supabase/PostgREST calls can occasionally drop HTTP/2 connections under load.
    Wrap .execute() with retry + exponential backoff. APIError is not retried.
    """
    last = None
    for attempt in range(tries):
        try:
            return rb.execute()
        except (
            httpx.RemoteProtocolError,
            httpx.ReadTimeout,
            httpx.ConnectError,
            httpx.WriteError,
        ) as e:
            last = e
            sleep = base_sleep * (2 ** attempt) + random.random() * 0.25
            logger.warning(
                "[storage] transient http error: %s attempt=%d/%d sleep=%.2fs",
                type(e).__name__, attempt + 1, tries, sleep,
            )
            time.sleep(sleep)
    raise last  # type: ignore[misc]


def _dt_iso(dt: Optional[datetime]) -> Optional[str]:
    if not dt:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def _row_to_source(row: Mapping[str, Any]) -> Source:
    return Source(
        id=str(row["id"]),
        slug=row["slug"],
        name=row.get("name") or row["slug"],
        kind=row.get("kind") or "",
        url=row.get("url") or "",
        enabled=bool(row.get("enabled", True)),
        is_built_in=bool(row.get("is_built_in", False)),
    )


def build_event_row(ev: NormalizedEvent) -> Dict[str, Any]:
    """
    Columns for public.events, minus the (source_id, source_event_id) key.

    Pure function (no DB calls). Every column is present, None included, so
    an upsert fully replaces the stored row instead of merging into it.
    """
    dumped = ev.model_dump(mode="json", include={"raw_data"})
    return {
        "title": ev.title,
        "description": ev.description,
        "description_html": ev.description_html,
        "start_time": _dt_iso(ev.start_time),
        "end_time": _dt_iso(ev.end_time),
        "is_all_day": ev.is_all_day,
        "timezone": ev.timezone,
        "location": ev.location,
        "address": ev.address,
        "latitude": ev.latitude,
        "longitude": ev.longitude,
        "url": ev.url,
        "ticket_url": ev.ticket_url,
        "image_url": ev.image_url,
        "cost": ev.cost,
        "is_canceled": ev.is_canceled,
        "is_online": ev.is_online,
        "event_type": ev.event_type,
        "audience": ev.audience,
        "subjects": list(ev.subjects),
        "department": ev.department,
        "raw_data": dumped.get("raw_data"),
    }


def build_status_row(status: SourceStatus) -> Dict[str, Any]:
    """
    last_scraped_at and last_error are always written (a clean run clears
    the previous error). Counters are only written when known.
    """
    row: Dict[str, Any] = {
        "last_scraped_at": _dt_iso(status.last_scraped_at),
        "last_error": status.last_error,
    }
    counters = {
        "last_scrape_events": status.last_scrape_events,
        "last_scrape_new": status.last_scrape_new,
        "last_scrape_duration": status.last_scrape_duration,
        "total_events": status.total_events,
    }
    row.update({k: v for k, v in counters.items() if v is not None})
    return row


# -----------------------------------------------------------------------------
# Supabase implementation
# -----------------------------------------------------------------------------

class SupabaseEventStore:
    """
    public.events is unique on (source_id, source_event_id);
    public.sources is unique on slug.
    """

    def __init__(self, client: Optional[Client] = None) -> None:
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    def upsert_event(self, source_id: str, source_event_id: str, fields: Mapping[str, Any]) -> None:
        row = {"source_id": source_id, "source_event_id": source_event_id, **fields}
        execute_with_retry(
            self.client.table(EVENTS_TABLE).upsert(row, on_conflict="source_id,source_event_id")
        )

    def list_source_event_ids(self, source_id: str) -> Set[str]:
        ids: Set[str] = set()
        start = 0
        while True:
            resp = execute_with_retry(
                self.client.table(EVENTS_TABLE)
                .select("source_event_id")
                .eq("source_id", source_id)
                .order("source_event_id")
                .range(start, start + ID_PAGE_SIZE - 1)
            )
            rows = resp.data or []
            ids.update(r["source_event_id"] for r in rows)
            if len(rows) < ID_PAGE_SIZE:
                return ids
            start += ID_PAGE_SIZE

    def count_events(self, source_id: str) -> int:
        resp = execute_with_retry(
            self.client.table(EVENTS_TABLE)
            .select("id", count="exact", head=True)
            .eq("source_id", source_id)
        )
        return int(resp.count or 0)

    def update_source_status(self, source_id: str, status: SourceStatus) -> None:
        execute_with_retry(
            self.client.table(SOURCES_TABLE).update(build_status_row(status)).eq("id", source_id)
        )

    def list_enabled_sources(self) -> List[Source]:
        resp = execute_with_retry(
            self.client.table(SOURCES_TABLE).select(SOURCE_COLUMNS).eq("enabled", True)
        )
        return [_row_to_source(r) for r in (resp.data or [])]

    def upsert_source_by_slug(self, slug: str, fields: Mapping[str, Any]) -> None:
        """Create-if-absent. An existing row (and its enabled/url edits) is left alone."""
        row = {"slug": slug, **fields}
        execute_with_retry(
            self.client.table(SOURCES_TABLE).upsert(row, on_conflict="slug", ignore_duplicates=True)
        )

    def get_source_by_slug(self, slug: str) -> Optional[Source]:
        resp = execute_with_retry(
            self.client.table(SOURCES_TABLE).select(SOURCE_COLUMNS).eq("slug", slug).limit(1)
        )
        rows = resp.data or []
        return _row_to_source(rows[0]) if rows else None

    def insert_source(self, fields: Mapping[str, Any]) -> Source:
        resp = execute_with_retry(self.client.table(SOURCES_TABLE).insert(dict(fields)))
        rows = resp.data or []
        if not rows:
            raise RuntimeError(f"insert into {SOURCES_TABLE} returned no row for slug={fields.get('slug')!r}")
        return _row_to_source(rows[0])


# -----------------------------------------------------------------------------
# User-submitted sources
# -----------------------------------------------------------------------------

def create_ics_source(store: EventStore, name: str, url: str) -> Source:
    """
    Register a user-submitted ICS feed. Only ICS feeds can be added this
    way; every other kind needs a dedicated adapter.
    """
    name = (name or "").strip()
    slug = slugify(name)
    if not slug:
        raise ValueError("Source name must contain at least one letter or digit")

    parsed = urlparse((url or "").strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Feed URL must be an http(s) URL: {url!r}")

    if store.get_source_by_slug(slug) is not None:
        raise SourceConflictError(f"A source with slug {slug!r} already exists")

    source = store.insert_source(
        {
            "slug": slug,
            "name": name,
            "kind": SourceKind.ICS_FEED.value,
            "url": parsed.geturl(),
            "enabled": True,
            "is_built_in": False,
        }
    )
    logger.info("[storage] created ICS source slug=%s url=%s", slug, source.url)
    return source
