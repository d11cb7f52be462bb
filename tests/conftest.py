# tests/conftest.py
"""Shared fixtures: an in-memory EventStore and a few event builders."""
from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

import pytest

from lecture_seeker.models import NormalizedEvent, Source, SourceStatus


class FakeStore:
    """Dict-backed stand-in for SupabaseEventStore with the same upsert semantics."""

    def __init__(self, sources: Optional[List[Source]] = None) -> None:
        self.sources: Dict[str, Source] = {s.id: s for s in (sources or [])}
        self.source_rows: Dict[str, Dict[str, Any]] = {}
        self.events: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.statuses: Dict[str, SourceStatus] = {}
        self.upsert_calls = 0
        self._lock = threading.Lock()

    def upsert_event(self, source_id: str, source_event_id: str, fields: Mapping[str, Any]) -> None:
        with self._lock:
            self.upsert_calls += 1
            self.events[(source_id, source_event_id)] = dict(fields)

    def list_source_event_ids(self, source_id: str) -> Set[str]:
        with self._lock:
            return {eid for (sid, eid) in self.events if sid == source_id}

    def count_events(self, source_id: str) -> int:
        return len(self.list_source_event_ids(source_id))

    def update_source_status(self, source_id: str, status: SourceStatus) -> None:
        with self._lock:
            self.statuses[source_id] = status

    def list_enabled_sources(self) -> List[Source]:
        return [s for s in self.sources.values() if s.enabled]

    def upsert_source_by_slug(self, slug: str, fields: Mapping[str, Any]) -> None:
        if slug in self.source_rows:
            return
        self.source_rows[slug] = {"slug": slug, **fields}

    def get_source_by_slug(self, slug: str) -> Optional[Source]:
        for s in self.sources.values():
            if s.slug == slug:
                return s
        return None

    def insert_source(self, fields: Mapping[str, Any]) -> Source:
        source = Source(
            id=f"id-{fields['slug']}",
            slug=fields["slug"],
            name=fields["name"],
            kind=fields["kind"],
            url=fields["url"],
            enabled=fields.get("enabled", True),
            is_built_in=fields.get("is_built_in", False),
        )
        self.sources[source.id] = source
        return source


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


def make_event(source_event_id: str = "ev-1", **overrides: Any) -> NormalizedEvent:
    defaults: Dict[str, Any] = {
        "source_event_id": source_event_id,
        "title": "Black Holes and the Early Universe",
        "start_time": datetime(2026, 3, 11, 2, 0, tzinfo=timezone.utc),
        "is_all_day": False,
        "timezone": "America/Los_Angeles",
        "is_canceled": False,
        "is_online": False,
    }
    defaults.update(overrides)
    return NormalizedEvent(**defaults)


def make_source(slug: str, kind: str = "ICS_FEED", url: str = "https://example.org/feed.ics", **kw: Any) -> Source:
    return Source(id=kw.pop("id", f"id-{slug}"), slug=slug, name=kw.pop("name", slug), kind=kind, url=url, **kw)
