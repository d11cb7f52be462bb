# tests/test_pipeline.py
from __future__ import annotations

import logging
from unittest.mock import MagicMock

from conftest import FakeStore, make_event, make_source
from postgrest.exceptions import APIError

from lecture_seeker.models import ScrapeRunResult
from lecture_seeker.pipeline import SourceRunStats, run_all, scrape_source, seed_sources
from lecture_seeker.sources.base import BaseAdapter
from lecture_seeker.sources.registry import get_adapter
from lecture_seeker.sources.types import BUILT_IN_SOURCES


class _StaticAdapter(BaseAdapter):
    def __init__(self, slug, events=None, exc=None, errors=None):
        super().__init__()
        self.source_slug = slug
        self._events = events or []
        self._exc = exc
        self._errors = errors or []

    def fetch_and_parse(self):
        for msg in self._errors:
            self.add_error(msg)
        if self._exc:
            raise self._exc
        return list(self._events)


def _factory(table):
    return lambda source: table[source.slug]()


class TestScrapeSource:
    def test_new_vs_updated_counts(self):
        src = make_source("feed")
        store = FakeStore([src])
        store.events[(src.id, "old")] = {"title": "stale"}

        adapters = {"feed": lambda: _StaticAdapter("feed", [make_event("old"), make_event("fresh")])}
        stats = scrape_source(store, src, _factory(adapters))

        assert stats.events == 2
        assert stats.new == 1
        assert stats.total_events == 2
        assert stats.errors == []

        status = store.statuses[src.id]
        assert status.last_error is None
        assert status.last_scrape_events == 2
        assert status.last_scrape_new == 1
        assert status.total_events == 2
        assert status.last_scraped_at.tzinfo is not None

    def test_second_identical_run_creates_nothing(self):
        src = make_source("feed")
        store = FakeStore([src])
        adapters = {"feed": lambda: _StaticAdapter("feed", [make_event("a"), make_event("b")])}

        first = scrape_source(store, src, _factory(adapters))
        rows_after_first = dict(store.events)
        second = scrape_source(store, src, _factory(adapters))

        assert first.new == 2
        assert second.new == 0
        assert second.events == 2
        assert store.events == rows_after_first

    def test_partial_errors_are_joined_into_last_error(self):
        src = make_source("feed")
        store = FakeStore([src])
        adapters = {"feed": lambda: _StaticAdapter("feed", [make_event("a")], errors=["skip 1", "skip 2"])}

        stats = scrape_source(store, src, _factory(adapters))

        assert stats.events == 1
        assert not stats.failed
        assert store.statuses[src.id].last_error == "skip 1; skip 2"

    def test_fatal_adapter_still_writes_status(self):
        src = make_source("feed")
        store = FakeStore([src])
        adapters = {"feed": lambda: _StaticAdapter("feed", exc=RuntimeError("boom"))}

        stats = scrape_source(store, src, _factory(adapters))

        assert stats.failed
        status = store.statuses[src.id]
        assert status.last_error == "Fatal scraper error: RuntimeError: boom"
        assert status.last_scrape_events == 0
        assert status.last_scrape_new == 0

    def test_unknown_source_is_recorded_not_raised(self):
        src = make_source("mystery", kind="HTML_SCRAPE", url="https://example.org")
        store = FakeStore([src])

        stats = scrape_source(store, src, get_adapter)

        assert stats.failed
        assert store.statuses[src.id].last_error.startswith("UnknownSourceError: ")

    def test_storage_error_is_recorded(self):
        src = make_source("feed")
        store = FakeStore([src])
        store.upsert_event = MagicMock(side_effect=APIError({"message": "duplicate", "code": "23505"}))
        adapters = {"feed": lambda: _StaticAdapter("feed", [make_event("a")])}

        stats = scrape_source(store, src, _factory(adapters))

        assert stats.errors == ["Storage error 23505: duplicate"]
        assert store.statuses[src.id].last_error == "Storage error 23505: duplicate"

    def test_status_write_failure_is_swallowed(self):
        src = make_source("feed")
        store = FakeStore([src])
        store.update_source_status = MagicMock(side_effect=RuntimeError("sources table gone"))
        adapters = {"feed": lambda: _StaticAdapter("feed", [make_event("a")])}

        stats = scrape_source(store, src, _factory(adapters))

        assert stats.events == 1
        store.update_source_status.assert_called_once()


class TestRunAll:
    def test_one_fatal_source_does_not_block_others(self):
        sources = [make_source("a"), make_source("b"), make_source("c")]
        store = FakeStore(sources)
        adapters = {
            "a": lambda: _StaticAdapter("a", [make_event("a-1")]),
            "b": lambda: _StaticAdapter("b", exc=RuntimeError("boom")),
            "c": lambda: _StaticAdapter("c", [make_event("c-1"), make_event("c-2")]),
        }

        results = run_all(store, _factory(adapters), max_workers=3)

        assert [r.slug for r in results] == ["a", "b", "c"]
        assert [r.events for r in results] == [1, 0, 2]
        assert store.statuses["id-b"].last_error == "Fatal scraper error: RuntimeError: boom"
        assert store.statuses["id-a"].last_error is None
        assert store.statuses["id-c"].last_error is None
        assert store.count_events("id-c") == 2

    def test_disabled_sources_are_skipped(self):
        store = FakeStore([make_source("a"), make_source("off", enabled=False)])
        adapters = {"a": lambda: _StaticAdapter("a", [make_event("x")])}

        results = run_all(store, _factory(adapters))

        assert [r.slug for r in results] == ["a"]
        assert "id-off" not in store.statuses

    def test_no_sources(self, fake_store, caplog):
        with caplog.at_level(logging.INFO, logger="lecture_seeker.pipeline"):
            assert run_all(fake_store, _factory({})) == []
        assert "[pipeline][summary] sources_run=0 events=0 new=0 failed_sources=0 diagnostics=0" in caplog.text

    def test_summary_line(self, caplog):
        store = FakeStore([make_source("a"), make_source("b")])
        adapters = {
            "a": lambda: _StaticAdapter("a", [make_event("1"), make_event("2")], errors=["skipped one"]),
            "b": lambda: _StaticAdapter("b", exc=ValueError("nope")),
        }

        with caplog.at_level(logging.INFO, logger="lecture_seeker.pipeline"):
            run_all(store, _factory(adapters))

        assert "[pipeline][summary] sources_run=2 events=2 new=2 failed_sources=1 diagnostics=2" in caplog.text


def test_failed_requires_zero_events():
    assert SourceRunStats("id", "s", events=0, errors=["x"]).failed
    assert not SourceRunStats("id", "s", events=3, errors=["x"]).failed
    assert not SourceRunStats("id", "s").failed


def test_seed_sources_creates_missing_and_keeps_existing(fake_store):
    fake_store.source_rows["kipac"] = {"slug": "kipac", "url": "https://edited.example.org", "enabled": False}

    assert seed_sources(fake_store) == len(BUILT_IN_SOURCES)
    assert seed_sources(fake_store) == len(BUILT_IN_SOURCES)

    assert set(fake_store.source_rows) == {b.slug for b in BUILT_IN_SOURCES}
    assert fake_store.source_rows["kipac"]["enabled"] is False
    assert fake_store.source_rows["kipac"]["url"] == "https://edited.example.org"
    stanford = fake_store.source_rows["stanford"]
    assert stanford["is_built_in"] is True
    assert stanford["kind"] == "API_JSON"


def test_scrape_run_result_defaults():
    assert ScrapeRunResult().events == [] and ScrapeRunResult().errors == []
