from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional

from postgrest.exceptions import APIError

from .config import SCRAPE_MAX_WORKERS
from .models import Source, SourceStatus
from .sources.base import BaseAdapter
from .sources.registry import get_adapter
from .sources.types import BUILT_IN_SOURCES
from .storage import EventStore, build_event_row

logger = logging.getLogger(__name__)

AdapterFactory = Callable[[Source], BaseAdapter]


@dataclass
class SourceRunStats:
    source_id: str
    slug: str
    events: int = 0
    new: int = 0
    duration_s: float = 0.0
    errors: List[str] = field(default_factory=list)
    total_events: Optional[int] = None

    @property
    def failed(self) -> bool:
        """Nothing came back and something went wrong."""
        return bool(self.errors) and self.events == 0


def seed_sources(store: EventStore) -> int:
    """Create-if-absent for every built-in source. Existing rows are not touched."""
    for src in BUILT_IN_SOURCES:
        store.upsert_source_by_slug(
            src.slug,
            {
                "name": src.name,
                "kind": src.kind.value,
                "url": src.url,
                "enabled": True,
                "is_built_in": True,
            },
        )
    logger.info("[pipeline] built-in sources seeded count=%d", len(BUILT_IN_SOURCES))
    return len(BUILT_IN_SOURCES)


def scrape_source(
    store: EventStore,
    source: Source,
    adapter_factory: AdapterFactory = get_adapter,
) -> SourceRunStats:
    """
    Run one source end to end and write its status record. Never raises.

    New vs updated is decided against the ids on file before the adapter
    runs; rows removed while the adapter is running still count as existing.
    """
    logger.info("[pipeline] start source=%s id=%s", source.slug, source.id)
    stats = SourceRunStats(source_id=source.id, slug=source.slug)
    started = time.monotonic()

    try:
        existing_ids = store.list_source_event_ids(source.id)
        adapter = adapter_factory(source)
        result = adapter.scrape()
        stats.errors = list(result.errors)

        # Sequential within a source so the counters match what was written.
        for ev in result.events:
            is_new = ev.source_event_id not in existing_ids
            store.upsert_event(source.id, ev.source_event_id, build_event_row(ev))
            stats.events += 1
            if is_new:
                stats.new += 1

        stats.total_events = store.count_events(source.id)
    except APIError as e:
        logger.error("[pipeline] storage error source=%s code=%s: %s", source.slug, e.code, e.message)
        stats.errors.append(f"Storage error {e.code}: {e.message}")
    except Exception as e:
        logger.exception("[pipeline] ERROR source=%s: %s: %s", source.slug, type(e).__name__, e)
        stats.errors.append(f"{type(e).__name__}: {e}")

    stats.duration_s = round(time.monotonic() - started, 1)
    _write_status(store, stats)

    logger.info(
        "[pipeline] done source=%s events=%d new=%d total=%s duration=%.1fs errors=%d",
        source.slug, stats.events, stats.new, stats.total_events, stats.duration_s, len(stats.errors),
    )
    return stats


def _write_status(store: EventStore, stats: SourceRunStats) -> None:
    status = SourceStatus(
        last_scraped_at=datetime.now(timezone.utc),
        last_error="; ".join(stats.errors) if stats.errors else None,
        last_scrape_events=stats.events,
        last_scrape_new=stats.new,
        last_scrape_duration=stats.duration_s,
        total_events=stats.total_events,
    )
    try:
        store.update_source_status(stats.source_id, status)
    except Exception:
        logger.exception("[pipeline] status update failed source=%s", stats.slug)


def run_all(
    store: EventStore,
    adapter_factory: AdapterFactory = get_adapter,
    max_workers: int = SCRAPE_MAX_WORKERS,
) -> List[SourceRunStats]:
    """
    One run over every enabled source. Sources run concurrently; each one
    is isolated by scrape_source, so a failing source never blocks the rest.
    """
    logger.info("[pipeline] run start at=%s", datetime.now(timezone.utc).isoformat())
    sources = store.list_enabled_sources()

    results: List[SourceRunStats] = []
    if sources:
        workers = max(1, min(max_workers, len(sources)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="scrape") as pool:
            results = list(pool.map(lambda s: scrape_source(store, s, adapter_factory), sources))

    log_summary(results)
    return results


def log_summary(results: List[SourceRunStats]) -> None:
    # Deterministic, grep-friendly summary line.
    # grep '[pipeline][summary]' worker.log
    logger.info(
        "[pipeline][summary] sources_run=%d events=%d new=%d failed_sources=%d diagnostics=%d",
        len(results),
        sum(r.events for r in results),
        sum(r.new for r in results),
        sum(1 for r in results if r.failed),
        sum(len(r.errors) for r in results),
    )
