from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List

from ..models import NormalizedEvent, ScrapeRunResult

logger = logging.getLogger(__name__)


class BaseAdapter(ABC):
    """
    One adapter per upstream source.

    fetch_and_parse() raises when nothing could be retrieved (fatal) and
    calls add_error() for items it had to skip (partial). scrape() is the
    failure boundary: it never raises.
    """

    source_slug: str = ""

    def __init__(self) -> None:
        self.errors: List[str] = []

    @abstractmethod
    def fetch_and_parse(self) -> List[NormalizedEvent]:
        """Fetch upstream data and return normalized events."""

    def scrape(self) -> ScrapeRunResult:
        self.errors = []
        events: List[NormalizedEvent] = []

        try:
            events = self.fetch_and_parse()
        except Exception as e:
            self.errors.append(f"Fatal scraper error: {type(e).__name__}: {e}")

        events = _dedupe_by_source_event_id(events)

        logger.info(
            "[%s] Scraped %d events, %d errors", self.source_slug, len(events), len(self.errors)
        )
        return ScrapeRunResult(events=events, errors=list(self.errors))

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        logger.warning("[%s] %s", self.source_slug, message)

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


def _dedupe_by_source_event_id(events: List[NormalizedEvent]) -> List[NormalizedEvent]:
    """
    Keep one event per source_event_id. A later occurrence replaces an
    earlier one in place, matching what a second upsert would do.
    """
    by_id: Dict[str, NormalizedEvent] = {}
    for ev in events:
        by_id[ev.source_event_id] = ev
    return list(by_id.values())
