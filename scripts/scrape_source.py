#!/usr/bin/env python3
# scripts/scrape_source.py
"""
Run one adapter without touching storage and print what it produced.

  python -m scripts.scrape_source --list
  python -m scripts.scrape_source kipac --limit 5
  python -m scripts.scrape_source my-feed --url https://example.org/cal.ics --json
"""
from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional

from lecture_seeker.config import LOG_LEVEL
from lecture_seeker.logging_setup import configure_logging
from lecture_seeker.models import Source
from lecture_seeker.sources.registry import get_adapter
from lecture_seeker.sources.types import BUILT_IN_SOURCES, SourceKind


def resolve_source(slug: str, url: Optional[str]) -> Source:
    for b in BUILT_IN_SOURCES:
        if b.slug == slug:
            return Source(id=b.slug, slug=b.slug, name=b.name, kind=b.kind.value, url=url or b.url, is_built_in=True)
    if not url:
        raise SystemExit(f"Unknown built-in slug {slug!r}; pass --url to scrape it as an ICS feed")
    return Source(id=slug, slug=slug, name=slug, kind=SourceKind.ICS_FEED.value, url=url)


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Scrape a single source and print normalized events.")
    ap.add_argument("slug", nargs="?", help="Source slug (built-in, or any slug with --url)")
    ap.add_argument("--url", help="Override the source URL (required for non built-in ICS feeds)")
    ap.add_argument("--limit", type=int, default=10, help="Events to print (0 = all)")
    ap.add_argument("--json", action="store_true", help="Print events as JSON lines")
    ap.add_argument("--list", action="store_true", help="List built-in sources and exit")
    args = ap.parse_args(argv)

    configure_logging(LOG_LEVEL)

    if args.list:
        for b in BUILT_IN_SOURCES:
            print(f"{b.slug:<26} {b.kind.value:<12} {b.url}")
        return 0
    if not args.slug:
        ap.error("slug is required unless --list is given")

    source = resolve_source(args.slug, args.url)
    result = get_adapter(source).scrape()

    shown = result.events if args.limit <= 0 else result.events[: args.limit]
    for ev in shown:
        if args.json:
            print(json.dumps(ev.model_dump(mode="json", exclude={"raw_data"}), ensure_ascii=False))
        else:
            print(f"{ev.start_time.isoformat()}  {ev.source_event_id}  {ev.title}")

    print(f"[scrape_source] slug={source.slug} events={len(result.events)} errors={len(result.errors)}")
    for err in result.errors:
        print(f"[scrape_source] error: {err}", file=sys.stderr)

    fatal = any(e.startswith("Fatal scraper error") for e in result.errors)
    return 1 if fatal else 0


if __name__ == "__main__":
    raise SystemExit(main())
