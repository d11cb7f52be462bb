# tests/test_computer_history_museum.py
from __future__ import annotations

from datetime import datetime, timezone

import responses

from lecture_seeker.sources.adapters.computer_history_museum import (
    EVENTS_URL,
    ComputerHistoryMuseumAdapter,
    infer_chm_event_type,
    parse_event_datetime,
)

LISTING_HTML = """
<html><body>
  <a href="/events/">All events</a>
  <a href="https://computerhistory.org/events/ai-futures/">AI Futures</a>
  <a href="/events/ai-futures/">Learn more</a>
  <a href="/events/retro-gaming/">Retro Gaming</a>
  <a href="/events/broken-page/">Broken</a>
  <a href="/events/category/talks/">Talks</a>
</body></html>
"""

AI_FUTURES_HTML = """
<html><head>
  <meta property="og:title" content="AI Futures - CHM">
  <meta property="og:image" content="https://computerhistory.org/img/ai-futures.jpg">
  <script>window.EBWidgets.createWidget({ eventId: '123456789012', modal: true });</script>
</head><body>
  <h1>AI Futures</h1>
  <div class="event-date">March 11, 2026 7:00 PM – 8:30 PM</div>
  <p>A conversation about where machine learning goes over the next decade.</p>
</body></html>
"""

RETRO_HTML = """
<html><body><h1>Retro Gaming</h1><p>Date to be announced.</p></body></html>
"""


@responses.activate
def test_listing_then_detail():
    responses.get(EVENTS_URL, body=LISTING_HTML)
    responses.get("https://computerhistory.org/events/ai-futures/", body=AI_FUTURES_HTML)
    responses.get("https://computerhistory.org/events/retro-gaming/", body=RETRO_HTML)
    responses.get("https://computerhistory.org/events/broken-page/", status=500)

    result = ComputerHistoryMuseumAdapter().scrape()

    assert len(result.events) == 1
    ev = result.events[0]
    assert ev.source_event_id == "ai-futures"
    assert ev.title == "AI Futures"
    assert ev.start_time == datetime(2026, 3, 12, 2, 0, tzinfo=timezone.utc)
    assert ev.end_time == datetime(2026, 3, 12, 3, 30, tzinfo=timezone.utc)
    assert ev.ticket_url == "https://www.eventbrite.com/e/123456789012"
    assert ev.image_url == "https://computerhistory.org/img/ai-futures.jpg"
    assert ev.event_type == "lecture"
    assert ev.audience == "public"
    assert ev.location == "Computer History Museum"

    assert sorted(result.errors) == sorted(
        [
            "Could not parse date/time for retro-gaming",
            "Event page https://computerhistory.org/events/broken-page/ returned 500",
        ]
    )
    # absolute and relative links to the same page are fetched once
    detail_calls = [c.request.url for c in responses.calls if "ai-futures" in c.request.url]
    assert detail_calls == ["https://computerhistory.org/events/ai-futures/"]


@responses.activate
def test_transport_error_on_one_detail_is_partial():
    import requests

    responses.get(EVENTS_URL, body=LISTING_HTML)
    responses.get("https://computerhistory.org/events/ai-futures/", body=AI_FUTURES_HTML)
    responses.get("https://computerhistory.org/events/retro-gaming/", body=requests.ConnectionError("reset"))
    responses.get("https://computerhistory.org/events/broken-page/", status=404)

    result = ComputerHistoryMuseumAdapter().scrape()

    assert [e.source_event_id for e in result.events] == ["ai-futures"]
    assert any(e.startswith("Failed to scrape https://computerhistory.org/events/retro-gaming/") for e in result.errors)


@responses.activate
def test_listing_failure_is_fatal():
    responses.get(EVENTS_URL, status=503)

    result = ComputerHistoryMuseumAdapter().scrape()

    assert result.events == []
    assert result.errors[0].startswith("Fatal scraper error: HttpStatusError")


def test_og_title_fallback():
    html = AI_FUTURES_HTML.replace("<h1>AI Futures</h1>", "")
    adapter = ComputerHistoryMuseumAdapter()
    from bs4 import BeautifulSoup

    assert adapter._title(BeautifulSoup(html, "html.parser")) == "AI Futures"


def test_parse_event_datetime_without_end():
    start, end, text = parse_event_datetime("Join us Apr 2, 2026 6:30 pm in Mountain View")
    assert start == datetime(2026, 4, 3, 1, 30, tzinfo=timezone.utc)
    assert end is None
    assert text == "Apr 2, 2026 6:30 pm"


def test_event_type_fallbacks():
    assert infer_chm_event_type("Symposium", None) == "conference"
    assert infer_chm_event_type("Hands-On Soldering", None) == "workshop"
    assert infer_chm_event_type("New Exhibit Opening", None) == "exhibition"
    assert infer_chm_event_type("Member Night", "live music and snacks") == "concert"
