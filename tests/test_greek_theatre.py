# tests/test_greek_theatre.py
from __future__ import annotations

from datetime import date, datetime, timezone

import responses

from lecture_seeker.sources.adapters.greek_theatre import (
    CALENDAR_URL,
    GreekTheatreAdapter,
    parse_show_time,
    resolve_event_date,
)

CALENDAR_HTML = """
<html><body>
<div class="event">
  <a href="https://thegreekberkeley.com/events/khruangbin-2026/">
    <img src="https://thegreekberkeley.com/img/khruangbin.jpg">
    <h3>Khruangbin</h3>
  </a>
  <div class="date">Thu Apr 16</div>
  <div class="time">Doors: 5:30 pm Show: 7:00 pm</div>
  <a href="https://www.ticketmaster.com/event/abc123">Buy Tickets</a>
  <a href="/events/khruangbin-2026/">More Info</a>
</div>
<div class="event">
  <a href="/events/old-show/"><h3>Old Show</h3></a>
  <div class="date">Sat Jan 10</div>
  <span>SOLD OUT</span>
</div>
<div class="event">
  <a href="/events/no-date/"><h3>Date TBA</h3></a>
</div>
<a href="https://www.ticketmaster.com/venue/greek">All shows</a>
</body></html>
"""

NOW = datetime(2026, 4, 1, 19, 0, tzinfo=timezone.utc)


def _adapter() -> GreekTheatreAdapter:
    adapter = GreekTheatreAdapter()
    adapter.now_utc = lambda: NOW
    return adapter


@responses.activate
def test_listing_blocks():
    responses.get(CALENDAR_URL, body=CALENDAR_HTML)

    result = _adapter().scrape()

    assert result.errors == []
    by_id = {e.source_event_id: e for e in result.events}
    assert set(by_id) == {"khruangbin-2026", "old-show"}

    show = by_id["khruangbin-2026"]
    assert show.title == "Khruangbin"
    assert show.start_time == datetime(2026, 4, 17, 2, 0, tzinfo=timezone.utc)
    assert show.ticket_url == "https://www.ticketmaster.com/event/abc123"
    assert show.url == "https://thegreekberkeley.com/events/khruangbin-2026/"
    assert show.image_url == "https://thegreekberkeley.com/img/khruangbin.jpg"
    assert show.cost is None
    assert show.event_type == "concert"
    assert show.subjects == ["khruangbin"]
    assert show.raw_data["timeText"] == "Doors: 5:30 pm Show: 7:00 pm"

    old = by_id["old-show"]
    # more than 60 days in the past: next year, default 7pm start
    assert old.start_time == datetime(2027, 1, 11, 3, 0, tzinfo=timezone.utc)
    assert old.cost == "Sold Out"
    assert old.url == "https://thegreekberkeley.com/events/old-show"
    assert old.ticket_url == old.url


def test_resolve_event_date_rollover_window():
    assert resolve_event_date(3, 1, NOW) == date(2026, 3, 1)
    assert resolve_event_date(1, 10, NOW) == date(2027, 1, 10)
    assert resolve_event_date(12, 31, NOW) == date(2026, 12, 31)


def test_parse_show_time():
    assert parse_show_time("Doors: 5:30 pm Show: 7:00 pm") == (19, 0)
    assert parse_show_time("Doors: 6:00 PM") == (18, 0)
    assert parse_show_time("All day") is None
