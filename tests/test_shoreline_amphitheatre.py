# tests/test_shoreline_amphitheatre.py
"""Event list embedded in the Next.js flight payload of the venue page."""
from __future__ import annotations

import json
from datetime import datetime, timezone

import responses

from lecture_seeker.sources.adapters.shoreline_amphitheatre import (
    VENUE_DISCOVERY_ID,
    VENUE_URL,
    ShorelineAmphitheatreAdapter,
    is_listed_event,
    map_event_type,
)


def _event(discovery_id: str, **overrides) -> dict:
    ev = {
        "event_data_type": "event",
        "discovery_id": discovery_id,
        "name": "Foo Fighters",
        "slug": "foo-fighters",
        "url": f"https://www.livenation.com/event/{discovery_id}",
        "type": "REGULAR",
        "start_date_local": "2026-06-30",
        "timezone": "America/Los_Angeles",
        "start_datetime_utc": "2026-07-01T02:30:00Z",
        "status_code": "onsale",
        "genre": "Rock",
        "segment": "Music",
        "venue": {"discovery_id": "KovZpZA6ta1A", "name": "Shoreline Amphitheatre"},
        "artists": [{"name": "Foo Fighters"}, {"name": "Wet Leg"}],
        "images": [
            {"url": "https://img/landscape.jpg", "identifier": "RETINA_LANDSCAPE_16_9", "width": 1, "height": 1},
            {"url": "https://img/portrait.jpg", "identifier": "RETINA_PORTRAIT_16_9", "width": 1, "height": 1},
        ],
    }
    ev.update(overrides)
    return ev


def _page(events: list) -> str:
    payload = json.dumps({"getVenueEvents": {"data": events, "total": len(events)}}, separators=(",", ":"))
    # flight chunks carry the payload as a JS string literal
    chunk = json.dumps("5:" + payload)[1:-1]
    return (
        "<html><body>"
        '<script>self.__next_f.push([1,"1:HL[\\"/_next/static/app.css\\"]\\n"])</script>'
        f'<script>self.__next_f.push([1,"{chunk}"])</script>'
        "</body></html>"
    )


@responses.activate
def test_filters_and_normalizes():
    events = [
        _event("E1"),
        _event("E2", type="PARKING", name="Parking Pass"),
        _event("E3", venue={"discovery_id": "OTHER", "name": "Elsewhere"}),
        _event(
            "E4",
            name="Comedy Night",
            genre="Comedy",
            segment="Arts & Theatre",
            status_code="cancelled",
            artists=[],
            images=[],
            image={"url": "https://img/fallback.jpg"},
            venue={"discovery_id": "KovZpZA6ta1A", "location": {"latitude": 37.42, "longitude": -122.08}},
        ),
    ]
    responses.get(VENUE_URL, body=_page(events))

    result = ShorelineAmphitheatreAdapter().scrape()

    assert result.errors == []
    by_id = {e.source_event_id: e for e in result.events}
    assert set(by_id) == {"E1", "E4"}

    show = by_id["E1"]
    assert show.start_time == datetime(2026, 7, 1, 2, 30, tzinfo=timezone.utc)
    assert show.event_type == "concert"
    assert show.subjects == ["rock", "music", "foo fighters", "wet leg"]
    assert show.image_url == "https://img/portrait.jpg"
    assert show.ticket_url == show.url
    assert show.is_canceled is False
    assert show.latitude == 37.426718
    assert show.raw_data["discovery_id"] == "E1"

    comedy = by_id["E4"]
    assert comedy.is_canceled is True
    assert comedy.event_type is None
    assert comedy.image_url == "https://img/fallback.jpg"
    assert comedy.latitude == 37.42


@responses.activate
def test_missing_payload_is_reported():
    responses.get(VENUE_URL, body="<html><body><div>No events</div></body></html>")

    result = ShorelineAmphitheatreAdapter().scrape()

    assert result.events == []
    assert result.errors == ["No event data found in LiveNation page RSC payload"]


@responses.activate
def test_bad_record_is_partial():
    events = [_event("E1"), {"event_data_type": "event", "discovery_id": "BAD", "type": "REGULAR"}]
    responses.get(VENUE_URL, body=_page(events))

    result = ShorelineAmphitheatreAdapter().scrape()

    assert [e.source_event_id for e in result.events] == ["E1"]
    assert len(result.errors) == 1
    assert result.errors[0].startswith("Failed to parse event BAD")


def test_map_event_type():
    assert map_event_type("Music", "Rock") == "concert"
    assert map_event_type("Sports", "Athletics") == "sports"
    assert map_event_type(None, "Music") is None


@responses.activate
def test_non_show_records_are_dropped_before_validation():
    events = [
        _event("E1"),
        {"discovery_id": "P1", "type": "PARKING", "name": "Parking"},
        {"type": "PARKING"},
        {"discovery_id": "X1", "type": "REGULAR", "venue": {"discovery_id": "OTHER"}},
    ]
    responses.get(VENUE_URL, body=_page(events))

    result = ShorelineAmphitheatreAdapter().scrape()

    assert [e.source_event_id for e in result.events] == ["E1"]
    assert result.errors == []


def test_is_listed_event():
    assert is_listed_event({"type": "REGULAR"})
    assert is_listed_event({"type": "REGULAR", "venue": {"discovery_id": VENUE_DISCOVERY_ID}})
    assert not is_listed_event({"type": "REGULAR", "venue": {"discovery_id": "OTHER"}})
    assert not is_listed_event({"type": "ADD_ON"})
    assert not is_listed_event(["not", "a", "record"])
