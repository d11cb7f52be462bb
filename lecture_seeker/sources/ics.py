"""
Shared iCalendar (RFC 5545 subset) helpers for ICS-feed adapters.

Only VEVENT components are read: UID, DTSTART/DTEND, SUMMARY, LOCATION,
DESCRIPTION, URL.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterator, Optional, Tuple

from icalendar import Calendar

from .local_time import local_to_instant

UNTITLED_EVENT = "Untitled Event"


@dataclass
class IcsRecord:
    uid: str
    summary: Optional[str]
    start: datetime
    end: Optional[datetime]
    is_all_day: bool
    location: Optional[str]
    description: Optional[str]
    url: Optional[str]


def unescape_ics_text(value: Optional[str]) -> Optional[str]:
    """
    Undo RFC 5545 TEXT escaping that survived parsing (some feeds escape
    twice). Returns None for empty values.
    """
    if value is None:
        return None
    s = (
        str(value)
        .replace("\\,", ",")
        .replace("\\;", ";")
        .replace("\\n", "\n")
        .replace("\\N", "\n")
        .replace("\\\\", "\\")
        .strip()
    )
    return s or None


def iter_vevents(ics_text: str) -> Iterator[Any]:
    """Parse the feed and yield VEVENT components. Raises ValueError on unparseable text."""
    cal = Calendar.from_ical(ics_text)
    for component in cal.walk("VEVENT"):
        yield component


def _to_instant(value: Any, default_tz: str) -> Tuple[Optional[datetime], bool]:
    """Return (aware datetime, is_date_only)."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            # floating time: wall clock in the feed's implied zone
            return (
                local_to_instant(default_tz, value.year, value.month, value.day, value.hour, value.minute),
                False,
            )
        return value, False
    if isinstance(value, date):
        return local_to_instant(default_tz, value.year, value.month, value.day), True
    return None, False


def _prop_dt(component: Any, name: str) -> Any:
    prop = component.get(name)
    if prop is None:
        return None
    return getattr(prop, "dt", None)


def _prop_text(component: Any, name: str) -> Optional[str]:
    prop = component.get(name)
    if prop is None:
        return None
    return unescape_ics_text(str(prop))


def vevent_to_record(component: Any, default_tz: str) -> Optional[IcsRecord]:
    """
    Map one VEVENT to an IcsRecord. Returns None when DTSTART is missing
    or unusable. Raises ValueError when the component has no UID.
    """
    start, is_all_day = _to_instant(_prop_dt(component, "DTSTART"), default_tz)
    if start is None:
        return None

    uid = _prop_text(component, "UID")
    if not uid:
        raise ValueError("VEVENT has no UID")

    end, _ = _to_instant(_prop_dt(component, "DTEND"), default_tz)

    return IcsRecord(
        uid=uid,
        summary=_prop_text(component, "SUMMARY"),
        start=start,
        end=end,
        is_all_day=is_all_day,
        location=_prop_text(component, "LOCATION"),
        description=_prop_text(component, "DESCRIPTION"),
        url=_prop_text(component, "URL"),
    )
