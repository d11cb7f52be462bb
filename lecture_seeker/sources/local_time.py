"""
Wall-clock -> absolute instant helpers.

Upstream pages print civil times ("Mar 11, 2026 7:00 PM") with the zone
implied by the venue. Building datetime objects from those components
must not depend on the process timezone (UTC on most servers).
"""
from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from ..config import DEFAULT_TIMEZONE

MONTHS: dict[str, int] = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

_CLOCK_RE = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*([ap])\.?\s*m\.?(?![a-z])", re.IGNORECASE)


def local_to_instant(
    zone_name: str,
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
) -> datetime:
    """
    Return the UTC instant whose wall clock in zone_name reads
    year-month-day hour:minute.

    Treat the components as UTC, look at what that instant reads in the
    target zone, then shift by the minute and day difference. The zone
    offset depends on the result rather than the input, so on a DST
    transition day the corrected instant is checked once more.

    Ambiguous fall-back times resolve to the first occurrence. Times inside
    the spring-forward gap resolve to the wall time after the gap
    (02:30 -> 03:30), like zoneinfo with fold=0.

    Callers validate the calendar date; month is 1-based.
    """
    tz = ZoneInfo(zone_name)
    target = date(year, month, day)
    want_minutes = hour * 60 + minute

    def shift(instant: datetime) -> timedelta:
        wall = instant.astimezone(tz)
        got_minutes = wall.hour * 60 + wall.minute
        # date subtraction handles month and year wraparound
        day_diff = (target - wall.date()).days
        return timedelta(minutes=(want_minutes - got_minutes) + day_diff * 24 * 60)

    guess = datetime(year, month, day, hour, minute, tzinfo=timezone.utc)
    first = guess + shift(guess)
    delta = shift(first)
    if not delta:
        return first

    second = first + delta
    if not shift(second):
        return second
    # wall time does not exist in this zone
    return first


def pacific_instant(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return local_to_instant(DEFAULT_TIMEZONE, year, month, day, hour, minute)


def local_today(zone_name: str = DEFAULT_TIMEZONE, now: Optional[datetime] = None) -> date:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(ZoneInfo(zone_name)).date()


def parse_clock_12h(text: str) -> Optional[Tuple[int, int]]:
    """
    Parse "10:30 a.m.", "1 p.m.", "7:00PM" into (hour, minute) on a
    24h clock. Returns None when no am/pm time is present.
    """
    m = _CLOCK_RE.search(text or "")
    if not m:
        return None
    hours = int(m.group(1))
    minutes = int(m.group(2)) if m.group(2) else 0
    meridiem = m.group(3).lower()
    if hours > 12 or minutes > 59:
        return None
    if meridiem == "p" and hours < 12:
        hours += 12
    if meridiem == "a" and hours == 12:
        hours = 0
    return hours, minutes


def month_number(token: str) -> Optional[int]:
    """'Mar', 'march', 'MAR.' -> 3."""
    key = (token or "").strip().lower().rstrip(".")[:3]
    return MONTHS.get(key)


def parse_iso_instant(s: Optional[str], default_tz: str = DEFAULT_TIMEZONE) -> Optional[datetime]:
    """Parse ISO 8601 to an aware datetime.

    - Trailing 'Z' and explicit offsets are respected
    - Naive strings are read as wall-clock time in default_tz
    """
    if not s or not isinstance(s, str):
        return None
    s = s.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is None:
        return local_to_instant(default_tz, dt.year, dt.month, dt.day, dt.hour, dt.minute)
    return dt
