from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List


class SourceKind(str, Enum):
    API_JSON = "API_JSON"
    ICS_FEED = "ICS_FEED"
    HTML_SCRAPE = "HTML_SCRAPE"


class SourceSlug:
    STANFORD = "stanford"
    UC_BERKELEY = "uc-berkeley"
    CAL_BEARS = "cal-bears"
    CSM_OBSERVATORY = "csm-observatory"
    SHORELINE_AMPHITHEATRE = "shoreline-amphitheatre"
    GREEK_THEATRE = "greek-theatre"
    CAL_ACADEMY = "cal-academy"
    COMPUTER_HISTORY_MUSEUM = "computer-history-museum"
    KIPAC = "kipac"


@dataclass(frozen=True)
class BuiltInSource:
    slug: str
    name: str
    kind: SourceKind
    url: str


BUILT_IN_SOURCES: List[BuiltInSource] = [
    BuiltInSource(
        slug=SourceSlug.STANFORD,
        name="Stanford Events",
        kind=SourceKind.API_JSON,
        url="https://events.stanford.edu/api/2/events",
    ),
    BuiltInSource(
        slug=SourceSlug.UC_BERKELEY,
        name="UC Berkeley Events",
        kind=SourceKind.API_JSON,
        url="https://events.berkeley.edu/live/json/events/",
    ),
    BuiltInSource(
        slug=SourceSlug.CAL_BEARS,
        name="Cal Bears Athletics",
        kind=SourceKind.ICS_FEED,
        url="https://calbears.com/calendar.ashx/calendar.ics",
    ),
    BuiltInSource(
        slug=SourceSlug.CSM_OBSERVATORY,
        name="CSM Observatory",
        kind=SourceKind.HTML_SCRAPE,
        url="https://collegeofsanmateo.edu/astronomy/observatory.asp",
    ),
    BuiltInSource(
        slug=SourceSlug.SHORELINE_AMPHITHEATRE,
        name="Shoreline Amphitheatre",
        kind=SourceKind.HTML_SCRAPE,
        url="https://www.livenation.com/venue/KovZpZA6ta1A/shoreline-amphitheatre-events",
    ),
    BuiltInSource(
        slug=SourceSlug.GREEK_THEATRE,
        name="Greek Theatre Berkeley",
        kind=SourceKind.HTML_SCRAPE,
        url="https://thegreekberkeley.com/calendar/",
    ),
    BuiltInSource(
        slug=SourceSlug.CAL_ACADEMY,
        name="Cal Academy of Sciences",
        kind=SourceKind.HTML_SCRAPE,
        url="https://www.calacademy.org/daily-calendar",
    ),
    BuiltInSource(
        slug=SourceSlug.COMPUTER_HISTORY_MUSEUM,
        name="Computer History Museum",
        kind=SourceKind.HTML_SCRAPE,
        url="https://computerhistory.org/events/",
    ),
    BuiltInSource(
        slug=SourceSlug.KIPAC,
        name="KIPAC Stanford",
        kind=SourceKind.API_JSON,
        url="https://kipac.stanford.edu/jsonapi/node/stanford_event",
    ),
]
