from __future__ import annotations

from typing import Callable, Dict

from ..models import Source
from .adapters.cal_academy import CalAcademyAdapter
from .adapters.cal_bears import CalBearsAdapter
from .adapters.computer_history_museum import ComputerHistoryMuseumAdapter
from .adapters.csm_observatory import CSMObservatoryAdapter
from .adapters.generic_ics import GenericIcsAdapter
from .adapters.greek_theatre import GreekTheatreAdapter
from .adapters.kipac import KipacAdapter
from .adapters.shoreline_amphitheatre import ShorelineAmphitheatreAdapter
from .adapters.stanford import StanfordAdapter
from .adapters.uc_berkeley import UCBerkeleyAdapter
from .base import BaseAdapter
from .types import SourceKind, SourceSlug


class UnknownSourceError(LookupError):
    """No adapter for this slug, and the source kind has no generic fallback."""


# Each factory takes the source's configured URL.
ADAPTERS: Dict[str, Callable[[str], BaseAdapter]] = {
    SourceSlug.STANFORD: StanfordAdapter,
    SourceSlug.UC_BERKELEY: UCBerkeleyAdapter,
    SourceSlug.CAL_BEARS: CalBearsAdapter,
    SourceSlug.CSM_OBSERVATORY: CSMObservatoryAdapter,
    SourceSlug.SHORELINE_AMPHITHEATRE: ShorelineAmphitheatreAdapter,
    SourceSlug.GREEK_THEATRE: GreekTheatreAdapter,
    SourceSlug.CAL_ACADEMY: CalAcademyAdapter,
    SourceSlug.COMPUTER_HISTORY_MUSEUM: ComputerHistoryMuseumAdapter,
    SourceSlug.KIPAC: KipacAdapter,
}


def get_adapter(source: Source) -> BaseAdapter:
    """
    Built-in slugs get their dedicated adapter. Any other ICS_FEED source
    (user-submitted) gets the generic ICS adapter.
    """
    factory = ADAPTERS.get(source.slug)
    if factory is not None:
        return factory(source.url)
    if source.kind == SourceKind.ICS_FEED.value:
        return GenericIcsAdapter(source.slug, source.url)
    raise UnknownSourceError(f"No adapter for source {source.slug!r} (kind={source.kind})")
