from __future__ import annotations

import re
from typing import Any, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup


def clean_text(s: Any) -> Optional[str]:
    """Collapse whitespace; empty -> None."""
    if s is None:
        return None
    out = " ".join(str(s).split())
    return out or None


def float_or_none(v: Any) -> Optional[float]:
    if v is None or isinstance(v, bool):
        return None
    try:
        f = float(str(v).strip())
    except ValueError:
        return None
    if f != f:  # NaN
        return None
    return f


def strip_html(html: Optional[str]) -> Optional[str]:
    if not html:
        return None
    text = BeautifulSoup(html, "html.parser").get_text(" ")
    return clean_text(text)


def absolute_url(href: Optional[str], base_url: str) -> Optional[str]:
    href = (href or "").strip()
    if not href:
        return None
    return urljoin(base_url, href)


def url_path(href: str) -> str:
    """Path part of an absolute or relative href, without query/fragment."""
    path = urlparse(href.strip()).path
    return path or "/"


_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    return _SLUG_RE.sub("-", (name or "").lower()).strip("-")
