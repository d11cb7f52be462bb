from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import requests

from ..config import HTTP_TIMEOUT_S

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml",
}


class HttpStatusError(RuntimeError):
    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(f"{url} returned {status_code}")
        self.url = url
        self.status_code = status_code


@dataclass
class HttpResult:
    url: str
    status_code: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def raise_for_status(self) -> "HttpResult":
        if not self.ok:
            raise HttpStatusError(self.url, self.status_code)
        return self

    def json(self) -> Any:
        return json.loads(self.text)


def http_get(
    url: str,
    *,
    session: Optional[requests.Session] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout_s: int = HTTP_TIMEOUT_S,
) -> HttpResult:
    """
    GET url and return status + body. Non-2xx is not an exception here;
    adapters decide whether a bad status is fatal or partial.
    Transport errors (DNS, timeout, reset) propagate as requests exceptions.
    """
    logger.debug("http_get(): url=%s", url)
    client = session or requests
    r = client.get(url, timeout=timeout_s, headers=dict(headers or {}))
    return HttpResult(url=r.url or url, status_code=r.status_code, text=r.text)
