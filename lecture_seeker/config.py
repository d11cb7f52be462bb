from __future__ import annotations

import logging
import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _int_env(name: str, default: int, lo: Optional[int] = None, hi: Optional[int] = None) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("[config] %s=%r is not an integer, using %d", name, raw, default)
        return default
    if (lo is not None and value < lo) or (hi is not None and value > hi):
        logger.warning("[config] %s=%d is outside %s..%s, using %d", name, value, lo, hi, default)
        return default
    return value


def _bool_env(name: str, default: bool) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "y")


DEFAULT_TIMEZONE = "America/Los_Angeles"

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

SCRAPE_INTERVAL_HOURS = _int_env("SCRAPE_INTERVAL_HOURS", 6, lo=1, hi=24)
SCRAPE_MAX_WORKERS = max(1, _int_env("SCRAPE_MAX_WORKERS", 8))
SCRAPE_ON_START = _bool_env("SCRAPE_ON_START", True)

WORKER_HOST = os.getenv("WORKER_HOST", "0.0.0.0")
WORKER_PORT = _int_env("WORKER_PORT", 3001)

HTTP_TIMEOUT_S = _int_env("HTTP_TIMEOUT_S", 30)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
