from __future__ import annotations

from supabase import Client, create_client

from .. import config


def get_supabase_client() -> Client:
    url = (config.SUPABASE_URL or "").strip()
    key = (config.SUPABASE_SERVICE_ROLE_KEY or "").strip()
    if not url or not key:
        raise RuntimeError(
            "Missing SUPABASE env vars. Need SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY."
        )
    return create_client(url, key)
