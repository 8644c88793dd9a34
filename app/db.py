from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from app.config import settings


KV_TABLE = "kv_store"


def _require_env() -> None:
    if not settings.supabase_url or not settings.supabase_service_role_key:
        raise RuntimeError("Supabase configuration missing: SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required")


from supabase import Client  # noqa: F401

_client: Optional["Client"] = None


def get_client():
    global _client
    _require_env()
    if _client is None:
        # Local import to avoid hard dependency at module import time during tests
        from supabase import create_client  # type: ignore

        _client = create_client(settings.supabase_url, settings.supabase_service_role_key)
    return _client


# Helpers for the key-value table
def kv_get(key: str) -> Optional[Any]:
    c = get_client()
    res = c.table(KV_TABLE).select("key,value").eq("key", key).limit(1).execute()
    if res.data:
        return res.data[0].get("value")
    return None


def kv_put(key: str, value: Any) -> None:
    c = get_client()
    row = {
        "key": key,
        "value": value,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }
    c.table(KV_TABLE).upsert(row, on_conflict="key").execute()
