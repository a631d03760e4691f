"""Supabase client initialization."""

from datetime import datetime, timezone
from functools import lru_cache

from supabase import Client, create_client

from agent_memory.core.config import get_settings


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Get Supabase client instance (cached singleton).

    Returns:
        Supabase client configured with service role key

    Raises:
        RuntimeError: If client initialization fails
    """
    try:
        settings = get_settings()
        client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
        return client
    except Exception as e:
        raise RuntimeError(f"Failed to initialize Supabase client: {e}") from e


def to_timestamp(value: datetime) -> str:
    """Render a datetime as a UTC ISO-8601 string for PostgREST filters and inserts."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def utc_now() -> datetime:
    """Current time, timezone-aware (UTC)."""
    return datetime.now(timezone.utc)
