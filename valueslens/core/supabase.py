"""Supabase client singleton for database operations."""

import logging
from functools import lru_cache
from typing import Any

from supabase import Client, create_client

from valueslens.core.config import get_settings

logger = logging.getLogger(__name__)


class StorageUnavailableError(RuntimeError):
    """Raised when durable storage is used without being configured."""


@lru_cache
def get_supabase_client() -> Client | None:
    """Get cached Supabase client singleton for database operations.

    Uses the secret key for backend operations, which bypasses RLS at the
    PostgREST level. Only anonymous assessment data is stored, keyed by
    session id.

    Returns:
        Client | None: Supabase client instance, or None when the URL or key
            is not configured.
    """
    settings = get_settings()
    if not settings.is_storage_configured:
        logger.warning("Supabase not configured. Durable storage is disabled.")
        return None
    return create_client(
        settings.supabase_url,
        settings.supabase_secret_key,
    )


def require_supabase_client() -> Client:
    """Get the Supabase client or raise if storage is disabled.

    Raises:
        StorageUnavailableError: If Supabase is not configured.
    """
    client = get_supabase_client()
    if client is None:
        raise StorageUnavailableError("Durable storage is not configured")
    return client


async def check_database_connection() -> dict[str, Any]:
    """Check if database connection is healthy.

    Returns:
        dict: Connection status with 'healthy' boolean and optional 'error' message.
    """
    try:
        client = require_supabase_client()
        client.table("profiles").select("id").limit(1).execute()
        return {"healthy": True}
    except Exception as e:
        return {"healthy": False, "error": str(e)}
