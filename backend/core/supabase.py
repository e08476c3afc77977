"""
Supabase Clients

Auth verification uses the anon client; tables and storage go through the
service-role client when one is configured so row ownership is enforced by
the queries themselves.
"""

from supabase import create_client, Client
from functools import lru_cache
from typing import Optional

from .config import settings
from .logging import get_logger

logger = get_logger("supabase")


@lru_cache()
def get_supabase_client() -> Client:
    """Anon-key client, used to verify bearer tokens."""
    if not settings.supabase_url:
        raise RuntimeError("SUPABASE_URL is not configured")
    return create_client(settings.supabase_url, settings.supabase_anon_key)


@lru_cache()
def get_supabase_admin() -> Optional[Client]:
    """Service-role client, or None when no service key is set."""
    if not settings.supabase_service_key:
        logger.warning("No service key configured - using anon client for data access")
        return None
    return create_client(settings.supabase_url, settings.supabase_service_key)


def get_data_client() -> Client:
    """Client for usage, library tables and the reference bucket."""
    return get_supabase_admin() or get_supabase_client()
