"""
Backend Core Module
"""

from .config import settings, get_settings
from .logging import setup_logging, get_logger
from .supabase import get_supabase_client, get_supabase_admin, get_data_client

__all__ = [
    "settings",
    "get_settings",
    "setup_logging",
    "get_logger",
    "get_supabase_client",
    "get_supabase_admin",
    "get_data_client",
]
