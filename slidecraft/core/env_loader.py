"""
Environment loading for SlideCraft.

Loads the project .env once so the Gemini client can resolve its key when it is
used outside the FastAPI settings layer.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

_env_loaded = False


def get_project_root() -> Path:
    """Get the project root directory (where .env is located)."""
    return Path(__file__).parent.parent.parent


def ensure_env_loaded(override: bool = False) -> bool:
    """
    Load variables from the project .env file.

    Args:
        override: If True, .env values replace variables already set

    Returns:
        True if .env was loaded, False if already loaded or file not found
    """
    global _env_loaded

    if _env_loaded:
        return False

    env_path = get_project_root() / ".env"
    if not env_path.exists():
        return False

    load_dotenv(env_path, override=override)
    _env_loaded = True
    return True


def get_api_key(key_name: str, fallback_keys: Optional[list] = None) -> Optional[str]:
    """Get an API key from the environment, trying fallbacks in order."""
    ensure_env_loaded()

    for name in [key_name, *(fallback_keys or [])]:
        value = os.getenv(name)
        if value:
            return value

    return None


def get_gemini_api_key() -> Optional[str]:
    """Get the Gemini API key."""
    return get_api_key("GEMINI_API_KEY", ["GOOGLE_API_KEY"])
