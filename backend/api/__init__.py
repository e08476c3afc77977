"""
API Routes Module
"""

from . import health, library, sessions, usage

__all__ = ["health", "library", "sessions", "usage"]
