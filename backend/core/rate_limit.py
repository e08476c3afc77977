"""
Rate Limiting

Shared slowapi limiter for the expensive generation endpoints.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)
