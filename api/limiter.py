"""
api/limiter.py -- Shared slowapi rate limiter instance.

Import this in api/main.py (to mount as middleware) and in route modules (to
apply per-route limits with @limiter.limit()).

A single shared instance keeps one in-memory counter store for the whole
app; per-module instances would each count separately and never trigger.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")


def auth_rate_limit() -> str:
    """Limit string for register/login, read from AUTH_RATE_LIMIT at request time."""
    return get_settings().auth_rate_limit
