"""
Per-client rate limiting shared by all routes.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from rules_service.core.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMIT_ENABLED,
)
