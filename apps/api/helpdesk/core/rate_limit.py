"""Rate limiting configuration for the helpdesk API."""

import logging
import os

from slowapi import Limiter
from slowapi.util import get_remote_address

from helpdesk.core.config import settings

# Redis for multi-worker support, in-memory when Redis is not available
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
IS_TESTING = os.getenv("TESTING", "").lower() in ("1", "true", "yes")
DEFAULT_LIMITS = (
    []
    if IS_TESTING or settings.RATE_LIMIT_API <= 0
    else [f"{settings.RATE_LIMIT_API}/minute"]
)


def public_limit() -> str:
    """Limit applied to anonymous endpoints (ticket intake, email access)."""
    if IS_TESTING or settings.RATE_LIMIT_PUBLIC <= 0:
        return "100000/minute"
    return f"{settings.RATE_LIMIT_PUBLIC}/minute"


if IS_TESTING:
    limiter = Limiter(
        key_func=get_remote_address,
        storage_uri="memory://",
        default_limits=DEFAULT_LIMITS,
    )
else:
    try:
        import redis

        r = redis.from_url(REDIS_URL, socket_connect_timeout=1)
        r.ping()
        limiter = Limiter(
            key_func=get_remote_address,
            storage_uri=REDIS_URL,
            default_limits=DEFAULT_LIMITS,
        )
    except Exception as e:
        logging.warning(f"Redis unavailable for rate limiting, using in-memory: {e}")
        limiter = Limiter(
            key_func=get_remote_address,
            storage_uri="memory://",
            default_limits=DEFAULT_LIMITS,
        )
