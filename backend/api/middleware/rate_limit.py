"""
Rate limiting using slowapi.

Limits are per client IP. Redis backs the counters when ``REDIS_URL`` is set;
otherwise they live in process memory.

Rate Limits:
- Login: 5 per minute
- Registration: 3 per minute
- Checkout session: 5 per minute
- Newsletter subscribe: 3 per minute
- Default: 100 requests per minute
"""

import ipaddress
import logging
import re

from starlette.requests import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

_IP_LIKE = re.compile(r"^[\d.:a-fA-F]+$")


def _is_valid_ip(value: str) -> bool:
    """Return True if *value* parses as an IPv4 or IPv6 address."""
    if not _IP_LIKE.match(value):
        return False
    try:
        ipaddress.ip_address(value)
        return True
    except ValueError:
        return False


def _is_private_ip(value: str) -> bool:
    """Private and loopback addresses in forwarding headers are spoofable."""
    try:
        addr = ipaddress.ip_address(value)
        return addr.is_private or addr.is_loopback or addr.is_link_local
    except ValueError:
        return False


def _get_real_ip(request: Request) -> str:
    """Client IP from X-Forwarded-For / X-Real-IP, else the socket address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        candidate = forwarded.split(",")[0].strip()
        if _is_valid_ip(candidate) and not _is_private_ip(candidate):
            return candidate
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        candidate = real_ip.strip()
        if _is_valid_ip(candidate) and not _is_private_ip(candidate):
            return candidate
    return get_remote_address(request)


# Format: "count/period" where period can be: second, minute, hour, day
RATE_LIMITS = {
    "login": "5/minute",
    "register": "3/minute",
    "checkout": "5/minute",
    "newsletter_subscribe": "3/minute",
    "default": "100/minute",
}

_storage_uri = settings.redis_url if settings.redis_url else "memory://"

if not settings.redis_url:
    logger.warning(
        "Rate limiter using in-memory storage, not suitable for multi-worker production"
    )
    if settings.environment == "production":
        logger.critical(
            "Rate limiter has no Redis in production; limits are per worker. Set REDIS_URL."
        )

limiter = Limiter(
    key_func=_get_real_ip,
    storage_uri=_storage_uri,
    default_limits=[RATE_LIMITS["default"]],
)


def get_rate_limit(endpoint: str) -> str:
    """
    Rate limit string for an endpoint key.

    Example:
        >>> get_rate_limit("login")
        "5/minute"
        >>> get_rate_limit("unknown")
        "100/minute"
    """
    return RATE_LIMITS.get(endpoint, RATE_LIMITS["default"])
