"""Rate limiting for the login endpoint and API"""
from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from recipe_api.config import settings


def get_identifier(request: Request) -> str:
    """
    Get identifier for rate limiting

    Priority:
    1. Authenticated username (set by require_user)
    2. IP address (login attempts and unauthenticated calls)
    """
    username = getattr(request.state, "username", None)
    if username:
        return f"user:{username}"
    return get_remote_address(request)


limiter = Limiter(
    key_func=get_identifier,
    default_limits=settings.RATE_LIMIT_DEFAULT,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


# Rate limit configurations for different endpoints
RATE_LIMITS = {
    # Password guessing protection
    "login": "10/minute",
    "logout": "60/minute",

    "recipes_read": "300/minute",
    "recipes_write": "60/minute",
}


def get_rate_limit(endpoint: str) -> str:
    """Get rate limit for specific endpoint"""
    return RATE_LIMITS.get(endpoint, settings.RATE_LIMIT_DEFAULT[0])
