"""
Rate limiting configuration for API abuse prevention.

Uses slowapi to implement rate limiting on FastAPI endpoints.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

from docdesk.config import settings


def get_real_client_ip(request: Request) -> str:
    """
    Get the real client IP address, handling proxies.

    Checks X-Forwarded-For and X-Real-IP headers for proxy setups.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # X-Forwarded-For can contain multiple IPs, take the first one
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


limiter = Limiter(key_func=get_real_client_ip, enabled=settings.RATE_LIMIT_ENABLED)


# Rate limit configurations for different endpoint types
RATE_LIMITS = {
    # Authentication endpoints (stricter limits to prevent brute force)
    "login": "10/minute",
    "signup": "5/minute",

    # Document upload (writes to disk)
    "upload": "20/minute",
}
