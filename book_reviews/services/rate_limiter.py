"""
Rate Limiting Service

Per-client rate limiting with slowapi.

Rate Limit Tiers:
=================
- Default (reads): RATE_LIMIT_DEFAULT, 100 requests/minute
- Search endpoints: RATE_LIMIT_SEARCH, 60 requests/minute
- Write operations: RATE_LIMIT_WRITE, 30 requests/minute

Counters live in process memory; each API instance limits independently.
"""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from book_reviews.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def get_client_ip(request: Request) -> str:
    """
    Get client IP address for rate limiting.

    Honours X-Forwarded-For and X-Real-IP set by proxies, falling back to
    the direct connection address.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs; first is the client
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


def create_limiter() -> Limiter:
    """Create the rate limiter from settings."""
    limiter = Limiter(
        key_func=get_client_ip,
        default_limits=[settings.rate_limit_default],
        storage_uri="memory://",
        strategy="fixed-window",
        enabled=settings.rate_limit_enabled,
    )

    logger.info(
        f"Rate limiter initialized - enabled: {settings.rate_limit_enabled}, "
        f"default: {settings.rate_limit_default}"
    )

    return limiter


limiter = create_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Render a 429 Too Many Requests response.

    Same body shape as the service errors, plus a Retry-After header.
    """
    limit_detail = str(exc.detail)

    response = JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "detail": f"Too many requests. Please slow down. ({limit_detail})",
        },
    )
    response.headers["Retry-After"] = str(60)
    response.headers["X-RateLimit-Limit"] = limit_detail

    logger.warning(
        f"Rate limit exceeded for {get_client_ip(request)}: {limit_detail}"
    )

    return response
