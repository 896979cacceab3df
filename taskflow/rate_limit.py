# PURPOSE: slowapi limiter for the unauthenticated auth endpoints
# (signup, login, forgot-password), keyed by client address.

import math
import time

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .config import settings


def get_storage_uri() -> str:
    return settings.REDIS_URL or settings.RATE_LIMIT_STORAGE_URI


limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=get_storage_uri(),
    headers_enabled=True,
)


def rate_limit_headers(request: Request) -> dict[str, str]:
    """X-RateLimit-* and Retry-After for the limit the request just hit."""
    current = getattr(request.state, "view_rate_limit", None)
    if current is None:
        return {}
    item, identifiers = current
    reset_at, remaining = limiter.limiter.get_window_stats(item, *identifiers)
    return {
        "X-RateLimit-Limit": str(item.amount),
        "X-RateLimit-Remaining": str(remaining),
        "X-RateLimit-Reset": str(math.ceil(reset_at)),
        "Retry-After": str(max(0, math.ceil(reset_at - time.time()))),
    }


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 in the API envelope, with the X-RateLimit-* / Retry-After headers."""
    return JSONResponse(
        status_code=429,
        content={"error": f"Too many requests: {exc.detail}", "success": False},
        headers=rate_limit_headers(request),
    )


__all__ = ["limiter", "rate_limit_exceeded_handler"]
