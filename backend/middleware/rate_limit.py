"""Rate limiting middleware using SlowAPI."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

# Stats endpoints are keyed by client IP
limiter = Limiter(key_func=get_remote_address)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Return a JSON 429 instead of SlowAPI's plain text response."""
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Too many stats requests. Please try again later.",
            "retry_after": exc.detail,
        }
    )
