"""
Rate limiting configuration using slowapi.

Uses the X-Profile-ID header when present, client IP otherwise.
Storage is configurable so multi-process deployments can point at Redis.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from reflection_coach.core.config import get_settings


def _get_rate_limit_key(request: Request) -> str:
    """
    Extract rate limit key from request.

    Priority:
    1. Profile header -> "profile:{profile_id}"
    2. Anonymous -> "ip:{client_ip}"
    """
    profile_id = request.headers.get("X-Profile-ID")
    if profile_id:
        return f"profile:{profile_id}"

    client_ip = request.client.host if request.client else "unknown"
    return f"ip:{client_ip}"


limiter = Limiter(
    key_func=_get_rate_limit_key,
    default_limits=["60/minute"],
    enabled=get_settings().rate_limit_enabled,
    storage_uri=get_settings().rate_limit_storage_uri,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle rate limit exceeded errors with a standardized response."""
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": "Rate limit exceeded. Please try again later.",
            "code": "RATE_LIMIT_EXCEEDED",
        },
    )
