"""
Request context for log lines.

RequestContextMiddleware binds two values for the duration of a request:
the correlation id (taken from X-Request-ID / X-Correlation-ID or generated)
and the profile id from X-Profile-ID. Both live in ContextVars so the logging
filter can stamp them onto every record without threading them through the
stores.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from reflection_coach.core.constants import DEFAULT_PROFILE_ID, PROFILE_ID_PATTERN

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
profile_id_var: ContextVar[str] = ContextVar("profile_id", default="")

_PROFILE_ID_RE = re.compile(PROFILE_ID_PATTERN)


def get_correlation_id() -> str:
    return correlation_id_var.get()


def get_request_profile_id() -> str:
    """Profile id of the current request, or "" outside a request."""
    return profile_id_var.get()


def _profile_from_header(value: Optional[str]) -> str:
    # Malformed ids are rejected with a 400 by the profile dependency;
    # they are never echoed into logs.
    if not value:
        return DEFAULT_PROFILE_ID
    return value if _PROFILE_ID_RE.match(value) else ""


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind correlation and profile ids for one request; echo X-Request-ID."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = (
            request.headers.get("X-Request-ID")
            or request.headers.get("X-Correlation-ID")
            or str(uuid.uuid4())
        )
        request.state.correlation_id = correlation_id

        correlation_token = correlation_id_var.set(correlation_id)
        profile_token = profile_id_var.set(_profile_from_header(request.headers.get("X-Profile-ID")))
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = correlation_id
            return response
        finally:
            profile_id_var.reset(profile_token)
            correlation_id_var.reset(correlation_token)
