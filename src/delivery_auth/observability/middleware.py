"""
delivery_auth.observability.middleware

HTTP middleware for request-scoped logging context.

Responsibilities:
- Propagate or mint an `x-request-id` for every request.
- Bind request metadata into structlog contextvars.
- Emit one `access_denied` event per 401/403 response.
"""

from __future__ import annotations

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from delivery_auth.observability.logging import get_logger

log = get_logger(__name__)

_DENIED = frozenset({401, 403})


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Binds `request_id`, `path` and `method` so auth events (login failures,
    rejected tokens, approval decisions) can be correlated per request.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=request.url.path,
            method=request.method,
        )
        try:
            response: Response = await call_next(request)
            if response.status_code in _DENIED:
                # The Authorization header itself is never logged.
                log.info(
                    "access_denied",
                    status_code=response.status_code,
                    has_authorization="authorization" in request.headers,
                )
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers["x-request-id"] = request_id
        return response
