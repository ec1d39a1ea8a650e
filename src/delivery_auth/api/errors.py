"""
delivery_auth.api.errors

Exception handlers mapping the error taxonomy to HTTP responses.

Responsibilities:
- Render `AuthError` subclasses with their status and safe message.
- Render request-body validation failures as 400.
- Log unexpected exceptions and return a generic 500 with no internals.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR

from delivery_auth.errors import AuthenticationError, AuthError, InternalError, ValidationError
from delivery_auth.observability.logging import get_logger

log = get_logger(__name__)


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    if isinstance(exc, InternalError):
        log.error("internal_error", error_code=exc.error_code, cause=repr(exc.__cause__))
    return JSONResponse(status_code=exc.http_status_code, content=exc.to_dict(), headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Field locations only; submitted values (passwords included) are not echoed back.
    fields = sorted({".".join(str(p) for p in err.get("loc", ())[1:]) for err in exc.errors()})
    error = ValidationError(f"invalid request: {', '.join(f for f in fields if f) or 'body'}")
    return JSONResponse(status_code=HTTP_400_BAD_REQUEST, content=error.to_dict())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("unhandled_error", error_type=type(exc).__name__)
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content=InternalError().to_dict(),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthError, auth_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
