"""
delivery_auth.errors

Error taxonomy shared by services, dependencies and the HTTP layer.

Each error carries a stable `error_code`, the HTTP status it maps to and a
message that is safe to return to callers.
"""

from __future__ import annotations

from typing import Any


class AuthError(Exception):
    """Root exception for delivery_auth errors."""

    http_status_code: int = 400
    error_code: str = "AUTH_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"error_code": self.error_code, "message": self.message}


class ValidationError(AuthError):
    http_status_code = 400
    error_code = "VALIDATION_ERROR"


class AuthenticationError(AuthError):
    http_status_code = 401
    error_code = "AUTHENTICATION_FAILED"


class AuthorizationError(AuthError):
    http_status_code = 403
    error_code = "FORBIDDEN"


class NotFoundError(AuthError):
    http_status_code = 404
    error_code = "NOT_FOUND"


class ConflictError(AuthError):
    http_status_code = 409
    error_code = "CONFLICT"

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"{field} already registered")


class InternalError(AuthError):
    http_status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str = "internal server error") -> None:
        super().__init__(message)


# Canonical external messages. Distinct failure causes are collapsed so
# callers cannot tell which check failed.
MISSING_TOKEN = "missing token"
MALFORMED_HEADER = "malformed authorization header"
INVALID_TOKEN = "invalid or expired token"
PRINCIPAL_GONE = "principal no longer exists"
INVALID_CREDENTIALS = "invalid credentials"
PENDING_APPROVAL = "account is pending approval by an administrator"
REJECTED_ACCOUNT = "account was rejected by an administrator"
INSUFFICIENT_ROLE = "access denied: unauthorized role"
