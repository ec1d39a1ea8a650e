"""
delivery_auth.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Run the shared token verifier on the raw `Authorization` header.
- Enforce role checks via reusable dependency factories.
"""

from __future__ import annotations

import structlog
from fastapi import Depends, Header, Request

from delivery_auth.auth.models import AuthenticatedPrincipal, Role
from delivery_auth.auth.policy import authorize
from delivery_auth.auth.verifier import TokenVerifier


def verifier_from_app(request: Request) -> TokenVerifier:
    # Built once on app creation in `delivery_auth.api.app.create_app`.
    return request.app.state.verifier  # type: ignore[attr-defined]


async def get_principal(
    authorization: str | None = Header(default=None),
    verifier: TokenVerifier = Depends(verifier_from_app),
) -> AuthenticatedPrincipal:
    # The raw header is parsed by the verifier; HTTPBearer would accept "bearer" too.
    principal = await verifier.authenticate(authorization)
    structlog.contextvars.bind_contextvars(
        principal_id=str(principal.principal_id), role=principal.role.value
    )
    return principal


def require_roles(*required: Role):
    required_set = frozenset(required)

    def _dep(principal: AuthenticatedPrincipal = Depends(get_principal)) -> AuthenticatedPrincipal:
        authorize(principal.role, required_set)
        return principal

    return _dep


# --- Module Notes -----------------------------------------------------------
# AuthenticationError/AuthorizationError raised here are rendered as 401/403 by
# the handlers in `delivery_auth.api.errors`.
