"""
delivery_auth.auth.verifier

Token verifier run identically by every service that accepts bearer tokens.

Responsibilities:
- Parse the `Authorization` header strictly (`Bearer <token>`).
- Validate signature/expiry and collapse every failure cause into one message.
- Confirm the principal still exists, then yield the claims unchanged.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Awaitable, Callable

from delivery_auth.auth.jwt import TokenConfig, TokenValidationError, decode_and_validate
from delivery_auth.auth.models import AuthenticatedPrincipal, PrincipalType, parse_role
from delivery_auth.errors import (
    INVALID_TOKEN,
    MALFORMED_HEADER,
    MISSING_TOKEN,
    PRINCIPAL_GONE,
    AuthenticationError,
)
from delivery_auth.observability.logging import get_logger

log = get_logger(__name__)

# Case-sensitive scheme, exactly one space, non-empty token without whitespace.
_BEARER_RE = re.compile(r"Bearer (\S+)")

PrincipalExists = Callable[[PrincipalType, uuid.UUID], Awaitable[bool]]


def extract_bearer_token(authorization: str | None) -> str:
    if authorization is None or authorization == "":
        raise AuthenticationError(MISSING_TOKEN)
    match = _BEARER_RE.fullmatch(authorization)
    if match is None:
        raise AuthenticationError(MALFORMED_HEADER)
    return match.group(1)


class TokenVerifier:
    """
    Per-request state machine:
    NoToken -> Rejected; HasToken -> VerifySignature -> Valid -> ResolvePrincipal
    -> Found -> Authenticated (NotFound / Invalid / Expired -> Rejected).
    """

    def __init__(self, *, cfg: TokenConfig, principal_exists: PrincipalExists) -> None:
        self._cfg = cfg
        self._principal_exists = principal_exists

    async def authenticate(self, authorization: str | None) -> AuthenticatedPrincipal:
        token = extract_bearer_token(authorization)

        try:
            claims = decode_and_validate(cfg=self._cfg, token=token)
        except TokenValidationError as e:
            log.info("token_rejected", cause="invalid_token", detail=str(e))
            raise AuthenticationError(INVALID_TOKEN) from e
        except Exception as e:
            # Fail closed: signing-library faults surface as 401, never 5xx.
            log.warning("token_rejected", cause="decode_fault", error_type=type(e).__name__)
            raise AuthenticationError(INVALID_TOKEN) from e

        role = parse_role(claims.get("role"))
        try:
            principal_id = uuid.UUID(str(claims.get("id")))
        except ValueError:
            principal_id = None
        if role is None or principal_id is None:
            log.info("token_rejected", cause="bad_claims")
            raise AuthenticationError(INVALID_TOKEN)

        try:
            exists = await self._principal_exists(PrincipalType.for_role(role), principal_id)
        except Exception as e:
            log.warning(
                "token_rejected", cause="store_fault", error_type=type(e).__name__
            )
            raise AuthenticationError(INVALID_TOKEN) from e
        if not exists:
            log.info("token_rejected", cause="principal_gone", principal_id=str(principal_id))
            raise AuthenticationError(PRINCIPAL_GONE)

        # Claims only; role and approval state are not re-read from the store.
        return AuthenticatedPrincipal(principal_id=principal_id, role=role)


# --- Module Notes -----------------------------------------------------------
# Services that do not own the principal tables plug in their own
# `principal_exists` (e.g. a read replica or a shared database).
