"""
delivery_auth.auth.jwt

Claims-token issuing and validation helpers.

Responsibilities:
- Issue signed, time-limited tokens carrying `{id, role, iat, exp}`.
- Decode and validate tokens with strict claim requirements.

Note:
- Signing is HS256 with one shared secret. Every verifying service must be
  configured with the identical value; there is no key rotation.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

from delivery_auth.auth.models import Role


@dataclass(frozen=True, slots=True)
class TokenConfig:
    # Built once from settings at process start and never mutated.
    alg: str
    secret: str

    def __repr__(self) -> str:
        return f"TokenConfig(alg={self.alg!r}, secret='***')"


class TokenValidationError(Exception):
    pass


def issue_token(
    *,
    cfg: TokenConfig,
    principal_id: uuid.UUID,
    role: Role,
    ttl: timedelta,
) -> str:
    now = datetime.now(tz=UTC)
    payload: dict[str, Any] = {
        "id": str(principal_id),
        "role": role.value,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    return jwt.encode(payload, cfg.secret, algorithm=cfg.alg)


def decode_and_validate(*, cfg: TokenConfig, token: str) -> dict[str, Any]:
    try:
        # jwt.decode enforces signature + exp; `require` rejects tokens missing our claims.
        # `iat` must be present but is not checked against this host's clock: an
        # issuer running a few seconds ahead would otherwise have fresh tokens refused.
        return jwt.decode(
            token,
            cfg.secret,
            algorithms=[cfg.alg],
            options={"require": ["exp", "iat", "id", "role"], "verify_iat": False},
        )
    except InvalidTokenError as e:
        raise TokenValidationError(str(e)) from e


# --- Module Notes -----------------------------------------------------------
# Token issuing is used by `services.accounts` on register/login. Validation is
# used by `auth.verifier.TokenVerifier`.
