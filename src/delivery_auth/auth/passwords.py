"""
delivery_auth.auth.passwords

Password hashing service (bcrypt).

Responsibilities:
- Hash plaintext credentials with a fixed adaptive cost factor.
- Verify candidates without raising on wrong or malformed input.
- Offload the CPU-bound work from the event loop.
"""

from __future__ import annotations

import asyncio

import bcrypt

from delivery_auth.errors import InternalError
from delivery_auth.observability.logging import get_logger

log = get_logger(__name__)

# bcrypt only looks at the first 72 bytes; newer releases raise instead of truncating.
_MAX_PASSWORD_BYTES = 72


def _encode(plaintext: str) -> bytes:
    return plaintext.encode("utf-8")[:_MAX_PASSWORD_BYTES]


class PasswordHasher:
    """
    bcrypt adapter.

    Args:
        cost: bcrypt log2 rounds. Fixed for the lifetime of the hasher.
    """

    def __init__(self, cost: int = 12) -> None:
        self._cost = cost

    @property
    def cost(self) -> int:
        return self._cost

    def hash(self, plaintext: str) -> str:
        if not isinstance(plaintext, str) or not plaintext:
            raise ValueError("plaintext credential must be a non-empty string")
        try:
            salt = bcrypt.gensalt(rounds=self._cost)
            return bcrypt.hashpw(_encode(plaintext), salt).decode("ascii")
        except Exception as e:
            # Never include the plaintext in logs or the raised error.
            log.error("password_hash_failed", error_type=type(e).__name__)
            raise InternalError("could not compute credential digest") from e

    def verify(self, candidate: str | None, digest: str | None) -> bool:
        if not isinstance(candidate, str) or not candidate:
            return False
        if not isinstance(digest, str) or not digest.startswith("$2"):
            return False
        try:
            return bcrypt.checkpw(_encode(candidate), digest.encode("ascii"))
        except ValueError:
            # Malformed digest (bad salt/length, non-ascii); bcrypt signals this with ValueError.
            return False
        except Exception as e:
            log.error("password_verify_failed", error_type=type(e).__name__)
            raise InternalError("could not verify credential") from e

    async def hash_async(self, plaintext: str) -> str:
        return await asyncio.to_thread(self.hash, plaintext)

    async def verify_async(self, candidate: str | None, digest: str | None) -> bool:
        return await asyncio.to_thread(self.verify, candidate, digest)


# --- Module Notes -----------------------------------------------------------
# Services call the async variants; request handlers never run bcrypt on the
# event loop thread.
