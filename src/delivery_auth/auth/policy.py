"""
delivery_auth.auth.policy

Authorization decision point.

Responsibilities:
- Decide allow/deny for `(role, required roles)` after authentication.
"""

from __future__ import annotations

from collections.abc import Iterable

from delivery_auth.auth.models import Role, parse_role
from delivery_auth.errors import INSUFFICIENT_ROLE, AuthorizationError


def is_allowed(role: Role | str, required: Iterable[Role]) -> bool:
    # Raw strings must be exact role values; "Admin" is not "admin".
    resolved = role if isinstance(role, Role) else parse_role(role)
    if resolved is None:
        return False
    return resolved in frozenset(required)


def authorize(role: Role | str, required: Iterable[Role]) -> None:
    if not is_allowed(role, required):
        raise AuthorizationError(INSUFFICIENT_ROLE)


# --- Module Notes -----------------------------------------------------------
# There is no implicit admin bypass: every protected operation lists the roles
# it accepts, admins included.
