"""
delivery_auth.auth.models

Auth domain models.

Responsibilities:
- Define the closed set of roles and principal types.
- Define the authenticated identity type injected into endpoints.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass


class Role(enum.StrEnum):
    # Values are embedded in issued tokens; treat as a stable wire contract.
    customer = "customer"
    admin = "admin"
    super_admin = "super-admin"
    restaurant_operator = "restaurant-operator"
    delivery_personnel = "delivery-personnel"


class PrincipalType(enum.StrEnum):
    # One credential collection per type. Admins and super-admins share one.
    customer = "customer"
    admin = "admin"
    restaurant_operator = "restaurant-operator"
    delivery_personnel = "delivery-personnel"

    @classmethod
    def for_role(cls, role: Role) -> PrincipalType:
        if role in ADMIN_ROLES:
            return cls.admin
        return cls(role.value)


ADMIN_ROLES: frozenset[Role] = frozenset({Role.admin, Role.super_admin})


def parse_role(value: object) -> Role | None:
    # Exact, case-sensitive match only; near-miss values are not coerced.
    if not isinstance(value, str):
        return None
    try:
        return Role(value)
    except ValueError:
        return None


@dataclass(frozen=True, slots=True)
class AuthenticatedPrincipal:
    """
    Caller identity taken verbatim from the verified token claims.
    """

    principal_id: uuid.UUID
    role: Role

    @property
    def principal_type(self) -> PrincipalType:
        return PrincipalType.for_role(self.role)

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


# --- Module Notes -----------------------------------------------------------
# The role carried here is whatever the token said at issuance time; it is not
# re-read from the store on each request.
