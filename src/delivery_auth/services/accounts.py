"""
delivery_auth.services.accounts

Registration and login orchestration (transaction owner).

Responsibilities:
- Validate registration/login input before touching the store.
- Enforce identifier and license uniqueness (pre-check + DB constraint).
- Hash credentials, create principals, issue tokens.
- Apply the restaurant-operator approval gate on login, before password checks.
- Profile reads/updates and the explicit credential-change operation.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from delivery_auth.auth.jwt import TokenConfig, issue_token
from delivery_auth.auth.models import AuthenticatedPrincipal, PrincipalType, Role
from delivery_auth.auth.passwords import PasswordHasher
from delivery_auth.db.models import (
    ApprovalState,
    DeliveryPersonnel,
    PrincipalRecord,
    RestaurantOperator,
    VehicleType,
)
from delivery_auth.db.repositories.principals import PrincipalRepo, normalize_identifier
from delivery_auth.errors import (
    INVALID_CREDENTIALS,
    PENDING_APPROVAL,
    REJECTED_ACCOUNT,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from delivery_auth.observability.logging import get_logger
from delivery_auth.services.projections import project
from delivery_auth.settings import Settings

log = get_logger(__name__)

_PROFILE = ("first_name", "last_name", "phone")

REQUIRED_FIELDS: dict[PrincipalType, tuple[str, ...]] = {
    PrincipalType.customer: ("email", "password"),
    PrincipalType.admin: ("email", "password", *_PROFILE),
    PrincipalType.restaurant_operator: ("email", "password", *_PROFILE, "business_license"),
    PrincipalType.delivery_personnel: (
        "email",
        "password",
        *_PROFILE,
        "vehicle_type",
        "license_number",
    ),
}

OPTIONAL_FIELDS: dict[PrincipalType, tuple[str, ...]] = {
    PrincipalType.customer: (*_PROFILE, "location"),
    PrincipalType.admin: ("role", "permissions"),
    PrincipalType.restaurant_operator: (),
    PrincipalType.delivery_personnel: (),
}

# Secondary unique fields, checked after the identifier, in this order.
UNIQUE_FIELDS: dict[PrincipalType, tuple[tuple[str, str], ...]] = {
    PrincipalType.customer: (),
    PrincipalType.admin: (),
    PrincipalType.restaurant_operator: (("business_license", "business license"),),
    PrincipalType.delivery_personnel: (("license_number", "license number"),),
}

UPDATABLE_FIELDS: dict[PrincipalType, tuple[str, ...]] = {
    PrincipalType.customer: (*_PROFILE, "location"),
    PrincipalType.admin: _PROFILE,
    PrincipalType.restaurant_operator: _PROFILE,
    PrincipalType.delivery_personnel: (*_PROFILE, "is_available"),
}


@dataclass(frozen=True, slots=True)
class AuthResult:
    token: str
    principal: dict[str, Any]


def _is_missing(value: Any) -> bool:
    # None, absent and blank strings are all "missing".
    return value is None or (isinstance(value, str) and not value.strip())


def _clean(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


class AccountService:
    def __init__(
        self,
        *,
        session: AsyncSession,
        settings: Settings,
        token_cfg: TokenConfig,
        hasher: PasswordHasher,
    ) -> None:
        self._session = session
        self._settings = settings
        self._token_cfg = token_cfg
        self._hasher = hasher
        self._principals = PrincipalRepo(session)

    def _issue(self, record: PrincipalRecord, principal_type: PrincipalType) -> str:
        return issue_token(
            cfg=self._token_cfg,
            principal_id=record.id,
            role=record.role,
            ttl=self._settings.token_ttl(principal_type),
        )

    async def register(
        self, principal_type: PrincipalType, payload: Mapping[str, Any]
    ) -> AuthResult:
        missing = [f for f in REQUIRED_FIELDS[principal_type] if _is_missing(payload.get(f))]
        if missing:
            raise ValidationError(f"missing required fields: {', '.join(missing)}")

        attributes = self._attributes(principal_type, payload)
        email = normalize_identifier(payload["email"])
        password: str = payload["password"]

        # Early exits; the unique constraints below remain authoritative.
        if await self._principals.find_by_identifier(principal_type, email) is not None:
            raise ConflictError("email")
        for field, label in UNIQUE_FIELDS[principal_type]:
            if await self._principals.find_by_field(principal_type, field, attributes[field]):
                raise ConflictError(label)

        digest = await self._hasher.hash_async(password)
        try:
            record = await self._principals.create(
                principal_type, email=email, password_digest=digest, **attributes
            )
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise await self._conflict_for(principal_type, email, attributes) from e

        log.info(
            "principal_registered",
            principal_type=principal_type.value,
            principal_id=str(record.id),
        )
        return AuthResult(token=self._issue(record, principal_type), principal=project(record))

    async def login(
        self, principal_type: PrincipalType, email: str | None, password: str | None
    ) -> AuthResult:
        if _is_missing(email) or _is_missing(password):
            raise ValidationError("email and password are required")

        record = await self._principals.find_by_identifier(principal_type, email)
        if record is None:
            log.info("login_failed", principal_type=principal_type.value, reason="unknown")
            raise AuthenticationError(INVALID_CREDENTIALS)

        # Approval gate runs before any password work; a correct password does not matter.
        if isinstance(record, RestaurantOperator):
            if record.approval_state is ApprovalState.pending:
                log.info("login_blocked", principal_id=str(record.id), reason="pending")
                raise AuthorizationError(PENDING_APPROVAL)
            if record.approval_state is ApprovalState.rejected:
                log.info("login_blocked", principal_id=str(record.id), reason="rejected")
                raise AuthorizationError(REJECTED_ACCOUNT)

        if not await self._hasher.verify_async(password, record.password_digest):
            log.info("login_failed", principal_type=principal_type.value, reason="mismatch")
            raise AuthenticationError(INVALID_CREDENTIALS)

        log.info("login_succeeded", principal_type=principal_type.value, principal_id=str(record.id))
        return AuthResult(token=self._issue(record, principal_type), principal=project(record))

    async def get_profile(self, principal: AuthenticatedPrincipal) -> dict[str, Any]:
        record = await self._require(principal)
        return project(record, detailed=True)

    async def update_profile(
        self, principal: AuthenticatedPrincipal, changes: Mapping[str, Any]
    ) -> dict[str, Any]:
        allowed = UPDATABLE_FIELDS[principal.principal_type]
        updates: dict[str, Any] = {}
        for name, value in changes.items():
            if value is None:
                continue
            if name not in allowed:
                raise ValidationError(f"field cannot be updated: {name}")
            if isinstance(value, str) and not value.strip():
                raise ValidationError(f"field must not be empty: {name}")
            updates[name] = _clean(value)

        record = await self._principals.update_attributes(
            principal.principal_type, principal.principal_id, **updates
        )
        if record is None:
            raise NotFoundError("principal not found")
        await self._session.commit()
        return project(record, detailed=True)

    async def update_location(
        self, principal: AuthenticatedPrincipal, *, longitude: float | None, latitude: float | None
    ) -> dict[str, float]:
        if longitude is None or latitude is None:
            raise ValidationError("longitude and latitude are required")
        if not -180.0 <= longitude <= 180.0 or not -90.0 <= latitude <= 90.0:
            raise ValidationError("longitude/latitude out of range")

        record = await self._principals.update_attributes(
            principal.principal_type,
            principal.principal_id,
            longitude=longitude,
            latitude=latitude,
        )
        if not isinstance(record, DeliveryPersonnel):
            raise NotFoundError("delivery personnel not found")
        await self._session.commit()
        return {"longitude": record.longitude, "latitude": record.latitude}

    async def change_credential(
        self,
        principal: AuthenticatedPrincipal,
        *,
        current_password: str | None,
        new_password: str | None,
    ) -> None:
        """
        The only path besides registration that recomputes the digest.
        """

        if _is_missing(current_password) or _is_missing(new_password):
            raise ValidationError("current and new password are required")
        record = await self._require(principal)
        if not await self._hasher.verify_async(current_password, record.password_digest):
            raise AuthenticationError(INVALID_CREDENTIALS)

        digest = await self._hasher.hash_async(new_password)
        await self._principals.set_password_digest(
            principal.principal_type, principal.principal_id, digest
        )
        await self._session.commit()
        log.info("credential_changed", principal_id=str(principal.principal_id))

    async def _require(self, principal: AuthenticatedPrincipal) -> PrincipalRecord:
        record = await self._principals.find_by_id(principal.principal_type, principal.principal_id)
        if record is None:
            raise NotFoundError("principal not found")
        return record

    def _attributes(
        self, principal_type: PrincipalType, payload: Mapping[str, Any]
    ) -> dict[str, Any]:
        names = [
            *(f for f in REQUIRED_FIELDS[principal_type] if f not in ("email", "password")),
            *OPTIONAL_FIELDS[principal_type],
        ]
        attributes = {
            name: _clean(payload[name]) for name in names if not _is_missing(payload.get(name))
        }

        if principal_type is PrincipalType.admin:
            role = attributes.pop("role", Role.admin.value)
            if role not in (Role.admin.value, Role.super_admin.value):
                raise ValidationError(f"invalid admin role: {role}")
            attributes["role"] = Role(role)
        elif principal_type is PrincipalType.delivery_personnel:
            try:
                attributes["vehicle_type"] = VehicleType(attributes["vehicle_type"])
            except ValueError as e:
                allowed = ", ".join(v.value for v in VehicleType)
                raise ValidationError(f"vehicle_type must be one of: {allowed}") from e
        return attributes

    async def _conflict_for(
        self, principal_type: PrincipalType, email: str, attributes: Mapping[str, Any]
    ) -> ConflictError:
        # A concurrent registration won the race; report the field the store rejected.
        if await self._principals.find_by_identifier(principal_type, email) is not None:
            return ConflictError("email")
        for field, label in UNIQUE_FIELDS[principal_type]:
            if await self._principals.find_by_field(principal_type, field, attributes[field]):
                return ConflictError(label)
        return ConflictError("email")
