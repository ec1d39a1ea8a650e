"""
tests.test_accounts

Registration and login orchestration against an in-memory credential store.
"""

from __future__ import annotations

import uuid

import jwt
import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from delivery_auth.auth.jwt import TokenConfig
from delivery_auth.auth.models import AuthenticatedPrincipal, PrincipalType, Role
from delivery_auth.auth.passwords import PasswordHasher
from delivery_auth.db.models import ApprovalState, RestaurantOperator
from delivery_auth.db.repositories.principals import MODELS, PrincipalRepo
from delivery_auth.errors import (
    INVALID_CREDENTIALS,
    PENDING_APPROVAL,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ValidationError,
)
from delivery_auth.services.accounts import REQUIRED_FIELDS, AccountService
from delivery_auth.settings import Settings
from tests.payloads import admin_payload, courier_payload, customer_payload, operator_payload

PAYLOADS = {
    PrincipalType.customer: customer_payload,
    PrincipalType.admin: admin_payload,
    PrincipalType.restaurant_operator: operator_payload,
    PrincipalType.delivery_personnel: courier_payload,
}


class CountingHasher(PasswordHasher):
    def __init__(self, cost: int) -> None:
        super().__init__(cost)
        self.verify_calls = 0

    def verify(self, candidate: str | None, digest: str | None) -> bool:
        self.verify_calls += 1
        return super().verify(candidate, digest)


async def _count(session: AsyncSession, principal_type: PrincipalType) -> int:
    model = MODELS[principal_type]
    return (await session.execute(select(func.count()).select_from(model))).scalar_one()


def _cases() -> list[tuple[PrincipalType, str, object]]:
    cases = []
    for ptype, fields in REQUIRED_FIELDS.items():
        for field in fields:
            for value in (None, "", "   ", "<absent>"):
                cases.append((ptype, field, value))
    return cases


@pytest.mark.asyncio
@pytest.mark.parametrize(("principal_type", "field", "value"), _cases())
async def test_missing_required_field_is_validation_error(
    accounts: AccountService,
    session: AsyncSession,
    principal_type: PrincipalType,
    field: str,
    value: object,
) -> None:
    payload = PAYLOADS[principal_type]()
    if value == "<absent>":
        payload.pop(field, None)
    else:
        payload[field] = value

    with pytest.raises(ValidationError) as exc_info:
        await accounts.register(principal_type, payload)
    assert field in exc_info.value.message
    assert await _count(session, principal_type) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("principal_type", list(PrincipalType))
async def test_duplicate_identifier_ignores_case(
    accounts: AccountService, session: AsyncSession, principal_type: PrincipalType
) -> None:
    make = PAYLOADS[principal_type]
    await accounts.register(principal_type, make(email="Dup@Example.com"))

    # Distinct secondary licenses so only the identifier collides.
    second = make(email="  dup@example.COM ")
    for key in ("business_license", "license_number"):
        if key in second:
            second[key] = f"{second[key]}-other"
    with pytest.raises(ConflictError) as exc_info:
        await accounts.register(principal_type, second)

    assert exc_info.value.http_status_code == 409
    assert exc_info.value.message == "email already registered"
    assert await _count(session, principal_type) == 1


@pytest.mark.asyncio
async def test_same_identifier_allowed_across_collections(accounts: AccountService) -> None:
    await accounts.register(PrincipalType.customer, customer_payload(email="same@example.com"))
    result = await accounts.register(
        PrincipalType.delivery_personnel, courier_payload(email="same@example.com")
    )
    assert result.principal["role"] == "delivery-personnel"


@pytest.mark.asyncio
async def test_duplicate_business_license_conflicts(
    accounts: AccountService, session: AsyncSession
) -> None:
    await accounts.register(PrincipalType.restaurant_operator, operator_payload())
    with pytest.raises(ConflictError) as exc_info:
        await accounts.register(
            PrincipalType.restaurant_operator, operator_payload(email="other@pho.example")
        )
    assert exc_info.value.message == "business license already registered"
    assert await _count(session, PrincipalType.restaurant_operator) == 1


@pytest.mark.asyncio
async def test_identifier_conflict_is_reported_before_license(accounts: AccountService) -> None:
    await accounts.register(PrincipalType.restaurant_operator, operator_payload())
    with pytest.raises(ConflictError) as exc_info:
        await accounts.register(PrincipalType.restaurant_operator, operator_payload())
    assert exc_info.value.field == "email"


@pytest.mark.asyncio
async def test_duplicate_courier_license_conflicts(accounts: AccountService) -> None:
    await accounts.register(PrincipalType.delivery_personnel, courier_payload())
    with pytest.raises(ConflictError) as exc_info:
        await accounts.register(
            PrincipalType.delivery_personnel, courier_payload(email="rider2@example.com")
        )
    assert exc_info.value.message == "license number already registered"


@pytest.mark.asyncio
async def test_store_constraint_wins_when_precheck_is_raced(
    accounts: AccountService, session: AsyncSession, monkeypatch: pytest.MonkeyPatch
) -> None:
    # Simulate the check-then-create race: both callers see "not registered".
    async def never_found(self: PrincipalRepo, principal_type: PrincipalType, identifier: str):
        return None

    monkeypatch.setattr(PrincipalRepo, "find_by_identifier", never_found)

    await accounts.register(PrincipalType.customer, customer_payload())
    with pytest.raises(ConflictError):
        await accounts.register(PrincipalType.customer, customer_payload())
    assert await _count(session, PrincipalType.customer) == 1


@pytest.mark.asyncio
async def test_registration_returns_token_and_sanitized_projection(
    accounts: AccountService, token_cfg: TokenConfig
) -> None:
    result = await accounts.register(PrincipalType.customer, customer_payload())

    claims = jwt.decode(result.token, token_cfg.secret, algorithms=[token_cfg.alg])
    assert claims["role"] == "customer"
    assert claims["id"] == result.principal["id"]
    assert result.principal["email"] == "alice@example.com"
    assert "password" not in result.principal
    assert "password_digest" not in result.principal
    assert "s3cret-pass" not in repr(result.principal)


@pytest.mark.asyncio
async def test_digest_is_stored_never_plaintext(
    accounts: AccountService, session: AsyncSession
) -> None:
    result = await accounts.register(PrincipalType.customer, customer_payload())
    record = await PrincipalRepo(session).find_by_id(
        PrincipalType.customer, uuid.UUID(result.principal["id"])
    )
    assert record is not None
    assert record.password_digest != "s3cret-pass"
    assert record.password_digest.startswith("$2b$")


@pytest.mark.asyncio
async def test_admin_registration_accepts_super_admin_role(
    accounts: AccountService, token_cfg: TokenConfig
) -> None:
    result = await accounts.register(PrincipalType.admin, admin_payload(role="super-admin"))
    claims = jwt.decode(result.token, token_cfg.secret, algorithms=[token_cfg.alg])
    assert claims["role"] == "super-admin"
    assert result.principal["permissions"] == [
        "manage-users",
        "manage-restaurants",
        "manage-orders",
    ]


@pytest.mark.asyncio
async def test_admin_registration_rejects_unknown_role(accounts: AccountService) -> None:
    with pytest.raises(ValidationError):
        await accounts.register(PrincipalType.admin, admin_payload(role="Admin"))


@pytest.mark.asyncio
async def test_courier_vehicle_type_is_validated(accounts: AccountService) -> None:
    with pytest.raises(ValidationError):
        await accounts.register(PrincipalType.delivery_personnel, courier_payload(vehicle_type="truck"))


@pytest.mark.asyncio
async def test_wrong_password_and_unknown_identifier_are_indistinguishable(
    accounts: AccountService,
) -> None:
    await accounts.register(PrincipalType.customer, customer_payload())

    with pytest.raises(AuthenticationError) as wrong:
        await accounts.login(PrincipalType.customer, "alice@example.com", "wrong")
    with pytest.raises(AuthenticationError) as unknown:
        await accounts.login(PrincipalType.customer, "nobody@example.com", "s3cret-pass")

    assert wrong.value.message == unknown.value.message == INVALID_CREDENTIALS
    assert wrong.value.http_status_code == unknown.value.http_status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize(("email", "password"), [(None, "x"), ("a@x.com", None), ("", ""), ("  ", "x")])
async def test_login_requires_both_fields(
    accounts: AccountService, email: str | None, password: str | None
) -> None:
    with pytest.raises(ValidationError):
        await accounts.login(PrincipalType.customer, email, password)


@pytest.mark.asyncio
async def test_login_normalizes_identifier(accounts: AccountService) -> None:
    await accounts.register(PrincipalType.customer, customer_payload())
    result = await accounts.login(PrincipalType.customer, "  ALICE@example.com", "s3cret-pass")
    assert result.principal["email"] == "alice@example.com"


@pytest.mark.asyncio
async def test_pending_operator_blocked_before_password_check(
    session: AsyncSession, settings: Settings, token_cfg: TokenConfig
) -> None:
    hasher = CountingHasher(cost=4)
    accounts = AccountService(
        session=session, settings=settings, token_cfg=token_cfg, hasher=hasher
    )
    registered = await accounts.register(PrincipalType.restaurant_operator, operator_payload())

    # Registration is not gated: a usable token is issued while still pending.
    assert registered.token
    assert registered.principal["approval_state"] == "PENDING"

    for password in ("operator-pass", "wrong-password"):
        with pytest.raises(AuthorizationError) as exc_info:
            await accounts.login(PrincipalType.restaurant_operator, "owner@pho.example", password)
        assert exc_info.value.message == PENDING_APPROVAL
        assert exc_info.value.http_status_code == 403
    assert hasher.verify_calls == 0


@pytest.mark.asyncio
async def test_rejected_operator_cannot_log_in(
    accounts: AccountService, session: AsyncSession
) -> None:
    registered = await accounts.register(PrincipalType.restaurant_operator, operator_payload())
    record = await session.get(RestaurantOperator, uuid.UUID(registered.principal["id"]))
    assert record is not None
    record.approval_state = ApprovalState.rejected
    await session.commit()

    with pytest.raises(AuthorizationError):
        await accounts.login(PrincipalType.restaurant_operator, "owner@pho.example", "operator-pass")


@pytest.mark.asyncio
async def test_admin_login_token_carries_stored_role(
    accounts: AccountService, token_cfg: TokenConfig
) -> None:
    await accounts.register(PrincipalType.admin, admin_payload(role="super-admin"))
    result = await accounts.login(PrincipalType.admin, "admin@example.com", "admin-pass")
    claims = jwt.decode(result.token, token_cfg.secret, algorithms=[token_cfg.alg])
    assert claims["role"] == Role.super_admin.value


@pytest.mark.asyncio
async def test_profile_update_leaves_digest_untouched(
    accounts: AccountService, session: AsyncSession
) -> None:
    registered = await accounts.register(PrincipalType.delivery_personnel, courier_payload())
    pid = uuid.UUID(registered.principal["id"])
    principal = AuthenticatedPrincipal(principal_id=pid, role=Role.delivery_personnel)
    repo = PrincipalRepo(session)
    before = (await repo.find_by_id(PrincipalType.delivery_personnel, pid)).password_digest

    updated = await accounts.update_profile(principal, {"phone": "0911111111", "is_available": False})

    after = (await repo.find_by_id(PrincipalType.delivery_personnel, pid)).password_digest
    assert after == before
    assert updated["phone"] == "0911111111"
    assert updated["is_available"] is False


@pytest.mark.asyncio
async def test_profile_update_rejects_foreign_fields(accounts: AccountService) -> None:
    registered = await accounts.register(PrincipalType.customer, customer_payload())
    principal = AuthenticatedPrincipal(
        principal_id=uuid.UUID(registered.principal["id"]), role=Role.customer
    )
    with pytest.raises(ValidationError):
        await accounts.update_profile(principal, {"is_available": True})


@pytest.mark.asyncio
async def test_change_credential_rehashes_and_old_password_stops_working(
    accounts: AccountService,
) -> None:
    registered = await accounts.register(PrincipalType.customer, customer_payload())
    principal = AuthenticatedPrincipal(
        principal_id=uuid.UUID(registered.principal["id"]), role=Role.customer
    )

    with pytest.raises(AuthenticationError):
        await accounts.change_credential(
            principal, current_password="wrong", new_password="n3w-pass"
        )

    await accounts.change_credential(
        principal, current_password="s3cret-pass", new_password="n3w-pass"
    )
    with pytest.raises(AuthenticationError):
        await accounts.login(PrincipalType.customer, "alice@example.com", "s3cret-pass")
    assert (await accounts.login(PrincipalType.customer, "alice@example.com", "n3w-pass")).token


@pytest.mark.asyncio
async def test_courier_location_update(accounts: AccountService) -> None:
    registered = await accounts.register(PrincipalType.delivery_personnel, courier_payload())
    principal = AuthenticatedPrincipal(
        principal_id=uuid.UUID(registered.principal["id"]), role=Role.delivery_personnel
    )

    location = await accounts.update_location(principal, longitude=106.7, latitude=10.8)
    assert location == {"longitude": 106.7, "latitude": 10.8}

    with pytest.raises(ValidationError):
        await accounts.update_location(principal, longitude=None, latitude=10.8)
    with pytest.raises(ValidationError):
        await accounts.update_location(principal, longitude=200.0, latitude=10.8)
