"""
delivery_auth.db.repositories.principals

Credential store: repository over the per-type principal tables.

Responsibilities:
- Look up principals by identifier, id, or secondary unique field.
- Create principal records (the caller supplies the digest, never plaintext).
- Apply the restaurant-operator approval transition atomically.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from delivery_auth.auth.models import PrincipalType
from delivery_auth.db.models import (
    Admin,
    ApprovalState,
    Customer,
    DeliveryPersonnel,
    PrincipalRecord,
    RestaurantOperator,
)

MODELS: dict[PrincipalType, type[PrincipalRecord]] = {
    PrincipalType.customer: Customer,
    PrincipalType.admin: Admin,
    PrincipalType.restaurant_operator: RestaurantOperator,
    PrincipalType.delivery_personnel: DeliveryPersonnel,
}


def normalize_identifier(identifier: str) -> str:
    return identifier.strip().lower()


class PrincipalRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_identifier(
        self, principal_type: PrincipalType, identifier: str
    ) -> PrincipalRecord | None:
        model = MODELS[principal_type]
        stmt = select(model).where(model.email == normalize_identifier(identifier))
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def find_by_id(
        self, principal_type: PrincipalType, principal_id: uuid.UUID
    ) -> PrincipalRecord | None:
        return await self._session.get(MODELS[principal_type], principal_id)

    async def exists(self, principal_type: PrincipalType, principal_id: uuid.UUID) -> bool:
        # Existence only: the verifier must not load or act on live role/approval state.
        model = MODELS[principal_type]
        stmt = select(model.id).where(model.id == principal_id)
        return (await self._session.execute(stmt)).scalar_one_or_none() is not None

    async def find_by_field(
        self, principal_type: PrincipalType, field: str, value: Any
    ) -> PrincipalRecord | None:
        model = MODELS[principal_type]
        stmt = select(model).where(getattr(model, field) == value).limit(1)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def create(
        self,
        principal_type: PrincipalType,
        *,
        email: str,
        password_digest: str,
        **attributes: Any,
    ) -> PrincipalRecord:
        # Flush surfaces unique-constraint violations as IntegrityError; the caller
        # owns commit/rollback so a failed create leaves nothing behind.
        record = MODELS[principal_type](
            email=normalize_identifier(email),
            password_digest=password_digest,
            **attributes,
        )
        self._session.add(record)
        await self._session.flush()
        return record

    async def set_password_digest(
        self, principal_type: PrincipalType, principal_id: uuid.UUID, digest: str
    ) -> bool:
        record = await self.find_by_id(principal_type, principal_id)
        if record is None:
            return False
        record.password_digest = digest
        await self._session.flush()
        return True

    async def update_attributes(
        self, principal_type: PrincipalType, principal_id: uuid.UUID, **attributes: Any
    ) -> PrincipalRecord | None:
        if "password_digest" in attributes:
            raise ValueError("password digest is only changed via set_password_digest")
        record = await self.find_by_id(principal_type, principal_id)
        if record is None:
            return None
        for name, value in attributes.items():
            setattr(record, name, value)
        await self._session.flush()
        return record

    async def update_approval(
        self,
        operator_id: uuid.UUID,
        *,
        state: ApprovalState,
        actor_id: uuid.UUID,
        at: datetime,
    ) -> bool:
        """
        Single conditional UPDATE guarded on PENDING, so the transition happens
        at most once and concurrent readers see the old or the new state.
        """

        values: dict[str, Any] = {"approval_state": state, "updated_at": at}
        if state is ApprovalState.approved:
            values.update(approved_by=actor_id, approved_at=at)
        elif state is ApprovalState.rejected:
            values.update(rejected_by=actor_id, rejected_at=at)
        else:
            raise ValueError(f"cannot transition to {state}")

        stmt = (
            update(RestaurantOperator)
            .where(
                RestaurantOperator.id == operator_id,
                RestaurantOperator.approval_state == ApprovalState.pending,
            )
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def list_pending_operators(self) -> list[RestaurantOperator]:
        # Full review queue, oldest first; the listing reports its own length as the total.
        stmt = (
            select(RestaurantOperator)
            .where(RestaurantOperator.approval_state == ApprovalState.pending)
            .order_by(RestaurantOperator.created_at, RestaurantOperator.id)
        )
        return list((await self._session.execute(stmt)).scalars().all())


def principal_exists_lookup(session_factory: async_sessionmaker[AsyncSession]):
    """
    Adapter for `auth.verifier.TokenVerifier`: one short-lived session, one read.
    """

    async def principal_exists(principal_type: PrincipalType, principal_id: uuid.UUID) -> bool:
        async with session_factory() as session:
            return await PrincipalRepo(session).exists(principal_type, principal_id)

    return principal_exists


# --- Module Notes -----------------------------------------------------------
# One repository serves every principal type; the table is picked by
# `PrincipalType`. There is no global identifier namespace across tables.
