"""
delivery_auth.services.approvals

Restaurant-operator approval state machine.

Responsibilities:
- PENDING -> APPROVED and PENDING -> REJECTED, admin/super-admin actors only.
- Never revert a decided operator.
- List operators awaiting review.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from delivery_auth.auth.models import AuthenticatedPrincipal, PrincipalType
from delivery_auth.db.models import ApprovalState, RestaurantOperator
from delivery_auth.db.repositories.principals import PrincipalRepo
from delivery_auth.errors import (
    INSUFFICIENT_ROLE,
    AuthorizationError,
    ConflictError,
    NotFoundError,
)
from delivery_auth.observability.logging import get_logger
from delivery_auth.services.projections import project, project_pending

log = get_logger(__name__)


def _require_reviewer(actor: AuthenticatedPrincipal) -> None:
    # Routers already enforce this; the state machine checks again for non-HTTP callers.
    if not actor.is_admin:
        log.info("review_denied", actor_id=str(actor.principal_id), role=actor.role.value)
        raise AuthorizationError(INSUFFICIENT_ROLE)


class ApprovalService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session
        self._principals = PrincipalRepo(session)

    async def approve(
        self, *, operator_id: uuid.UUID, actor: AuthenticatedPrincipal
    ) -> dict[str, Any]:
        return await self._decide(operator_id, actor, ApprovalState.approved)

    async def reject(
        self, *, operator_id: uuid.UUID, actor: AuthenticatedPrincipal
    ) -> dict[str, Any]:
        return await self._decide(operator_id, actor, ApprovalState.rejected)

    async def list_pending(self, *, actor: AuthenticatedPrincipal) -> list[dict[str, Any]]:
        _require_reviewer(actor)
        return [project_pending(op) for op in await self._principals.list_pending_operators()]

    async def _decide(
        self, operator_id: uuid.UUID, actor: AuthenticatedPrincipal, state: ApprovalState
    ) -> dict[str, Any]:
        _require_reviewer(actor)

        now = datetime.now(UTC).replace(tzinfo=None)
        changed = await self._principals.update_approval(
            operator_id, state=state, actor_id=actor.principal_id, at=now
        )
        if not changed:
            operator = await self._principals.find_by_id(
                PrincipalType.restaurant_operator, operator_id
            )
            if operator is None:
                raise NotFoundError("restaurant operator not found")
            raise ConflictError(
                "approval_state",
                f"restaurant operator is already {operator.approval_state.value.lower()}",
            )

        await self._session.commit()
        operator = await self._principals.find_by_id(PrincipalType.restaurant_operator, operator_id)
        if not isinstance(operator, RestaurantOperator):
            raise NotFoundError("restaurant operator not found")
        # The conditional UPDATE bypassed the identity map; reload the row.
        await self._session.refresh(operator)

        log.info(
            "operator_reviewed",
            operator_id=str(operator_id),
            decision=state.value,
            actor_id=str(actor.principal_id),
        )
        return project(operator, detailed=True)
