"""
delivery_auth.api.routers.restaurant_operators

Admin review of restaurant-operator accounts (approval state machine).
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends

from delivery_auth.api.deps import approval_service
from delivery_auth.auth.deps import require_roles
from delivery_auth.auth.models import AuthenticatedPrincipal, Role
from delivery_auth.services.approvals import ApprovalService

router = APIRouter(prefix="/v1/restaurant-operators", tags=["restaurant-operators"])

_reviewer = require_roles(Role.admin, Role.super_admin)


@router.get("/pending")
async def list_pending(
    actor: AuthenticatedPrincipal = Depends(_reviewer),
    approvals: ApprovalService = Depends(approval_service),
) -> dict[str, Any]:
    pending = await approvals.list_pending(actor=actor)
    return {"status": "success", "results": len(pending), "restaurant_operators": pending}


@router.patch("/{operator_id}/approve")
async def approve(
    operator_id: uuid.UUID,
    actor: AuthenticatedPrincipal = Depends(_reviewer),
    approvals: ApprovalService = Depends(approval_service),
) -> dict[str, Any]:
    operator = await approvals.approve(operator_id=operator_id, actor=actor)
    return {"status": "success", "restaurant_operator": operator}


@router.patch("/{operator_id}/reject")
async def reject(
    operator_id: uuid.UUID,
    actor: AuthenticatedPrincipal = Depends(_reviewer),
    approvals: ApprovalService = Depends(approval_service),
) -> dict[str, Any]:
    operator = await approvals.reject(operator_id=operator_id, actor=actor)
    return {"status": "success", "restaurant_operator": operator}
