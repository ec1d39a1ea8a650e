"""
delivery_auth.services.projections

Sanitized, JSON-ready views of principal records.

The credential digest is never part of any projection.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from delivery_auth.db.models import (
    Admin,
    ApprovalState,
    Customer,
    DeliveryPersonnel,
    PrincipalRecord,
    RestaurantOperator,
)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def project(record: PrincipalRecord, *, detailed: bool = False) -> dict[str, Any]:
    view: dict[str, Any] = {
        "id": str(record.id),
        "email": record.email,
        "first_name": record.first_name,
        "last_name": record.last_name,
        "phone": record.phone,
        "role": record.role.value,
    }

    if isinstance(record, Customer):
        view["location"] = record.location
    elif isinstance(record, Admin):
        view["permissions"] = list(record.permissions or [])
    elif isinstance(record, RestaurantOperator):
        view.update(
            business_license=record.business_license,
            restaurant_id=record.restaurant_id,
            approval_state=record.approval_state.value,
            is_approved=record.approval_state is ApprovalState.approved,
        )
        if detailed:
            view["approved_at"] = _iso(record.approved_at)
    elif isinstance(record, DeliveryPersonnel):
        view.update(
            vehicle_type=record.vehicle_type.value,
            license_number=record.license_number,
            is_available=record.is_available,
            rating=record.rating,
            total_deliveries=record.total_deliveries,
        )
        if detailed:
            view["current_location"] = {
                "longitude": record.longitude,
                "latitude": record.latitude,
            }

    if detailed:
        view["created_at"] = _iso(record.created_at)
    return view


def project_pending(record: RestaurantOperator) -> dict[str, Any]:
    # Admin review listing; mirrors what an approver needs to decide.
    return {
        "id": str(record.id),
        "email": record.email,
        "first_name": record.first_name,
        "last_name": record.last_name,
        "phone": record.phone,
        "business_license": record.business_license,
        "created_at": _iso(record.created_at),
    }
