"""
delivery_auth.db.models

Principal schemas, one table per principal type.

Responsibilities:
- Define the four credential collections:
  - Customer
  - Admin (roles admin / super-admin)
  - RestaurantOperator (business license + approval state)
  - DeliveryPersonnel (vehicle, license, location, availability)
- Enforce identifier (and license) uniqueness with database constraints.
"""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import JSON, Enum, Float, Index, String, Uuid as SAUuid
from sqlalchemy.orm import Mapped, mapped_column

from delivery_auth.auth.models import Role
from delivery_auth.db.base import Base


def _utcnow() -> datetime:
    # Persist naive UTC timestamps; SQLite has no timezone-aware column type.
    return datetime.now(UTC).replace(tzinfo=None)


class ApprovalState(enum.StrEnum):
    pending = "PENDING"
    approved = "APPROVED"
    rejected = "REJECTED"


class VehicleType(enum.StrEnum):
    bike = "bike"
    scooter = "scooter"
    car = "car"
    bicycle = "bicycle"


DEFAULT_ADMIN_PERMISSIONS: tuple[str, ...] = (
    "manage-users",
    "manage-restaurants",
    "manage-orders",
)


class PrincipalMixin:
    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    # Normalized (trimmed, lower-cased) before any insert or lookup.
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    first_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    # Only ever written by the credential repository with a bcrypt digest.
    password_digest: Mapped[str] = mapped_column(String(128), nullable=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        # Keep the digest out of reprs that may end up in tracebacks.
        return f"{type(self).__name__}(id={self.id!s}, email={self.email!r})"


class Customer(PrincipalMixin, Base):
    __tablename__ = "customers"

    location: Mapped[str | None] = mapped_column(String(256), nullable=True)

    @property
    def role(self) -> Role:
        return Role.customer


class Admin(PrincipalMixin, Base):
    __tablename__ = "admins"

    role: Mapped[Role] = mapped_column(Enum(Role), nullable=False, default=Role.admin)
    permissions: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=lambda: list(DEFAULT_ADMIN_PERMISSIONS)
    )


class RestaurantOperator(PrincipalMixin, Base):
    __tablename__ = "restaurant_operators"

    business_license: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    restaurant_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    approval_state: Mapped[ApprovalState] = mapped_column(
        Enum(ApprovalState), nullable=False, default=ApprovalState.pending
    )
    approved_by: Mapped[uuid.UUID | None] = mapped_column(SAUuid(as_uuid=True), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejected_by: Mapped[uuid.UUID | None] = mapped_column(SAUuid(as_uuid=True), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (Index("ix_restaurant_operators_approval_state", "approval_state"),)

    @property
    def role(self) -> Role:
        return Role.restaurant_operator


class DeliveryPersonnel(PrincipalMixin, Base):
    __tablename__ = "delivery_personnel"

    vehicle_type: Mapped[VehicleType] = mapped_column(Enum(VehicleType), nullable=False)
    license_number: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    # [longitude, latitude]; 0/0 until the courier reports a position.
    longitude: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    latitude: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    is_available: Mapped[bool] = mapped_column(nullable=False, default=True)
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=5.0)
    total_deliveries: Mapped[int] = mapped_column(nullable=False, default=0)

    @property
    def role(self) -> Role:
        return Role.delivery_personnel


PrincipalRecord = Customer | Admin | RestaurantOperator | DeliveryPersonnel


# --- Module Notes -----------------------------------------------------------
# Uniqueness is per table: the same email may exist once as a customer and once
# as a courier. The unique constraints are the source of truth; the pre-checks
# in `services.accounts` only give an early, friendlier error.
