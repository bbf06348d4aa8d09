"""
studio_authz.db.models

Persistence schema for the records the authorization engine guards.

Responsibilities:
- Define ORM models:
  - User: credentials and granted features
  - UserSession: one sign-in, revocable before its token expires
  - Subscription: a user's membership in a plan
  - Payment: one charge of a subscription
- Serialize rows to plain dicts for projection (`to_dict`), never including
  secrets.
"""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import JSON, Date, Enum, ForeignKey, Index, Numeric, String, Uuid as SAUuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studio_authz.db.base import Base


def _utcnow() -> datetime:
    # Persist naive UTC timestamps for simplicity; production systems may use tz-aware types.
    return datetime.utcnow()


class PaymentStatus(enum.StrEnum):
    # Enum values are stored in DB; treat as stable API contract.
    pending = "PENDING"
    paid = "PAID"
    overdue = "OVERDUE"


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    username: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    email: Mapped[str] = mapped_column(String(256), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    # Feature strings; every write goes through CATALOG.validate first.
    features: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    subscriptions: Mapped[list[Subscription]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    sessions: Mapped[list[UserSession]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def owner_id(self) -> uuid.UUID:
        # A user record is owned by that user.
        return self.id

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "username": self.username,
            "email": self.email,
            "features": sorted(self.features or []),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class UserSession(Base):
    __tablename__ = "sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )
    # Ending a session moves this into the past; tokens carry the id as `sid`.
    expires_at: Mapped[datetime] = mapped_column(nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    user: Mapped[User] = relationship(back_populates="sessions")

    @property
    def owner_id(self) -> uuid.UUID:
        return self.user_id

    def is_active(self, now: datetime | None = None) -> bool:
        return self.expires_at > (now or _utcnow())

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": str(self.id),
            "user_id": str(self.user_id),
            "expires_at": self.expires_at,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class Subscription(Base):
    __tablename__ = "subscriptions"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )

    plan_name: Mapped[str] = mapped_column(String(256), nullable=False)
    discount_value: Mapped[float] = mapped_column(
        Numeric(10, 2, asdecimal=False), nullable=False, default=0.0
    )
    payment_day: Mapped[int] = mapped_column(nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    user: Mapped[User] = relationship(back_populates="subscriptions")
    payments: Mapped[list[Payment]] = relationship(
        back_populates="subscription", cascade="all, delete-orphan"
    )

    @property
    def owner_id(self) -> uuid.UUID:
        return self.user_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "plan_name": self.plan_name,
            "discount_value": self.discount_value,
            "payment_day": self.payment_day,
            "start_date": self.start_date,
            "is_active": self.is_active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    subscription_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("subscriptions.id"), nullable=False, index=True
    )
    # Denormalized from the subscription so ownership checks need no join.
    user_id: Mapped[uuid.UUID] = mapped_column(SAUuid(as_uuid=True), nullable=False, index=True)

    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    amount_due: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)
    status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus), nullable=False, default=PaymentStatus.pending, index=True
    )
    user_notified_payment: Mapped[bool] = mapped_column(nullable=False, default=False)
    user_notified_at: Mapped[datetime | None] = mapped_column(nullable=True)
    confirmed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    subscription: Mapped[Subscription] = relationship(back_populates="payments")

    __table_args__ = (Index("ix_payments_user_due", "user_id", "due_date"),)

    @property
    def owner_id(self) -> uuid.UUID:
        return self.user_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "subscription_id": str(self.subscription_id),
            "user_id": str(self.user_id),
            "due_date": self.due_date,
            "amount_due": self.amount_due,
            "status": self.status.value,
            "user_notified_payment": self.user_notified_payment,
            "user_notified_at": self.user_notified_at,
            "confirmed_at": self.confirmed_at,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


# --- Module Notes -----------------------------------------------------------
# `owner_id` is the single attribute the authorization engine reads from a row
# (see `authz.models.owner_id_of`).
