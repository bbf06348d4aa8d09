"""
studio_authz.db.repositories.payments

Repository for `Payment` entities.

Responsibilities:
- Create and query payments.
- Apply the two status transitions: the member indicating they paid, and an
  administrator confirming receipt.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studio_authz.db.models import Payment, PaymentStatus, Subscription


class PaymentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        subscription: Subscription,
        due_date: date,
        amount_due: float,
    ) -> Payment:
        payment = Payment(
            subscription_id=subscription.id,
            user_id=subscription.user_id,
            due_date=due_date,
            amount_due=amount_due,
            status=PaymentStatus.pending,
            user_notified_payment=False,
        )
        self._session.add(payment)
        await self._session.flush()
        return payment

    async def get(self, payment_id: uuid.UUID) -> Payment | None:
        return await self._session.get(Payment, payment_id)

    async def list_all(self, *, user_id: uuid.UUID | None = None) -> list[Payment]:
        stmt = select(Payment).order_by(Payment.due_date)
        if user_id is not None:
            stmt = stmt.where(Payment.user_id == user_id)
        return list((await self._session.execute(stmt)).scalars().all())

    async def indicate_paid(self, payment: Payment) -> Payment:
        now = datetime.utcnow()
        payment.user_notified_payment = True
        payment.user_notified_at = now
        payment.updated_at = now
        await self._session.flush()
        return payment

    async def confirm_paid(self, payment: Payment) -> Payment:
        now = datetime.utcnow()
        payment.status = PaymentStatus.paid
        payment.confirmed_at = now
        payment.updated_at = now
        await self._session.flush()
        return payment


# --- Module Notes -----------------------------------------------------------
# Ownership for `indicate_paid` is enforced by the route through the
# authorization engine, not here.
