from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from studio_authz.db.models import Subscription


class SubscriptionRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        user_id: uuid.UUID,
        plan_name: str,
        payment_day: int,
        start_date: date,
        discount_value: float = 0.0,
    ) -> Subscription:
        sub = Subscription(
            user_id=user_id,
            plan_name=plan_name,
            payment_day=payment_day,
            start_date=start_date,
            discount_value=discount_value,
            is_active=True,
        )
        self._session.add(sub)
        await self._session.flush()
        return sub

    async def get(self, subscription_id: uuid.UUID) -> Subscription | None:
        return await self._session.get(Subscription, subscription_id)

    async def list_all(self, *, user_id: uuid.UUID | None = None) -> list[Subscription]:
        stmt = select(Subscription).order_by(desc(Subscription.created_at))
        if user_id is not None:
            stmt = stmt.where(Subscription.user_id == user_id)
        return list((await self._session.execute(stmt)).scalars().all())

    async def update(self, sub: Subscription, **changes: object) -> Subscription:
        for name, value in changes.items():
            setattr(sub, name, value)
        sub.updated_at = datetime.utcnow()
        await self._session.flush()
        return sub

    async def delete(self, sub: Subscription) -> None:
        await self._session.delete(sub)
        await self._session.flush()
