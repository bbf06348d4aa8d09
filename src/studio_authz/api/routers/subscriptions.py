"""
studio_authz.api.routers.subscriptions

Membership subscriptions.

Responsibilities:
- Admin CRUD guarded declaratively (`create/update/delete:subscription`).
- Reads resolved to `read:subscription:self` or `read:subscription:other`.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from studio_authz.api.deps import db_session
from studio_authz.auth.deps import get_identity
from studio_authz.authz.errors import NotFoundError, ValidationError
from studio_authz.authz.features import Feature
from studio_authz.authz.guard import authorize_any, authorize_scoped, require_features
from studio_authz.authz.models import Identity
from studio_authz.authz.schemas import filter_input, filter_output, filter_output_many
from studio_authz.db.models import Subscription
from studio_authz.db.repositories.subscriptions import SubscriptionRepo
from studio_authz.db.repositories.users import UserRepo

router = APIRouter(prefix="/v1/subscriptions", tags=["subscriptions"])


class SubscriptionCreateRequest(BaseModel):
    user_id: uuid.UUID
    plan_name: str = Field(min_length=1, max_length=256)
    discount_value: float = Field(default=0.0, ge=0)
    payment_day: int = Field(ge=1, le=31)
    start_date: date


class SubscriptionPatchRequest(BaseModel):
    plan_name: str | None = Field(default=None, min_length=1, max_length=256)
    discount_value: float | None = Field(default=None, ge=0)
    payment_day: int | None = Field(default=None, ge=1, le=31)
    is_active: bool | None = None


async def _get_or_404(repo: SubscriptionRepo, subscription_id: uuid.UUID) -> Subscription:
    sub = await repo.get(subscription_id)
    if sub is None:
        raise NotFoundError("Subscription not found.")
    return sub


@router.post("", status_code=201)
async def create_subscription(
    body: SubscriptionCreateRequest,
    identity: Identity = Depends(require_features(Feature.create_subscription)),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    data = filter_input(identity, Feature.create_subscription, body.model_dump())
    if await UserRepo(session).get(data["user_id"]) is None:
        raise ValidationError("The subscription's user does not exist.")
    sub = await SubscriptionRepo(session).create(**data)
    await session.commit()
    return filter_output(identity, Feature.create_subscription, sub.to_dict())


@router.get("")
async def list_subscriptions(
    user_id: uuid.UUID | None = Query(default=None),
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(db_session),
) -> list[dict[str, Any]]:
    # No user_id means "everyone's", which only the :other feature covers.
    feature = authorize_scoped(identity, "read", "subscription", owner_id=user_id)
    subs = await SubscriptionRepo(session).list_all(user_id=user_id)
    return filter_output_many(identity, feature, (s.to_dict() for s in subs))


@router.get("/{subscription_id}")
async def get_subscription(
    subscription_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    authorize_any(identity, Feature.read_subscription_self, Feature.read_subscription_other)
    sub = await _get_or_404(SubscriptionRepo(session), subscription_id)
    feature = authorize_scoped(
        identity, "read", "subscription", owner_id=sub.user_id, resource=sub
    )
    return filter_output(identity, feature, sub.to_dict())


@router.patch("/{subscription_id}")
async def update_subscription(
    subscription_id: uuid.UUID,
    body: SubscriptionPatchRequest,
    identity: Identity = Depends(require_features(Feature.update_subscription)),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    repo = SubscriptionRepo(session)
    sub = await _get_or_404(repo, subscription_id)
    raw = body.model_dump(exclude_unset=True, exclude_none=True)
    data = filter_input(identity, Feature.update_subscription, raw)
    if not data:
        raise ValidationError("No fields to update were sent.")
    await repo.update(sub, **data)
    await session.commit()
    return filter_output(identity, Feature.update_subscription, sub.to_dict())


@router.delete("/{subscription_id}")
async def delete_subscription(
    subscription_id: uuid.UUID,
    identity: Identity = Depends(require_features(Feature.delete_subscription)),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    repo = SubscriptionRepo(session)
    sub = await _get_or_404(repo, subscription_id)
    snapshot = sub.to_dict()
    await repo.delete(sub)
    await session.commit()
    return filter_output(identity, Feature.delete_subscription, snapshot)
