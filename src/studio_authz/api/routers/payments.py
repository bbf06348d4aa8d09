"""
studio_authz.api.routers.payments

Payment reads and status transitions.

Responsibilities:
- Reads resolved to `read:payment:self` or `read:payment:other`.
- PATCH with an `action` whose feature depends on the action itself:
  `indicate_paid` (member, own payments only) and `confirm_paid` (admin).
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from studio_authz.api.deps import db_session
from studio_authz.auth.deps import get_identity
from studio_authz.authz.errors import NotFoundError
from studio_authz.authz.features import Feature
from studio_authz.authz.guard import authorize, authorize_any, authorize_scoped
from studio_authz.authz.models import Identity
from studio_authz.authz.schemas import filter_input, filter_output, filter_output_many
from studio_authz.authz.scope import Scope, resolve_scope
from studio_authz.db.models import Payment
from studio_authz.db.repositories.payments import PaymentRepo
from studio_authz.observability.logging import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/v1/payments", tags=["payments"])

_ACTION_FEATURES: dict[str, Feature] = {
    "indicate_paid": Feature.update_payment_indicate_paid,
    "confirm_paid": Feature.update_payment_confirm_paid,
}


class PaymentPatchRequest(BaseModel):
    action: str


async def _get_or_404(repo: PaymentRepo, payment_id: uuid.UUID) -> Payment:
    payment = await repo.get(payment_id)
    if payment is None:
        raise NotFoundError("Payment not found.")
    return payment


@router.get("")
async def list_payments(
    user_id: uuid.UUID | None = Query(default=None),
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(db_session),
) -> list[dict[str, Any]]:
    feature = authorize_scoped(identity, "read", "payment", owner_id=user_id)
    payments = await PaymentRepo(session).list_all(user_id=user_id)
    return filter_output_many(identity, feature, (p.to_dict() for p in payments))


@router.get("/{payment_id}")
async def get_payment(
    payment_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    authorize_any(identity, Feature.read_payment_self, Feature.read_payment_other)
    payment = await _get_or_404(PaymentRepo(session), payment_id)
    feature = authorize_scoped(
        identity, "read", "payment", owner_id=payment.user_id, resource=payment
    )
    return filter_output(identity, feature, payment.to_dict())


@router.patch("/{payment_id}")
async def update_payment(
    payment_id: uuid.UUID,
    body: PaymentPatchRequest,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    feature = _ACTION_FEATURES.get(body.action)
    if feature is None:
        raise NotFoundError(f'The action "{body.action}" is not valid.')
    authorize(identity, feature)

    repo = PaymentRepo(session)
    payment = await _get_or_404(repo, payment_id)
    data = filter_input(identity, feature, body.model_dump())
    action = data["action"]

    if action == "indicate_paid":
        # Members may only flag their own payments; hide others' as not found.
        if resolve_scope(identity, payment.user_id) is not Scope.self_:
            raise NotFoundError("Payment not found.")
        await repo.indicate_paid(payment)
    else:
        await repo.confirm_paid(payment)

    await session.commit()
    log.info("payment_updated", payment_id=str(payment.id), action=action)
    return filter_output(identity, feature, payment.to_dict())
