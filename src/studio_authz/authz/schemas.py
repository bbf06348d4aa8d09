"""
studio_authz.authz.schemas

The platform's projection table.

Responsibilities:
- Declare, per feature, which request fields may be written and which
  response fields may be disclosed.
- Expose module-level `filter_input` / `filter_output` bound to that table.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from studio_authz.authz.features import Feature
from studio_authz.authz.models import Identity
from studio_authz.authz.projection import ProjectionRegistry, ProjectionSchema

_USER_PRIVATE = (
    "id",
    "username",
    "email",
    "features",
    "created_at",
    "updated_at",
)
_USER_PUBLIC = ("id", "username", "features", "created_at", "updated_at")

_SUBSCRIPTION_ALL = (
    "id",
    "user_id",
    "plan_name",
    "discount_value",
    "payment_day",
    "start_date",
    "is_active",
    "created_at",
    "updated_at",
)
_SUBSCRIPTION_OWN = ("id", "plan_name", "payment_day", "start_date", "is_active")

_PAYMENT_ALL = (
    "id",
    "subscription_id",
    "user_id",
    "due_date",
    "amount_due",
    "status",
    "user_notified_payment",
    "user_notified_at",
    "confirmed_at",
    "created_at",
    "updated_at",
)
_PAYMENT_OWN = (
    "id",
    "subscription_id",
    "due_date",
    "amount_due",
    "status",
    "user_notified_payment",
    "confirmed_at",
)

PROJECTIONS = ProjectionRegistry(
    {
        # users
        Feature.create_user: ProjectionSchema.of(
            input=("username", "email", "password"),
            output=("id", "username", "email", "created_at"),
        ),
        Feature.read_user_self: ProjectionSchema.of(
            input=("username",), output=_USER_PRIVATE, owner_key="id"
        ),
        Feature.read_user_other: ProjectionSchema.of(input=("username",), output=_USER_PUBLIC),
        Feature.update_user_self: ProjectionSchema.of(
            input=("username", "email"), output=_USER_PRIVATE, owner_key="id"
        ),
        Feature.update_user_password_self: ProjectionSchema.of(
            input=("password",), output=_USER_PRIVATE, owner_key="id"
        ),
        Feature.update_user_other: ProjectionSchema.of(input=("password",), output=_USER_PUBLIC),
        Feature.update_user_features_self: ProjectionSchema.of(
            input=("features",), output=("id", "username", "features"), owner_key="id"
        ),
        Feature.update_user_features_other: ProjectionSchema.of(
            input=("features",), output=("id", "username", "features")
        ),
        # sessions
        Feature.create_session: ProjectionSchema.of(
            input=("email", "password"),
            output=("session_id", "token", "token_type", "expires_at"),
        ),
        Feature.read_session_self: ProjectionSchema.of(
            input=("session_id",),
            output=("session_id", "user_id", "expires_at", "created_at", "updated_at"),
        ),
        Feature.read_session_other: ProjectionSchema.of(
            input=("session_id",),
            output=("session_id", "expires_at", "created_at", "updated_at"),
        ),
        # subscriptions
        Feature.create_subscription: ProjectionSchema.of(
            input=("user_id", "plan_name", "discount_value", "payment_day", "start_date"),
            output=_SUBSCRIPTION_ALL,
        ),
        Feature.read_subscription_self: ProjectionSchema.of(output=_SUBSCRIPTION_OWN),
        Feature.read_subscription_other: ProjectionSchema.of(output=_SUBSCRIPTION_ALL),
        Feature.update_subscription: ProjectionSchema.of(
            input=("plan_name", "discount_value", "payment_day", "is_active"),
            output=_SUBSCRIPTION_ALL,
        ),
        Feature.delete_subscription: ProjectionSchema.of(output=_SUBSCRIPTION_ALL),
        # payments
        Feature.read_payment_self: ProjectionSchema.of(output=_PAYMENT_OWN),
        Feature.read_payment_other: ProjectionSchema.of(output=_PAYMENT_ALL),
        Feature.update_payment_indicate_paid: ProjectionSchema.of(
            input=("action",),
            output=("id", "status", "user_notified_payment", "user_notified_at"),
        ),
        Feature.update_payment_confirm_paid: ProjectionSchema.of(
            input=("action",),
            output=(
                "id",
                "status",
                "user_notified_payment",
                "user_notified_at",
                "confirmed_at",
                "updated_at",
            ),
        ),
    }
)


def filter_input(
    identity: Identity, feature: str, raw: Mapping[str, Any], *, target: Any = None
) -> dict[str, Any]:
    return PROJECTIONS.filter_input(identity, feature, raw, target=target)


def filter_output(
    identity: Identity, feature: str, payload: Mapping[str, Any]
) -> dict[str, Any]:
    return PROJECTIONS.filter_output(identity, feature, payload)


def filter_output_many(
    identity: Identity, feature: str, payloads: Iterable[Mapping[str, Any]]
) -> list[dict[str, Any]]:
    return PROJECTIONS.filter_output_many(identity, feature, payloads)


# --- Module Notes -----------------------------------------------------------
# Secrets (password hashes) are never listed as output fields for any feature;
# ORM rows are also serialized without them (see `db.models`).
