"""
tests.test_projection

Field projection: registry construction, input/output filtering and the
platform's projection table.
"""

from __future__ import annotations

import pytest

from studio_authz.authz.errors import ProjectionNotDefinedError, UnknownFeatureError
from studio_authz.authz.features import CATALOG, Feature
from studio_authz.authz.models import Identity
from studio_authz.authz.projection import ProjectionRegistry, ProjectionSchema
from studio_authz.authz.schemas import PROJECTIONS, filter_output

ADMIN = Identity.of(id="admin", username="admin", features=CATALOG)
# Holds every feature and owns SUBSCRIPTION.
OWNER = Identity.of(id="u1", username="u1", features=CATALOG)

SUBSCRIPTION = {
    "id": "s1",
    "user_id": "u1",
    "plan_name": "Taiko monthly",
    "discount_value": 10,
    "payment_day": 5,
    "start_date": "2026-01-01",
    "is_active": True,
    "created_at": "2026-01-01T00:00:00",
    "updated_at": "2026-01-01T00:00:00",
}


def test_scenario_a_output_drops_unlisted_and_absent_fields() -> None:
    registry = ProjectionRegistry(
        {"read:subscription:self": ProjectionSchema.of(output=("id", "plan_name"))}
    )
    u1 = Identity.of(id="u1", username="u1", features=["read:subscription:self"])
    resource = {"id": "s1", "user_id": "u1", "discount_value": 10}

    assert registry.filter_output(u1, "read:subscription:self", resource) == {"id": "s1"}


def test_scenario_d_input_drops_unlisted_fields() -> None:
    registry = ProjectionRegistry(
        {"create:user": ProjectionSchema.of(input=("username", "email"))}
    )
    raw = {"username": "a", "email": "b", "isAdmin": True}

    out = registry.filter_input(Identity.anonymous(), "create:user", raw)
    assert out == {"username": "a", "email": "b"}


def test_without_the_feature_nothing_is_projected() -> None:
    nobody = Identity.of(id="u9", username="u9", features=())
    assert PROJECTIONS.filter_output(nobody, Feature.read_subscription_other, SUBSCRIPTION) == {}
    assert PROJECTIONS.filter_input(nobody, Feature.update_subscription, SUBSCRIPTION) == {}


@pytest.mark.parametrize("feature", sorted(PROJECTIONS.features()))
def test_output_is_idempotent_and_never_expands(feature: str) -> None:
    # "id" doubles as the owner key of user records.
    payload = {
        **SUBSCRIPTION,
        "id": "u1",
        "session_id": "x1",
        "token": "t",
        "features": ["read:user:self"],
        "extra": 1,
    }
    once = PROJECTIONS.filter_output(OWNER, feature, payload)
    twice = PROJECTIONS.filter_output(OWNER, feature, once)

    assert twice == once
    assert set(once) <= set(payload)
    if PROJECTIONS.schema_for(feature).output_fields:
        assert once
    assert set(PROJECTIONS.filter_input(OWNER, feature, payload, target=payload)) <= set(payload)


def test_values_and_source_order_are_kept() -> None:
    out = PROJECTIONS.filter_output(OWNER, Feature.read_subscription_self, SUBSCRIPTION)
    assert list(out) == ["id", "plan_name", "payment_day", "start_date", "is_active"]
    assert out["plan_name"] is SUBSCRIPTION["plan_name"]


def test_same_row_self_vs_other() -> None:
    own = filter_output(OWNER, Feature.read_subscription_self, SUBSCRIPTION)
    full = filter_output(ADMIN, Feature.read_subscription_other, SUBSCRIPTION)
    assert "discount_value" not in own
    assert full == SUBSCRIPTION


def test_missing_schema_is_an_error() -> None:
    # No fallback from a scoped feature to anything broader.
    with pytest.raises(ProjectionNotDefinedError) as exc:
        PROJECTIONS.filter_output(ADMIN, Feature.read_table, {"id": 1})
    assert exc.value.feature == "read:table"


def test_unknown_feature_is_checked_before_schema_lookup() -> None:
    with pytest.raises(UnknownFeatureError):
        PROJECTIONS.filter_output(ADMIN, "read:everything", {"id": 1})


def test_registry_keys_must_be_catalog_features() -> None:
    with pytest.raises(UnknownFeatureError):
        ProjectionRegistry({"read:widget:self": ProjectionSchema.of(output=("id",))})


def test_secrets_are_never_output_fields() -> None:
    for feature in PROJECTIONS.features():
        assert "password" not in PROJECTIONS.schema_for(feature).output_fields
        assert "password_hash" not in PROJECTIONS.schema_for(feature).output_fields


def test_filter_output_many() -> None:
    rows = [SUBSCRIPTION, {**SUBSCRIPTION, "id": "s2"}]
    out = PROJECTIONS.filter_output_many(OWNER, Feature.read_subscription_self, rows)
    assert [r["id"] for r in out] == ["s1", "s2"]


def test_self_feature_does_not_project_someone_elses_row() -> None:
    u2 = Identity.of(id="u2", username="u2", features=["read:subscription:self"])
    assert PROJECTIONS.filter_output(u2, Feature.read_subscription_self, SUBSCRIPTION) == {}
    rows = PROJECTIONS.filter_output_many(u2, Feature.read_subscription_self, [SUBSCRIPTION])
    assert rows == [{}]


def test_self_user_projection_is_owned_by_the_record_id() -> None:
    alice = Identity.of(id="u1", username="alice", features=["read:user:self"])
    record = {"id": "u1", "username": "alice", "email": "alice@example.com"}

    assert PROJECTIONS.filter_output(alice, Feature.read_user_self, record) == record
    assert PROJECTIONS.filter_output(alice, Feature.read_user_self, {**record, "id": "u2"}) == {}


def test_self_input_is_dropped_for_a_foreign_target() -> None:
    alice = Identity.of(id="u1", username="alice", features=["update:user:self"])
    raw = {"username": "mallory", "email": "m@example.com"}

    feature = Feature.update_user_self
    own = PROJECTIONS.filter_input(alice, feature, raw, target={"owner_id": "u1"})
    other = PROJECTIONS.filter_input(alice, feature, raw, target={"owner_id": "u2"})
    assert own == raw
    assert other == {}
