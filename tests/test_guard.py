"""
tests.test_guard

Route guard behaviour on a minimal FastAPI app with the identity injected
directly (no database, no tokens).
"""

from __future__ import annotations

import httpx
import pytest
from fastapi import Depends, FastAPI

from studio_authz.api.errors import register_error_handlers
from studio_authz.auth.deps import get_identity
from studio_authz.authz.errors import ForbiddenError, UnauthorizedError, UnknownFeatureError
from studio_authz.authz.features import Feature
from studio_authz.authz.guard import authorize, authorize_any, authorize_scoped, require_features
from studio_authz.authz.models import Identity


def _build_app(identity: Identity) -> tuple[FastAPI, list[str]]:
    app = FastAPI()
    register_error_handlers(app)
    reached: list[str] = []

    @app.get("/subscriptions/{owner}")
    async def read_subscription(owner: str, ident: Identity = Depends(get_identity)) -> dict:
        feature = authorize_scoped(
            ident, "read", "subscription", owner_id=owner, resource={"user_id": owner}
        )
        reached.append("read")
        return {"feature": feature}

    @app.post("/plans")
    async def create_plan(
        ident: Identity = Depends(require_features(Feature.create_payment_plan)),
    ) -> dict:
        reached.append("plan")
        return {"by": ident.username}

    app.dependency_overrides[get_identity] = lambda: identity
    return app, reached


async def _request(app: FastAPI, method: str, url: str) -> httpx.Response:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.request(method, url)


@pytest.mark.asyncio
async def test_scenario_b_other_owner_is_forbidden() -> None:
    u2 = Identity.of(id="u2", username="u2", features=["read:subscription:self"])
    app, reached = _build_app(u2)

    r = await _request(app, "GET", "/subscriptions/u1")
    assert r.status_code == 403
    body = r.json()
    assert body["name"] == "ForbiddenError"
    assert body["feature"] == "read:subscription:other"
    assert reached == []


@pytest.mark.asyncio
async def test_owner_passes_with_self_feature() -> None:
    u1 = Identity.of(id="u1", username="u1", features=["read:subscription:self"])
    app, reached = _build_app(u1)

    r = await _request(app, "GET", "/subscriptions/u1")
    assert r.status_code == 200
    assert r.json() == {"feature": "read:subscription:self"}
    assert reached == ["read"]


@pytest.mark.asyncio
async def test_scenario_c_anonymous_is_unauthorized() -> None:
    anon = Identity(id=None, username="anonymous", features=frozenset())
    app, reached = _build_app(anon)

    r = await _request(app, "POST", "/plans")
    assert r.status_code == 401
    assert r.headers["www-authenticate"] == "Bearer"
    assert r.json()["name"] == "UnauthorizedError"
    assert reached == []


@pytest.mark.asyncio
async def test_declarative_guard_allows_holder() -> None:
    admin = Identity.of(id="a", username="admin", features=[Feature.create_payment_plan])
    app, reached = _build_app(admin)

    r = await _request(app, "POST", "/plans")
    assert r.status_code == 200
    assert r.json() == {"by": "admin"}
    assert reached == ["plan"]


def test_require_features_is_validated_at_declaration() -> None:
    with pytest.raises(UnknownFeatureError):
        require_features("read:everything")
    with pytest.raises(ValueError):
        require_features()


def test_authorize_is_conjunctive() -> None:
    alice = Identity.of(id="u1", username="alice", features=[Feature.update_user_self])
    assert authorize(alice, Feature.update_user_self) is alice
    with pytest.raises(ForbiddenError) as exc:
        authorize(alice, Feature.update_user_self, Feature.update_user_features_self)
    assert exc.value.feature == "update:user:features:self"


def test_authorize_any_names_the_broadest_feature() -> None:
    alice = Identity.of(id="u1", username="alice", features=[Feature.read_payment_self])
    assert authorize_any(alice, Feature.read_payment_self, Feature.read_payment_other) is alice

    nobody = Identity.of(id="u2", username="bob", features=())
    with pytest.raises(ForbiddenError) as exc:
        authorize_any(nobody, Feature.read_payment_self, Feature.read_payment_other)
    assert exc.value.feature == "read:payment:other"

    with pytest.raises(UnauthorizedError):
        authorize_any(Identity.anonymous(), Feature.read_payment_self)


def test_scoped_read_checks_the_row_it_is_given() -> None:
    alice = Identity.of(id="u1", username="alice", features=[Feature.read_payment_self])
    payment = {"id": "p1", "user_id": "u2"}

    # A scope picked from a stale owner id still cannot open another user's row.
    with pytest.raises(ForbiddenError) as exc:
        authorize_scoped(alice, "read", "payment", owner_id="u1", resource=payment)
    assert exc.value.feature == "read:payment:self"

    own = {**payment, "user_id": "u1"}
    assert authorize_scoped(alice, "read", "payment", owner_id="u1", resource=own) == (
        "read:payment:self"
    )
