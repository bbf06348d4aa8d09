"""
tests.test_api_sessions

Sign-in, sign-out, session reads and bearer-token identity resolution.
"""

from __future__ import annotations

import uuid
from datetime import timedelta

import httpx
import pytest

from studio_authz.auth.jwt import JwtConfig, issue_token
from studio_authz.settings import Settings


async def _sign_in(client: httpx.AsyncClient, email: str, password: str) -> dict:
    r = await client.post("/v1/sessions", json={"email": email, "password": password})
    assert r.status_code == 201, r.text
    return r.json()


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_sign_in_issues_a_working_token(
    client: httpx.AsyncClient, create_user, password: str
) -> None:
    await create_user("alice")

    body = await _sign_in(client, "Alice@Example.com", password)
    assert set(body) == {"session_id", "token", "token_type", "expires_at"}
    assert body["token_type"] == "bearer"

    r = await client.get("/v1/user", headers=_bearer(body["token"]))
    assert r.status_code == 200
    assert r.json()["username"] == "alice"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("email", "password"),
    [("alice@example.com", "wrong-password"), ("nobody@example.com", "correct-horse-battery")],
)
async def test_bad_credentials_share_one_message(
    client: httpx.AsyncClient, create_user, email: str, password: str
) -> None:
    await create_user("alice")

    r = await client.post("/v1/sessions", json={"email": email, "password": password})
    assert r.status_code == 401
    assert r.headers["www-authenticate"] == "Bearer"
    assert r.json()["detail"] == "Email or password does not match."


@pytest.mark.asyncio
async def test_malformed_body_is_a_validation_error(client: httpx.AsyncClient) -> None:
    r = await client.post("/v1/sessions", json={"email": "alice@example.com"})
    assert r.status_code == 400
    assert r.json()["name"] == "ValidationError"


@pytest.mark.asyncio
async def test_sign_out_ends_the_session(
    client: httpx.AsyncClient, create_user, password: str
) -> None:
    alice = await create_user("alice")
    body = await _sign_in(client, "alice@example.com", password)

    r = await client.delete("/v1/sessions", headers=_bearer(body["token"]))
    assert r.status_code == 200
    ended = r.json()
    assert ended["session_id"] == body["session_id"]
    assert ended["user_id"] == str(alice.id)
    assert "token" not in ended

    # The token is still signed and unexpired, but its session is gone.
    r = await client.get("/v1/user", headers=_bearer(body["token"]))
    assert r.status_code == 401
    assert r.json()["name"] == "UnauthorizedError"


@pytest.mark.asyncio
async def test_sign_in_ends_previous_sessions(
    client: httpx.AsyncClient, create_user, password: str
) -> None:
    await create_user("alice")
    first = await _sign_in(client, "alice@example.com", password)
    second = await _sign_in(client, "alice@example.com", password)

    assert (await client.get("/v1/user", headers=_bearer(first["token"]))).status_code == 401
    assert (await client.get("/v1/user", headers=_bearer(second["token"]))).status_code == 200


@pytest.mark.asyncio
async def test_sign_out_needs_a_session(client: httpx.AsyncClient) -> None:
    r = await client.delete("/v1/sessions")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_sign_out_needs_read_session_self(
    client: httpx.AsyncClient, create_user, auth_headers
) -> None:
    mute = await create_user("mute", features=["read:user:self"])

    r = await client.delete("/v1/sessions", headers=await auth_headers(mute))
    assert r.status_code == 403
    assert r.json()["feature"] == "read:session:self"


@pytest.mark.asyncio
async def test_read_own_session_and_others(
    client: httpx.AsyncClient, create_user, create_admin, password: str, auth_headers
) -> None:
    await create_user("alice")
    await create_user("bob")
    admin = await create_admin()
    alice_session = await _sign_in(client, "alice@example.com", password)
    bob_session = await _sign_in(client, "bob@example.com", password)
    alice = _bearer(alice_session["token"])

    r = await client.get(f"/v1/sessions/{alice_session['session_id']}", headers=alice)
    assert r.status_code == 200
    assert set(r.json()) == {"session_id", "user_id", "expires_at", "created_at", "updated_at"}

    r = await client.get(f"/v1/sessions/{bob_session['session_id']}", headers=alice)
    assert r.status_code == 403
    assert r.json()["feature"] == "read:session:other"

    r = await client.get(
        f"/v1/sessions/{bob_session['session_id']}", headers=await auth_headers(admin)
    )
    assert r.status_code == 200
    assert set(r.json()) == {"session_id", "expires_at", "created_at", "updated_at"}

    r = await client.get(f"/v1/sessions/{uuid.uuid4()}", headers=alice)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_expired_token_is_rejected(
    client: httpx.AsyncClient, create_user, settings: Settings
) -> None:
    alice = await create_user("alice")
    issued = issue_token(
        cfg=JwtConfig.from_settings(settings),
        subject=str(alice.id),
        session_id=str(uuid.uuid4()),
        ttl=timedelta(seconds=-30),
    )

    r = await client.get("/v1/user", headers=_bearer(issued.token))
    assert r.status_code == 401
    assert r.json()["name"] == "UnauthorizedError"


@pytest.mark.asyncio
@pytest.mark.parametrize("subject", [str(uuid.uuid4()), "not-a-uuid"])
async def test_token_for_unknown_user_is_rejected(
    client: httpx.AsyncClient, settings: Settings, subject: str
) -> None:
    issued = issue_token(
        cfg=JwtConfig.from_settings(settings), subject=subject, session_id=str(uuid.uuid4())
    )

    r = await client.get("/v1/user", headers=_bearer(issued.token))
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_token_naming_someone_elses_session_is_rejected(
    client: httpx.AsyncClient, create_user, settings: Settings, password: str
) -> None:
    alice = await create_user("alice")
    await create_user("bob")
    bob_session = await _sign_in(client, "bob@example.com", password)

    forged = issue_token(
        cfg=JwtConfig.from_settings(settings),
        subject=str(alice.id),
        session_id=bob_session["session_id"],
    )

    r = await client.get("/v1/user", headers=_bearer(forged.token))
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_token_signed_with_another_secret_is_rejected(
    client: httpx.AsyncClient, create_user, settings: Settings, password: str
) -> None:
    alice = await create_user("alice")
    own = await _sign_in(client, "alice@example.com", password)
    forged = issue_token(
        cfg=JwtConfig.from_settings(settings.model_copy(update={"jwt_secret": "other"})),
        subject=str(alice.id),
        session_id=own["session_id"],
    )

    r = await client.get("/v1/user", headers=_bearer(forged.token))
    assert r.status_code == 401
