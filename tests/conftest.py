"""
tests.conftest

Shared fixtures: an app bound to a throwaway SQLite file, an ASGI client, and
helpers to seed users and mint session tokens.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from datetime import timedelta

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from studio_authz.api.app import create_app
from studio_authz.auth.jwt import JwtConfig, issue_token
from studio_authz.auth.passwords import hash_password
from studio_authz.authz.features import CATALOG, DEFAULT_USER_FEATURES, Feature
from studio_authz.db.models import User
from studio_authz.db.repositories.sessions import UserSessionRepo
from studio_authz.db.repositories.users import UserRepo
from studio_authz.db.session import session_scope
from studio_authz.settings import Settings

PASSWORD = "correct-horse-battery"

# Everything except the self-protection flag, so admins stay editable in tests.
ADMIN_FEATURES = frozenset(CATALOG) - {Feature.block_other_update_self}

CreateUser = Callable[..., Awaitable[User]]


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'studio-test.db'}",
        log_json=False,
        jwt_secret="test-secret",
    )


@pytest_asyncio.fixture
async def app(settings: Settings) -> AsyncIterator[FastAPI]:
    app = create_app(settings=settings)
    # httpx ASGITransport does not run the lifespan; drive it explicitly.
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def password() -> str:
    return PASSWORD


@pytest.fixture
def create_user(app: FastAPI) -> CreateUser:
    async def _create(
        username: str,
        *,
        features: Iterable[str] = DEFAULT_USER_FEATURES,
        email: str | None = None,
        password: str = PASSWORD,
    ) -> User:
        async with session_scope(app.state.sessionmaker) as session:
            return await UserRepo(session).create(
                username=username,
                email=email or f"{username}@example.com",
                password_hash=hash_password(password),
                features=features,
            )

    return _create


@pytest.fixture
def create_admin(create_user: CreateUser) -> Callable[..., Awaitable[User]]:
    async def _create(username: str = "admin") -> User:
        return await create_user(username, features=ADMIN_FEATURES)

    return _create


@pytest.fixture
def auth_headers(app: FastAPI, settings: Settings) -> Callable[[User], Awaitable[dict[str, str]]]:
    cfg = JwtConfig.from_settings(settings)
    ttl = timedelta(minutes=settings.session_ttl_minutes)

    async def _headers(user: User) -> dict[str, str]:
        async with session_scope(app.state.sessionmaker) as session:
            row = await UserSessionRepo(session).create(user_id=user.id, ttl=ttl)
        issued = issue_token(cfg=cfg, subject=str(user.id), session_id=str(row.id), ttl=ttl)
        return {"Authorization": f"Bearer {issued.token}"}

    return _headers
