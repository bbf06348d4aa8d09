"""
studio_authz.db.repositories.users

Repository for `User` entities.

Responsibilities:
- Create, fetch and update users.
- Persist feature grants (callers validate names against the catalog first).
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from studio_authz.db.models import User


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        username: str,
        email: str,
        password_hash: str,
        features: Iterable[str],
    ) -> User:
        user = User(
            username=username,
            email=email.lower(),
            password_hash=password_hash,
            features=sorted(set(features)),
        )
        self._session.add(user)
        await self._session.flush()
        return user

    async def get(self, user_id: uuid.UUID) -> User | None:
        return await self._session.get(User, user_id)

    async def get_by_username(self, username: str) -> User | None:
        # Usernames are unique case-insensitively.
        stmt = select(User).where(func.lower(User.username) == username.lower())
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email.lower())
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def exists(self, *, username: str | None = None, email: str | None = None) -> bool:
        clauses = []
        if username is not None:
            clauses.append(func.lower(User.username) == username.lower())
        if email is not None:
            clauses.append(User.email == email.lower())
        if not clauses:
            return False
        stmt = select(User.id).where(or_(*clauses)).limit(1)
        return (await self._session.execute(stmt)).first() is not None

    async def list_all(self, *, limit: int = 100, offset: int = 0) -> list[User]:
        stmt = select(User).order_by(User.username).limit(limit).offset(offset)
        return list((await self._session.execute(stmt)).scalars().all())

    async def update(
        self,
        user: User,
        *,
        username: str | None = None,
        email: str | None = None,
        password_hash: str | None = None,
    ) -> User:
        if username is not None:
            user.username = username
        if email is not None:
            user.email = email.lower()
        if password_hash is not None:
            user.password_hash = password_hash
        user.updated_at = datetime.utcnow()
        await self._session.flush()
        return user

    async def set_features(self, user: User, features: Iterable[str]) -> User:
        # Assign a new list so the JSON column change is detected.
        user.features = sorted(set(features))
        user.updated_at = datetime.utcnow()
        await self._session.flush()
        return user


# --- Module Notes -----------------------------------------------------------
# Password hashes never leave this layer except for verification in the
# sessions router.
