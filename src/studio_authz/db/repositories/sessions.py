"""
studio_authz.db.repositories.sessions

Repository for `UserSession` entities.

Responsibilities:
- Open a session for a signed-in user.
- Look up sessions that are still active.
- End one session, or every active session of a user.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from studio_authz.db.models import UserSession

# Ended sessions are backdated rather than deleted, so they stay readable.
_ENDED = timedelta(days=1)


class UserSessionRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, user_id: uuid.UUID, ttl: timedelta) -> UserSession:
        now = datetime.utcnow()
        row = UserSession(user_id=user_id, expires_at=now + ttl, created_at=now, updated_at=now)
        self._session.add(row)
        await self._session.flush()
        return row

    async def get(self, session_id: uuid.UUID) -> UserSession | None:
        return await self._session.get(UserSession, session_id)

    async def get_active(self, session_id: uuid.UUID) -> UserSession | None:
        row = await self.get(session_id)
        if row is None or not row.is_active():
            return None
        return row

    async def expire(self, row: UserSession) -> UserSession:
        now = datetime.utcnow()
        row.expires_at = row.created_at - _ENDED
        row.updated_at = now
        await self._session.flush()
        return row

    async def expire_all_for_user(self, user_id: uuid.UUID) -> int:
        now = datetime.utcnow()
        result = await self._session.execute(
            update(UserSession)
            .where(UserSession.user_id == user_id, UserSession.expires_at > now)
            .values(expires_at=now - _ENDED, updated_at=now)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0


# --- Module Notes -----------------------------------------------------------
# Whether the caller may read or end a session is decided by the route
# (`read:session:self` / `read:session:other`), not here.
