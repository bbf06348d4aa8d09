"""
studio_authz.api.routers.sessions

Sign-in, sign-out and session reads.

Responsibilities:
- Verify email/password, persist a session and issue a bearer token for it.
- End the caller's current session (`read:session:self`).
- Read one session, scoped to `read:session:self` or `read:session:other`.
"""

from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from studio_authz.api.deps import db_session, settings_dep
from studio_authz.auth.deps import get_auth_session, get_identity
from studio_authz.auth.jwt import JwtConfig, issue_token
from studio_authz.auth.passwords import verify_password
from studio_authz.authz.errors import NotFoundError, UnauthorizedError
from studio_authz.authz.features import Feature
from studio_authz.authz.guard import authorize, authorize_any, authorize_scoped, require_features
from studio_authz.authz.models import Identity
from studio_authz.authz.schemas import filter_input, filter_output
from studio_authz.db.models import UserSession
from studio_authz.db.repositories.sessions import UserSessionRepo
from studio_authz.db.repositories.users import UserRepo
from studio_authz.observability.logging import get_logger
from studio_authz.settings import Settings

log = get_logger(__name__)

router = APIRouter(prefix="/v1/sessions", tags=["sessions"])


class SessionCreateRequest(BaseModel):
    email: str = Field(min_length=3, max_length=256)
    password: str = Field(min_length=1, max_length=256)


@router.post("", status_code=201)
async def create_session(
    body: SessionCreateRequest,
    identity: Identity = Depends(require_features(Feature.create_session)),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> dict[str, Any]:
    data = filter_input(identity, Feature.create_session, body.model_dump())

    user = await UserRepo(session).get_by_email(data["email"])
    # Same message for unknown email and wrong password.
    if user is None or not verify_password(data["password"], user.password_hash):
        log.info("session_rejected")
        raise UnauthorizedError("Email or password does not match.")

    # One active session per user: signing in ends the previous ones.
    repo = UserSessionRepo(session)
    ended = await repo.expire_all_for_user(user.id)
    ttl = timedelta(minutes=settings.session_ttl_minutes)
    row = await repo.create(user_id=user.id, ttl=ttl)
    await session.commit()

    issued = issue_token(
        cfg=JwtConfig.from_settings(settings),
        subject=str(user.id),
        session_id=str(row.id),
        ttl=ttl,
    )
    log.info(
        "session_created",
        session_user_id=str(user.id),
        session_id=str(row.id),
        sessions_ended=ended,
    )
    return filter_output(
        identity,
        Feature.create_session,
        {
            "session_id": str(row.id),
            "token": issued.token,
            "token_type": "bearer",
            "expires_at": issued.expires_at,
        },
    )


@router.delete("")
async def delete_session(
    identity: Identity = Depends(get_identity),
    auth: UserSession | None = Depends(get_auth_session),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    if auth is None:
        raise UnauthorizedError()
    authorize(identity, Feature.read_session_self, resource=auth)

    row = await UserSessionRepo(session).expire(auth)
    await session.commit()
    log.info("session_ended", session_id=str(row.id))
    return filter_output(identity, Feature.read_session_self, row.to_dict())


@router.get("/{session_id}")
async def get_session(
    session_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    authorize_any(identity, Feature.read_session_self, Feature.read_session_other)
    row = await UserSessionRepo(session).get(session_id)
    if row is None:
        raise NotFoundError("Session not found.")
    feature = authorize_scoped(
        identity, "read", "session", owner_id=row.user_id, resource=row
    )
    return filter_output(identity, feature, row.to_dict())


# --- Module Notes -----------------------------------------------------------
# Tokens are never stored; a session row only records who signed in and until
# when. Ending a session backdates `expires_at`, which `auth.deps` rejects.
