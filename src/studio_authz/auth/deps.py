"""
studio_authz.auth.deps

FastAPI dependencies that resolve the caller's session and identity.

Responsibilities:
- Convert an optional bearer token into the active `UserSession` it names.
- Convert that session into an `Identity`.
- Represent callers without a token as the anonymous identity, never None.
- Drop stored features that are no longer in the catalog.
"""

from __future__ import annotations

import uuid

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from studio_authz.api.deps import db_session, settings_dep
from studio_authz.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from studio_authz.authz.errors import UnauthorizedError
from studio_authz.authz.features import CATALOG
from studio_authz.authz.models import Identity
from studio_authz.db.models import User, UserSession
from studio_authz.db.repositories.sessions import UserSessionRepo
from studio_authz.db.repositories.users import UserRepo
from studio_authz.observability.logging import bind_identity, get_logger
from studio_authz.settings import Settings

log = get_logger(__name__)

_bearer = HTTPBearer(auto_error=False)


def identity_from_user(user: User) -> Identity:
    stored = user.features or []
    unknown = CATALOG.unknown(stored)
    if unknown:
        log.warning("unknown_features_ignored", user_id=str(user.id), features=unknown)
    return Identity.of(
        id=user.id,
        username=user.username,
        features=(f for f in stored if f in CATALOG),
    )


def _claim_uuid(payload: dict, claim: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(payload.get(claim, "")))
    except ValueError as e:
        raise UnauthorizedError(f"Invalid session token {claim}.") from e


async def get_auth_session(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(settings_dep),
    session: AsyncSession = Depends(db_session),
) -> UserSession | None:
    """
    The active session behind the bearer token, or None without a token.

    A valid signature is not enough: the session row must exist, belong to
    the token's subject and not have been ended.
    """

    if creds is None or not creds.credentials:
        return None

    try:
        payload = decode_and_validate(cfg=JwtConfig.from_settings(settings), token=creds.credentials)
    except JwtValidationError as e:
        raise UnauthorizedError(f"Invalid session token: {e}") from e

    user_id = _claim_uuid(payload, "sub")
    session_id = _claim_uuid(payload, "sid")

    row = await UserSessionRepo(session).get_active(session_id)
    if row is None or row.user_id != user_id:
        log.info("session_inactive", session_id=str(session_id))
        raise UnauthorizedError("The session has ended. Sign in again.")
    return row


async def get_identity(
    auth: UserSession | None = Depends(get_auth_session),
    session: AsyncSession = Depends(db_session),
) -> Identity:
    if auth is None:
        identity = Identity.anonymous()
        bind_identity(user_id=None, username=identity.username)
        return identity

    user = await UserRepo(session).get(auth.user_id)
    if user is None:
        raise UnauthorizedError("The user for this session no longer exists.")

    identity = identity_from_user(user)
    bind_identity(user_id=identity.id, username=identity.username)
    return identity


# --- Module Notes -----------------------------------------------------------
# The identity is built once per request and never mutated afterwards; grants
# made during the request apply from the next request on. FastAPI caches
# `get_auth_session` per request, so routes may depend on both.
