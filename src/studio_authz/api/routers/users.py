"""
studio_authz.api.routers.users

User registration, profile reads and profile/feature updates.

Responsibilities:
- Resolve self vs other for every per-user route and project accordingly.
- Validate feature assignments against the catalog before writing them.
- Protect users holding `block:other:update:self` from edits by others.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from studio_authz.api.deps import db_session
from studio_authz.auth.deps import get_identity, identity_from_user
from studio_authz.auth.passwords import hash_password
from studio_authz.authz.errors import NonEditableUserError, NotFoundError, ValidationError
from studio_authz.authz.features import CATALOG, DEFAULT_USER_FEATURES, Feature
from studio_authz.authz.guard import authorize, authorize_any, authorize_scoped, require_features
from studio_authz.authz.models import Identity
from studio_authz.authz.pdp import can
from studio_authz.authz.schemas import filter_input, filter_output, filter_output_many
from studio_authz.authz.scope import Scope, resolve_scope
from studio_authz.db.models import User
from studio_authz.db.repositories.users import UserRepo
from studio_authz.observability.logging import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["users"])

_USERNAME_PATTERN = r"^[A-Za-z0-9_.-]+$"
_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"


class UserCreateRequest(BaseModel):
    username: str = Field(min_length=3, max_length=64, pattern=_USERNAME_PATTERN)
    email: str = Field(min_length=3, max_length=256, pattern=_EMAIL_PATTERN)
    password: str = Field(min_length=8, max_length=256)


class UserPatchRequest(BaseModel):
    username: str | None = Field(
        default=None, min_length=3, max_length=64, pattern=_USERNAME_PATTERN
    )
    email: str | None = Field(default=None, min_length=3, max_length=256, pattern=_EMAIL_PATTERN)
    password: str | None = Field(default=None, min_length=8, max_length=256)
    features: list[str] | None = None


def mask_email(email: str) -> str:
    local, _, domain = email.partition("@")
    if len(local) > 2:
        masked = local[0] + "*" * (len(local) - 2) + local[-1]
    else:
        masked = local[:1] + "*"
    return f"{masked}@{domain}"


def _masked(output: dict[str, Any]) -> dict[str, Any]:
    if isinstance(output.get("email"), str):
        return {**output, "email": mask_email(output["email"])}
    return output


async def _ensure_unique(repo: UserRepo, target: User | None, data: dict[str, Any]) -> None:
    for key in ("username", "email"):
        value = data.get(key)
        if value is None:
            continue
        # Uniqueness is case-insensitive, so a change of case alone is no conflict.
        if target is not None and getattr(target, key).lower() == value.lower():
            continue
        if await repo.exists(**{key: value}):
            raise ValidationError(f'The {key} "{value}" is already in use.')


def _validated_features(features: list[str]) -> list[str]:
    unknown = CATALOG.unknown(features)
    if unknown:
        log.warning("feature_assignment_rejected", unknown=unknown)
        raise ValidationError(
            f"Unknown feature(s): {', '.join(unknown)}.",
            action="Use only features listed in the feature catalog.",
        )
    return sorted(set(features))


@router.post("/v1/users", status_code=201)
async def create_user(
    body: UserCreateRequest,
    identity: Identity = Depends(require_features(Feature.create_user)),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    data = filter_input(identity, Feature.create_user, body.model_dump())
    repo = UserRepo(session)
    await _ensure_unique(repo, None, data)

    user = await repo.create(
        username=data["username"],
        email=data["email"],
        password_hash=hash_password(data["password"]),
        features=DEFAULT_USER_FEATURES,
    )
    await session.commit()
    log.info("user_created", created_user_id=str(user.id))
    return filter_output(identity, Feature.create_user, user.to_dict())


@router.get("/v1/user")
async def get_current_user(
    identity: Identity = Depends(require_features(Feature.read_user_self)),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    user = await UserRepo(session).get(uuid.UUID(str(identity.id)))
    if user is None:
        raise NotFoundError("User not found.")
    return _masked(filter_output(identity, Feature.read_user_self, user.to_dict()))


@router.get("/v1/users")
async def list_users(
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    identity: Identity = Depends(require_features(Feature.read_user_other)),
    session: AsyncSession = Depends(db_session),
) -> list[dict[str, Any]]:
    users = await UserRepo(session).list_all(limit=limit, offset=offset)
    return filter_output_many(identity, Feature.read_user_other, (u.to_dict() for u in users))


@router.get("/v1/users/{username}")
async def get_user(
    username: str,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    authorize_any(identity, Feature.read_user_self, Feature.read_user_other)

    user = await UserRepo(session).get_by_username(username)
    if user is None:
        raise NotFoundError(f'User "{username}" not found.')

    feature = authorize_scoped(identity, "read", "user", owner_id=user.id, resource=user)
    output = filter_output(identity, feature, user.to_dict())
    return _masked(output) if feature == Feature.read_user_self else output


@router.patch("/v1/users/{username}")
async def update_user(
    username: str,
    body: UserPatchRequest,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    authorize_any(
        identity,
        Feature.update_user_self,
        Feature.update_user_password_self,
        Feature.update_user_features_self,
        Feature.update_user_features_other,
        Feature.update_user_other,
    )

    raw = body.model_dump(exclude_unset=True, exclude_none=True)
    if not raw:
        raise ValidationError("No fields to update were sent.")

    repo = UserRepo(session)
    target = await repo.get_by_username(username)
    if target is None:
        raise NotFoundError(f'User "{username}" not found.')

    is_self = resolve_scope(identity, target.id) is Scope.self_
    profile_keys = {"username", "email", "password"} if not is_self else {"username", "email"}
    wants_features = "features" in raw
    wants_profile = any(k in raw for k in profile_keys)
    wants_password = is_self and "password" in raw

    # Every requested part must be permitted; nothing is written otherwise.
    if is_self:
        required = [
            f
            for f, wanted in (
                (Feature.update_user_features_self, wants_features),
                (Feature.update_user_self, wants_profile),
                (Feature.update_user_password_self, wants_password),
            )
            if wanted
        ]
    else:
        required = [
            f
            for f, wanted in (
                (Feature.update_user_features_other, wants_features),
                (Feature.update_user_other, wants_profile),
            )
            if wanted
        ]
    authorize(identity, *required, resource=target)

    if not is_self and can(identity_from_user(target), Feature.block_other_update_self):
        raise NonEditableUserError()

    output: dict[str, Any] = {}

    if wants_features:
        feature = required[0]
        data = filter_input(identity, feature, raw, target=target)
        await repo.set_features(target, _validated_features(data["features"]))
        output.update(filter_output(identity, feature, target.to_dict()))
        log.info("user_features_updated", target_user_id=str(target.id), features=target.features)

    if wants_profile:
        feature = Feature.update_user_self if is_self else Feature.update_user_other
        data = filter_input(identity, feature, raw, target=target)
        if not data:
            raise ValidationError("None of the sent fields can be updated with your permissions.")
        await _ensure_unique(repo, target, data)
        password = data.pop("password", None)
        await repo.update(
            target,
            username=data.get("username"),
            email=data.get("email"),
            password_hash=hash_password(password) if password is not None else None,
        )
        output.update(filter_output(identity, feature, target.to_dict()))

    if wants_password:
        data = filter_input(identity, Feature.update_user_password_self, raw, target=target)
        await repo.update(target, password_hash=hash_password(data["password"]))
        output.update(filter_output(identity, Feature.update_user_password_self, target.to_dict()))

    await session.commit()
    return _masked(output) if is_self else output


# --- Module Notes -----------------------------------------------------------
# Which update feature applies depends on the target and on the body, so these
# routes call `authorize` themselves instead of declaring `require_features`.
