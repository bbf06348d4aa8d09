"""
studio_authz.authz.guard

Route guard: turns PDP decisions into request-blocking failures.

Responsibilities:
- `require_features(...)`: declarative per-route FastAPI dependency.
- `authorize(...)`: the same check for handlers whose feature depends on
  runtime data (ownership, an action in the body).
- `authorize_scoped(...)`: self/other resolution followed by `authorize`.
"""

from __future__ import annotations

from typing import Any

from fastapi import Depends

from studio_authz.auth.deps import get_identity
from studio_authz.authz.errors import ForbiddenError, UnauthorizedError
from studio_authz.authz.features import CATALOG
from studio_authz.authz.models import Identity
from studio_authz.authz.pdp import missing_features
from studio_authz.authz.scope import feature_for
from studio_authz.observability.logging import get_logger

log = get_logger(__name__)


def authorize(identity: Identity, *features: str, resource: Any = None) -> Identity:
    """
    Require every feature (conjunctive); raise on the first one missing.

    Anonymous callers get Unauthorized, known callers Forbidden.
    """

    missing = missing_features(identity, *features, resource=resource)
    if not missing:
        return identity

    feature = missing[0]
    log.info(
        "authz_denied",
        feature=feature,
        user_id=identity.id,
        anonymous=identity.is_anonymous,
    )
    if identity.is_anonymous:
        raise UnauthorizedError()
    raise ForbiddenError(feature=feature)


def authorize_any(identity: Identity, *features: str, resource: Any = None) -> Identity:
    """
    Pre-check for routes that pick their exact feature later.

    Passes when at least one feature holds; otherwise denies naming the last
    (broadest) one.
    """

    missing = missing_features(identity, *features, resource=resource)
    if len(missing) < len(features):
        return identity
    return authorize(identity, features[-1], resource=resource)


def authorize_scoped(
    identity: Identity,
    verb: str,
    resource_name: str,
    *,
    owner_id: Any = None,
    resource: Any = None,
) -> str:
    """
    Pick `<verb>:<resource_name>:self|other` for this caller and require it.

    Returns the feature so the handler projects with the one that authorized.
    Callers check that the resource exists before calling this.
    """

    feature = feature_for(identity, verb, resource_name, owner_id)
    authorize(identity, feature, resource=resource)
    return feature


def require_features(*features: str):
    # Validated at declaration time: a typo fails on import, not on a request.
    required = tuple(CATALOG.require(f) for f in features)
    if not required:
        raise ValueError("require_features() needs at least one feature")

    async def _dep(identity: Identity = Depends(get_identity)) -> Identity:
        return authorize(identity, *required)

    return _dep


# --- Module Notes -----------------------------------------------------------
# This is the only module that converts a `False` from the PDP into an error.
