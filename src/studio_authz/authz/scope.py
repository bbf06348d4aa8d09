"""
studio_authz.authz.scope

Self/other scope resolution.

Responsibilities:
- Decide whether a request targets the caller's own data or someone else's.
- Build the matching scoped feature name and check it against the catalog.
"""

from __future__ import annotations

import enum
from typing import Any

from studio_authz.authz.features import CATALOG, FeatureCatalog
from studio_authz.authz.models import Identity


class Scope(enum.StrEnum):
    self_ = "self"
    other = "other"


def resolve_scope(identity: Identity, owner_id: Any) -> Scope:
    """
    SELF only when a target is given and it is the caller.

    No target means a bulk listing, which only the broad `:other` variant may
    authorize.
    """

    if owner_id is None or identity.is_anonymous:
        return Scope.other
    return Scope.self_ if str(owner_id) == identity.id else Scope.other


def scoped_feature(
    verb: str,
    resource: str,
    scope: Scope,
    *,
    catalog: FeatureCatalog = CATALOG,
) -> str:
    return catalog.require(f"{verb}:{resource}:{scope}")


def feature_for(
    identity: Identity,
    verb: str,
    resource: str,
    owner_id: Any = None,
    *,
    catalog: FeatureCatalog = CATALOG,
) -> str:
    return scoped_feature(verb, resource, resolve_scope(identity, owner_id), catalog=catalog)
