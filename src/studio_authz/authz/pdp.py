"""
studio_authz.authz.pdp

Policy decision point.

Responsibilities:
- Answer "may this identity use this feature (on this resource)?" as a bool.
- Reject references to features outside the catalog as programming errors.
"""

from __future__ import annotations

from typing import Any

from studio_authz.authz.features import CATALOG, FeatureCatalog
from studio_authz.authz.models import Identity, is_owner

SELF_SUFFIX = ":self"


def can(
    identity: Identity,
    feature: str,
    resource: Any = None,
    *,
    catalog: FeatureCatalog = CATALOG,
) -> bool:
    """
    Deny-by-default membership test.

    A `:self` feature checked against a resource additionally requires the
    identity to own it. The decision never picks between `:self` and `:other`
    on the caller's behalf; see `authz.scope` for that.
    """

    catalog.require(feature)
    if feature not in identity.features:
        return False
    if resource is not None and feature.endswith(SELF_SUFFIX):
        return is_owner(identity, resource)
    return True


def can_all(
    identity: Identity,
    *features: str,
    resource: Any = None,
    catalog: FeatureCatalog = CATALOG,
) -> bool:
    # Validate every name before deciding so a typo never hides behind a deny.
    for feature in features:
        catalog.require(feature)
    return all(can(identity, f, resource, catalog=catalog) for f in features)


def missing_features(
    identity: Identity,
    *features: str,
    resource: Any = None,
    catalog: FeatureCatalog = CATALOG,
) -> list[str]:
    for feature in features:
        catalog.require(feature)
    return [f for f in features if not can(identity, f, resource, catalog=catalog)]


# --- Module Notes -----------------------------------------------------------
# Everything here is pure: no I/O, no logging, no mutation of `identity`.
