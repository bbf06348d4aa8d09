"""
studio_authz.authz

Authorization engine.

Responsibilities:
- Feature catalog (`features`), identity types (`models`).
- Policy decision point (`pdp`) and self/other scope resolution (`scope`).
- Field projection (`projection`, platform table in `schemas`).
- FastAPI route guard (`guard`).
"""

from studio_authz.authz.features import (
    ANONYMOUS_FEATURES,
    CATALOG,
    DEFAULT_USER_FEATURES,
    Feature,
    FeatureCatalog,
)
from studio_authz.authz.models import Identity, owner_id_of
from studio_authz.authz.pdp import can, can_all
from studio_authz.authz.scope import Scope, resolve_scope, scoped_feature

__all__ = [
    "ANONYMOUS_FEATURES",
    "CATALOG",
    "DEFAULT_USER_FEATURES",
    "Feature",
    "FeatureCatalog",
    "Identity",
    "Scope",
    "can",
    "can_all",
    "owner_id_of",
    "resolve_scope",
    "scoped_feature",
]


# --- Module Notes -----------------------------------------------------------
# `guard` and `schemas` are not re-exported: `guard` pulls in FastAPI and the
# DB layer, which the pure engine does not need.
