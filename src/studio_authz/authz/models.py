"""
studio_authz.authz.models

Types the authorization engine operates on.

Responsibilities:
- Define the per-request identity (`Identity`), authenticated or anonymous.
- Define the structural shape of an owned resource and how its owner is read.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from studio_authz.authz.features import ANONYMOUS_FEATURES

ANONYMOUS_USERNAME = "anonymous"


@dataclass(frozen=True, slots=True)
class Identity:
    """
    Caller identity with an immutable snapshot of granted features.
    """

    id: str | None
    username: str
    features: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def anonymous(cls) -> Identity:
        return cls(id=None, username=ANONYMOUS_USERNAME, features=ANONYMOUS_FEATURES)

    @classmethod
    def of(cls, *, id: Any, username: str, features: Iterable[str]) -> Identity:
        return cls(
            id=None if id is None else str(id),
            username=username,
            features=frozenset(str(f) for f in features),
        )

    @property
    def is_anonymous(self) -> bool:
        return self.id is None

    def has(self, feature: str) -> bool:
        return feature in self.features


@runtime_checkable
class OwnedResource(Protocol):
    @property
    def owner_id(self) -> Any: ...


def owner_id_of(resource: Any) -> str | None:
    """
    Return the owner id of `resource` as a string, or None when it has none.

    Lookup order: `owner_id` attribute, `owner_id`/`user_id` mapping keys,
    `user_id` attribute.
    """

    if isinstance(resource, OwnedResource):
        value = resource.owner_id
    elif isinstance(resource, Mapping):
        value = resource.get("owner_id")
        if value is None:
            value = resource.get("user_id")
    else:
        value = getattr(resource, "user_id", None)
    return None if value is None else str(value)


def owns(identity: Identity, owner_id: Any) -> bool:
    if identity.is_anonymous or owner_id is None:
        return False
    return str(owner_id) == identity.id


def is_owner(identity: Identity, resource: Any) -> bool:
    return owns(identity, owner_id_of(resource))


# --- Module Notes -----------------------------------------------------------
# Ids are compared as strings so UUID columns, JSON payloads and token
# subjects agree without each call site normalising them.
