"""
studio_authz.authz.features

The feature catalog: the closed set of permission strings the platform knows.

Responsibilities:
- Enumerate every feature, grouped by subsystem (`Feature`).
- Build the immutable `CATALOG` once at import and validate feature names
  against it (guards, assignments, stored identities).
- Define the named feature sets granted to anonymous and new users.
"""

from __future__ import annotations

import enum
import re
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from studio_authz.authz.errors import UnknownFeatureError

# verb:resource[:qualifier][:scope], or namespace:area:value ("nivel:fue:avancado")
_FEATURE_RE = re.compile(r"^[a-z_]+(?::[a-z_]+){1,3}$")


class Feature(enum.StrEnum):
    # Values are stored in users.features; they must never be renamed.

    # User
    create_user = "create:user"
    read_user_self = "read:user:self"
    read_user_other = "read:user:other"
    update_user_self = "update:user:self"
    update_user_other = "update:user:other"
    update_user_password_self = "update:user:password:self"
    update_user_features_self = "update:user:features:self"
    update_user_features_other = "update:user:features:other"
    block_other_update_self = "block:other:update:self"

    # Session
    create_session = "create:session"
    read_session_self = "read:session:self"
    read_session_other = "read:session:other"

    # Migration
    read_migration = "read:migration"
    create_migration = "create:migration"

    # Tables
    read_table = "read:table"
    update_table = "update:table"

    # Comments (scope comes before the resource here)
    create_comment = "create:comment"
    read_comment = "read:comment"
    update_comment_self = "update:self:comment"
    update_comment_other = "update:other:comment"
    delete_comment_self = "delete:self:comment"
    delete_comment_other = "delete:other:comment"
    like_comment = "like:comment"
    unlike_comment = "unlike:comment"

    # Plans and subscriptions
    create_payment_plan = "create:payment_plan"
    read_payment_plan = "read:payment_plan"
    update_payment_plan = "update:payment_plan"
    delete_payment_plan = "delete:payment_plan"
    create_subscription = "create:subscription"
    read_subscription_self = "read:subscription:self"
    read_subscription_other = "read:subscription:other"
    update_subscription = "update:subscription"
    delete_subscription = "delete:subscription"

    # Payments
    read_payment_self = "read:payment:self"
    read_payment_other = "read:payment:other"
    update_payment_indicate_paid = "update:payment:indicate_paid"
    update_payment_confirm_paid = "update:payment:confirm_paid"
    delete_payment_other = "delete:payment:other"

    # Presentations and stage maps
    create_presentation = "create:presentation"
    read_presentation = "read:presentation"
    read_presentation_self = "read:presentation:self"
    read_presentation_other = "read:presentation:other"
    read_presentation_admin = "read:presentation:admin"
    update_presentation = "update:presentation"
    update_presentation_self = "update:presentation:self"
    update_presentation_other = "update:presentation:other"
    delete_presentation = "delete:presentation"
    delete_presentation_self = "delete:presentation:self"
    delete_presentation_other = "delete:presentation:other"
    manage_presentation_viewers = "manage:presentation_viewers"
    manage_element_types = "manage:element_types"
    create_scene = "create:scene"
    update_scene = "update:scene"
    delete_scene = "delete:scene"
    create_scene_element = "create:scene_element"
    update_scene_element = "update:scene_element"
    delete_scene_element = "delete:scene_element"
    update_element = "update:element"
    delete_element = "delete:element"
    create_step = "create:step"
    update_step = "update:step"
    delete_step = "delete:step"

    # Video lesson levels
    nivel_taiko_admin = "nivel:taiko:admin"
    nivel_taiko_iniciante = "nivel:taiko:iniciante"
    nivel_taiko_intermediario = "nivel:taiko:intermediario"
    nivel_taiko_avancado = "nivel:taiko:avancado"
    nivel_taiko_default = "nivel:taiko:default"
    nivel_taiko_blocked = "nivel:taiko:blocked"
    nivel_taiko_nao_mostrar = "nivel:taiko:nao:mostrar"
    nivel_fue_admin = "nivel:fue:admin"
    nivel_fue_iniciante = "nivel:fue:iniciante"
    nivel_fue_intermediario = "nivel:fue:intermediario"
    nivel_fue_avancado = "nivel:fue:avancado"
    nivel_fue_default = "nivel:fue:default"
    nivel_fue_blocked = "nivel:fue:blocked"
    nivel_fue_nao_mostrar = "nivel:fue:nao:mostrar"

    # Shop
    shop_consumer_view = "shop:consumer:view"
    shop_products_manage = "shop:products:manage"
    shop_products_read_all = "shop:products:read_all"
    shop_orders_manage = "shop:orders:manage"
    shop_orders_read_all = "shop:orders:read_all"
    shop_coupons_manage = "shop:coupons:manage"


# Subsystem grouping, used by the CLI and by tests.
_GROUPS: dict[str, tuple[str, ...]] = {
    "user": ("user",),
    "session": ("session",),
    "migration": ("migration",),
    "tables": ("table",),
    "comments": ("comment",),
    "subscriptions": ("payment_plan", "subscription"),
    "payments": ("payment",),
    "presentations": (
        "presentation",
        "presentation_viewers",
        "element_types",
        "scene",
        "scene_element",
        "element",
        "step",
    ),
}

# Namespaced features group on their first segment.
_NAMESPACES: dict[str, str] = {"block": "user", "nivel": "levels", "shop": "shop"}


def _group_of(feature: str) -> str:
    parts = feature.split(":")
    if parts[0] in _NAMESPACES:
        return _NAMESPACES[parts[0]]
    # "update:self:comment" puts the scope before the resource.
    key = parts[2] if parts[1] in ("self", "other") else parts[1]
    for group, resources in _GROUPS.items():
        if key in resources:
            return group
    raise ValueError(f"feature {feature!r} does not belong to any group")


class FeatureCatalog:
    """
    Immutable set of valid feature strings.

    Construction validates the grammar of every entry; there is no way to add
    a feature after construction.
    """

    __slots__ = ("_features", "_groups")

    def __init__(self, features: Iterable[str]) -> None:
        names = frozenset(str(f) for f in features)
        malformed = sorted(n for n in names if not _FEATURE_RE.match(n))
        if malformed:
            raise ValueError(f"malformed feature name(s): {malformed}")

        groups: dict[str, set[str]] = {}
        for name in names:
            groups.setdefault(_group_of(name), set()).add(name)

        self._features = names
        self._groups: Mapping[str, frozenset[str]] = MappingProxyType(
            {g: frozenset(v) for g, v in groups.items()}
        )

    def __contains__(self, feature: object) -> bool:
        return feature in self._features

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._features))

    def __len__(self) -> int:
        return len(self._features)

    def contains(self, feature: str) -> bool:
        return feature in self._features

    def require(self, feature: str) -> str:
        if feature not in self._features:
            raise UnknownFeatureError([str(feature)])
        return str(feature)

    def unknown(self, features: Iterable[str]) -> list[str]:
        return sorted({str(f) for f in features if f not in self._features})

    def validate(self, features: Iterable[str]) -> frozenset[str]:
        """
        All-or-nothing check used before any assignment is written.
        """

        requested = frozenset(str(f) for f in features)
        missing = self.unknown(requested)
        if missing:
            raise UnknownFeatureError(missing)
        return requested

    @property
    def groups(self) -> Mapping[str, frozenset[str]]:
        return self._groups

    def by_group(self, group: str) -> frozenset[str]:
        return self._groups.get(group, frozenset())


CATALOG = FeatureCatalog(Feature)

ANONYMOUS_FEATURES: frozenset[str] = CATALOG.validate(
    [
        Feature.create_session,
        Feature.create_user,
    ]
)

DEFAULT_USER_FEATURES: frozenset[str] = CATALOG.validate(
    [
        Feature.create_session,
        Feature.read_session_self,
        Feature.read_user_self,
        Feature.update_user_self,
        Feature.update_user_password_self,
        Feature.create_comment,
        Feature.read_comment,
        Feature.update_comment_self,
        Feature.delete_comment_self,
        Feature.like_comment,
        Feature.unlike_comment,
        Feature.read_subscription_self,
        Feature.read_payment_self,
        Feature.update_payment_indicate_paid,
        Feature.read_presentation_self,
        Feature.nivel_taiko_iniciante,
    ]
)


# --- Module Notes -----------------------------------------------------------
# Adding a feature means adding an enum member here; nothing else can extend
# the catalog. Removing one orphans any stored grants, which `auth.deps` drops
# (with a warning) when it builds the identity.
