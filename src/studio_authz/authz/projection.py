"""
studio_authz.authz.projection

Field projection engine.

Responsibilities:
- Hold per-feature input/output field schemas (`ProjectionRegistry`).
- Strip request bodies down to the writable fields of a feature.
- Strip response payloads down to the readable fields of a feature.
- Refuse `:self` projections of data owned by someone else.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from studio_authz.authz.errors import ProjectionNotDefinedError
from studio_authz.authz.features import CATALOG, FeatureCatalog
from studio_authz.authz.models import Identity, owns
from studio_authz.authz.pdp import SELF_SUFFIX, can


@dataclass(frozen=True, slots=True)
class ProjectionSchema:
    input_fields: frozenset[str] = frozenset()
    output_fields: frozenset[str] = frozenset()
    # Payload key naming the owner; `:self` outputs are checked against it.
    owner_key: str = "user_id"

    @classmethod
    def of(
        cls,
        *,
        input: Iterable[str] = (),
        output: Iterable[str] = (),
        owner_key: str = "user_id",
    ) -> ProjectionSchema:
        return cls(
            input_fields=frozenset(input),
            output_fields=frozenset(output),
            owner_key=owner_key,
        )


def _project(payload: Mapping[str, Any], allowed: frozenset[str]) -> dict[str, Any]:
    # Source order is kept; values are passed through untouched.
    return {k: v for k, v in payload.items() if k in allowed}


class ProjectionRegistry:
    """
    Read-only mapping of feature -> ProjectionSchema.

    Keys are validated against the catalog on construction. There is no
    fallback from a scoped feature to an unscoped parent: every feature used
    for projection needs its own entry.
    """

    __slots__ = ("_catalog", "_schemas")

    def __init__(
        self,
        schemas: Mapping[str, ProjectionSchema],
        *,
        catalog: FeatureCatalog = CATALOG,
    ) -> None:
        catalog.validate(schemas.keys())
        self._catalog = catalog
        self._schemas: Mapping[str, ProjectionSchema] = MappingProxyType(
            {str(k): v for k, v in schemas.items()}
        )

    def __contains__(self, feature: object) -> bool:
        return feature in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    @property
    def catalog(self) -> FeatureCatalog:
        return self._catalog

    def features(self) -> frozenset[str]:
        return frozenset(self._schemas)

    def schema_for(self, feature: str) -> ProjectionSchema:
        self._catalog.require(feature)
        try:
            return self._schemas[feature]
        except KeyError:
            raise ProjectionNotDefinedError(feature) from None

    def filter_input(
        self,
        identity: Identity,
        feature: str,
        raw: Mapping[str, Any],
        *,
        target: Any = None,
    ) -> dict[str, Any]:
        """
        Keep the fields of `raw` that `feature` may write.

        `target` is the resource the body is applied to; given one, a `:self`
        feature projects nothing unless the identity owns it.
        """

        schema = self.schema_for(feature)
        if not can(identity, feature, target, catalog=self._catalog):
            return {}
        return _project(raw, schema.input_fields)

    def filter_output(
        self, identity: Identity, feature: str, payload: Mapping[str, Any]
    ) -> dict[str, Any]:
        """
        Keep the fields of `payload` that `feature` may disclose.

        A `:self` feature projects nothing from a payload whose owner key
        names someone else. Payloads without the key (already projected
        ones) are projected as they are.
        """

        schema = self.schema_for(feature)
        if not can(identity, feature, catalog=self._catalog):
            return {}
        owner = payload.get(schema.owner_key)
        if feature.endswith(SELF_SUFFIX) and owner is not None and not owns(identity, owner):
            return {}
        return _project(payload, schema.output_fields)

    def filter_output_many(
        self, identity: Identity, feature: str, payloads: Iterable[Mapping[str, Any]]
    ) -> list[dict[str, Any]]:
        return [self.filter_output(identity, feature, p) for p in payloads]


# --- Module Notes -----------------------------------------------------------
# The platform's registry lives in `authz.schemas`; module-level
# `filter_input`/`filter_output` there delegate to it.
