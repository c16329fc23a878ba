"""Global identity validation and ordinal index allocation."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from omresolve.diagnostics import Diagnostic, DiagnosticCode, Stage, error
from omresolve.index import DeclarationIndex, EntityId
from omresolve.normalizer import NormalizedDeclaration, NormalizedSet
from omspec.kinds import TYPE_KINDS, DeclarationKind
from serde_msgspec import StructBaseStrict

logger = logging.getLogger(__name__)

IDENTIFIER_SPACE = "identifier"
TYPE_INDEX_SPACE = "type_index"
PROPERTY_INDEX_SPACE = "property_index"
EVENT_INDEX_SPACE = "event_index"
METHOD_INDEX_SPACE = "method_index"

INDEX_SPACES: Mapping[DeclarationKind, str] = {
    **dict.fromkeys(TYPE_KINDS, TYPE_INDEX_SPACE),
    DeclarationKind.PROPERTY: PROPERTY_INDEX_SPACE,
    DeclarationKind.EVENT: EVENT_INDEX_SPACE,
    DeclarationKind.METHOD: METHOD_INDEX_SPACE,
}


class Identity(StructBaseStrict, frozen=True, order=True):
    """One claimed identity in a named space."""

    space: str
    value: str


class EntityIdentity(StructBaseStrict, frozen=True):
    """Identity facts for one declaration."""

    guid: str | None = None
    stable_id: str | None = None
    stable_index: int | None = None
    ordinal: int | None = None

    @property
    def index(self) -> int | None:
        """Return the explicit stable index or the assigned ordinal."""
        return self.stable_index if self.stable_index is not None else self.ordinal


@dataclass(frozen=True)
class IdentityFacet:
    """Identity-stage output keyed by entity id."""

    entities: Mapping[EntityId, EntityIdentity]
    claims: Mapping[Identity, EntityId]


def canonical_guid(value: str) -> str:
    """Return a GUID in lowercase form without braces."""
    return value.strip().strip("{}").lower()


class IdentityAllocator:
    """Validate explicit identities and assign ordinals in declaration order."""

    def __init__(
        self,
        index: DeclarationIndex,
        normalized: NormalizedSet,
        *,
        first_ordinal: int = 1,
    ) -> None:
        self._index = index
        self._normalized = normalized
        self._first_ordinal = first_ordinal
        self._claims: dict[Identity, EntityId] = {}
        self._diagnostics: list[Diagnostic] = []

    def allocate(self) -> tuple[IdentityFacet, tuple[Diagnostic, ...]]:
        """Run the identity stage.

        Explicit identities are claimed first, in declaration order; ordinal
        requests are then served per index space, skipping explicitly
        reserved indices.

        Returns
        -------
        tuple[IdentityFacet, tuple[Diagnostic, ...]]
            Identity facet and findings.
        """
        self._claims = {}
        self._diagnostics = []
        entities = sorted((*self._index.types, *self._index.members))
        explicit: dict[EntityId, EntityIdentity] = {}
        for entity in entities:
            record = self._normalized.get(entity)
            if record is None:
                continue
            explicit[entity] = self._claim_explicit(entity, record)
        ordinals = self._assign_ordinals(entities)
        resolved = {
            entity: _with_ordinal(identity, ordinals.get(entity))
            for entity, identity in explicit.items()
        }
        logger.debug(
            "Claimed %d identities (%d ordinals assigned)",
            len(self._claims),
            len(ordinals),
        )
        facet = IdentityFacet(
            entities=resolved,
            claims=dict(sorted(self._claims.items())),
        )
        return facet, tuple(self._diagnostics)

    def _claim_explicit(self, entity: EntityId, record: NormalizedDeclaration) -> EntityIdentity:
        guid = canonical_guid(record.guid) if record.guid is not None else None
        if guid is not None:
            self._claim(entity, Identity(space=IDENTIFIER_SPACE, value=guid))
        if record.stable_id is not None:
            self._claim(entity, Identity(space=IDENTIFIER_SPACE, value=record.stable_id))
        if record.stable_index is not None:
            space = INDEX_SPACES.get(record.kind)
            if space is not None:
                self._claim(entity, Identity(space=space, value=str(record.stable_index)))
        return EntityIdentity(
            guid=guid,
            stable_id=record.stable_id,
            stable_index=record.stable_index,
        )

    def _assign_ordinals(self, entities: list[EntityId]) -> dict[EntityId, int]:
        next_ordinal: dict[str, int] = {}
        ordinals: dict[EntityId, int] = {}
        for entity in entities:
            record = self._normalized.get(entity)
            if record is None or not record.indexed_dispatch:
                continue
            space = INDEX_SPACES.get(record.kind)
            if space is None:
                continue
            candidate = next_ordinal.get(space, self._first_ordinal)
            while Identity(space=space, value=str(candidate)) in self._claims:
                candidate += 1
            self._claim(entity, Identity(space=space, value=str(candidate)))
            ordinals[entity] = candidate
            next_ordinal[space] = candidate + 1
        return ordinals

    def _claim(self, entity: EntityId, identity: Identity) -> None:
        holder = self._claims.get(identity)
        if holder is None:
            self._claims[identity] = entity
            return
        if holder == entity:
            return
        first = self._index.name(holder)
        second = self._index.name(entity)
        self._diagnostics.append(
            error(
                DiagnosticCode.DUPLICATE_IDENTITY,
                Stage.IDENTITY,
                f"Identity {identity.value!r} in {identity.space} is claimed by both "
                f"{first} and {second}.",
                declarations=(first, second),
                detail={"space": identity.space, "value": identity.value},
            )
        )


def allocate_identities(
    index: DeclarationIndex,
    normalized: NormalizedSet,
    *,
    first_ordinal: int = 1,
) -> tuple[IdentityFacet, tuple[Diagnostic, ...]]:
    """Validate identities and allocate ordinals.

    Returns
    -------
    tuple[IdentityFacet, tuple[Diagnostic, ...]]
        Identity facet and findings.
    """
    return IdentityAllocator(index, normalized, first_ordinal=first_ordinal).allocate()


def _with_ordinal(identity: EntityIdentity, ordinal: int | None) -> EntityIdentity:
    if ordinal is None:
        return identity
    return EntityIdentity(
        guid=identity.guid,
        stable_id=identity.stable_id,
        stable_index=identity.stable_index,
        ordinal=ordinal,
    )


__all__ = [
    "EVENT_INDEX_SPACE",
    "IDENTIFIER_SPACE",
    "INDEX_SPACES",
    "METHOD_INDEX_SPACE",
    "PROPERTY_INDEX_SPACE",
    "TYPE_INDEX_SPACE",
    "EntityIdentity",
    "Identity",
    "IdentityAllocator",
    "IdentityFacet",
    "allocate_identities",
    "canonical_guid",
]
