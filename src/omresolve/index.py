"""Flat qualified-name index over the declaration arena.

The index is built in one pass without resolving any reference. Entity ids
are positions in the input sequence, so every later stage can key its side
tables by id and resolve names against the index independently of
declaration order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from omresolve.diagnostics import Diagnostic, DiagnosticCode, Stage, error
from omspec.declarations import Declaration
from omspec.kinds import DeclarationKind

logger = logging.getLogger(__name__)

type EntityId = int


@dataclass(frozen=True)
class DeclarationIndex:
    """Arena of declarations plus name lookups."""

    declarations: tuple[Declaration, ...]
    type_ids: Mapping[str, EntityId]
    member_ids: Mapping[str, tuple[EntityId, ...]]
    members_by_owner: Mapping[str, tuple[EntityId, ...]]
    types: tuple[EntityId, ...]
    members: tuple[EntityId, ...]

    def declaration(self, entity: EntityId) -> Declaration:
        """Return the declaration for an entity id."""
        return self.declarations[entity]

    def name(self, entity: EntityId) -> str:
        """Return the qualified name for an entity id."""
        return self.declarations[entity].qualified_name

    def type_id(self, name: str) -> EntityId | None:
        """Return the entity id of a declared type, if any."""
        return self.type_ids.get(name)

    def owner_id(self, entity: EntityId) -> EntityId | None:
        """Return the entity id of a member's owning type, if declared."""
        parent = self.declarations[entity].parent
        if parent is None:
            return None
        return self.type_ids.get(parent)

    def members_of(self, owner: str) -> tuple[EntityId, ...]:
        """Return member ids of ``owner`` in declaration order."""
        return self.members_by_owner.get(owner, ())

    def is_interface(self, entity: EntityId) -> bool:
        """Return whether the entity is an interface type."""
        return self.declarations[entity].is_interface


def build_index(
    declarations: Sequence[Declaration],
) -> tuple[DeclarationIndex, tuple[Diagnostic, ...]]:
    """Index declarations by qualified name.

    Parameters
    ----------
    declarations
        Parsed declarations in input order.

    Returns
    -------
    tuple[DeclarationIndex, tuple[Diagnostic, ...]]
        The index and any duplicate or ownerless declaration findings.
        Rejected declarations stay in the arena but are not indexed.
    """
    arena = tuple(declarations)
    diagnostics: list[Diagnostic] = []
    type_ids: dict[str, EntityId] = {}
    member_ids: dict[str, list[EntityId]] = {}
    by_owner: dict[str, list[EntityId]] = {}
    types: list[EntityId] = []
    members: list[EntityId] = []
    for entity, decl in enumerate(arena):
        name = decl.qualified_name
        if decl.is_type:
            if name in type_ids:
                diagnostics.append(_duplicate(name, "type"))
                continue
            type_ids[name] = entity
            types.append(entity)
            continue
        if not decl.parent:
            diagnostics.append(
                error(
                    DiagnosticCode.MISSING_OWNER,
                    Stage.INDEX,
                    f"Member {name!r} does not name an owning type.",
                    declarations=(name,),
                    detail={"kind": decl.kind},
                )
            )
            continue
        existing = member_ids.get(name, [])
        if existing and not _may_overload(decl, (arena[other] for other in existing)):
            diagnostics.append(_duplicate(name, str(decl.kind)))
            continue
        member_ids.setdefault(name, []).append(entity)
        by_owner.setdefault(decl.parent, []).append(entity)
        members.append(entity)
    logger.debug(
        "Indexed %d types and %d members from %d declarations",
        len(types),
        len(members),
        len(arena),
    )
    index = DeclarationIndex(
        declarations=arena,
        type_ids=type_ids,
        member_ids={key: tuple(value) for key, value in member_ids.items()},
        members_by_owner={key: tuple(value) for key, value in by_owner.items()},
        types=tuple(types),
        members=tuple(members),
    )
    return index, tuple(diagnostics)


def _may_overload(decl: Declaration, others: Iterable[Declaration]) -> bool:
    if decl.kind != DeclarationKind.METHOD:
        return False
    return all(other.kind == DeclarationKind.METHOD for other in others)


def _duplicate(name: str, kind: str) -> Diagnostic:
    return error(
        DiagnosticCode.DUPLICATE_DECLARATION,
        Stage.INDEX,
        f"Declaration {name!r} is declared more than once.",
        declarations=(name, name),
        detail={"kind": kind},
    )


__all__ = ["DeclarationIndex", "EntityId", "build_index"]
