"""Storage bindings and emission surfaces for types and members."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from omresolve.diagnostics import Diagnostic, DiagnosticCode, Stage, error
from omresolve.errors import InheritanceCycleError
from omresolve.index import DeclarationIndex, EntityId
from omresolve.normalizer import NormalizedDeclaration, NormalizedSet
from omresolve.type_graph import base_first_order, declared_bases
from omspec.attribute_params import CollectionTypeParams, StorageGroupParams
from omspec.declarations import Declaration
from omspec.kinds import (
    ALL_SURFACES,
    AccessModifier,
    AccessorShape,
    CodeGenLevel,
    DeclarationKind,
    NativeValueKind,
    StorageKind,
    Surface,
    TypeStorageCategory,
)
from serde_msgspec import StructBaseStrict

logger = logging.getLogger(__name__)

_PUBLIC = Surface.PUBLIC_INTERFACE
_CORE = Surface.NATIVE_CORE
_STUB = Surface.STUB

LEVEL_SURFACES: Mapping[CodeGenLevel, frozenset[Surface]] = {
    CodeGenLevel.EXCLUDED: frozenset(),
    CodeGenLevel.LOOKUP_ONLY: frozenset({_CORE}),
    CodeGenLevel.CORE_ONLY: frozenset({_CORE}),
    CodeGenLevel.IDL: frozenset({_PUBLIC, _CORE}),
    CodeGenLevel.IDL_AND_STUB: frozenset(ALL_SURFACES),
    CodeGenLevel.IDL_AND_PARTIAL_STUB: frozenset({_PUBLIC, _STUB}),
    CodeGenLevel.STUB: frozenset({_STUB}),
}
DEFAULT_TYPE_SURFACES: frozenset[Surface] = frozenset({_PUBLIC, _CORE})

# Attribute flags that remove a surface.
EXCLUSION_FLAGS: Mapping[str, Surface] = {
    "exclude_from_core": _CORE,
    "exclude_from_public": _PUBLIC,
    "exclude_from_stub": _STUB,
    "is_excluded_from_native": _CORE,
    "is_hidden_from_idl": _PUBLIC,
    "is_excluded_from_public_interface": _PUBLIC,
}


class StorageBinding(StructBaseStrict, frozen=True):
    """Physical backing of a member."""

    kind: StorageKind
    value_kind: NativeValueKind | None = None
    offset_field: str | None = None
    constant: int | None = None


class RenderDirtyHandler(StructBaseStrict, frozen=True):
    """Native callback that marks rendering dirty when the property changes."""

    class_name: str
    method_name: str


class PropertyTableEntry(StructBaseStrict, frozen=True):
    """Property-system facts of a property, read by property-table emitters."""

    modifier: AccessModifier = AccessModifier.PUBLIC
    render_dirty: RenderDirtyHandler | None = None
    storage_group: StorageGroupParams | None = None
    field_backed: bool = False
    collection: CollectionTypeParams | None = None


class EmissionPlan(StructBaseStrict, frozen=True):
    """Surfaces a declaration is emitted to."""

    surfaces: tuple[Surface, ...] = ()
    internal_only: bool = False
    partial_stub: bool = False

    def includes(self, surface: Surface) -> bool:
        """Return whether ``surface`` is part of the plan."""
        return surface in self.surfaces


class TypeStorage(StructBaseStrict, frozen=True):
    """Storage-stage facts for one type."""

    codegen_level: CodeGenLevel | None
    plan: EmissionPlan
    category: TypeStorageCategory


class MemberStorage(StructBaseStrict, frozen=True):
    """Storage-stage facts for one member."""

    codegen_level: CodeGenLevel | None
    plan: EmissionPlan
    binding: StorageBinding
    accessor: AccessorShape | None = None
    property_table: PropertyTableEntry | None = None


@dataclass(frozen=True)
class StorageFacet:
    """Storage-stage output keyed by entity id."""

    types: Mapping[EntityId, TypeStorage]
    members: Mapping[EntityId, MemberStorage]


class StorageMapper:
    """Decide storage bindings and emission surfaces."""

    def __init__(self, index: DeclarationIndex, normalized: NormalizedSet) -> None:
        self._index = index
        self._normalized = normalized
        self._diagnostics: list[Diagnostic] = []

    def map(self) -> tuple[StorageFacet, tuple[Diagnostic, ...]]:
        """Run the storage stage.

        Types are visited base before derived so that surface removal can
        propagate from a base to its derived types.

        Returns
        -------
        tuple[StorageFacet, tuple[Diagnostic, ...]]
            Storage facet and findings.

        Raises
        ------
        InheritanceCycleError
            Raised when the type hierarchy is cyclic.
        """
        self._diagnostics = []
        order = base_first_order(self._index)
        bases = declared_bases(self._index)
        types: dict[EntityId, TypeStorage] = {}
        for entity in order:
            record = self._normalized.get(entity)
            if record is None:
                continue
            base = bases.get(entity)
            base_storage = types.get(base) if base is not None else None
            types[entity] = self._type_storage(record, base_storage)
        members: dict[EntityId, MemberStorage] = {}
        for owner in self._index.types:
            owner_record = self._normalized.get(owner)
            owner_storage = types.get(owner)
            if owner_record is None or owner_storage is None:
                continue
            members.update(
                self._member_storage(
                    owner,
                    owner_record,
                    owner_storage,
                    self._index.members_of(owner_record.name),
                )
            )
        logger.debug("Mapped storage for %d types and %d members", len(types), len(members))
        facet = StorageFacet(
            types=dict(sorted(types.items())),
            members=dict(sorted(members.items())),
        )
        return facet, tuple(self._diagnostics)

    def _type_storage(
        self,
        record: NormalizedDeclaration,
        base: TypeStorage | None,
    ) -> TypeStorage:
        level = record.codegen.level if record.codegen is not None else None
        surfaces = set(DEFAULT_TYPE_SURFACES if level is None else LEVEL_SURFACES[level])
        surfaces -= _excluded(record)
        if base is not None and not base.plan.includes(_CORE):
            surfaces.discard(_CORE)
        if record.imported:
            category = TypeStorageCategory.IMPORTED_EXTERNAL
        elif _CORE in surfaces:
            category = TypeStorageCategory.NATIVE_BACKED
        else:
            category = TypeStorageCategory.PURE_MANAGED_WRAPPER
        return TypeStorage(
            codegen_level=level,
            plan=_plan(surfaces, partial=_partial(record, level)),
            category=category,
        )

    def _member_storage(
        self,
        owner: EntityId,
        owner_record: NormalizedDeclaration,
        owner_storage: TypeStorage,
        members: Iterable[EntityId],
    ) -> dict[EntityId, MemberStorage]:
        result: dict[EntityId, MemberStorage] = {}
        next_constant = 0
        interface_only = owner_record.imported or self._index.is_interface(owner)
        owner_partial = owner_storage.plan.partial_stub
        blocked = _blocked_by_owner(owner_record, owner_storage)
        for entity in members:
            record = self._normalized.get(entity)
            if record is None:
                continue
            level = record.codegen.level if record.codegen is not None else None
            surfaces = set(owner_storage.plan.surfaces if level is None else LEVEL_SURFACES[level])
            surfaces -= blocked
            surfaces -= _excluded(record)
            if record.kind == DeclarationKind.ENUM_MEMBER:
                value = record.enum_value if record.enum_value is not None else next_constant
                next_constant = value + 1
                binding = StorageBinding(kind=StorageKind.CONSTANT, constant=value)
            else:
                binding = self._binding(record, interface_only=interface_only)
            result[entity] = MemberStorage(
                codegen_level=level,
                plan=_plan(surfaces, partial=owner_partial or _partial(record, level)),
                binding=binding,
                accessor=accessor_shape(self._index.declaration(entity), record),
                property_table=(
                    self._property_table(record)
                    if record.kind == DeclarationKind.PROPERTY
                    else None
                ),
            )
        return result

    def _property_table(self, record: NormalizedDeclaration) -> PropertyTableEntry:
        render_dirty: RenderDirtyHandler | None = None
        if record.render_dirty_class and record.render_dirty_method:
            render_dirty = RenderDirtyHandler(
                class_name=record.render_dirty_class,
                method_name=record.render_dirty_method,
            )
        elif record.render_dirty_class or record.render_dirty_method:
            self._incomplete(
                record,
                "render-dirty callback needs both a class name and a method name.",
                render_dirty_class=record.render_dirty_class or "",
                render_dirty_method=record.render_dirty_method or "",
            )
        if record.storage_group is not None and record.native_value_kind is None:
            self._incomplete(
                record,
                f"storage group {record.storage_group.group!r} has no native value kind.",
                storage_group=record.storage_group.group,
            )
        return PropertyTableEntry(
            modifier=record.dependency_property_modifier or AccessModifier.PUBLIC,
            render_dirty=render_dirty,
            storage_group=record.storage_group,
            field_backed=record.field_backed,
            collection=record.collection,
        )

    def _incomplete(self, record: NormalizedDeclaration, message: str, **detail: str) -> None:
        self._diagnostics.append(
            error(
                DiagnosticCode.INCOMPLETE_STORAGE_BINDING,
                Stage.STORAGE,
                f"{record.name}: {message}",
                declarations=(record.name,),
                detail=detail,
            )
        )

    def _binding(self, record: NormalizedDeclaration, *, interface_only: bool) -> StorageBinding:
        if record.native_value_kind is not None:
            return StorageBinding(
                kind=StorageKind.FIELD,
                value_kind=record.native_value_kind,
                offset_field=record.offset_field,
            )
        if record.offset_field is not None:
            self._incomplete(
                record,
                f"offset field {record.offset_field!r} has no native value kind.",
                offset_field=record.offset_field,
            )
            return StorageBinding(kind=StorageKind.COMPUTED, offset_field=record.offset_field)
        if interface_only:
            return StorageBinding(kind=StorageKind.INTERFACE_ONLY)
        return StorageBinding(kind=StorageKind.COMPUTED)


def accessor_shape(decl: Declaration, record: NormalizedDeclaration) -> AccessorShape | None:
    """Return the accessor shape of a member.

    Parameters
    ----------
    decl
        Member declaration, for accessor presence.
    record
        Normalized member record.

    Returns
    -------
    AccessorShape | None
        Shape for properties and events; ``None`` for methods, enum members,
        and properties that declare no accessor and no accessor marker.
    """
    if decl.kind == DeclarationKind.EVENT:
        return AccessorShape.EVENT_ADD_REMOVE
    if decl.kind != DeclarationKind.PROPERTY:
        return None
    if record.read_only:
        return AccessorShape.READ_ONLY
    if record.settable or (decl.getter and decl.setter):
        return AccessorShape.READ_WRITE
    if decl.getter:
        return AccessorShape.READ_ONLY
    if decl.setter:
        return AccessorShape.WRITE_ONLY
    return None


def map_storage(
    index: DeclarationIndex,
    normalized: NormalizedSet,
) -> tuple[StorageFacet | None, tuple[Diagnostic, ...]]:
    """Run the storage stage, aborting without findings on a cyclic hierarchy.

    Returns
    -------
    tuple[StorageFacet | None, tuple[Diagnostic, ...]]
        Storage facet (``None`` when aborted) and findings.
    """
    try:
        return StorageMapper(index, normalized).map()
    except InheritanceCycleError as exc:
        logger.debug("Storage stage aborted: %s", exc)
        return None, ()


def _excluded(record: NormalizedDeclaration) -> set[Surface]:
    return {
        EXCLUSION_FLAGS[flag]
        for flag in (*record.surface_exclusions, *record.flags)
        if flag in EXCLUSION_FLAGS
    }


def _blocked_by_owner(record: NormalizedDeclaration, storage: TypeStorage) -> set[Surface]:
    # The stub surface is opt-in per member; public and core follow the owner.
    if storage.codegen_level == CodeGenLevel.EXCLUDED:
        return set(ALL_SURFACES)
    return (DEFAULT_TYPE_SURFACES - set(storage.plan.surfaces)) | _excluded(record)


def _partial(record: NormalizedDeclaration, level: CodeGenLevel | None) -> bool:
    if level == CodeGenLevel.IDL_AND_PARTIAL_STUB:
        return True
    return record.codegen is not None and record.codegen.partial


def _plan(surfaces: set[Surface], *, partial: bool) -> EmissionPlan:
    ordered = tuple(surface for surface in ALL_SURFACES if surface in surfaces)
    return EmissionPlan(
        surfaces=ordered,
        internal_only=_PUBLIC not in surfaces,
        partial_stub=partial and _STUB in surfaces,
    )


__all__ = [
    "DEFAULT_TYPE_SURFACES",
    "EXCLUSION_FLAGS",
    "LEVEL_SURFACES",
    "EmissionPlan",
    "MemberStorage",
    "PropertyTableEntry",
    "RenderDirtyHandler",
    "StorageBinding",
    "StorageFacet",
    "StorageMapper",
    "TypeStorage",
    "accessor_shape",
    "map_storage",
]
