"""Resolved, immutable Type Registry."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

import msgspec

from omresolve.contracts import ContractInfo, ResolvedDeprecation
from omresolve.identity import EntityIdentity, Identity
from omresolve.storage import EmissionPlan, PropertyTableEntry, StorageBinding
from omresolve.type_graph import TypeReference
from omresolve.visibility import ApiContext, VersionPairs, Visibility, version_of
from omspec.attribute_params import CollectionTypeParams
from omspec.kinds import (
    AccessorShape,
    CodeGenLevel,
    DeclarationKind,
    PropertyKind,
    Surface,
    TypeStorageCategory,
)
from serde_msgspec import StructBaseStrict, dumps_json_sorted, to_builtins
from utils.hashing import hash_sha256_hex

REGISTRY_SNAPSHOT_VERSION = 1


class TypeNode(StructBaseStrict, frozen=True):
    """Resolved type record."""

    name: str
    simple_name: str
    kind: DeclarationKind
    entity: int
    namespace: str = ""
    is_interface: bool = False
    base: TypeReference | None = None
    interfaces: tuple[TypeReference, ...] = ()
    members: tuple[str, ...] = ()
    codegen_level: CodeGenLevel | None = None
    plan: EmissionPlan = msgspec.field(default_factory=EmissionPlan)
    category: TypeStorageCategory = TypeStorageCategory.NATIVE_BACKED
    visibility: Visibility = msgspec.field(default_factory=Visibility)
    min_versions: VersionPairs = ()
    capability_versions: VersionPairs = ()
    ancestors: tuple[str, ...] = ()
    depth: int = 0
    identity: EntityIdentity = msgspec.field(default_factory=EntityIdentity)
    contract: ContractInfo | None = None
    deprecations: tuple[ResolvedDeprecation, ...] = ()
    flags: tuple[str, ...] = ()
    native_name: str | None = None
    public_name: str | None = None
    content_property: str | None = None
    collection: CollectionTypeParams | None = None
    collection_element: TypeReference | None = None
    collection_flags: tuple[str, ...] = ()
    hand_written: bool = False
    comments: tuple[str, ...] = ()

    @property
    def surfaces(self) -> tuple[Surface, ...]:
        """Return the surfaces the type is emitted to."""
        return self.plan.surfaces

    def min_version(self, contract: str) -> int | None:
        """Return the lowest version of ``contract`` that exposes the type."""
        return version_of(self.min_versions, contract)

    def min_version_map(self) -> dict[str, int]:
        """Return a fresh dict copy of the minimum versions."""
        return dict(self.min_versions)

    def capability_version_map(self) -> dict[str, int]:
        """Return a fresh dict copy of the capability versions."""
        return dict(self.capability_versions)

    @property
    def is_root(self) -> bool:
        """Return whether the type has no base."""
        return self.base is None


class MemberNode(StructBaseStrict, frozen=True):
    """Resolved member record."""

    name: str
    simple_name: str
    kind: DeclarationKind
    owner: str
    entity: int
    accessor: AccessorShape | None = None
    binding: StorageBinding | None = None
    codegen_level: CodeGenLevel | None = None
    plan: EmissionPlan = msgspec.field(default_factory=EmissionPlan)
    visibility: Visibility = msgspec.field(default_factory=Visibility)
    min_versions: VersionPairs = ()
    identity: EntityIdentity = msgspec.field(default_factory=EntityIdentity)
    type_ref: TypeReference | None = None
    interface_version: int | None = None
    deprecations: tuple[ResolvedDeprecation, ...] = ()
    flags: tuple[str, ...] = ()
    property_kind: PropertyKind | None = None
    attached: bool = False
    property_table: PropertyTableEntry | None = None
    collection_element: TypeReference | None = None
    native_name: str | None = None
    public_name: str | None = None
    native_value_name: str | None = None
    comments: tuple[str, ...] = ()

    @property
    def surfaces(self) -> tuple[Surface, ...]:
        """Return the surfaces the member is emitted to."""
        return self.plan.surfaces

    def min_version(self, contract: str) -> int | None:
        """Return the lowest version of ``contract`` that exposes the member."""
        return version_of(self.min_versions, contract)

    def min_version_map(self) -> dict[str, int]:
        """Return a fresh dict copy of the minimum versions."""
        return dict(self.min_versions)


type RegistryNode = TypeNode | MemberNode


@dataclass(frozen=True)
class TypeRegistry:
    """Single source of truth read by every downstream generator.

    Types are held base before derived; members in declaration order. The
    registry is immutable and safe to share across threads.
    """

    types: tuple[TypeNode, ...]
    members: tuple[MemberNode, ...]
    contracts: tuple[ContractInfo, ...]
    identities: tuple[tuple[Identity, int], ...]
    _types_by_name: Mapping[str, TypeNode] = field(init=False, repr=False)
    _members_by_name: Mapping[str, tuple[MemberNode, ...]] = field(init=False, repr=False)
    _members_by_owner: Mapping[str, tuple[MemberNode, ...]] = field(init=False, repr=False)
    _nodes_by_entity: Mapping[int, RegistryNode] = field(init=False, repr=False)
    _contracts_by_name: Mapping[str, ContractInfo] = field(init=False, repr=False)
    _holders: Mapping[Identity, int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Build lookup tables."""
        by_name: dict[str, list[MemberNode]] = {}
        by_owner: dict[str, list[MemberNode]] = {}
        for member in self.members:
            by_name.setdefault(member.name, []).append(member)
            by_owner.setdefault(member.owner, []).append(member)
        object.__setattr__(
            self,
            "_types_by_name",
            {node.name: node for node in self.types},
        )
        object.__setattr__(
            self,
            "_members_by_name",
            {key: tuple(value) for key, value in by_name.items()},
        )
        object.__setattr__(
            self,
            "_members_by_owner",
            {key: tuple(value) for key, value in by_owner.items()},
        )
        object.__setattr__(
            self,
            "_nodes_by_entity",
            {node.entity: node for node in (*self.types, *self.members)},
        )
        object.__setattr__(
            self,
            "_contracts_by_name",
            {info.name: info for info in self.contracts},
        )
        object.__setattr__(self, "_holders", dict(self.identities))

    def type(self, name: str) -> TypeNode | None:
        """Return a type by qualified name."""
        return self._types_by_name.get(name)

    def member(self, name: str) -> MemberNode | None:
        """Return a member by qualified name; the first overload for methods."""
        found = self._members_by_name.get(name, ())
        return found[0] if found else None

    def overloads(self, name: str) -> tuple[MemberNode, ...]:
        """Return every member sharing a qualified name."""
        return self._members_by_name.get(name, ())

    def members_of(self, type_name: str) -> tuple[MemberNode, ...]:
        """Return the members declared on a type, in declaration order."""
        return self._members_by_owner.get(type_name, ())

    def contract(self, name: str) -> ContractInfo | None:
        """Return a contract by qualified name."""
        return self._contracts_by_name.get(name)

    def by_identity(self, space: str, value: str) -> RegistryNode | None:
        """Return the declaration holding an identity.

        Parameters
        ----------
        space
            Identity space, such as ``"identifier"`` or ``"property_index"``.
        value
            Identity value; GUIDs are matched in canonical lowercase form.

        Returns
        -------
        TypeNode | MemberNode | None
            Holder of the identity, if claimed.
        """
        holder = self._holders.get(Identity(space=space, value=value))
        if holder is None:
            holder = self._holders.get(Identity(space=space, value=value.strip("{}").lower()))
        if holder is None:
            return None
        return self._nodes_by_entity.get(holder)

    @property
    def type_order(self) -> tuple[str, ...]:
        """Return type names ordered base before derived."""
        return tuple(node.name for node in self.types)

    def ancestors(self, type_name: str) -> tuple[str, ...]:
        """Return the base chain of a type, nearest first."""
        node = self.type(type_name)
        return node.ancestors if node is not None else ()

    def derived_types(self, type_name: str) -> tuple[str, ...]:
        """Return every type deriving from ``type_name``, base before derived."""
        return tuple(node.name for node in self.types if type_name in node.ancestors)

    def visible_types(self, context: ApiContext) -> tuple[TypeNode, ...]:
        """Return the types visible in a consuming context."""
        return tuple(node for node in self.types if node.visibility.is_visible(context))

    def visible_members(
        self,
        context: ApiContext,
        owner: str | None = None,
    ) -> tuple[MemberNode, ...]:
        """Return the members visible in a consuming context.

        Parameters
        ----------
        context
            Consuming context.
        owner
            Restrict to members of this type when given.

        Returns
        -------
        tuple[MemberNode, ...]
            Visible members in declaration order.
        """
        candidates = self.members if owner is None else self.members_of(owner)
        return tuple(node for node in candidates if node.visibility.is_visible(context))

    def visible_at(self, contract: str, version: int) -> tuple[RegistryNode, ...]:
        """Return declarations visible with only ``contract`` at ``version`` available.

        Returns
        -------
        tuple[TypeNode | MemberNode, ...]
            Visible types followed by visible members.
        """
        context = ApiContext.of({contract: version})
        return (*self.visible_types(context), *self.visible_members(context))

    def property_table(self, type_name: str) -> tuple[MemberNode, ...]:
        """Return the properties of a type that carry a native property-table entry.

        Returns
        -------
        tuple[MemberNode, ...]
            Properties emitted to the native core, in declaration order.
        """
        return tuple(
            node
            for node in self.members_of(type_name)
            if node.property_table is not None and node.plan.includes(Surface.NATIVE_CORE)
        )

    def in_surface(self, surface: Surface) -> tuple[RegistryNode, ...]:
        """Return declarations emitted to ``surface``.

        Returns
        -------
        tuple[TypeNode | MemberNode, ...]
            Types followed by members that include the surface.
        """
        types = tuple(node for node in self.types if node.plan.includes(surface))
        members = tuple(node for node in self.members if node.plan.includes(surface))
        return (*types, *members)

    def snapshot(self) -> bytes:
        """Return a deterministic JSON snapshot of the registry.

        Returns
        -------
        bytes
            Sorted-key JSON payload.
        """
        payload = {
            "version": REGISTRY_SNAPSHOT_VERSION,
            "types": to_builtins(self.types),
            "members": to_builtins(self.members),
            "contracts": to_builtins(self.contracts),
            "identities": [
                {
                    "space": identity.space,
                    "value": identity.value,
                    "declaration": self._nodes_by_entity[holder].name,
                }
                for identity, holder in self.identities
            ],
        }
        return dumps_json_sorted(payload)

    def fingerprint(self) -> str:
        """Return the SHA-256 digest of :meth:`snapshot`."""
        return hash_sha256_hex(self.snapshot())


__all__ = [
    "REGISTRY_SNAPSHOT_VERSION",
    "MemberNode",
    "RegistryNode",
    "TypeNode",
    "TypeRegistry",
]
