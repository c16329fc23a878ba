"""Type graph construction: reference resolution, cycle checks, and ordering."""

from __future__ import annotations

import logging
from collections.abc import Collection, Mapping
from dataclasses import dataclass, field
from typing import Literal

import rustworkx as rx

from omresolve.diagnostics import Diagnostic, DiagnosticCode, Stage, error
from omresolve.errors import InheritanceCycleError
from omresolve.index import DeclarationIndex, EntityId
from omresolve.normalizer import NormalizedSet
from omspec.kinds import DeclarationKind
from serde_msgspec import StructBaseStrict

logger = logging.getLogger(__name__)

ReferenceKind = Literal["declared", "external"]

CYCLE_ARROW = " → "


class TypeReference(StructBaseStrict, frozen=True):
    """A resolved type name: a declared type or an external sink."""

    name: str
    kind: ReferenceKind
    entity: int | None = None

    @property
    def is_external(self) -> bool:
        """Return whether the reference resolves to an external type."""
        return self.kind == "external"


@dataclass(frozen=True)
class TypeGraphFacet:
    """Graph-stage output keyed by entity id."""

    graph: rx.PyDiGraph
    node_ids: Mapping[EntityId, int]
    order: tuple[EntityId, ...]
    bases: Mapping[EntityId, TypeReference | None]
    interfaces: Mapping[EntityId, tuple[TypeReference, ...]]
    type_refs: Mapping[EntityId, TypeReference | None]
    ancestors: Mapping[EntityId, tuple[str, ...]]
    depth: Mapping[EntityId, int]
    derived: Mapping[EntityId, tuple[str, ...]]
    element_types: Mapping[EntityId, TypeReference] = field(default_factory=dict)


def declared_bases(index: DeclarationIndex) -> dict[EntityId, EntityId | None]:
    """Return the declared base entity of every indexed type.

    Returns
    -------
    dict[EntityId, EntityId | None]
        Base entity, or ``None`` for roots and external or unresolved bases.
    """
    bases: dict[EntityId, EntityId | None] = {}
    for entity in index.types:
        base = index.declaration(entity).base
        bases[entity] = index.type_id(base) if base else None
    return bases


def find_inheritance_cycles(index: DeclarationIndex) -> tuple[tuple[EntityId, ...], ...]:
    """Detect cycles in the base-type relation.

    Walks the base chain from each type in declaration order. A back-edge to
    a node on the current path closes a cycle; the cycle is rotated to start
    at its earliest-declared node and reported once.

    Parameters
    ----------
    index
        Declaration index.

    Returns
    -------
    tuple[tuple[EntityId, ...], ...]
        Cycles as entity paths, in discovery order.
    """
    bases = declared_bases(index)
    finished: set[EntityId] = set()
    cycles: list[tuple[EntityId, ...]] = []
    reported: set[frozenset[EntityId]] = set()
    for start in index.types:
        path: list[EntityId] = []
        on_path: dict[EntityId, int] = {}
        node: EntityId | None = start
        while node is not None and node not in finished:
            if node in on_path:
                cycle = path[on_path[node] :]
                key = frozenset(cycle)
                if key not in reported:
                    reported.add(key)
                    pivot = cycle.index(min(cycle))
                    cycles.append((*cycle[pivot:], *cycle[:pivot]))
                break
            on_path[node] = len(path)
            path.append(node)
            node = bases.get(node)
        finished.update(path)
    return tuple(cycles)


def base_first_order(index: DeclarationIndex) -> tuple[EntityId, ...]:
    """Return declared types ordered base before derived.

    Ties are broken by declaration order, so the order is total and stable.

    Returns
    -------
    tuple[EntityId, ...]
        Type entity ids.

    Raises
    ------
    InheritanceCycleError
        Raised when the base relation contains a cycle.
    """
    cycles = find_inheritance_cycles(index)
    if cycles:
        raise InheritanceCycleError([cycle_names(index, cycle) for cycle in cycles])
    graph, _ = _base_graph(index)
    return _topological_order(graph)


def cycle_names(index: DeclarationIndex, cycle: tuple[EntityId, ...]) -> tuple[str, ...]:
    """Return a closed cycle path as qualified names, e.g. ``(D, E, D)``."""
    names = tuple(index.name(entity) for entity in cycle)
    return (*names, names[0])


class TypeGraphBuilder:
    """Resolve type references and derive hierarchy facts."""

    def __init__(
        self,
        index: DeclarationIndex,
        normalized: NormalizedSet,
        *,
        external_types: Collection[str] = (),
    ) -> None:
        self._index = index
        self._normalized = normalized
        self._external = frozenset(external_types)
        self._diagnostics: list[Diagnostic] = []

    def build(self) -> tuple[TypeGraphFacet | None, tuple[Diagnostic, ...]]:
        """Run the graph stage.

        Returns
        -------
        tuple[TypeGraphFacet | None, tuple[Diagnostic, ...]]
            Graph facet, or ``None`` when the hierarchy is cyclic, plus
            findings.
        """
        self._diagnostics = []
        bases: dict[EntityId, TypeReference | None] = {}
        interfaces: dict[EntityId, tuple[TypeReference, ...]] = {}
        type_refs: dict[EntityId, TypeReference | None] = {}
        element_types: dict[EntityId, TypeReference] = {}
        for entity in self._index.types:
            bases[entity] = self._resolve_base(entity)
            interfaces[entity] = self._resolve_interfaces(entity)
            self._resolve_element_type(entity, element_types)
        for entity in self._index.members:
            self._check_parent(entity)
            type_refs[entity] = self._resolve_type_ref(entity)
            self._resolve_element_type(entity, element_types)
        cycles = find_inheritance_cycles(self._index)
        for cycle in cycles:
            names = cycle_names(self._index, cycle)
            self._diagnostics.append(
                error(
                    DiagnosticCode.INHERITANCE_CYCLE,
                    Stage.TYPE_GRAPH,
                    f"Inheritance cycle: {CYCLE_ARROW.join(names)}.",
                    declarations=names[:-1],
                    detail={"path": CYCLE_ARROW.join(names)},
                )
            )
        if cycles:
            logger.warning("Type hierarchy contains %d cycle(s); graph stage aborted", len(cycles))
            return None, tuple(self._diagnostics)
        graph, node_ids = _base_graph(self._index)
        order = _topological_order(graph)
        ancestors, depth = self._ancestry(bases)
        derived = self._derived(graph, node_ids, order)
        self._check_content_properties(ancestors)
        facet = TypeGraphFacet(
            graph=graph,
            node_ids=node_ids,
            order=order,
            bases=bases,
            interfaces=interfaces,
            type_refs=type_refs,
            ancestors=ancestors,
            depth=depth,
            derived=derived,
            element_types=element_types,
        )
        logger.debug("Built type graph with %d types", len(order))
        return facet, tuple(self._diagnostics)

    def _lookup(self, name: str) -> TypeReference | None:
        entity = self._index.type_id(name)
        if entity is not None:
            return TypeReference(name=name, kind="declared", entity=entity)
        if name in self._external:
            return TypeReference(name=name, kind="external")
        return None

    def _resolve(self, entity: EntityId, name: str, role: str) -> TypeReference | None:
        ref = self._lookup(name)
        if ref is None:
            source = self._index.name(entity)
            self._diagnostics.append(
                error(
                    DiagnosticCode.UNRESOLVED_TYPE_REFERENCE,
                    Stage.TYPE_GRAPH,
                    f"{source}: {role} {name!r} does not resolve to a declared or external type.",
                    declarations=(source,),
                    detail={"reference": name, "role": role},
                )
            )
        return ref

    def _mismatch(self, entity: EntityId, ref: TypeReference, message: str) -> None:
        source = self._index.name(entity)
        self._diagnostics.append(
            error(
                DiagnosticCode.TYPE_REFERENCE_KIND_MISMATCH,
                Stage.TYPE_GRAPH,
                f"{source}: {message}",
                declarations=(source, ref.name),
                detail={"reference": ref.name},
            )
        )

    def _resolve_base(self, entity: EntityId) -> TypeReference | None:
        decl = self._index.declaration(entity)
        if not decl.base:
            return None
        ref = self._resolve(entity, decl.base, "base type")
        if ref is None or ref.entity is None:
            return ref
        target = self._index.declaration(ref.entity)
        if target.is_interface != decl.is_interface:
            expected = "an interface" if decl.is_interface else "a class"
            self._mismatch(entity, ref, f"base type {ref.name!r} is not {expected}.")
        elif target.kind != decl.kind:
            self._mismatch(
                entity,
                ref,
                f"base type {ref.name!r} is a {target.kind}, not a {decl.kind}.",
            )
        return ref

    def _resolve_interfaces(self, entity: EntityId) -> tuple[TypeReference, ...]:
        resolved: list[TypeReference] = []
        for name in self._index.declaration(entity).interfaces:
            ref = self._resolve(entity, name, "interface")
            if ref is None:
                continue
            if ref.entity is not None and not self._index.is_interface(ref.entity):
                self._mismatch(entity, ref, f"implemented type {ref.name!r} is not an interface.")
            resolved.append(ref)
        return tuple(resolved)

    def _check_parent(self, entity: EntityId) -> None:
        parent = self._index.declaration(entity).parent
        if parent and self._index.type_id(parent) is None:
            source = self._index.name(entity)
            self._diagnostics.append(
                error(
                    DiagnosticCode.UNRESOLVED_TYPE_REFERENCE,
                    Stage.TYPE_GRAPH,
                    f"{source}: owning type {parent!r} is not declared.",
                    declarations=(source,),
                    detail={"reference": parent, "role": "owner"},
                )
            )

    def _resolve_type_ref(self, entity: EntityId) -> TypeReference | None:
        decl = self._index.declaration(entity)
        if not decl.type_ref:
            return None
        ref = self._resolve(entity, decl.type_ref, "type reference")
        if ref is None or ref.entity is None:
            return ref
        if decl.kind == DeclarationKind.EVENT:
            target = self._index.declaration(ref.entity)
            if target.kind != DeclarationKind.DELEGATE:
                self._mismatch(entity, ref, f"event handler type {ref.name!r} is not a delegate.")
        return ref

    def _resolve_element_type(
        self,
        entity: EntityId,
        resolved: dict[EntityId, TypeReference],
    ) -> None:
        record = self._normalized.get(entity)
        if record is None or record.collection is None or not record.collection.element_type:
            return
        ref = self._resolve(entity, record.collection.element_type, "collection element type")
        if ref is not None:
            resolved[entity] = ref

    def _ancestry(
        self,
        bases: Mapping[EntityId, TypeReference | None],
    ) -> tuple[dict[EntityId, tuple[str, ...]], dict[EntityId, int]]:
        bound = len(self._index.types)
        ancestors: dict[EntityId, tuple[str, ...]] = {}
        depth: dict[EntityId, int] = {}
        for entity in self._index.types:
            chain: list[str] = []
            ref = bases.get(entity)
            while ref is not None and len(chain) <= bound:
                chain.append(ref.name)
                ref = bases.get(ref.entity) if ref.entity is not None else None
            ancestors[entity] = tuple(chain)
            depth[entity] = len(chain)
        return ancestors, depth

    def _derived(
        self,
        graph: rx.PyDiGraph,
        node_ids: Mapping[EntityId, int],
        order: tuple[EntityId, ...],
    ) -> dict[EntityId, tuple[str, ...]]:
        position = {entity: pos for pos, entity in enumerate(order)}
        derived: dict[EntityId, tuple[str, ...]] = {}
        for entity, node in node_ids.items():
            below = sorted(
                (graph[idx] for idx in rx.descendants(graph, node)),
                key=position.__getitem__,
            )
            derived[entity] = tuple(self._index.name(item) for item in below)
        return derived

    def _check_content_properties(self, ancestors: Mapping[EntityId, tuple[str, ...]]) -> None:
        for entity in self._index.types:
            record = self._normalized.get(entity)
            if record is None or record.content_property is None:
                continue
            owners = (record.name, *ancestors.get(entity, ()))
            if any(self._is_property(f"{owner}.{record.content_property}") for owner in owners):
                continue
            self._diagnostics.append(
                error(
                    DiagnosticCode.UNRESOLVED_MEMBER_REFERENCE,
                    Stage.TYPE_GRAPH,
                    f"{record.name}: content property {record.content_property!r} is not a "
                    "property of the type or its ancestors.",
                    declarations=(record.name,),
                    detail={"reference": record.content_property},
                )
            )

    def _is_property(self, qualified_name: str) -> bool:
        return any(
            self._index.declaration(member).kind == DeclarationKind.PROPERTY
            for member in self._index.member_ids.get(qualified_name, ())
        )


def build_type_graph(
    index: DeclarationIndex,
    normalized: NormalizedSet,
    *,
    external_types: Collection[str] = (),
) -> tuple[TypeGraphFacet | None, tuple[Diagnostic, ...]]:
    """Resolve references and build the type hierarchy.

    Returns
    -------
    tuple[TypeGraphFacet | None, tuple[Diagnostic, ...]]
        Graph facet (``None`` on a cycle) and findings.
    """
    return TypeGraphBuilder(index, normalized, external_types=external_types).build()


def _base_graph(index: DeclarationIndex) -> tuple[rx.PyDiGraph, dict[EntityId, int]]:
    graph = rx.PyDiGraph(
        multigraph=False,
        check_cycle=False,
        attrs={"label": "type_hierarchy"},
        node_count_hint=len(index.types),
        edge_count_hint=len(index.types),
    )
    node_ids = dict(zip(index.types, graph.add_nodes_from(index.types), strict=True))
    for entity, base in declared_bases(index).items():
        if base is not None:
            graph.add_edge(node_ids[base], node_ids[entity], None)
    return graph, node_ids


def _topological_order(graph: rx.PyDiGraph) -> tuple[EntityId, ...]:
    return tuple(rx.lexicographical_topological_sort(graph, key=_entity_sort_key))


def _entity_sort_key(entity: EntityId) -> str:
    return f"{entity:012d}"


__all__ = [
    "CYCLE_ARROW",
    "TypeGraphBuilder",
    "TypeGraphFacet",
    "TypeReference",
    "base_first_order",
    "build_type_graph",
    "cycle_names",
    "declared_bases",
    "find_inheritance_cycles",
]
