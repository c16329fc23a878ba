"""Join of per-stage facets into registry records."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from omresolve.contracts import ContractFacet
from omresolve.identity import EntityIdentity, IdentityFacet
from omresolve.index import DeclarationIndex, EntityId
from omresolve.normalizer import NormalizedSet
from omresolve.registry import MemberNode, TypeNode, TypeRegistry
from omresolve.storage import StorageFacet
from omresolve.type_graph import TypeGraphFacet
from omresolve.visibility import Visibility

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageFacets:
    """Outputs of the four independent resolution stages."""

    contracts: ContractFacet
    graph: TypeGraphFacet
    storage: StorageFacet
    identity: IdentityFacet


def merge_registry(
    index: DeclarationIndex,
    normalized: NormalizedSet,
    facets: StageFacets,
) -> TypeRegistry:
    """Join stage facets keyed by entity id into a Type Registry.

    Parameters
    ----------
    index
        Declaration index.
    normalized
        Normalized records.
    facets
        Stage outputs for the same index.

    Returns
    -------
    TypeRegistry
        Immutable registry.
    """
    types = tuple(_type_node(index, normalized, facets, entity) for entity in facets.graph.order)
    members = tuple(_member_node(index, normalized, facets, entity) for entity in index.members)
    registry = TypeRegistry(
        types=types,
        members=members,
        contracts=tuple(info for info in facets.contracts.contracts.values() if info.valid),
        identities=tuple(facets.identity.claims.items()),
    )
    logger.debug("Merged registry with %d types and %d members", len(types), len(members))
    return registry


def _type_node(
    index: DeclarationIndex,
    normalized: NormalizedSet,
    facets: StageFacets,
    entity: EntityId,
) -> TypeNode:
    decl = index.declaration(entity)
    record = normalized[entity]
    storage = facets.storage.types[entity]
    return TypeNode(
        name=record.name,
        simple_name=decl.name,
        kind=decl.kind,
        entity=entity,
        namespace=decl.namespace,
        is_interface=decl.is_interface,
        base=facets.graph.bases.get(entity),
        interfaces=facets.graph.interfaces.get(entity, ()),
        members=tuple(index.name(member) for member in index.members_of(record.name)),
        codegen_level=storage.codegen_level,
        plan=storage.plan,
        category=storage.category,
        visibility=facets.contracts.visibility.get(entity, Visibility()),
        min_versions=facets.contracts.min_versions.get(entity, ()),
        capability_versions=facets.contracts.capability_versions.get(entity, ()),
        ancestors=facets.graph.ancestors.get(entity, ()),
        depth=facets.graph.depth.get(entity, 0),
        identity=facets.identity.entities.get(entity, EntityIdentity()),
        contract=facets.contracts.contracts.get(record.name) if record.defines_contract else None,
        deprecations=facets.contracts.deprecations.get(entity, ()),
        flags=record.flags,
        native_name=record.native_name,
        public_name=record.public_name,
        content_property=record.content_property,
        collection=record.collection,
        collection_element=facets.graph.element_types.get(entity),
        collection_flags=record.collection_flags,
        hand_written=record.hand_written,
        comments=record.comments,
    )


def _member_node(
    index: DeclarationIndex,
    normalized: NormalizedSet,
    facets: StageFacets,
    entity: EntityId,
) -> MemberNode:
    decl = index.declaration(entity)
    record = normalized[entity]
    storage = facets.storage.members[entity]
    return MemberNode(
        name=record.name,
        simple_name=decl.name,
        kind=decl.kind,
        owner=decl.parent or "",
        entity=entity,
        accessor=storage.accessor,
        binding=storage.binding,
        codegen_level=storage.codegen_level,
        plan=storage.plan,
        visibility=facets.contracts.visibility.get(entity, Visibility()),
        min_versions=facets.contracts.min_versions.get(entity, ()),
        identity=facets.identity.entities.get(entity, EntityIdentity()),
        type_ref=facets.graph.type_refs.get(entity),
        interface_version=record.type_version,
        deprecations=facets.contracts.deprecations.get(entity, ()),
        flags=record.flags,
        property_kind=record.property_kind,
        attached=record.attached,
        property_table=storage.property_table,
        collection_element=facets.graph.element_types.get(entity),
        native_name=record.native_name,
        public_name=record.public_name,
        native_value_name=record.native_value_name,
        comments=record.comments,
    )


__all__ = ["StageFacets", "merge_registry"]
