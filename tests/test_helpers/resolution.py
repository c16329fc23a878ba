"""Shared helpers for running resolution stages in tests."""

from __future__ import annotations

from collections.abc import Sequence

from omresolve.diagnostics import Diagnostic
from omresolve.index import DeclarationIndex, build_index
from omresolve.normalizer import NormalizedSet, normalize_declarations
from omspec.attribute_catalog import AttributeCatalog
from omspec.declarations import Declaration


def prepare(
    declarations: Sequence[Declaration],
    *,
    catalog: AttributeCatalog | None = None,
) -> tuple[DeclarationIndex, NormalizedSet, tuple[Diagnostic, ...]]:
    """Index and normalize declarations, returning both stages' findings."""
    index, index_diags = build_index(declarations)
    normalized, normalize_diags = normalize_declarations(index, catalog=catalog)
    return index, normalized, (*index_diags, *normalize_diags)


def entity_of(index: DeclarationIndex, name: str) -> int:
    """Return the entity id of a declared type or first member named ``name``."""
    entity = index.type_id(name)
    if entity is not None:
        return entity
    return index.member_ids[name][0]
