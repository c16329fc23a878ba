"""Tests for the qualified-name declaration index."""

from __future__ import annotations

from omresolve.diagnostics import DiagnosticCode, codes_of
from omresolve.index import build_index
from omspec.builders import method_decl, property_decl, type_decl
from omspec.declarations import Declaration
from omspec.kinds import DeclarationKind


def test_index_assigns_entity_ids_by_position() -> None:
    """Ensure entity ids are input positions and lookups are independent of order."""
    decls = (
        property_decl("UI.Button", "Label"),
        type_decl("Button", namespace="UI", base="UI.Control"),
        type_decl("Control", namespace="UI"),
    )
    index, diagnostics = build_index(decls)
    assert diagnostics == ()
    assert index.types == (1, 2)
    assert index.members == (0,)
    assert index.type_id("UI.Control") == 2
    assert index.owner_id(0) == 1
    assert index.members_of("UI.Button") == (0,)
    assert index.name(0) == "UI.Button.Label"


def test_duplicate_type_is_reported_and_first_wins() -> None:
    """Ensure a second type with the same qualified name is rejected."""
    decls = (type_decl("Panel"), type_decl("Panel", kind=DeclarationKind.STRUCT))
    index, diagnostics = build_index(decls)
    assert codes_of(diagnostics) == (DiagnosticCode.DUPLICATE_DECLARATION,)
    assert index.type_id("Panel") == 0
    assert index.types == (0,)
    assert len(index.declarations) == 2


def test_method_overloads_are_indexed() -> None:
    """Ensure methods may share a qualified name while other members may not."""
    decls = (
        type_decl("Panel"),
        method_decl("Panel", "Measure"),
        method_decl("Panel", "Measure", type_ref="Windows.Foundation.Size"),
        property_decl("Panel", "Width"),
        property_decl("Panel", "Width"),
    )
    index, diagnostics = build_index(decls)
    assert codes_of(diagnostics) == (DiagnosticCode.DUPLICATE_DECLARATION,)
    assert index.member_ids["Panel.Measure"] == (1, 2)
    assert index.member_ids["Panel.Width"] == (3,)


def test_member_without_owner_is_reported() -> None:
    """Ensure members must name their owning type."""
    index, diagnostics = build_index((Declaration(name="Orphan", kind=DeclarationKind.PROPERTY),))
    assert codes_of(diagnostics) == (DiagnosticCode.MISSING_OWNER,)
    assert index.members == ()
