"""Tests for type reference resolution, cycle detection, and ordering."""

from __future__ import annotations

from collections.abc import Sequence

import pytest

from omresolve.diagnostics import Diagnostic, DiagnosticCode, codes_of
from omresolve.errors import InheritanceCycleError
from omresolve.external_types import external_type_table
from omresolve.index import DeclarationIndex
from omresolve.type_graph import (
    TypeGraphFacet,
    TypeReference,
    base_first_order,
    build_type_graph,
    find_inheritance_cycles,
)
from omspec.builders import attr, event_decl, property_decl, type_decl
from omspec.declarations import Declaration
from omspec.kinds import DeclarationKind
from tests.test_helpers.resolution import entity_of, prepare


def _build(
    decls: Sequence[Declaration],
) -> tuple[DeclarationIndex, TypeGraphFacet | None, tuple[Diagnostic, ...]]:
    index, normalized, _ = prepare(decls)
    facet, diagnostics = build_type_graph(index, normalized, external_types=external_type_table())
    return index, facet, diagnostics


def test_order_is_base_before_derived_regardless_of_input_order() -> None:
    """Ensure the total order places bases first and breaks ties by declaration order."""
    index, facet, diagnostics = _build(
        (
            type_decl("Button", base="ButtonBase"),
            type_decl("ButtonBase", base="Control"),
            type_decl("Panel"),
            type_decl("Control"),
        )
    )
    assert diagnostics == ()
    assert facet is not None
    names = [index.name(entity) for entity in facet.order]
    assert names.index("Control") < names.index("ButtonBase") < names.index("Button")
    assert names == ["Panel", "Control", "ButtonBase", "Button"]


def test_ancestors_depth_and_derived_types() -> None:
    """Ensure hierarchy facts are derived for every type."""
    index, facet, _ = _build(
        (
            type_decl("Control", base="Windows.Foundation.Object"),
            type_decl("ButtonBase", base="Control"),
            type_decl("Button", base="ButtonBase"),
        )
    )
    assert facet is not None
    button = entity_of(index, "Button")
    control = entity_of(index, "Control")
    assert facet.ancestors[button] == ("ButtonBase", "Control", "Windows.Foundation.Object")
    assert facet.depth[button] == 3
    assert facet.derived[control] == ("ButtonBase", "Button")
    assert facet.bases[control] == TypeReference(
        name="Windows.Foundation.Object",
        kind="external",
    )
    assert facet.bases[button] == TypeReference(
        name="ButtonBase",
        kind="declared",
        entity=entity_of(index, "ButtonBase"),
    )


def test_unresolved_references_are_reported() -> None:
    """Ensure names outside the declaration set and external table are errors."""
    _, facet, diagnostics = _build(
        (
            type_decl("Button", base="Missing.Base", interfaces=("Missing.IFace",)),
            property_decl("Button", "Content", type_ref="Missing.Value"),
            property_decl("Ghost", "Value"),
        )
    )
    assert facet is not None
    assert codes_of(diagnostics) == (DiagnosticCode.UNRESOLVED_TYPE_REFERENCE,) * 4
    assert [diag.detail_value("role") for diag in diagnostics] == [
        "base type",
        "interface",
        "type reference",
        "owner",
    ]
    assert diagnostics[0].detail_value("reference") == "Missing.Base"



def test_collection_element_types_resolve() -> None:
    """Ensure collection element types resolve like any other type reference."""
    index, facet, diagnostics = _build(
        (
            type_decl("UIElement"),
            type_decl(
                "UIElementCollection",
                attributes=(attr("collection_type", kind="vector", element_type="UIElement"),),
            ),
            type_decl("Panel"),
            property_decl(
                "Panel",
                "Children",
                attributes=(attr("collection_type", kind="observable", element_type="Missing"),),
            ),
        )
    )
    assert facet is not None
    assert codes_of(diagnostics) == (DiagnosticCode.UNRESOLVED_TYPE_REFERENCE,)
    assert diagnostics[0].detail_value("role") == "collection element type"
    assert diagnostics[0].declarations == ("Panel.Children",)
    element = facet.element_types[entity_of(index, "UIElementCollection")]
    assert element.name == "UIElement"
    assert element.entity == entity_of(index, "UIElement")
    assert entity_of(index, "Panel.Children") not in facet.element_types

def test_reference_kind_mismatches_are_reported() -> None:
    """Ensure bases, interfaces, and event handlers must have the right kind."""
    _, _, diagnostics = _build(
        (
            type_decl("IControl", is_interface=True),
            type_decl("Control"),
            type_decl("Button", base="IControl"),
            type_decl("Panel", interfaces=("Control",)),
            type_decl("Thickness", kind=DeclarationKind.STRUCT, base="Control"),
            event_decl("Control", "Loaded", type_ref="Control"),
        )
    )
    assert codes_of(diagnostics) == (DiagnosticCode.TYPE_REFERENCE_KIND_MISMATCH,) * 4
    assert diagnostics[0].declarations == ("Button", "IControl")


def test_event_with_delegate_handler_resolves() -> None:
    """Ensure events typed with a declared delegate resolve cleanly."""
    _, facet, diagnostics = _build(
        (
            type_decl("RoutedEventHandler", kind=DeclarationKind.DELEGATE),
            type_decl("Control"),
            event_decl("Control", "Loaded", type_ref="RoutedEventHandler"),
            event_decl("Control", "Closed", type_ref="Windows.Foundation.EventHandler"),
        )
    )
    assert diagnostics == ()
    assert facet is not None


def test_inheritance_cycle_names_full_path() -> None:
    """Ensure a base cycle is reported once with its closed path."""
    _, facet, diagnostics = _build((type_decl("D", base="E"), type_decl("E", base="D")))
    assert facet is None
    assert codes_of(diagnostics) == (DiagnosticCode.INHERITANCE_CYCLE,)
    assert diagnostics[0].detail_value("path") == "D → E → D"
    assert diagnostics[0].declarations == ("D", "E")


def test_cycles_are_rotated_to_earliest_declaration() -> None:
    """Ensure cycles entered mid-path are reported from their earliest member."""
    index, _, _ = prepare(
        (
            type_decl("Leaf", base="B"),
            type_decl("A", base="C"),
            type_decl("B", base="A"),
            type_decl("C", base="B"),
            type_decl("Self", base="Self"),
        )
    )
    cycles = find_inheritance_cycles(index)
    assert [[index.name(entity) for entity in cycle] for cycle in cycles] == [
        ["A", "C", "B"],
        ["Self"],
    ]


def test_base_first_order_raises_on_cycle() -> None:
    """Ensure cycle-dependent callers get an exception instead of an order."""
    index, _, _ = prepare((type_decl("D", base="E"), type_decl("E", base="D")))
    with pytest.raises(InheritanceCycleError) as excinfo:
        base_first_order(index)
    assert excinfo.value.paths == (("D", "E", "D"),)


def test_content_property_must_exist_on_type_or_ancestor() -> None:
    """Ensure content properties resolve through the base chain."""
    _, _, diagnostics = _build(
        (
            type_decl("ContentControl"),
            property_decl("ContentControl", "Content"),
            type_decl(
                "Button",
                base="ContentControl",
                attributes=(attr("content_property", name="Content"),),
            ),
            type_decl("Panel", attributes=(attr("content_property", name="Children"),)),
        )
    )
    assert codes_of(diagnostics) == (DiagnosticCode.UNRESOLVED_MEMBER_REFERENCE,)
    assert diagnostics[0].declarations == ("Panel",)
