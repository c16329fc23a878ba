"""Tests for storage bindings and emission surfaces."""

from __future__ import annotations

from collections.abc import Sequence

from omresolve.diagnostics import Diagnostic, DiagnosticCode, codes_of
from omresolve.index import DeclarationIndex
from omresolve.storage import (
    PropertyTableEntry,
    RenderDirtyHandler,
    StorageFacet,
    map_storage,
)
from omspec.attribute_params import CollectionTypeParams, StorageGroupParams
from omspec.builders import (
    attr,
    enum_member_decl,
    event_decl,
    flags,
    method_decl,
    property_decl,
    type_decl,
)
from omspec.declarations import Declaration
from omspec.kinds import (
    AccessModifier,
    AccessorShape,
    CollectionKind,
    DeclarationKind,
    NativeValueKind,
    StorageKind,
    Surface,
    TypeStorageCategory,
)
from tests.test_helpers.resolution import entity_of, prepare

_PUBLIC = Surface.PUBLIC_INTERFACE
_CORE = Surface.NATIVE_CORE
_STUB = Surface.STUB


def _map(
    decls: Sequence[Declaration],
) -> tuple[DeclarationIndex, StorageFacet, tuple[Diagnostic, ...]]:
    index, normalized, upstream = prepare(decls)
    assert upstream == ()
    facet, diagnostics = map_storage(index, normalized)
    assert facet is not None
    return index, facet, diagnostics


def test_unmarked_declarations_use_default_surfaces() -> None:
    """Ensure unmarked types and members reach the public and core surfaces."""
    index, facet, diagnostics = _map((type_decl("Panel"), property_decl("Panel", "Width")))
    assert diagnostics == ()
    panel = facet.types[entity_of(index, "Panel")]
    width = facet.members[entity_of(index, "Panel.Width")]
    assert panel.plan.surfaces == (_PUBLIC, _CORE)
    assert panel.category == TypeStorageCategory.NATIVE_BACKED
    assert width.plan.surfaces == (_PUBLIC, _CORE)
    assert not width.plan.internal_only


def test_core_only_member_is_internal() -> None:
    """Ensure a core-only member emits to the native surface alone."""
    index, facet, _ = _map(
        (
            type_decl("Panel"),
            property_decl("Panel", "Handle", attributes=(attr("codegen", level="core_only"),)),
        )
    )
    handle = facet.members[entity_of(index, "Panel.Handle")]
    assert handle.plan.surfaces == (_CORE,)
    assert handle.plan.internal_only


def test_partial_stub_member_emits_public_and_stub() -> None:
    """Ensure a public plus partial stub member reaches both surfaces."""
    index, facet, _ = _map(
        (
            type_decl("Panel"),
            method_decl(
                "Panel",
                "Measure",
                attributes=(attr("codegen", level="idl_and_partial_stub"),),
            ),
        )
    )
    measure = facet.members[entity_of(index, "Panel.Measure")]
    assert measure.plan.surfaces == (_PUBLIC, _STUB)
    assert measure.plan.partial_stub


def test_partial_stub_owner_marks_its_members() -> None:
    """Ensure members of a partial-stub type inherit its surfaces and partial flag."""
    index, facet, _ = _map(
        (
            type_decl("Shape", attributes=(attr("codegen", level="idl_and_partial_stub"),)),
            property_decl("Shape", "Fill"),
        )
    )
    shape = facet.types[entity_of(index, "Shape")]
    fill = facet.members[entity_of(index, "Shape.Fill")]
    assert shape.plan.surfaces == (_PUBLIC, _STUB)
    assert shape.category == TypeStorageCategory.PURE_MANAGED_WRAPPER
    assert fill.plan.surfaces == (_PUBLIC, _STUB)
    assert fill.plan.partial_stub


def test_owner_exclusion_propagates_to_members() -> None:
    """Ensure a member cannot reach a surface its owner is excluded from."""
    index, facet, _ = _map(
        (
            type_decl("Panel", attributes=(flags("type_table", "exclude_from_public"),)),
            property_decl("Panel", "Width", attributes=(attr("codegen", level="idl_and_stub"),)),
        )
    )
    panel = facet.types[entity_of(index, "Panel")]
    width = facet.members[entity_of(index, "Panel.Width")]
    assert panel.plan.surfaces == (_CORE,)
    assert width.plan.surfaces == (_CORE, _STUB)
    assert width.plan.internal_only


def test_excluded_owner_removes_every_member_surface() -> None:
    """Ensure members of an excluded type are emitted nowhere."""
    index, facet, _ = _map(
        (
            type_decl("Legacy", attributes=(attr("codegen", level="excluded"),)),
            property_decl("Legacy", "Value", attributes=(attr("codegen", level="stub"),)),
        )
    )
    assert facet.types[entity_of(index, "Legacy")].plan.surfaces == ()
    assert facet.members[entity_of(index, "Legacy.Value")].plan.surfaces == ()


def test_core_removal_propagates_to_derived_types() -> None:
    """Ensure a derived type drops the core surface its base lacks."""
    index, facet, _ = _map(
        (
            type_decl("Control", base="Element"),
            type_decl("Element", attributes=(flags("type_table", "exclude_from_core"),)),
            property_decl("Control", "Padding"),
        )
    )
    control = facet.types[entity_of(index, "Control")]
    padding = facet.members[entity_of(index, "Control.Padding")]
    assert control.plan.surfaces == (_PUBLIC,)
    assert control.category == TypeStorageCategory.PURE_MANAGED_WRAPPER
    assert padding.plan.surfaces == (_PUBLIC,)


def test_imported_types_are_external() -> None:
    """Ensure imported types are categorized external with interface-only members."""
    index, facet, _ = _map(
        (
            type_decl("Brush", attributes=(attr("imported"),)),
            property_decl("Brush", "Opacity"),
        )
    )
    assert facet.types[entity_of(index, "Brush")].category == (
        TypeStorageCategory.IMPORTED_EXTERNAL
    )
    opacity = facet.members[entity_of(index, "Brush.Opacity")]
    assert opacity.binding.kind == StorageKind.INTERFACE_ONLY


def test_member_bindings() -> None:
    """Ensure field, computed and interface bindings are chosen per member."""
    index, facet, diagnostics = _map(
        (
            type_decl("Panel"),
            property_decl(
                "Panel",
                "Width",
                attributes=(
                    attr("native_storage_type", value_kind="value_double"),
                    attr("offset_field_name", field="m_width"),
                ),
            ),
            property_decl("Panel", "Children"),
            type_decl("IPanel", is_interface=True),
            method_decl("IPanel", "Arrange"),
        )
    )
    assert diagnostics == ()
    width = facet.members[entity_of(index, "Panel.Width")]
    assert width.binding.kind == StorageKind.FIELD
    assert width.binding.value_kind == NativeValueKind.VALUE_DOUBLE
    assert width.binding.offset_field == "m_width"
    assert facet.members[entity_of(index, "Panel.Children")].binding.kind == (
        StorageKind.COMPUTED
    )
    assert facet.members[entity_of(index, "IPanel.Arrange")].binding.kind == (
        StorageKind.INTERFACE_ONLY
    )


def test_offset_without_value_kind_is_incomplete() -> None:
    """Ensure an offset field without a native value kind is reported."""
    index, facet, diagnostics = _map(
        (
            type_decl("Panel"),
            property_decl("Panel", "Width", attributes=(attr("offset_field_name", field="m_w"),)),
        )
    )
    assert codes_of(diagnostics) == (DiagnosticCode.INCOMPLETE_STORAGE_BINDING,)
    assert diagnostics[0].declarations == ("Panel.Width",)
    assert facet.members[entity_of(index, "Panel.Width")].binding.kind == StorageKind.COMPUTED



def test_property_table_entry_collects_property_system_facts() -> None:
    """Ensure a property entry collects its property-system attributes."""
    index, facet, diagnostics = _map(
        (
            type_decl("TextBlock"),
            property_decl(
                "TextBlock",
                "Inlines",
                attributes=(
                    attr("native_storage_type", value_kind="value_object"),
                    attr("render_dirty_flag_class_name", name="CUIElement"),
                    attr("render_dirty_flag_method_name", name="NWSetContentDirty"),
                    attr(
                        "storage_group_names",
                        ensure_method="EnsureTextFormatting",
                        group="TextFormatting",
                        field="m_pInlines",
                    ),
                    attr("collection_type", kind="vector"),
                    attr("dependency_property_modifier", modifier="internal"),
                ),
            ),
            property_decl("TextBlock", "Text"),
            method_decl("TextBlock", "Focus"),
        )
    )
    assert diagnostics == ()
    inlines = facet.members[entity_of(index, "TextBlock.Inlines")]
    assert inlines.property_table == PropertyTableEntry(
        modifier=AccessModifier.INTERNAL,
        render_dirty=RenderDirtyHandler(class_name="CUIElement", method_name="NWSetContentDirty"),
        storage_group=StorageGroupParams(
            ensure_method="EnsureTextFormatting",
            group="TextFormatting",
            field="m_pInlines",
        ),
        collection=CollectionTypeParams(kind=CollectionKind.VECTOR),
    )
    assert facet.members[entity_of(index, "TextBlock.Text")].property_table == PropertyTableEntry()
    assert facet.members[entity_of(index, "TextBlock.Focus")].property_table is None


def test_field_backed_property_keeps_computed_binding() -> None:
    """Ensure a field-backed property is flagged without a native field binding."""
    index, facet, diagnostics = _map(
        (
            type_decl("RangeBase"),
            property_decl("RangeBase", "Minimum", attributes=(attr("field_backed"),)),
        )
    )
    assert diagnostics == ()
    minimum = facet.members[entity_of(index, "RangeBase.Minimum")]
    assert minimum.property_table.field_backed
    assert minimum.binding.kind == StorageKind.COMPUTED


def test_lone_render_dirty_name_is_incomplete() -> None:
    """Ensure a render-dirty class without a method name is reported."""
    index, facet, diagnostics = _map(
        (
            type_decl("Border"),
            property_decl(
                "Border",
                "Background",
                attributes=(attr("render_dirty_flag_class_name", name="CBorder"),),
            ),
        )
    )
    assert codes_of(diagnostics) == (DiagnosticCode.INCOMPLETE_STORAGE_BINDING,)
    assert diagnostics[0].detail_value("render_dirty_class") == "CBorder"
    assert diagnostics[0].detail_value("render_dirty_method") == ""
    background = facet.members[entity_of(index, "Border.Background")]
    assert background.property_table.render_dirty is None


def test_storage_group_without_value_kind_is_incomplete() -> None:
    """Ensure a storage group needs a native value kind."""
    _, _, diagnostics = _map(
        (
            type_decl("TextBlock"),
            property_decl(
                "TextBlock",
                "FontSize",
                attributes=(
                    attr(
                        "storage_group_names",
                        ensure_method="EnsureTextFormatting",
                        group="TextFormatting",
                        field="m_eFontSize",
                    ),
                ),
            ),
        )
    )
    assert codes_of(diagnostics) == (DiagnosticCode.INCOMPLETE_STORAGE_BINDING,)
    assert diagnostics[0].declarations == ("TextBlock.FontSize",)
    assert diagnostics[0].detail_value("storage_group") == "TextFormatting"

def test_enum_constants_follow_previous_value() -> None:
    """Ensure enum members without a value continue from the previous one."""
    index, facet, _ = _map(
        (
            type_decl("Orientation", kind=DeclarationKind.ENUM),
            enum_member_decl("Orientation", "Horizontal"),
            enum_member_decl("Orientation", "Vertical"),
            enum_member_decl("Orientation", "Both", value=8),
            enum_member_decl("Orientation", "Auto"),
        )
    )
    constants = [
        facet.members[entity_of(index, f"Orientation.{name}")].binding.constant
        for name in ("Horizontal", "Vertical", "Both", "Auto")
    ]
    assert constants == [0, 1, 8, 9]
    binding = facet.members[entity_of(index, "Orientation.Auto")].binding
    assert binding.kind == StorageKind.CONSTANT


def test_accessor_shapes() -> None:
    """Ensure accessor shapes follow markers and accessor presence."""
    index, facet, _ = _map(
        (
            type_decl("Panel"),
            property_decl("Panel", "Width"),
            property_decl("Panel", "Count", setter=False),
            property_decl("Panel", "Sink", getter=False),
            property_decl("Panel", "Locked", attributes=(attr("read_only"),)),
            property_decl("Panel", "Tag", getter=False, attributes=(attr("settable"),)),
            property_decl("Panel", "Bare", getter=False, setter=False),
            event_decl("Panel", "Loaded"),
            method_decl("Panel", "Focus"),
        )
    )
    shapes = {
        name: facet.members[entity_of(index, f"Panel.{name}")].accessor
        for name in ("Width", "Count", "Sink", "Locked", "Tag", "Bare", "Loaded", "Focus")
    }
    assert shapes == {
        "Width": AccessorShape.READ_WRITE,
        "Count": AccessorShape.READ_ONLY,
        "Sink": AccessorShape.WRITE_ONLY,
        "Locked": AccessorShape.READ_ONLY,
        "Tag": AccessorShape.READ_WRITE,
        "Bare": None,
        "Loaded": AccessorShape.EVENT_ADD_REMOVE,
        "Focus": None,
    }


def test_cyclic_hierarchy_aborts_silently() -> None:
    """Ensure the stage produces no facet and no findings on a cycle."""
    index, normalized, _ = prepare((type_decl("D", base="E"), type_decl("E", base="D")))
    facet, diagnostics = map_storage(index, normalized)
    assert facet is None
    assert diagnostics == ()
