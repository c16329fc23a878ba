"""Small declaration sets shared by registry and engine tests."""

from __future__ import annotations

from omspec.builders import (
    attr,
    contract_decl,
    enum_member_decl,
    event_decl,
    method_decl,
    platform,
    property_decl,
    type_decl,
)
from omspec.declarations import Declaration
from omspec.kinds import DeclarationKind

CONTRACT = "UI.Contract"
ELEMENT_GUID = "{8A2F4C10-7B3E-4D5A-9C61-2E0F1B3D4A5C}"


def ui_schema() -> tuple[Declaration, ...]:
    """Return a valid schema touching every resolution stage.

    Returns
    -------
    tuple[Declaration, ...]
        Declarations in input order; ``UI.Control`` precedes its base.
    """
    return (
        contract_decl("Contract", [(1, 10), 2, 3], namespace="UI"),
        type_decl(
            "Control",
            namespace="UI",
            base="UI.Element",
            interfaces=("UI.IControl",),
            attributes=(platform(CONTRACT, 1),),
        ),
        type_decl(
            "Element",
            namespace="UI",
            attributes=(platform(CONTRACT, 1), attr("guids", class_guid=ELEMENT_GUID)),
        ),
        type_decl("IControl", namespace="UI", is_interface=True),
        type_decl("RoutedEventHandler", namespace="UI", kind=DeclarationKind.DELEGATE),
        type_decl("Orientation", namespace="UI", kind=DeclarationKind.ENUM),
        property_decl(
            "UI.Element",
            "Width",
            type_ref="Windows.Foundation.Double",
            attributes=(
                attr("native_storage_type", value_kind="value_double"),
                attr("offset_field_name", field="m_width"),
                attr("indexed_dispatch"),
            ),
        ),
        property_decl(
            "UI.Control",
            "Padding",
            type_ref="Windows.Foundation.Rect",
            attributes=(platform(CONTRACT, 3), attr("indexed_dispatch")),
        ),
        property_decl(
            "UI.Control",
            "Handle",
            setter=False,
            attributes=(attr("codegen", level="core_only"),),
        ),
        event_decl("UI.Control", "Loaded", type_ref="UI.RoutedEventHandler"),
        method_decl("UI.IControl", "Focus"),
        enum_member_decl("UI.Orientation", "Horizontal"),
        enum_member_decl("UI.Orientation", "Vertical"),
    )


__all__ = ["CONTRACT", "ELEMENT_GUID", "ui_schema"]
