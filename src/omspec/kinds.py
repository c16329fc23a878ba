"""Closed vocabularies shared by declarations, the catalog, and the registry."""

from __future__ import annotations

from enum import StrEnum


class DeclarationKind(StrEnum):
    """Kinds of object-model declarations."""

    TYPE = "type"
    PROPERTY = "property"
    EVENT = "event"
    METHOD = "method"
    ENUM = "enum"
    ENUM_MEMBER = "enum_member"
    DELEGATE = "delegate"
    STRUCT = "struct"


TYPE_KINDS: frozenset[DeclarationKind] = frozenset(
    {
        DeclarationKind.TYPE,
        DeclarationKind.ENUM,
        DeclarationKind.DELEGATE,
        DeclarationKind.STRUCT,
    }
)
MEMBER_KINDS: frozenset[DeclarationKind] = frozenset(
    {
        DeclarationKind.PROPERTY,
        DeclarationKind.EVENT,
        DeclarationKind.METHOD,
        DeclarationKind.ENUM_MEMBER,
    }
)
ALL_KINDS: frozenset[DeclarationKind] = TYPE_KINDS | MEMBER_KINDS


class CodeGenLevel(StrEnum):
    """Code-generation policy for a declaration."""

    EXCLUDED = "excluded"
    LOOKUP_ONLY = "lookup_only"
    CORE_ONLY = "core_only"
    IDL = "idl"
    IDL_AND_STUB = "idl_and_stub"
    IDL_AND_PARTIAL_STUB = "idl_and_partial_stub"
    STUB = "stub"


class Surface(StrEnum):
    """Output artifacts a declaration may be emitted to."""

    PUBLIC_INTERFACE = "public_interface"
    NATIVE_CORE = "native_core"
    STUB = "stub"


ALL_SURFACES: tuple[Surface, ...] = (
    Surface.PUBLIC_INTERFACE,
    Surface.NATIVE_CORE,
    Surface.STUB,
)


class PropertyKind(StrEnum):
    """How a property is exposed through the property system."""

    PROPERTY_ONLY = "property_only"
    DEPENDENCY_PROPERTY_ONLY = "dependency_property_only"
    PROPERTY_AND_DEPENDENCY_PROPERTY = "property_and_dependency_property"


class AccessModifier(StrEnum):
    """Access level of a generated dependency-property identifier."""

    PUBLIC = "public"
    INTERNAL = "internal"
    PRIVATE = "private"


class CollectionKind(StrEnum):
    """Collection interface a collection-valued type or property exposes."""

    VECTOR = "vector"
    OBSERVABLE = "observable"
    INDEXABLE = "indexable"
    ENUMERABLE = "enumerable"


class NativeValueKind(StrEnum):
    """Native value kinds used for field-backed storage."""

    VALUE_ANY = "value_any"
    VALUE_BOOL = "value_bool"
    VALUE_COLOR = "value_color"
    VALUE_DOUBLE = "value_double"
    VALUE_ENUM = "value_enum"
    VALUE_FLOAT = "value_float"
    VALUE_OBJECT = "value_object"
    VALUE_POINT = "value_point"
    VALUE_SIGNED = "value_signed"
    VALUE_SIZE = "value_size"
    VALUE_STRING = "value_string"
    VALUE_THICKNESS = "value_thickness"
    VALUE_TYPE_HANDLE = "value_type_handle"
    VALUE_VO = "value_vo"


class AccessorShape(StrEnum):
    """Accessor shape of a resolved member."""

    READ_ONLY = "read_only"
    READ_WRITE = "read_write"
    WRITE_ONLY = "write_only"
    EVENT_ADD_REMOVE = "event_add_remove"


class StorageKind(StrEnum):
    """Physical backing of a resolved member."""

    FIELD = "field"
    COMPUTED = "computed"
    INTERFACE_ONLY = "interface_only"
    CONSTANT = "constant"


class TypeStorageCategory(StrEnum):
    """Physical backing of a resolved type."""

    NATIVE_BACKED = "native_backed"
    PURE_MANAGED_WRAPPER = "pure_managed_wrapper"
    IMPORTED_EXTERNAL = "imported_external"


__all__ = [
    "ALL_KINDS",
    "ALL_SURFACES",
    "MEMBER_KINDS",
    "TYPE_KINDS",
    "AccessModifier",
    "AccessorShape",
    "CodeGenLevel",
    "CollectionKind",
    "DeclarationKind",
    "NativeValueKind",
    "PropertyKind",
    "StorageKind",
    "Surface",
    "TypeStorageCategory",
]
