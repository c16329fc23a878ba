"""Object-model declaration schema: declarations, kinds, and attribute catalog."""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from omspec.attribute_catalog import (
        AttributeCatalog,
        AttributeKindSpec,
        AttributeRule,
        default_attribute_catalog,
    )
    from omspec.declarations import AttributeEntry, Declaration
    from omspec.kinds import (
        AccessorShape,
        CodeGenLevel,
        DeclarationKind,
        NativeValueKind,
        PropertyKind,
        StorageKind,
        Surface,
        TypeStorageCategory,
    )
    from omspec.serialization import decode_declarations_json, decode_declarations_msgpack

_EXPORT_MAP: dict[str, tuple[str, str]] = {
    "AccessorShape": ("omspec.kinds", "AccessorShape"),
    "AttributeCatalog": ("omspec.attribute_catalog", "AttributeCatalog"),
    "AttributeEntry": ("omspec.declarations", "AttributeEntry"),
    "AttributeKindSpec": ("omspec.attribute_catalog", "AttributeKindSpec"),
    "AttributeRule": ("omspec.attribute_catalog", "AttributeRule"),
    "CodeGenLevel": ("omspec.kinds", "CodeGenLevel"),
    "Declaration": ("omspec.declarations", "Declaration"),
    "DeclarationKind": ("omspec.kinds", "DeclarationKind"),
    "NativeValueKind": ("omspec.kinds", "NativeValueKind"),
    "PropertyKind": ("omspec.kinds", "PropertyKind"),
    "StorageKind": ("omspec.kinds", "StorageKind"),
    "Surface": ("omspec.kinds", "Surface"),
    "TypeStorageCategory": ("omspec.kinds", "TypeStorageCategory"),
    "decode_declarations_json": ("omspec.serialization", "decode_declarations_json"),
    "decode_declarations_msgpack": ("omspec.serialization", "decode_declarations_msgpack"),
    "default_attribute_catalog": ("omspec.attribute_catalog", "default_attribute_catalog"),
}


def __getattr__(name: str) -> object:
    target = _EXPORT_MAP.get(name)
    if target is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    module_name, attr_name = target
    module = importlib.import_module(module_name)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return sorted(__all__)


__all__ = tuple(sorted(_EXPORT_MAP))
