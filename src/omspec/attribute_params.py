"""Parameter schemas for the built-in attribute kinds."""

from __future__ import annotations

from typing import Annotated, Literal

from msgspec import Meta

from core_types import GuidStr, IdentifierStr, NonNegativeInt, PositiveInt, QualifiedNameStr
from omspec.kinds import (
    AccessModifier,
    CodeGenLevel,
    CollectionKind,
    NativeValueKind,
    PropertyKind,
)
from serde_msgspec import StructBaseStrict

LATEST_VERSION: Literal["latest"] = "latest"

GateVersion = PositiveInt | Literal["latest"]

NonEmptyStr = Annotated[str, Meta(min_length=1)]


class MarkerParams(StructBaseStrict, frozen=True):
    """Parameters for marker attributes (none allowed)."""


class CodeGenParams(StructBaseStrict, frozen=True):
    """``codegen(level=..., partial=...)``."""

    level: CodeGenLevel | None = None
    partial: bool = False


class PlatformParams(StructBaseStrict, frozen=True):
    """``platform(contract, version, feature=None, type_version=None)``.

    ``type_version`` is only meaningful on types, where values of 2 or more map
    an interface version of the type onto a contract version instead of
    gating the type itself.
    """

    contract: NonEmptyStr
    version: GateVersion = 1
    feature: NonEmptyStr | None = None
    type_version: PositiveInt | None = None


class VersionParams(StructBaseStrict, frozen=True):
    """``version(n)``: the interface version of the owning type a member joins."""

    version: PositiveInt


class ContractVersionParams(StructBaseStrict, frozen=True):
    """``contract_version(version, native_version=None)``."""

    version: PositiveInt
    native_version: PositiveInt | None = None


class GuidParams(StructBaseStrict, frozen=True):
    """``guids(class_guid=...)``."""

    class_guid: GuidStr


class StableIdParams(StructBaseStrict, frozen=True):
    """``stable_id(value)``."""

    value: NonEmptyStr


class StableIndexParams(StructBaseStrict, frozen=True):
    """``stable_index(index)``."""

    index: NonNegativeInt


class NameParams(StructBaseStrict, frozen=True):
    """Attributes carrying a single simple name."""

    name: IdentifierStr


class FeatureParams(StructBaseStrict, frozen=True):
    """``velocity_feature(name)``."""

    name: NonEmptyStr


class NativeStorageParams(StructBaseStrict, frozen=True):
    """``native_storage_type(value_kind)``."""

    value_kind: NativeValueKind


class OffsetFieldParams(StructBaseStrict, frozen=True):
    """``offset_field_name(field)``."""

    field: IdentifierStr


class PropertyKindParams(StructBaseStrict, frozen=True):
    """``property_kind(kind)``."""

    kind: PropertyKind


class DependencyPropertyModifierParams(StructBaseStrict, frozen=True):
    """``dependency_property_modifier(modifier)``."""

    modifier: AccessModifier


class CollectionTypeParams(StructBaseStrict, frozen=True):
    """``collection_type(kind, element_type=None)``.

    ``element_type`` names the item type when the collection interface is
    generic over a declared or external type.
    """

    kind: CollectionKind
    element_type: QualifiedNameStr | None = None


class StorageGroupParams(StructBaseStrict, frozen=True):
    """``storage_group_names(ensure_method, group, field)``.

    Properties sharing a lazily allocated native storage group name the method
    that allocates the group, the group member holding it, and their own field
    inside the group.
    """

    ensure_method: IdentifierStr
    group: IdentifierStr
    field: IdentifierStr


class DeprecatedParams(StructBaseStrict, frozen=True):
    """``deprecated(contract, version, message="")``."""

    contract: NonEmptyStr
    version: GateVersion
    message: str = ""


class EnumValueParams(StructBaseStrict, frozen=True):
    """``enum_value(value)``."""

    value: int


class CommentParams(StructBaseStrict, frozen=True):
    """``comment(text)``."""

    text: str


__all__ = [
    "LATEST_VERSION",
    "CodeGenParams",
    "CollectionTypeParams",
    "CommentParams",
    "ContractVersionParams",
    "DependencyPropertyModifierParams",
    "DeprecatedParams",
    "EnumValueParams",
    "FeatureParams",
    "GateVersion",
    "GuidParams",
    "MarkerParams",
    "NameParams",
    "NativeStorageParams",
    "OffsetFieldParams",
    "PlatformParams",
    "PropertyKindParams",
    "StableIdParams",
    "StableIndexParams",
    "StorageGroupParams",
    "VersionParams",
]
