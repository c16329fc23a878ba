"""Table-driven catalog of recognized attribute kinds.

The catalog is configuration data. Each ``AttributeRule`` names the
declaration kinds it may appear on, the schema of its parameters, and the
canonical facet it writes. ``ConflictRule`` and ``OwnerConflictRule`` entries
describe facet combinations that must not co-occur. Adding an attribute kind
means adding a rule (in code or through ``AttributeKindSpec`` configuration
entries); the normalizer never special-cases a kind by name.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Literal

import msgspec

from omresolve.errors import AttributeCatalogError
from omspec.attribute_params import (
    CodeGenParams,
    CollectionTypeParams,
    CommentParams,
    ContractVersionParams,
    DependencyPropertyModifierParams,
    DeprecatedParams,
    EnumValueParams,
    FeatureParams,
    GuidParams,
    MarkerParams,
    NameParams,
    NativeStorageParams,
    OffsetFieldParams,
    PlatformParams,
    PropertyKindParams,
    StableIdParams,
    StableIndexParams,
    StorageGroupParams,
    VersionParams,
)
from omspec.kinds import (
    ALL_KINDS,
    MEMBER_KINDS,
    TYPE_KINDS,
    AccessModifier,
    DeclarationKind,
    NativeValueKind,
    PropertyKind,
)
from serde_msgspec import StructBaseStrict

type FacetMode = Literal["marker", "set", "append", "flags"]


@dataclass(frozen=True)
class FacetSpec:
    """Canonical facet of a normalized declaration."""

    name: str
    mode: FacetMode
    value_type: object = None


FACETS: Mapping[str, FacetSpec] = {
    spec.name: spec
    for spec in (
        FacetSpec("codegen", "set", CodeGenParams),
        FacetSpec("surface_exclusions", "flags"),
        FacetSpec("force_include", "marker"),
        FacetSpec("platforms", "append", PlatformParams),
        FacetSpec("type_version", "set", int),
        FacetSpec("api_contract", "marker"),
        FacetSpec("contract_versions", "append", ContractVersionParams),
        FacetSpec("guid", "set", str),
        FacetSpec("stable_id", "set", str),
        FacetSpec("stable_index", "set", int),
        FacetSpec("indexed_dispatch", "marker"),
        FacetSpec("native_name", "set", str),
        FacetSpec("public_name", "set", str),
        FacetSpec("native_value_kind", "set", NativeValueKind),
        FacetSpec("offset_field", "set", str),
        FacetSpec("read_only", "marker"),
        FacetSpec("settable", "marker"),
        FacetSpec("property_kind", "set", PropertyKind),
        FacetSpec("dependency_property_modifier", "set", AccessModifier),
        FacetSpec("field_backed", "marker"),
        FacetSpec("render_dirty_class", "set", str),
        FacetSpec("render_dirty_method", "set", str),
        FacetSpec("storage_group", "set", StorageGroupParams),
        FacetSpec("collection", "set", CollectionTypeParams),
        FacetSpec("collection_flags", "flags"),
        FacetSpec("attached", "marker"),
        FacetSpec("flags", "flags"),
        FacetSpec("imported", "marker"),
        FacetSpec("hand_written", "marker"),
        FacetSpec("deprecations", "append", DeprecatedParams),
        FacetSpec("feature", "set", str),
        FacetSpec("enum_value", "set", int),
        FacetSpec("native_value_name", "set", str),
        FacetSpec("content_property", "set", str),
        FacetSpec("comments", "append", str),
    )
}


@dataclass(frozen=True)
class AttributeRule:
    """Validity and projection rule for one attribute kind."""

    name: str
    targets: frozenset[DeclarationKind]
    facet: str
    params_type: type[msgspec.Struct] | None = None
    value_key: str | None = None
    flags: frozenset[str] = frozenset()
    repeatable: bool = False
    allowed_on_interface_members: bool = True

    @property
    def mode(self) -> FacetMode:
        """Return the merge mode of the facet this rule writes."""
        return FACETS[self.facet].mode


@dataclass(frozen=True)
class FacetCondition:
    """Predicate over one facet of a normalized declaration.

    With neither ``equals`` nor ``contains`` set, the condition holds when the
    facet is present: not ``None``, ``False``, or empty. ``0`` counts as present.
    """

    attribute: str
    facet: str
    equals: str | None = None
    contains: str | None = None

    def value_of(self, record: object) -> object:
        """Return the facet value, following dotted paths.

        Returns
        -------
        object
            Facet value, or ``None`` when any step is missing.
        """
        value: object = record
        for part in self.facet.split("."):
            if value is None:
                return None
            value = getattr(value, part, None)
        return value

    def matches(self, record: object) -> bool:
        """Return whether the condition holds for ``record``."""
        value = self.value_of(record)
        if self.equals is not None:
            return value == self.equals
        if self.contains is not None:
            return isinstance(value, (frozenset, tuple)) and self.contains in value
        if value is None or value is False:
            return False
        if isinstance(value, (frozenset, tuple, str)) and not value:
            return False
        return True


@dataclass(frozen=True)
class ConflictRule:
    """Two facet conditions that must not both hold on one declaration."""

    left: FacetCondition
    right: FacetCondition
    reason: str


@dataclass(frozen=True)
class OwnerConflictRule:
    """A member condition that must not hold while its owner's condition holds."""

    member: FacetCondition
    owner: FacetCondition
    reason: str


class AttributeKindSpec(StructBaseStrict, frozen=True):
    """Configuration entry registering an attribute kind onto an existing facet."""

    name: str
    targets: tuple[DeclarationKind, ...]
    facet: str
    value_key: str | None = None
    flags: tuple[str, ...] = ()
    repeatable: bool = False
    allowed_on_interface_members: bool = True


@dataclass(frozen=True)
class AttributeCatalog:
    """Closed set of recognized attribute kinds and their conflict rules."""

    rules: Mapping[str, AttributeRule]
    conflicts: tuple[ConflictRule, ...] = ()
    owner_conflicts: tuple[OwnerConflictRule, ...] = ()
    _kinds: tuple[str, ...] = field(default=(), init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate rules against the facet table.

        Raises
        ------
        AttributeCatalogError
            Raised when a rule targets an unknown facet or lacks the
            parameters its facet mode requires.
        """
        for name, rule in self.rules.items():
            if name != rule.name:
                msg = f"Catalog key {name!r} does not match rule name {rule.name!r}."
                raise AttributeCatalogError(msg)
            _validate_rule(rule)
        object.__setattr__(self, "rules", dict(self.rules))
        object.__setattr__(self, "_kinds", tuple(self.rules))

    def rule(self, kind: str) -> AttributeRule | None:
        """Return the rule for ``kind`` or ``None`` when unrecognized."""
        return self.rules.get(kind)

    def kinds(self) -> tuple[str, ...]:
        """Return recognized kinds in registration order."""
        return self._kinds

    def extend(self, specs: Iterable[AttributeKindSpec]) -> AttributeCatalog:
        """Return a new catalog with configuration-declared kinds added.

        Parameters
        ----------
        specs
            Attribute kind entries loaded from configuration.

        Returns
        -------
        AttributeCatalog
            Extended catalog; the receiver is unchanged.

        Raises
        ------
        AttributeCatalogError
            Raised when an entry redefines an existing kind.
        """
        rules = dict(self.rules)
        for spec in specs:
            if spec.name in rules:
                msg = f"Attribute kind {spec.name!r} is already defined."
                raise AttributeCatalogError(msg)
            rules[spec.name] = AttributeRule(
                name=spec.name,
                targets=frozenset(spec.targets),
                facet=spec.facet,
                value_key=spec.value_key,
                flags=frozenset(spec.flags),
                repeatable=spec.repeatable,
                allowed_on_interface_members=spec.allowed_on_interface_members,
            )
        return AttributeCatalog(
            rules=rules,
            conflicts=self.conflicts,
            owner_conflicts=self.owner_conflicts,
        )


def _validate_rule(rule: AttributeRule) -> None:
    spec = FACETS.get(rule.facet)
    if spec is None:
        msg = f"Attribute kind {rule.name!r} targets unknown facet {rule.facet!r}."
        raise AttributeCatalogError(msg)
    if not rule.targets:
        msg = f"Attribute kind {rule.name!r} has no target declaration kinds."
        raise AttributeCatalogError(msg)
    if spec.mode == "flags" and not rule.flags:
        msg = f"Flags attribute kind {rule.name!r} declares no flag names."
        raise AttributeCatalogError(msg)
    if spec.mode != "flags" and rule.flags:
        msg = f"Attribute kind {rule.name!r} declares flags for {spec.mode} facet {rule.facet!r}."
        raise AttributeCatalogError(msg)
    if (
        rule.params_type is None
        and spec.mode in {"set", "append"}
        and rule.value_key is None
        and not (isinstance(spec.value_type, type) and issubclass(spec.value_type, msgspec.Struct))
    ):
        msg = f"Attribute kind {rule.name!r} needs a value_key to write facet {rule.facet!r}."
        raise AttributeCatalogError(msg)


def _rule(
    name: str,
    targets: Iterable[DeclarationKind],
    facet: str,
    params_type: type[msgspec.Struct] | None = MarkerParams,
    **kwargs: object,
) -> AttributeRule:
    return AttributeRule(
        name=name,
        targets=frozenset(targets),
        facet=facet,
        params_type=params_type,
        **kwargs,  # type: ignore[arg-type]
    )


_P = DeclarationKind.PROPERTY
_E = DeclarationKind.EVENT
_M = DeclarationKind.METHOD
_T = DeclarationKind.TYPE
_S = DeclarationKind.STRUCT
_EN = DeclarationKind.ENUM
_EM = DeclarationKind.ENUM_MEMBER
_D = DeclarationKind.DELEGATE

_INDEXABLE = (_T, _S, _EN, _D, _P, _E, _M)

PROPERTY_FLAGS: frozenset[str] = frozenset(
    {
        "affects_measure",
        "affects_arrange",
        "is_value_inherited",
        "is_value_created_on_demand",
        "is_read_only_except_for_parser",
        "is_independently_animatable",
        "is_conditionally_independently_animatable",
        "is_excluded_from_visual_tree",
        "is_in_storage_group",
        "needs_invoke",
    }
)
CLASS_FLAGS: frozenset[str] = frozenset(
    {
        "can_convert_from_string",
        "has_type_converter",
        "is_visible_in_xaml",
        "has_base_type_in_public_interface",
        "is_hidden_from_idl",
        "is_markup_extension",
        "is_free_threaded",
        "requires_core_services",
    }
)
TYPE_FLAGS: frozenset[str] = frozenset(
    {
        "is_creatable_from_xaml",
        "is_web_host_hidden",
        "is_excluded_from_public_interface",
    }
)
EVENT_FLAGS: frozenset[str] = frozenset(
    {"use_event_manager", "is_control_event", "is_impl_virtual", "is_hidden"}
)
ENUM_FLAGS: frozenset[str] = frozenset(
    {
        "has_type_converter",
        "is_native_type_def",
        "is_type_converter",
        "is_excluded_from_native",
        "native_uses_numeric_values",
        "are_values_flags",
        "generate_consecutive_enum",
        "generate_hex_values",
    }
)
METHOD_FLAGS: frozenset[str] = frozenset({"is_impl_virtual"})
COLLECTION_FLAGS: frozenset[str] = frozenset(
    {
        "is_observable",
        "is_icollection",
        "is_collection_implementation",
        "is_mutating_fast",
    }
)
TYPE_TABLE_FLAGS: frozenset[str] = frozenset(
    {"exclude_from_core", "exclude_from_public", "exclude_from_stub"}
)

DEFAULT_RULES: tuple[AttributeRule, ...] = (
    _rule("codegen", ALL_KINDS, "codegen", CodeGenParams),
    _rule(
        "type_table",
        ALL_KINDS,
        "surface_exclusions",
        None,
        flags=TYPE_TABLE_FLAGS,
        repeatable=True,
    ),
    _rule("force_include", MEMBER_KINDS, "force_include"),
    _rule("platform", ALL_KINDS, "platforms", PlatformParams, repeatable=True),
    _rule("version", (_P, _E, _M), "type_version", VersionParams, value_key="version"),
    _rule("api_contract", (_T, _S), "api_contract"),
    _rule(
        "contract_version",
        (_T, _S),
        "contract_versions",
        ContractVersionParams,
        repeatable=True,
    ),
    _rule("guids", (_T, _D), "guid", GuidParams, value_key="class_guid"),
    _rule("stable_id", ALL_KINDS, "stable_id", StableIdParams, value_key="value"),
    _rule("stable_index", _INDEXABLE, "stable_index", StableIndexParams, value_key="index"),
    _rule("indexed_dispatch", _INDEXABLE, "indexed_dispatch"),
    _rule("native_name", ALL_KINDS, "native_name", NameParams, value_key="name"),
    _rule("public_name", ALL_KINDS, "public_name", NameParams, value_key="name"),
    _rule(
        "native_storage_type",
        (_P,),
        "native_value_kind",
        NativeStorageParams,
        value_key="value_kind",
        allowed_on_interface_members=False,
    ),
    _rule(
        "offset_field_name",
        (_P,),
        "offset_field",
        OffsetFieldParams,
        value_key="field",
        allowed_on_interface_members=False,
    ),
    _rule("read_only", (_P,), "read_only"),
    _rule("settable", (_P,), "settable"),
    _rule("property_kind", (_P,), "property_kind", PropertyKindParams, value_key="kind"),
    _rule("attached", (_P,), "attached"),
    _rule(
        "dependency_property_modifier",
        (_P,),
        "dependency_property_modifier",
        DependencyPropertyModifierParams,
        value_key="modifier",
    ),
    _rule("field_backed", (_P,), "field_backed", allowed_on_interface_members=False),
    _rule(
        "render_dirty_flag_class_name",
        (_P,),
        "render_dirty_class",
        NameParams,
        value_key="name",
        allowed_on_interface_members=False,
    ),
    _rule(
        "render_dirty_flag_method_name",
        (_P,),
        "render_dirty_method",
        NameParams,
        value_key="name",
        allowed_on_interface_members=False,
    ),
    _rule(
        "storage_group_names",
        (_P,),
        "storage_group",
        StorageGroupParams,
        allowed_on_interface_members=False,
    ),
    _rule("collection_type", (_T, _P), "collection", CollectionTypeParams),
    _rule(
        "collection_flags",
        (_T,),
        "collection_flags",
        None,
        flags=COLLECTION_FLAGS,
        repeatable=True,
    ),
    _rule("property_flags", (_P,), "flags", None, flags=PROPERTY_FLAGS, repeatable=True),
    _rule("class_flags", (_T,), "flags", None, flags=CLASS_FLAGS, repeatable=True),
    _rule("type_flags", (_T, _S), "flags", None, flags=TYPE_FLAGS, repeatable=True),
    _rule("event_flags", (_E,), "flags", None, flags=EVENT_FLAGS, repeatable=True),
    _rule("enum_flags", (_EN,), "flags", None, flags=ENUM_FLAGS, repeatable=True),
    _rule("method_flags", (_M,), "flags", None, flags=METHOD_FLAGS, repeatable=True),
    _rule("imported", TYPE_KINDS, "imported"),
    _rule("hand_written", TYPE_KINDS, "hand_written"),
    _rule("deprecated", ALL_KINDS, "deprecations", DeprecatedParams, repeatable=True),
    _rule("velocity_feature", ALL_KINDS, "feature", FeatureParams, value_key="name"),
    _rule("enum_value", (_EM,), "enum_value", EnumValueParams, value_key="value"),
    _rule("native_value_name", (_EM,), "native_value_name", NameParams, value_key="name"),
    _rule("content_property", (_T,), "content_property", NameParams, value_key="name"),
    _rule(
        "comment",
        ALL_KINDS,
        "comments",
        CommentParams,
        value_key="text",
        repeatable=True,
    ),
)

DEFAULT_CONFLICTS: tuple[ConflictRule, ...] = (
    ConflictRule(
        FacetCondition("codegen", "codegen.level", equals="core_only"),
        FacetCondition("type_table", "surface_exclusions", contains="exclude_from_core"),
        "a core-only declaration cannot be excluded from the native core",
    ),
    ConflictRule(
        FacetCondition("read_only", "read_only"),
        FacetCondition("settable", "settable"),
        "a read-only property cannot be settable from outside",
    ),
    ConflictRule(
        FacetCondition("attached", "attached"),
        FacetCondition("property_kind", "property_kind", equals="property_only"),
        "an attached property needs a dependency property",
    ),
    ConflictRule(
        FacetCondition("stable_index", "stable_index"),
        FacetCondition("indexed_dispatch", "indexed_dispatch"),
        "an explicit stable index cannot also request an ordinal index",
    ),
    ConflictRule(
        FacetCondition("codegen", "codegen.level", equals="excluded"),
        FacetCondition("force_include", "force_include"),
        "an excluded declaration cannot force itself into a surface",
    ),
    ConflictRule(
        FacetCondition("field_backed", "field_backed"),
        FacetCondition("native_storage_type", "native_value_kind"),
        "a field-backed property is stored by its wrapper, not in native storage",
    ),
    ConflictRule(
        FacetCondition("dependency_property_modifier", "dependency_property_modifier"),
        FacetCondition("property_kind", "property_kind", equals="property_only"),
        "a plain property has no dependency-property identifier to restrict",
    ),
)

DEFAULT_OWNER_CONFLICTS: tuple[OwnerConflictRule, ...] = (
    OwnerConflictRule(
        FacetCondition("force_include", "force_include"),
        FacetCondition("type_table", "surface_exclusions"),
        "surface exclusion is inherited from the owning type and cannot be overridden",
    ),
    OwnerConflictRule(
        FacetCondition("force_include", "force_include"),
        FacetCondition("codegen", "codegen.level", equals="excluded"),
        "members of an excluded type cannot force themselves into a surface",
    ),
)


def default_attribute_catalog() -> AttributeCatalog:
    """Return the built-in attribute catalog.

    Returns
    -------
    AttributeCatalog
        Catalog of every built-in attribute kind and conflict rule.
    """
    return AttributeCatalog(
        rules={rule.name: rule for rule in DEFAULT_RULES},
        conflicts=DEFAULT_CONFLICTS,
        owner_conflicts=DEFAULT_OWNER_CONFLICTS,
    )


__all__ = [
    "COLLECTION_FLAGS",
    "DEFAULT_CONFLICTS",
    "DEFAULT_OWNER_CONFLICTS",
    "DEFAULT_RULES",
    "FACETS",
    "AttributeCatalog",
    "AttributeKindSpec",
    "AttributeRule",
    "ConflictRule",
    "FacetCondition",
    "FacetMode",
    "FacetSpec",
    "OwnerConflictRule",
    "default_attribute_catalog",
]
