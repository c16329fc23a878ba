"""Attribute normalization into canonical fixed-shape records."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import cast

import msgspec

from omresolve.diagnostics import Diagnostic, DiagnosticCode, Stage, error
from omresolve.index import DeclarationIndex, EntityId
from omspec.attribute_catalog import (
    FACETS,
    AttributeCatalog,
    AttributeRule,
    FacetCondition,
    default_attribute_catalog,
)
from omspec.attribute_params import (
    CodeGenParams,
    CollectionTypeParams,
    ContractVersionParams,
    DeprecatedParams,
    PlatformParams,
    StorageGroupParams,
)
from omspec.declarations import AttributeEntry, Declaration
from omspec.kinds import AccessModifier, DeclarationKind, NativeValueKind, PropertyKind
from serde_msgspec import StructBaseStrict, convert, validation_error_payload

logger = logging.getLogger(__name__)


class NormalizedDeclaration(StructBaseStrict, frozen=True):
    """Canonical record: one value per recognized facet."""

    entity: int
    name: str
    kind: DeclarationKind
    codegen: CodeGenParams | None = None
    surface_exclusions: tuple[str, ...] = ()
    force_include: bool = False
    platforms: tuple[PlatformParams, ...] = ()
    type_version: int | None = None
    api_contract: bool = False
    contract_versions: tuple[ContractVersionParams, ...] = ()
    guid: str | None = None
    stable_id: str | None = None
    stable_index: int | None = None
    indexed_dispatch: bool = False
    native_name: str | None = None
    public_name: str | None = None
    native_value_kind: NativeValueKind | None = None
    offset_field: str | None = None
    read_only: bool = False
    settable: bool = False
    property_kind: PropertyKind | None = None
    attached: bool = False
    dependency_property_modifier: AccessModifier | None = None
    field_backed: bool = False
    render_dirty_class: str | None = None
    render_dirty_method: str | None = None
    storage_group: StorageGroupParams | None = None
    collection: CollectionTypeParams | None = None
    collection_flags: tuple[str, ...] = ()
    flags: tuple[str, ...] = ()
    imported: bool = False
    hand_written: bool = False
    deprecations: tuple[DeprecatedParams, ...] = ()
    feature: str | None = None
    enum_value: int | None = None
    native_value_name: str | None = None
    content_property: str | None = None
    comments: tuple[str, ...] = ()

    @property
    def codegen_level(self) -> str | None:
        """Return the declared code-generation level, if any."""
        if self.codegen is None or self.codegen.level is None:
            return None
        return str(self.codegen.level)

    @property
    def defines_contract(self) -> bool:
        """Return whether the declaration defines a contract."""
        return self.api_contract or bool(self.contract_versions)


@dataclass(frozen=True)
class NormalizedSet:
    """Normalized records keyed by entity id."""

    records: Mapping[EntityId, NormalizedDeclaration]

    def get(self, entity: EntityId) -> NormalizedDeclaration | None:
        """Return the record for an entity, if normalized."""
        return self.records.get(entity)

    def __getitem__(self, entity: EntityId) -> NormalizedDeclaration:
        return self.records[entity]

    def __contains__(self, entity: object) -> bool:
        return entity in self.records


class _FacetError(ValueError):
    def __init__(self, code: DiagnosticCode, message: str) -> None:
        super().__init__(message)
        self.code = code


class AttributeNormalizer:
    """Project raw attribute bags onto canonical records using a catalog."""

    def __init__(self, catalog: AttributeCatalog | None = None) -> None:
        self._catalog = catalog or default_attribute_catalog()

    @property
    def catalog(self) -> AttributeCatalog:
        """Return the attribute catalog in use."""
        return self._catalog

    def normalize(
        self,
        entity: EntityId,
        decl: Declaration,
        *,
        owner: Declaration | None = None,
        owner_record: NormalizedDeclaration | None = None,
    ) -> tuple[NormalizedDeclaration, tuple[Diagnostic, ...]]:
        """Normalize one declaration.

        Parameters
        ----------
        entity
            Entity id of the declaration.
        decl
            Declaration to normalize.
        owner
            Owning type declaration for members.
        owner_record
            Normalized owner record for members.

        Returns
        -------
        tuple[NormalizedDeclaration, tuple[Diagnostic, ...]]
            Canonical record built from every valid attribute, plus findings.
        """
        name = decl.qualified_name
        diagnostics: list[Diagnostic] = []
        facets: dict[str, object] = {}
        writers: dict[str, str] = {}
        seen: dict[str, object] = {}
        interface_owner = owner is not None and owner.is_interface
        for entry in decl.attributes:
            rule = self._catalog.rule(entry.kind)
            if rule is None:
                diagnostics.append(
                    _diag(
                        DiagnosticCode.UNKNOWN_ATTRIBUTE_KIND,
                        f"Attribute kind {entry.kind!r} is not recognized.",
                        name,
                        entry,
                    )
                )
                continue
            if decl.kind not in rule.targets:
                diagnostics.append(
                    _diag(
                        DiagnosticCode.ATTRIBUTE_KIND_MISMATCH,
                        f"Attribute {entry.kind!r} is not valid on a {decl.kind} declaration.",
                        name,
                        entry,
                    )
                )
                continue
            if interface_owner and decl.is_member and not rule.allowed_on_interface_members:
                diagnostics.append(
                    _diag(
                        DiagnosticCode.ATTRIBUTE_KIND_MISMATCH,
                        f"Attribute {entry.kind!r} is not valid on a member of an interface.",
                        name,
                        entry,
                    )
                )
                continue
            try:
                value = _parse_value(rule, entry)
            except _FacetError as exc:
                diagnostics.append(_diag(exc.code, str(exc), name, entry))
                continue
            if not rule.repeatable and entry.kind in seen:
                if seen[entry.kind] != value:
                    diagnostics.append(
                        _diag(
                            DiagnosticCode.CONFLICTING_ATTRIBUTES,
                            f"Attribute {entry.kind!r} is repeated with different parameters.",
                            name,
                            entry,
                        )
                    )
                continue
            seen[entry.kind] = value
            conflict = _apply(rule, value, facets, writers)
            if conflict is not None:
                diagnostics.append(
                    _diag(
                        DiagnosticCode.CONFLICTING_ATTRIBUTES,
                        f"Attributes {conflict!r} and {entry.kind!r} set different values "
                        f"for {rule.facet!r}.",
                        name,
                        entry,
                        other=conflict,
                    )
                )
        record = _build_record(entity, decl, facets)
        diagnostics.extend(self._conflicts(record, owner_record))
        return record, tuple(diagnostics)

    def _conflicts(
        self,
        record: NormalizedDeclaration,
        owner_record: NormalizedDeclaration | None,
    ) -> list[Diagnostic]:
        found: list[Diagnostic] = [
            error(
                DiagnosticCode.CONFLICTING_ATTRIBUTES,
                Stage.NORMALIZE,
                f"{record.name}: {_describe(rule.left)} conflicts with {_describe(rule.right)} "
                f"({rule.reason}).",
                declarations=(record.name,),
                detail={"attributes": f"{rule.left.attribute},{rule.right.attribute}"},
            )
            for rule in self._catalog.conflicts
            if rule.left.matches(record) and rule.right.matches(record)
        ]
        if owner_record is None:
            return found
        found.extend(
            error(
                DiagnosticCode.CONFLICTING_ATTRIBUTES,
                Stage.NORMALIZE,
                f"{record.name}: {_describe(rule.member)} conflicts with "
                f"{_describe(rule.owner)} on owner {owner_record.name} ({rule.reason}).",
                declarations=(record.name, owner_record.name),
                detail={"attributes": f"{rule.member.attribute},{rule.owner.attribute}"},
            )
            for rule in self._catalog.owner_conflicts
            if rule.member.matches(record) and rule.owner.matches(owner_record)
        )
        return found


def normalize_declarations(
    index: DeclarationIndex,
    *,
    catalog: AttributeCatalog | None = None,
) -> tuple[NormalizedSet, tuple[Diagnostic, ...]]:
    """Normalize every indexed declaration, types before members.

    Returns
    -------
    tuple[NormalizedSet, tuple[Diagnostic, ...]]
        Records keyed by entity id and findings in declaration order.
    """
    normalizer = AttributeNormalizer(catalog)
    records: dict[EntityId, NormalizedDeclaration] = {}
    found: dict[EntityId, tuple[Diagnostic, ...]] = {}
    for entity in index.types:
        records[entity], found[entity] = normalizer.normalize(entity, index.declaration(entity))
    for entity in index.members:
        owner_id = index.owner_id(entity)
        records[entity], found[entity] = normalizer.normalize(
            entity,
            index.declaration(entity),
            owner=None if owner_id is None else index.declaration(owner_id),
            owner_record=None if owner_id is None else records.get(owner_id),
        )
    diagnostics = tuple(diag for entity in sorted(found) for diag in found[entity])
    logger.debug("Normalized %d declarations (%d findings)", len(records), len(diagnostics))
    return NormalizedSet(dict(sorted(records.items()))), diagnostics


def _parse_value(rule: AttributeRule, entry: AttributeEntry) -> object:
    spec = FACETS[rule.facet]
    if spec.mode == "flags":
        return _parse_flags(rule, entry)
    if rule.params_type is not None:
        try:
            params = convert(entry.params, target_type=rule.params_type)
        except msgspec.ValidationError as exc:
            payload = validation_error_payload(exc)
            msg = f"Invalid parameters for {entry.kind!r}: {payload.get('summary', '')}"
            raise _FacetError(DiagnosticCode.INVALID_ATTRIBUTE_PARAMETERS, msg) from exc
        if spec.mode == "marker":
            return True
        if rule.value_key is not None:
            return getattr(params, rule.value_key)
        return params
    if spec.mode == "marker":
        if entry.params:
            msg = f"Marker attribute {entry.kind!r} takes no parameters."
            raise _FacetError(DiagnosticCode.INVALID_ATTRIBUTE_PARAMETERS, msg)
        return True
    if rule.value_key is None and _is_struct(spec.value_type):
        raw: object = entry.params
    elif rule.value_key is None or rule.value_key not in entry.params:
        msg = f"Attribute {entry.kind!r} requires parameter {rule.value_key!r}."
        raise _FacetError(DiagnosticCode.INVALID_ATTRIBUTE_PARAMETERS, msg)
    else:
        raw = entry.params[rule.value_key]
    try:
        return convert(raw, target_type=spec.value_type)  # type: ignore[arg-type]
    except msgspec.ValidationError as exc:
        msg = f"Invalid parameters for {entry.kind!r}: {exc}"
        raise _FacetError(DiagnosticCode.INVALID_ATTRIBUTE_PARAMETERS, msg) from exc


def _is_struct(value_type: object) -> bool:
    return isinstance(value_type, type) and issubclass(value_type, msgspec.Struct)


def _parse_flags(rule: AttributeRule, entry: AttributeEntry) -> frozenset[str]:
    enabled: set[str] = set()
    for key, value in entry.params.items():
        if key not in rule.flags:
            msg = f"Unknown flag {key!r} for {entry.kind!r}."
            raise _FacetError(DiagnosticCode.INVALID_ATTRIBUTE_PARAMETERS, msg)
        if not isinstance(value, bool):
            msg = f"Flag {key!r} of {entry.kind!r} must be a boolean."
            raise _FacetError(DiagnosticCode.INVALID_ATTRIBUTE_PARAMETERS, msg)
        if value:
            enabled.add(key)
    return frozenset(enabled)


def _apply(
    rule: AttributeRule,
    value: object,
    facets: dict[str, object],
    writers: dict[str, str],
) -> str | None:
    mode = rule.mode
    if mode == "marker":
        facets[rule.facet] = True
        return None
    if mode == "append":
        current = cast("tuple[object, ...]", facets.get(rule.facet, ()))
        if value not in current:
            facets[rule.facet] = (*current, value)
        return None
    if mode == "flags":
        enabled = cast("frozenset[str]", facets.get(rule.facet, frozenset()))
        facets[rule.facet] = enabled | cast("frozenset[str]", value)
        return None
    if rule.facet in facets and facets[rule.facet] != value:
        return writers[rule.facet]
    facets[rule.facet] = value
    writers[rule.facet] = rule.name
    return None


def _build_record(
    entity: EntityId,
    decl: Declaration,
    facets: Mapping[str, object],
) -> NormalizedDeclaration:
    values = {
        key: tuple(sorted(value)) if isinstance(value, frozenset) else value
        for key, value in facets.items()
    }
    return NormalizedDeclaration(
        entity=entity,
        name=decl.qualified_name,
        kind=decl.kind,
        **values,  # type: ignore[arg-type]
    )


def _describe(condition: FacetCondition) -> str:
    if condition.equals is not None:
        return f"{condition.attribute}({condition.equals})"
    if condition.contains is not None:
        return f"{condition.attribute}({condition.contains})"
    return condition.attribute


def _diag(
    code: DiagnosticCode,
    message: str,
    name: str,
    entry: AttributeEntry,
    *,
    other: str | None = None,
) -> Diagnostic:
    detail = {"attribute": entry.label()}
    if other is not None:
        detail["other"] = other
    return error(
        code,
        Stage.NORMALIZE,
        f"{name}: {message}",
        declarations=(name,),
        detail=detail,
    )


__all__ = [
    "AttributeNormalizer",
    "NormalizedDeclaration",
    "NormalizedSet",
    "normalize_declarations",
]
