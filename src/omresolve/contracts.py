"""Contract table construction and per-declaration gate resolution."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from omresolve.diagnostics import Diagnostic, DiagnosticCode, Stage, error, warning
from omresolve.index import DeclarationIndex, EntityId
from omresolve.normalizer import NormalizedDeclaration, NormalizedSet
from omresolve.visibility import ResolvedGate, VersionPairs, Visibility
from omspec.attribute_params import LATEST_VERSION, DeprecatedParams, PlatformParams
from serde_msgspec import StructBaseStrict

logger = logging.getLogger(__name__)


class ContractInfo(StructBaseStrict, frozen=True):
    """A named, versioned API surface."""

    name: str
    versions: tuple[int, ...]
    native_versions: tuple[int | None, ...] = ()
    valid: bool = True

    @property
    def latest(self) -> int | None:
        """Return the highest declared version."""
        return self.versions[-1] if self.versions else None

    def native_version_of(self, version: int) -> int | None:
        """Return the native platform version mapped to ``version``, if any."""
        try:
            position = self.versions.index(version)
        except ValueError:
            return None
        return self.native_versions[position]


class ResolvedDeprecation(StructBaseStrict, frozen=True):
    """A deprecation pinned to a concrete contract version."""

    contract: str
    version: int
    message: str = ""


@dataclass(frozen=True)
class ContractFacet:
    """Contract-stage output keyed by entity id."""

    contracts: Mapping[str, ContractInfo]
    visibility: Mapping[EntityId, Visibility]
    min_versions: Mapping[EntityId, VersionPairs]
    deprecations: Mapping[EntityId, tuple[ResolvedDeprecation, ...]]
    capability_versions: Mapping[EntityId, VersionPairs] = field(default_factory=dict)


def build_contract_table(
    index: DeclarationIndex,
    normalized: NormalizedSet,
) -> tuple[dict[str, ContractInfo], tuple[Diagnostic, ...]]:
    """Collect contract definitions and check their version sequences.

    Parameters
    ----------
    index
        Declaration index.
    normalized
        Normalized records.

    Returns
    -------
    tuple[dict[str, ContractInfo], tuple[Diagnostic, ...]]
        Contracts by qualified name, including invalid ones marked
        ``valid=False``, plus definition findings.
    """
    contracts: dict[str, ContractInfo] = {}
    diagnostics: list[Diagnostic] = []
    for entity in index.types:
        record = normalized.get(entity)
        if record is None or not record.defines_contract:
            continue
        versions = tuple(item.version for item in record.contract_versions)
        natives = tuple(item.native_version for item in record.contract_versions)
        valid = True
        if not versions:
            diagnostics.append(
                error(
                    DiagnosticCode.EMPTY_CONTRACT,
                    Stage.CONTRACTS,
                    f"Contract {record.name!r} declares no versions.",
                    declarations=(record.name,),
                )
            )
            valid = False
        elif not _strictly_increasing(versions):
            diagnostics.append(_non_monotonic(record.name, "versions", versions))
            valid = False
        declared_natives = tuple(item for item in natives if item is not None)
        if not _strictly_increasing(declared_natives):
            diagnostics.append(_non_monotonic(record.name, "native_versions", declared_natives))
            valid = False
        contracts[record.name] = ContractInfo(
            name=record.name,
            versions=versions,
            native_versions=natives,
            valid=valid,
        )
    return contracts, tuple(diagnostics)


class ContractResolver:
    """Resolve gates, visibility, and minimum versions against a contract table."""

    def __init__(self, index: DeclarationIndex, normalized: NormalizedSet) -> None:
        self._index = index
        self._normalized = normalized
        self._contracts: dict[str, ContractInfo] = {}
        self._diagnostics: list[Diagnostic] = []

    def resolve(self) -> tuple[ContractFacet, tuple[Diagnostic, ...]]:
        """Run the contract stage.

        Returns
        -------
        tuple[ContractFacet, tuple[Diagnostic, ...]]
            Contract facet and findings in declaration order.
        """
        self._contracts, table_diagnostics = build_contract_table(self._index, self._normalized)
        self._diagnostics = list(table_diagnostics)
        visibility: dict[EntityId, Visibility] = {}
        min_versions: dict[EntityId, VersionPairs] = {}
        deprecations: dict[EntityId, tuple[ResolvedDeprecation, ...]] = {}
        version_maps: dict[EntityId, dict[int, tuple[ResolvedGate, ...]]] = {}
        for entity in self._index.types:
            record = self._normalized.get(entity)
            if record is None:
                continue
            own: list[ResolvedGate] = []
            mapped: dict[int, list[ResolvedGate]] = {}
            for params in record.platforms:
                gate = self._resolve_gate(record, params)
                if gate is None:
                    continue
                if params.type_version is not None and params.type_version > 1:
                    mapped.setdefault(params.type_version, []).append(gate)
                else:
                    own.append(gate)
            visibility[entity] = Visibility().with_clause(own)
            min_versions[entity] = visibility[entity].min_versions()
            version_maps[entity] = {key: tuple(value) for key, value in mapped.items()}
            deprecations[entity] = self._resolve_deprecations(record)
        for entity in self._index.members:
            record = self._normalized.get(entity)
            if record is None:
                continue
            owner_id = self._index.owner_id(entity)
            owner_visibility = Visibility()
            owner_min: dict[str, int] = {}
            version_map: dict[int, tuple[ResolvedGate, ...]] = {}
            if owner_id is not None:
                owner_visibility = visibility.get(owner_id, owner_visibility)
                owner_min = dict(min_versions.get(owner_id, ()))
                version_map = version_maps.get(owner_id, version_map)
            gates = self._member_gates(record, version_map)
            self._check_below_owner(record, gates, owner_min, owner_id)
            visibility[entity] = owner_visibility.with_clause(gates)
            min_versions[entity] = visibility[entity].min_versions()
            deprecations[entity] = self._resolve_deprecations(record)
        facet = ContractFacet(
            contracts=dict(sorted(self._contracts.items())),
            visibility=visibility,
            min_versions=min_versions,
            deprecations=deprecations,
            capability_versions=self._capabilities(min_versions),
        )
        logger.debug(
            "Resolved %d contracts for %d declarations",
            len(self._contracts),
            len(visibility),
        )
        return facet, tuple(self._diagnostics)

    def _member_gates(
        self,
        record: NormalizedDeclaration,
        version_map: Mapping[int, tuple[ResolvedGate, ...]],
    ) -> list[ResolvedGate]:
        gates = [
            gate
            for params in record.platforms
            if (gate := self._resolve_gate(record, params)) is not None
        ]
        interface_version = record.type_version
        if interface_version is None or interface_version == 1:
            return gates
        inherited = version_map.get(interface_version)
        if inherited is None:
            self._diagnostics.append(
                error(
                    DiagnosticCode.UNMAPPED_TYPE_VERSION,
                    Stage.CONTRACTS,
                    f"{record.name}: version({interface_version}) has no matching "
                    "platform gate on the owning type.",
                    declarations=(record.name,),
                    detail={"version": interface_version},
                )
            )
            return gates
        gates.extend(_with_features(gate, record.feature) for gate in inherited)
        return gates

    def _check_below_owner(
        self,
        record: NormalizedDeclaration,
        gates: Iterable[ResolvedGate],
        owner_min: Mapping[str, int],
        owner_id: EntityId | None,
    ) -> None:
        for gate in gates:
            floor = owner_min.get(gate.contract)
            if floor is None or gate.version >= floor:
                continue
            owner_name = self._index.name(owner_id) if owner_id is not None else ""
            self._diagnostics.append(
                warning(
                    DiagnosticCode.GATE_BELOW_OWNER,
                    Stage.CONTRACTS,
                    f"{record.name}: gate {gate.contract} v{gate.version} is below the "
                    f"owning type's minimum v{floor}.",
                    declarations=(record.name, owner_name),
                    detail={"contract": gate.contract, "version": gate.version, "owner": floor},
                )
            )

    def _resolve_gate(
        self,
        record: NormalizedDeclaration,
        params: PlatformParams,
    ) -> ResolvedGate | None:
        version = self._resolve_version(record, params.contract, params.version, "platform")
        if version is None:
            return None
        features = {item for item in (params.feature, record.feature) if item}
        return ResolvedGate(
            contract=params.contract,
            version=version,
            features=tuple(sorted(features)),
        )

    def _resolve_deprecations(
        self,
        record: NormalizedDeclaration,
    ) -> tuple[ResolvedDeprecation, ...]:
        resolved: list[ResolvedDeprecation] = []
        for params in record.deprecations:
            version = self._resolve_deprecation(record, params)
            if version is not None:
                resolved.append(
                    ResolvedDeprecation(
                        contract=params.contract,
                        version=version,
                        message=params.message,
                    )
                )
        return tuple(sorted(resolved, key=lambda item: (item.contract, item.version)))

    def _resolve_deprecation(
        self,
        record: NormalizedDeclaration,
        params: DeprecatedParams,
    ) -> int | None:
        return self._resolve_version(record, params.contract, params.version, "deprecated")

    def _resolve_version(
        self,
        record: NormalizedDeclaration,
        contract_name: str,
        requested: int | str,
        attribute: str,
    ) -> int | None:
        contract = self._contracts.get(contract_name)
        if contract is None:
            self._diagnostics.append(
                error(
                    DiagnosticCode.UNKNOWN_CONTRACT,
                    Stage.CONTRACTS,
                    f"{record.name}: {attribute} names undeclared contract {contract_name!r}.",
                    declarations=(record.name,),
                    detail={"contract": contract_name},
                )
            )
            return None
        if not contract.valid:
            self._diagnostics.append(
                error(
                    DiagnosticCode.INVALID_CONTRACT_GATE,
                    Stage.CONTRACTS,
                    f"{record.name}: {attribute} gates on invalid contract {contract_name!r}.",
                    declarations=(record.name, contract_name),
                    detail={"contract": contract_name},
                )
            )
            return None
        if requested == LATEST_VERSION:
            return contract.latest
        if requested not in contract.versions:
            self._diagnostics.append(
                error(
                    DiagnosticCode.UNDECLARED_CONTRACT_VERSION,
                    Stage.CONTRACTS,
                    f"{record.name}: contract {contract_name!r} does not declare "
                    f"version {requested}.",
                    declarations=(record.name, contract_name),
                    detail={"contract": contract_name, "version": requested},
                )
            )
            return None
        return int(requested)

    def _capabilities(
        self,
        min_versions: Mapping[EntityId, VersionPairs],
    ) -> dict[EntityId, VersionPairs]:
        capabilities: dict[EntityId, VersionPairs] = {}
        for entity in self._index.types:
            if entity not in min_versions:
                continue
            merged = dict(min_versions[entity])
            for member in self._index.members_of(self._index.name(entity)):
                for contract, version in min_versions.get(member, ()):
                    current = merged.get(contract)
                    if current is None or version < current:
                        merged[contract] = version
            capabilities[entity] = tuple(sorted(merged.items()))
        return capabilities


def resolve_contracts(
    index: DeclarationIndex,
    normalized: NormalizedSet,
) -> tuple[ContractFacet, tuple[Diagnostic, ...]]:
    """Resolve contracts and visibility for every declaration.

    Returns
    -------
    tuple[ContractFacet, tuple[Diagnostic, ...]]
        Contract facet and findings.
    """
    return ContractResolver(index, normalized).resolve()


def _with_features(gate: ResolvedGate, feature: str | None) -> ResolvedGate:
    if not feature or feature in gate.features:
        return gate
    return ResolvedGate(
        contract=gate.contract,
        version=gate.version,
        features=tuple(sorted({*gate.features, feature})),
    )


def _strictly_increasing(values: tuple[int, ...]) -> bool:
    return all(left < right for left, right in zip(values, values[1:], strict=False))


def _non_monotonic(name: str, field_name: str, values: tuple[int, ...]) -> Diagnostic:
    rendered = ", ".join(str(value) for value in values)
    return error(
        DiagnosticCode.NON_MONOTONIC_CONTRACT_VERSIONS,
        Stage.CONTRACTS,
        f"Contract {name!r} {field_name} are not strictly increasing: [{rendered}].",
        declarations=(name,),
        detail={"field": field_name, "values": rendered},
    )


__all__ = [
    "ContractFacet",
    "ContractInfo",
    "ContractResolver",
    "ResolvedDeprecation",
    "build_contract_table",
    "resolve_contracts",
]
