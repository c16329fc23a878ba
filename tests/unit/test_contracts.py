"""Tests for contract tables and gate resolution."""

from __future__ import annotations

from collections.abc import Sequence

from omresolve.contracts import ContractFacet, ResolvedDeprecation, resolve_contracts
from omresolve.diagnostics import Diagnostic, DiagnosticCode, codes_of
from omresolve.index import DeclarationIndex
from omresolve.visibility import ApiContext, ResolvedGate
from omspec.builders import attr, contract_decl, platform, property_decl, type_decl
from omspec.declarations import Declaration
from tests.test_helpers.resolution import entity_of, prepare

CONTRACT = "UI.Contract"


def _resolve(
    decls: Sequence[Declaration],
) -> tuple[DeclarationIndex, ContractFacet, tuple[Diagnostic, ...]]:
    index, normalized, upstream = prepare(decls)
    assert upstream == ()
    facet, diagnostics = resolve_contracts(index, normalized)
    return index, facet, diagnostics


def _visible(facet: ContractFacet, entity: int, version: int) -> bool:
    return facet.visibility[entity].is_visible(ApiContext.of({CONTRACT: version}))


def test_contract_table_records_versions() -> None:
    """Ensure contract declarations produce ordered version tables."""
    _, facet, diagnostics = _resolve(
        (contract_decl("Contract", [(1, 10), (2, 12), 3], namespace="UI"),)
    )
    assert diagnostics == ()
    info = facet.contracts[CONTRACT]
    assert info.versions == (1, 2, 3)
    assert info.latest == 3
    assert info.native_version_of(2) == 12
    assert info.native_version_of(3) is None
    assert info.valid


def test_empty_contract_is_reported() -> None:
    """Ensure a contract without versions is invalid."""
    _, facet, diagnostics = _resolve((type_decl("Empty", attributes=(attr("api_contract"),)),))
    assert codes_of(diagnostics) == (DiagnosticCode.EMPTY_CONTRACT,)
    assert not facet.contracts["Empty"].valid


def test_non_monotonic_native_versions_are_reported() -> None:
    """Ensure native version mappings must also increase."""
    _, _, diagnostics = _resolve((contract_decl("Contract", [(1, 12), (2, 10)], namespace="UI"),))
    assert codes_of(diagnostics) == (DiagnosticCode.NON_MONOTONIC_CONTRACT_VERSIONS,)
    assert diagnostics[0].detail_value("field") == "native_versions"


def test_ungated_member_inherits_owner_minimum() -> None:
    """Ensure a member without gates is visible wherever its type is."""
    index, facet, diagnostics = _resolve(
        (
            contract_decl("Contract", [1, 2, 3], namespace="UI"),
            type_decl("A", attributes=(platform(CONTRACT, 2),)),
            property_decl("A", "P"),
        )
    )
    assert diagnostics == ()
    member = entity_of(index, "A.P")
    assert facet.min_versions[member] == ((CONTRACT, 2),)
    assert not _visible(facet, member, 1)
    assert _visible(facet, member, 2)


def test_member_gate_is_never_visible_below_its_version() -> None:
    """Ensure a member gate narrows visibility below the owner's."""
    index, facet, _ = _resolve(
        (
            contract_decl("Contract", [1, 2, 3], namespace="UI"),
            type_decl("A", attributes=(platform(CONTRACT, 1),)),
            property_decl("A", "Q", attributes=(platform(CONTRACT, 3),)),
        )
    )
    member = entity_of(index, "A.Q")
    assert facet.min_versions[member] == ((CONTRACT, 3),)
    assert [_visible(facet, member, version) for version in (1, 2, 3)] == [False, False, True]
    assert facet.capability_versions[entity_of(index, "A")] == ((CONTRACT, 1),)


def test_member_minimums_follow_combined_visibility() -> None:
    """Ensure member minimums list only contracts that alone expose the member."""
    index, facet, diagnostics = _resolve(
        (
            contract_decl("Contract", [1, 2, 3], namespace="UI"),
            contract_decl("Other", [1], namespace="UI"),
            type_decl("A", attributes=(platform(CONTRACT, 2), platform("UI.Other", 1))),
            property_decl("A", "Q", attributes=(platform(CONTRACT, 3),)),
            property_decl("A", "R", attributes=(platform("UI.Other", 1),)),
        )
    )
    assert diagnostics == ()
    owner = entity_of(index, "A")
    member = entity_of(index, "A.Q")
    assert facet.min_versions[owner] == ((CONTRACT, 2), ("UI.Other", 1))
    assert facet.min_versions[member] == ((CONTRACT, 3),)
    assert not facet.visibility[member].is_visible(ApiContext.of({"UI.Other": 1}))
    assert facet.visibility[member].is_visible(ApiContext.of({CONTRACT: 3}))
    assert facet.min_versions[entity_of(index, "A.R")] == (("UI.Other", 1),)


def test_member_gates_are_alternatives() -> None:
    """Ensure any one satisfied member gate makes the member visible."""
    index, facet, _ = _resolve(
        (
            contract_decl("Contract", [1, 2], namespace="UI"),
            contract_decl("Other", [1], namespace="UI"),
            type_decl("A"),
            property_decl("A", "P", attributes=(platform(CONTRACT, 2), platform("UI.Other", 1))),
        )
    )
    visibility = facet.visibility[entity_of(index, "A.P")]
    assert visibility.is_visible(ApiContext.of({"UI.Other": 1}))
    assert visibility.is_visible(ApiContext.of({CONTRACT: 2}))
    assert not visibility.is_visible(ApiContext.of({CONTRACT: 1}))


def test_latest_resolves_to_last_declared_version() -> None:
    """Ensure ``latest`` gates pin to the contract's highest version."""
    index, facet, _ = _resolve(
        (
            contract_decl("Contract", [1, 4], namespace="UI"),
            type_decl("A", attributes=(platform(CONTRACT, "latest"),)),
        )
    )
    assert facet.min_versions[entity_of(index, "A")] == ((CONTRACT, 4),)


def test_gate_errors_are_reported() -> None:
    """Ensure unknown contracts and undeclared versions are errors."""
    _, _, diagnostics = _resolve(
        (
            contract_decl("Contract", [1, 2], namespace="UI"),
            type_decl("A", attributes=(platform("UI.Missing", 1),)),
            type_decl("B", attributes=(platform(CONTRACT, 5),)),
        )
    )
    assert codes_of(diagnostics) == (
        DiagnosticCode.UNKNOWN_CONTRACT,
        DiagnosticCode.UNDECLARED_CONTRACT_VERSION,
    )
    assert diagnostics[1].declarations == ("B", CONTRACT)


def test_interface_version_maps_to_type_gate() -> None:
    """Ensure ``version(n)`` members join the gate mapped for that type version."""
    index, facet, diagnostics = _resolve(
        (
            contract_decl("Contract", [1, 2, 3], namespace="UI"),
            type_decl(
                "A",
                attributes=(platform(CONTRACT, 1), platform(CONTRACT, 3, type_version=2)),
            ),
            property_decl("A", "Old"),
            property_decl("A", "New", attributes=(attr("version", version=2),)),
        )
    )
    assert diagnostics == ()
    new = entity_of(index, "A.New")
    assert facet.min_versions[new] == ((CONTRACT, 3),)
    assert facet.min_versions[entity_of(index, "A.Old")] == ((CONTRACT, 1),)
    assert facet.min_versions[entity_of(index, "A")] == ((CONTRACT, 1),)
    assert not _visible(facet, new, 2)
    assert _visible(facet, new, 3)


def test_unmapped_interface_version_is_reported() -> None:
    """Ensure a member version without a type gate mapping is an error."""
    _, _, diagnostics = _resolve(
        (
            contract_decl("Contract", [1], namespace="UI"),
            type_decl("A", attributes=(platform(CONTRACT, 1),)),
            property_decl("A", "New", attributes=(attr("version", version=2),)),
        )
    )
    assert codes_of(diagnostics) == (DiagnosticCode.UNMAPPED_TYPE_VERSION,)


def test_gate_below_owner_is_a_warning() -> None:
    """Ensure member gates older than the owner's minimum only warn."""
    _, _, diagnostics = _resolve(
        (
            contract_decl("Contract", [1, 2], namespace="UI"),
            type_decl("A", attributes=(platform(CONTRACT, 2),)),
            property_decl("A", "P", attributes=(platform(CONTRACT, 1),)),
        )
    )
    assert codes_of(diagnostics) == (DiagnosticCode.GATE_BELOW_OWNER,)
    assert not diagnostics[0].is_error
    assert diagnostics[0].declarations == ("A.P", "A")


def test_feature_gates_require_enabled_feature() -> None:
    """Ensure feature-tagged gates need the feature in the consuming context."""
    index, facet, _ = _resolve(
        (
            contract_decl("Contract", [1], namespace="UI"),
            type_decl("A", attributes=(platform(CONTRACT, 1, feature="Preview"),)),
        )
    )
    visibility = facet.visibility[entity_of(index, "A")]
    assert visibility.clauses == (
        (ResolvedGate(contract=CONTRACT, version=1, features=("Preview",)),),
    )
    assert not visibility.is_visible(ApiContext.of({CONTRACT: 1}))
    assert visibility.is_visible(ApiContext.of({CONTRACT: 1}, ["Preview"]))


def test_deprecations_resolve_to_concrete_versions() -> None:
    """Ensure deprecations pin to declared contract versions."""
    index, facet, _ = _resolve(
        (
            contract_decl("Contract", [1, 2], namespace="UI"),
            type_decl(
                "A",
                attributes=(
                    attr("deprecated", contract=CONTRACT, version="latest", message="Use B"),
                ),
            ),
        )
    )
    assert facet.deprecations[entity_of(index, "A")] == (
        ResolvedDeprecation(contract=CONTRACT, version=2, message="Use B"),
    )


def test_unversioned_declarations_are_always_visible() -> None:
    """Ensure declarations without gates ignore the consuming context."""
    index, facet, _ = _resolve((type_decl("A"), property_decl("A", "P")))
    visibility = facet.visibility[entity_of(index, "A.P")]
    assert visibility.unversioned
    assert visibility.is_visible(ApiContext())
