"""Structured diagnostics reported by resolution stages."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from enum import StrEnum

from core_types import Severity
from serde_msgspec import StructBaseStrict


class Stage(StrEnum):
    """Resolution stages, in reporting order."""

    INDEX = "index"
    NORMALIZE = "normalize"
    CONTRACTS = "contracts"
    TYPE_GRAPH = "type_graph"
    STORAGE = "storage"
    IDENTITY = "identity"
    MERGE = "merge"


STAGE_ORDER: tuple[Stage, ...] = tuple(Stage)


class DiagnosticCode(StrEnum):
    """Closed set of diagnostic codes."""

    DUPLICATE_DECLARATION = "DuplicateDeclaration"
    MISSING_OWNER = "MissingOwner"
    UNKNOWN_ATTRIBUTE_KIND = "UnknownAttributeKind"
    ATTRIBUTE_KIND_MISMATCH = "AttributeKindMismatch"
    CONFLICTING_ATTRIBUTES = "ConflictingAttributes"
    INVALID_ATTRIBUTE_PARAMETERS = "InvalidAttributeParameters"
    UNKNOWN_CONTRACT = "UnknownContract"
    NON_MONOTONIC_CONTRACT_VERSIONS = "NonMonotonicContractVersions"
    EMPTY_CONTRACT = "EmptyContract"
    INVALID_CONTRACT_GATE = "InvalidContractGate"
    UNDECLARED_CONTRACT_VERSION = "UndeclaredContractVersion"
    UNMAPPED_TYPE_VERSION = "UnmappedTypeVersion"
    GATE_BELOW_OWNER = "GateBelowOwner"
    UNRESOLVED_TYPE_REFERENCE = "UnresolvedTypeReference"
    INHERITANCE_CYCLE = "InheritanceCycle"
    TYPE_REFERENCE_KIND_MISMATCH = "TypeReferenceKindMismatch"
    UNRESOLVED_MEMBER_REFERENCE = "UnresolvedMemberReference"
    INCOMPLETE_STORAGE_BINDING = "IncompleteStorageBinding"
    DUPLICATE_IDENTITY = "DuplicateIdentity"


class Diagnostic(StructBaseStrict, frozen=True):
    """One structured finding of a resolution stage."""

    code: DiagnosticCode
    severity: Severity
    stage: Stage
    message: str
    declarations: tuple[str, ...] = ()
    detail: tuple[tuple[str, str], ...] = ()

    @property
    def is_error(self) -> bool:
        """Return whether the diagnostic is an error."""
        return self.severity == "error"

    def detail_value(self, key: str) -> str | None:
        """Return one detail entry, if present."""
        for name, value in self.detail:
            if name == key:
                return value
        return None

    def detail_map(self) -> dict[str, str]:
        """Return a fresh dict copy of the detail entries."""
        return dict(self.detail)

    def render(self) -> str:
        """Return a one-line rendering for logs and exception messages.

        Returns
        -------
        str
            ``stage:Code:message`` text.
        """
        return f"{self.stage}:{self.code}:{self.message}"


def error(
    code: DiagnosticCode,
    stage: Stage,
    message: str,
    *,
    declarations: Sequence[str] = (),
    detail: Mapping[str, object] | None = None,
) -> Diagnostic:
    """Build an error diagnostic.

    Returns
    -------
    Diagnostic
        Error-severity diagnostic.
    """
    return _build(code, "error", stage, message, declarations, detail)


def warning(
    code: DiagnosticCode,
    stage: Stage,
    message: str,
    *,
    declarations: Sequence[str] = (),
    detail: Mapping[str, object] | None = None,
) -> Diagnostic:
    """Build a warning diagnostic.

    Returns
    -------
    Diagnostic
        Warning-severity diagnostic.
    """
    return _build(code, "warning", stage, message, declarations, detail)


def _build(
    code: DiagnosticCode,
    severity: Severity,
    stage: Stage,
    message: str,
    declarations: Sequence[str],
    detail: Mapping[str, object] | None,
) -> Diagnostic:
    return Diagnostic(
        code=code,
        severity=severity,
        stage=stage,
        message=message,
        declarations=tuple(declarations),
        detail=tuple(sorted((key, str(value)) for key, value in (detail or {}).items())),
    )


def errors_of(diagnostics: Iterable[Diagnostic]) -> tuple[Diagnostic, ...]:
    """Return the error diagnostics in order."""
    return tuple(diag for diag in diagnostics if diag.is_error)


def warnings_of(diagnostics: Iterable[Diagnostic]) -> tuple[Diagnostic, ...]:
    """Return the warning diagnostics in order."""
    return tuple(diag for diag in diagnostics if not diag.is_error)


def codes_of(diagnostics: Iterable[Diagnostic]) -> tuple[DiagnosticCode, ...]:
    """Return diagnostic codes in order."""
    return tuple(diag.code for diag in diagnostics)


__all__ = [
    "STAGE_ORDER",
    "Diagnostic",
    "DiagnosticCode",
    "Stage",
    "codes_of",
    "error",
    "errors_of",
    "warning",
    "warnings_of",
]
