"""Exception types for schema resolution."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from omresolve.diagnostics import Diagnostic


class OmResolveError(Exception):
    """Base class for resolution errors."""


class SchemaResolutionError(OmResolveError, ValueError):
    """Raised when a resolution pass reports errors."""

    def __init__(self, message: str, diagnostics: Sequence[Diagnostic] = ()) -> None:
        super().__init__(message)
        self.diagnostics: tuple[Diagnostic, ...] = tuple(diagnostics)


class AttributeCatalogError(OmResolveError, ValueError):
    """Raised when attribute catalog data is invalid."""


class ResolverConfigError(OmResolveError, ValueError):
    """Raised when resolver configuration is invalid."""


class DeclarationDecodeError(OmResolveError, ValueError):
    """Raised when a serialized declaration payload cannot be decoded."""


class InheritanceCycleError(OmResolveError, RuntimeError):
    """Raised when a stage needs an acyclic type hierarchy and none exists."""

    def __init__(self, paths: Sequence[tuple[str, ...]]) -> None:
        rendered = "; ".join(" → ".join(path) for path in paths)
        super().__init__(f"Type hierarchy contains cycles: {rendered}")
        self.paths: tuple[tuple[str, ...], ...] = tuple(paths)


__all__ = [
    "AttributeCatalogError",
    "DeclarationDecodeError",
    "InheritanceCycleError",
    "OmResolveError",
    "ResolverConfigError",
    "SchemaResolutionError",
]
