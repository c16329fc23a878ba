"""Contract and type metadata resolution into an immutable Type Registry."""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from omresolve.config import ResolverConfig, load_resolver_config
    from omresolve.diagnostics import Diagnostic, DiagnosticCode, Stage
    from omresolve.engine import (
        ResolutionResult,
        SchemaResolver,
        resolve_declarations,
        resolve_or_raise,
    )
    from omresolve.errors import (
        AttributeCatalogError,
        DeclarationDecodeError,
        OmResolveError,
        ResolverConfigError,
        SchemaResolutionError,
    )
    from omresolve.registry import MemberNode, TypeNode, TypeRegistry
    from omresolve.visibility import ApiContext, Visibility

_EXPORT_MAP: dict[str, tuple[str, str]] = {
    "ApiContext": ("omresolve.visibility", "ApiContext"),
    "AttributeCatalogError": ("omresolve.errors", "AttributeCatalogError"),
    "DeclarationDecodeError": ("omresolve.errors", "DeclarationDecodeError"),
    "Diagnostic": ("omresolve.diagnostics", "Diagnostic"),
    "DiagnosticCode": ("omresolve.diagnostics", "DiagnosticCode"),
    "MemberNode": ("omresolve.registry", "MemberNode"),
    "OmResolveError": ("omresolve.errors", "OmResolveError"),
    "ResolutionResult": ("omresolve.engine", "ResolutionResult"),
    "ResolverConfig": ("omresolve.config", "ResolverConfig"),
    "ResolverConfigError": ("omresolve.errors", "ResolverConfigError"),
    "SchemaResolutionError": ("omresolve.errors", "SchemaResolutionError"),
    "SchemaResolver": ("omresolve.engine", "SchemaResolver"),
    "Stage": ("omresolve.diagnostics", "Stage"),
    "TypeNode": ("omresolve.registry", "TypeNode"),
    "TypeRegistry": ("omresolve.registry", "TypeRegistry"),
    "Visibility": ("omresolve.visibility", "Visibility"),
    "load_resolver_config": ("omresolve.config", "load_resolver_config"),
    "resolve_declarations": ("omresolve.engine", "resolve_declarations"),
    "resolve_or_raise": ("omresolve.engine", "resolve_or_raise"),
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
