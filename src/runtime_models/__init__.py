"""Runtime validation models for config boundaries."""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from runtime_models.adapters import RESOLVER_CONFIG_ADAPTER
    from runtime_models.base import RuntimeBase
    from runtime_models.resolver import AttributeKindRuntime, ResolverConfigRuntime

__all__ = [
    "RESOLVER_CONFIG_ADAPTER",
    "AttributeKindRuntime",
    "ResolverConfigRuntime",
    "RuntimeBase",
]

_EXPORT_MAP: dict[str, tuple[str, str]] = {
    "RESOLVER_CONFIG_ADAPTER": ("runtime_models.adapters", "RESOLVER_CONFIG_ADAPTER"),
    "AttributeKindRuntime": ("runtime_models.resolver", "AttributeKindRuntime"),
    "ResolverConfigRuntime": ("runtime_models.resolver", "ResolverConfigRuntime"),
    "RuntimeBase": ("runtime_models.base", "RuntimeBase"),
}


def __getattr__(name: str) -> object:
    export = _EXPORT_MAP.get(name)
    if export is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    module_name, attr_name = export
    module = importlib.import_module(module_name)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return sorted(__all__)
