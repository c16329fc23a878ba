"""Observability helpers for the resolver."""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from obs.diagnostics_report import (
        DiagnosticsReport,
        build_diagnostics_report,
        render_diagnostics_markdown,
        write_diagnostics_report,
    )

_EXPORT_MAP: dict[str, tuple[str, str]] = {
    "DiagnosticsReport": ("obs.diagnostics_report", "DiagnosticsReport"),
    "build_diagnostics_report": ("obs.diagnostics_report", "build_diagnostics_report"),
    "render_diagnostics_markdown": ("obs.diagnostics_report", "render_diagnostics_markdown"),
    "write_diagnostics_report": ("obs.diagnostics_report", "write_diagnostics_report"),
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


__all__ = (
    "DiagnosticsReport",
    "build_diagnostics_report",
    "render_diagnostics_markdown",
    "write_diagnostics_report",
)
