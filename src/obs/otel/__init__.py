"""OpenTelemetry helpers for resolver observability."""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from obs.otel.attributes import normalize_attributes
    from obs.otel.metrics import (
        record_declarations,
        record_diagnostics,
        record_stage_duration,
        reset_metrics_registry,
    )
    from obs.otel.scopes import SCOPE_CONFIG, SCOPE_OBS, SCOPE_RESOLVER, SCOPE_ROOT
    from obs.otel.tracing import (
        get_tracer,
        record_exception,
        root_span,
        set_span_attributes,
        stage_span,
    )

_EXPORT_MAP: dict[str, tuple[str, str]] = {
    "SCOPE_CONFIG": ("obs.otel.scopes", "SCOPE_CONFIG"),
    "SCOPE_OBS": ("obs.otel.scopes", "SCOPE_OBS"),
    "SCOPE_RESOLVER": ("obs.otel.scopes", "SCOPE_RESOLVER"),
    "SCOPE_ROOT": ("obs.otel.scopes", "SCOPE_ROOT"),
    "get_tracer": ("obs.otel.tracing", "get_tracer"),
    "normalize_attributes": ("obs.otel.attributes", "normalize_attributes"),
    "record_declarations": ("obs.otel.metrics", "record_declarations"),
    "record_diagnostics": ("obs.otel.metrics", "record_diagnostics"),
    "record_exception": ("obs.otel.tracing", "record_exception"),
    "record_stage_duration": ("obs.otel.metrics", "record_stage_duration"),
    "reset_metrics_registry": ("obs.otel.metrics", "reset_metrics_registry"),
    "root_span": ("obs.otel.tracing", "root_span"),
    "set_span_attributes": ("obs.otel.tracing", "set_span_attributes"),
    "stage_span": ("obs.otel.tracing", "stage_span"),
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
    "SCOPE_CONFIG",
    "SCOPE_OBS",
    "SCOPE_RESOLVER",
    "SCOPE_ROOT",
    "get_tracer",
    "normalize_attributes",
    "record_declarations",
    "record_diagnostics",
    "record_exception",
    "record_stage_duration",
    "reset_metrics_registry",
    "root_span",
    "set_span_attributes",
    "stage_span",
)
