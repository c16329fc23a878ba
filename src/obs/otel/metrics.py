"""Metrics catalog and helpers for resolver telemetry."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from opentelemetry import metrics

from obs.otel.attributes import normalize_attributes
from obs.otel.scope_metadata import instrumentation_schema_url, instrumentation_version
from obs.otel.scopes import SCOPE_OBS

_STAGE_DURATION = "omresolve.stage.duration"
_DIAGNOSTIC_COUNT = "omresolve.diagnostic.count"
_DECLARATION_COUNT = "omresolve.declaration.count"


@dataclass
class MetricsRegistry:
    """Registry for resolver metric instruments."""

    stage_duration: metrics.Histogram
    diagnostic_count: metrics.Counter
    declaration_count: metrics.Counter


_REGISTRY_CACHE: dict[str, MetricsRegistry | None] = {"value": None}


def _meter() -> metrics.Meter:
    version_value = instrumentation_version()
    version = version_value if version_value is not None else "unknown"
    return metrics.get_meter(
        SCOPE_OBS,
        version,
        schema_url=instrumentation_schema_url(),
    )


def reset_metrics_registry() -> None:
    """Reset cached metric instruments so they can be re-created."""
    _REGISTRY_CACHE["value"] = None


def _registry() -> MetricsRegistry:
    cached = _REGISTRY_CACHE["value"]
    if cached is not None:
        return cached
    meter = _meter()
    registry = MetricsRegistry(
        stage_duration=meter.create_histogram(
            _STAGE_DURATION,
            unit="s",
            description="Resolution stage duration (seconds).",
        ),
        diagnostic_count=meter.create_counter(
            _DIAGNOSTIC_COUNT,
            unit="1",
            description="Diagnostics emitted by resolution stages.",
        ),
        declaration_count=meter.create_counter(
            _DECLARATION_COUNT,
            unit="1",
            description="Declarations submitted for resolution.",
        ),
    )
    _REGISTRY_CACHE["value"] = registry
    return registry


def record_stage_duration(
    stage: str,
    duration_s: float,
    *,
    status: str,
    attributes: Mapping[str, object] | None = None,
) -> None:
    """Record a stage duration histogram value."""
    payload: dict[str, object] = {"stage": stage, "status": status}
    if attributes:
        payload.update(attributes)
    _registry().stage_duration.record(duration_s, normalize_attributes(payload))


def record_diagnostics(stage: str, count: int, *, severity: str) -> None:
    """Increment the diagnostic counter for a stage."""
    if count <= 0:
        return
    payload = {"stage": stage, "severity": severity}
    _registry().diagnostic_count.add(count, normalize_attributes(payload))


def record_declarations(count: int, *, status: str) -> None:
    """Increment the submitted-declaration counter."""
    if count <= 0:
        return
    _registry().declaration_count.add(count, normalize_attributes({"status": status}))


__all__ = [
    "MetricsRegistry",
    "record_declarations",
    "record_diagnostics",
    "record_stage_duration",
    "reset_metrics_registry",
]
