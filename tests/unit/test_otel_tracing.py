"""Tests for resolver tracing and metric helpers without an SDK installed."""

from __future__ import annotations

import pytest
from opentelemetry import trace

from obs.otel.metrics import (
    record_declarations,
    record_diagnostics,
    record_stage_duration,
    reset_metrics_registry,
)
from obs.otel.scopes import SCOPE_CONFIG, SCOPE_RESOLVER, SCOPE_ROOT
from obs.otel.tracing import root_span, stage_span


def test_scopes_share_root() -> None:
    """Ensure every scope lives under the package scope."""
    assert SCOPE_RESOLVER.startswith(f"{SCOPE_ROOT}.")
    assert SCOPE_CONFIG.startswith(f"{SCOPE_ROOT}.")


def test_stage_span_is_current() -> None:
    """Ensure the stage span is active inside the block."""
    with root_span("omresolve.test", attributes={"omresolve.parallel": False}):
        with stage_span("omresolve.contracts", stage="contracts") as span:
            assert trace.get_current_span() is span


def test_stage_span_propagates_errors() -> None:
    """Ensure failures inside a stage are re-raised."""
    with pytest.raises(RuntimeError, match="boom"):
        with stage_span("omresolve.merge", stage="merge"):
            msg = "boom"
            raise RuntimeError(msg)


def test_metric_helpers_accept_counts() -> None:
    """Ensure metric helpers run against the API default meter."""
    reset_metrics_registry()
    record_stage_duration("contracts", 0.25, status="ok", attributes={"omresolve.aborted": False})
    record_diagnostics("contracts", 2, severity="error")
    record_diagnostics("contracts", 0, severity="warning")
    record_declarations(5, status="ok")
