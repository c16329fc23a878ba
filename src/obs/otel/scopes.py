"""Canonical OpenTelemetry instrumentation scopes for omresolve."""

from __future__ import annotations

SCOPE_ROOT = "omresolve"
SCOPE_RESOLVER = f"{SCOPE_ROOT}.resolver"
SCOPE_CONFIG = f"{SCOPE_ROOT}.config"
SCOPE_OBS = f"{SCOPE_ROOT}.obs"

__all__ = [
    "SCOPE_CONFIG",
    "SCOPE_OBS",
    "SCOPE_RESOLVER",
    "SCOPE_ROOT",
]
