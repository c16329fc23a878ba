"""Centralized TypeAdapter instances for runtime validation."""

from __future__ import annotations

from pydantic import TypeAdapter

from runtime_models.resolver import ResolverConfigRuntime

RESOLVER_CONFIG_ADAPTER = TypeAdapter(ResolverConfigRuntime)

__all__ = ["RESOLVER_CONFIG_ADAPTER"]
