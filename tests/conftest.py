"""Shared pytest fixtures for resolver tests."""

from __future__ import annotations

import pytest

from omresolve.config import (
    ENV_EXTERNAL_TYPES,
    ENV_FIRST_ORDINAL,
    ENV_MAX_WORKERS,
    ENV_PARALLEL,
    ENV_WARNINGS_AS_ERRORS,
)

_RESOLVER_ENV = (
    ENV_EXTERNAL_TYPES,
    ENV_FIRST_ORDINAL,
    ENV_MAX_WORKERS,
    ENV_PARALLEL,
    ENV_WARNINGS_AS_ERRORS,
)


@pytest.fixture(autouse=True)
def _isolate_resolver_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host ``OMRESOLVE_*`` settings out of every test."""
    for name in _RESOLVER_ENV:
        monkeypatch.delenv(name, raising=False)
