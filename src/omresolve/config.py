"""Resolver configuration loading and validation."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Annotated, cast

import msgspec
from msgspec import Meta

from core_types import JsonValue, PathLike, QualifiedNameStr, ensure_path
from obs.otel.scopes import SCOPE_CONFIG
from obs.otel.tracing import root_span
from omresolve.errors import ResolverConfigError
from omresolve.external_types import external_type_table
from omspec.attribute_catalog import AttributeCatalog, AttributeKindSpec, default_attribute_catalog
from runtime_models.adapters import RESOLVER_CONFIG_ADAPTER
from serde_msgspec import StructBaseStrict, to_builtins, validation_error_payload
from utils.env_utils import env_bool, env_int, env_list

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "omresolve.toml"
PYPROJECT_FILENAME = "pyproject.toml"
TOOL_SECTION = "omresolve"

ENV_PARALLEL = "OMRESOLVE_PARALLEL"
ENV_MAX_WORKERS = "OMRESOLVE_MAX_WORKERS"
ENV_FIRST_ORDINAL = "OMRESOLVE_FIRST_ORDINAL"
ENV_WARNINGS_AS_ERRORS = "OMRESOLVE_WARNINGS_AS_ERRORS"
ENV_EXTERNAL_TYPES = "OMRESOLVE_EXTERNAL_TYPES"


class ResolverConfig(StructBaseStrict, frozen=True):
    """Settings for one resolution pass."""

    external_types: tuple[QualifiedNameStr, ...] = ()
    include_default_external_types: bool = True
    parallel: bool = True
    max_workers: Annotated[int, Meta(ge=1)] | None = None
    first_ordinal: Annotated[int, Meta(ge=0)] = 1
    warnings_as_errors: bool = False
    attribute_kinds: tuple[AttributeKindSpec, ...] = ()

    def external_type_table(self) -> frozenset[str]:
        """Return the effective external type table."""
        return external_type_table(
            self.external_types,
            include_defaults=self.include_default_external_types,
        )

    def attribute_catalog(self, base: AttributeCatalog | None = None) -> AttributeCatalog:
        """Return ``base`` (or the default catalog) extended with configured kinds.

        Returns
        -------
        AttributeCatalog
            Effective attribute catalog.
        """
        catalog = base or default_attribute_catalog()
        if not self.attribute_kinds:
            return catalog
        return catalog.extend(self.attribute_kinds)


def load_resolver_config(
    path: PathLike | None = None,
    *,
    start: PathLike | None = None,
    apply_env: bool = True,
) -> ResolverConfig:
    """Load resolver configuration.

    Reads ``path`` when given. Otherwise ``omresolve.toml`` and the
    ``[tool.omresolve]`` table of ``pyproject.toml`` are looked up from
    ``start`` (default: the working directory) upwards; the pyproject table
    takes precedence when both exist.

    Parameters
    ----------
    path
        Explicit TOML file, either a plain config file or a ``pyproject.toml``.
    start
        Directory to begin the parent search from.
    apply_env
        Whether to apply ``OMRESOLVE_*`` environment overrides.

    Returns
    -------
    ResolverConfig
        Validated configuration.

    Raises
    ------
    ResolverConfigError
        Raised when the file is missing or the configuration is invalid.
    """
    with root_span(
        "omresolve.config.load",
        attributes={"omresolve.config.explicit": path is not None},
        scope_name=SCOPE_CONFIG,
    ):
        if path is not None:
            resolved = ensure_path(path)
            if not resolved.exists():
                msg = f"Resolver config file not found: {resolved}"
                raise ResolverConfigError(msg)
            raw, location = _explicit_payload(resolved)
            config = decode_resolver_config(raw, location=location)
        else:
            config = _discover_config(ensure_path(start) if start is not None else Path.cwd())
        if apply_env:
            config = apply_env_overrides(config)
    return config


def decode_resolver_config(raw: Mapping[str, JsonValue], *, location: str) -> ResolverConfig:
    """Convert and validate a raw configuration mapping.

    Returns
    -------
    ResolverConfig
        Validated configuration.

    Raises
    ------
    ResolverConfigError
        Raised when the mapping fails schema or runtime validation.
    """
    try:
        config = msgspec.convert(dict(raw), type=ResolverConfig, strict=True)
    except msgspec.ValidationError as exc:
        details = validation_error_payload(exc)
        msg = f"Resolver config validation failed for {location}: {details}"
        raise ResolverConfigError(msg) from exc
    validate_resolver_config(config, location=location)
    return config


def validate_resolver_config(config: ResolverConfig, *, location: str = "<memory>") -> None:
    """Run runtime validation on a configuration.

    Raises
    ------
    ResolverConfigError
        Raised when runtime validation fails.
    """
    payload = to_builtins(config)
    try:
        RESOLVER_CONFIG_ADAPTER.validate_python(payload)
    except ValueError as exc:
        msg = f"Resolver config validation failed for {location}: {exc}"
        raise ResolverConfigError(msg) from exc


def apply_env_overrides(config: ResolverConfig) -> ResolverConfig:
    """Apply ``OMRESOLVE_*`` environment overrides.

    Returns
    -------
    ResolverConfig
        Configuration with overrides applied and revalidated.
    """
    overrides: dict[str, object] = {}
    parallel = env_bool(ENV_PARALLEL, default=None, on_invalid="none", log_invalid=True)
    if parallel is not None:
        overrides["parallel"] = parallel
    max_workers = env_int(ENV_MAX_WORKERS)
    if max_workers is not None:
        overrides["max_workers"] = max_workers
    first_ordinal = env_int(ENV_FIRST_ORDINAL)
    if first_ordinal is not None:
        overrides["first_ordinal"] = first_ordinal
    warnings_as_errors = env_bool(
        ENV_WARNINGS_AS_ERRORS,
        default=None,
        on_invalid="none",
        log_invalid=True,
    )
    if warnings_as_errors is not None:
        overrides["warnings_as_errors"] = warnings_as_errors
    extra_types = env_list(ENV_EXTERNAL_TYPES)
    if extra_types:
        overrides["external_types"] = (*config.external_types, *extra_types)
    if not overrides:
        return config
    logger.debug("Applying resolver config overrides from environment: %s", sorted(overrides))
    updated = msgspec.structs.replace(config, **overrides)
    validate_resolver_config(updated, location="environment")
    return updated


def _discover_config(start: Path) -> ResolverConfig:
    config: ResolverConfig | None = None
    config_path = _find_in_parents(CONFIG_FILENAME, start)
    if config_path is not None:
        config = decode_resolver_config(_read_toml(config_path), location=str(config_path))
    pyproject_path = _find_in_parents(PYPROJECT_FILENAME, start)
    if pyproject_path is not None:
        nested = _extract_tool_config(_read_toml(pyproject_path))
        if nested is not None:
            config = decode_resolver_config(
                nested,
                location=f"{pyproject_path}:tool.{TOOL_SECTION}",
            )
    return config or ResolverConfig()


def _find_in_parents(filename: str, start: Path) -> Path | None:
    path = start.resolve()
    while True:
        candidate = path / filename
        if candidate.exists():
            return candidate
        if path.parent == path:
            return None
        path = path.parent


def _explicit_payload(path: Path) -> tuple[Mapping[str, JsonValue], str]:
    raw = _read_toml(path)
    if path.name != PYPROJECT_FILENAME:
        return raw, str(path)
    nested = _extract_tool_config(raw)
    if nested is None:
        msg = f"Resolver config for {path} has no [tool.{TOOL_SECTION}] section."
        raise ResolverConfigError(msg)
    return nested, f"{path}:tool.{TOOL_SECTION}"


def _read_toml(path: Path) -> dict[str, JsonValue]:
    try:
        payload = msgspec.toml.decode(path.read_text(encoding="utf-8"), type=object, strict=True)
    except msgspec.DecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ResolverConfigError(msg) from exc
    if not isinstance(payload, dict):
        msg = f"Expected TOML mapping in {path}, got {type(payload).__name__}."
        raise ResolverConfigError(msg)
    return cast("dict[str, JsonValue]", payload)


def _extract_tool_config(raw: Mapping[str, JsonValue]) -> dict[str, JsonValue] | None:
    tool_section = raw.get("tool")
    if not isinstance(tool_section, dict):
        return None
    nested = tool_section.get(TOOL_SECTION)
    if not isinstance(nested, dict):
        return None
    return cast("dict[str, JsonValue]", nested)


__all__ = [
    "CONFIG_FILENAME",
    "ENV_EXTERNAL_TYPES",
    "ENV_FIRST_ORDINAL",
    "ENV_MAX_WORKERS",
    "ENV_PARALLEL",
    "ENV_WARNINGS_AS_ERRORS",
    "ResolverConfig",
    "apply_env_overrides",
    "decode_resolver_config",
    "load_resolver_config",
    "validate_resolver_config",
]
