"""Unified environment variable resolution utilities."""

from __future__ import annotations

import logging
import os
from typing import Literal, overload

_LOGGER = logging.getLogger(__name__)

OnInvalid = Literal["default", "none", "false"]

_TRUE_VALUES = frozenset({"1", "true", "yes", "y"})
_FALSE_VALUES = frozenset({"0", "false", "no", "n"})
# -----------------------------------------------------------------------------
# String Helpers
# -----------------------------------------------------------------------------


def env_value(name: str) -> str | None:
    """Return stripped env var value, or None if empty/not set.

    Parameters
    ----------
    name
        Environment variable name.

    Returns
    -------
    str | None
        Stripped value or None.
    """
    raw = os.environ.get(name)
    if raw is None:
        return None
    stripped = raw.strip()
    return stripped if stripped else None


# -----------------------------------------------------------------------------
# List Parsing
# -----------------------------------------------------------------------------


def env_list(
    name: str,
    *,
    default: list[str] | None = None,
    separator: str = ",",
) -> list[str]:
    """Parse a separated environment variable into a list of strings.

    Parameters
    ----------
    name
        Environment variable name.
    default
        Value returned when the variable is unset or empty.
    separator
        Item separator.

    Returns
    -------
    list[str]
        Non-empty, stripped items.
    """
    raw = env_value(name)
    if raw is None:
        return list(default or [])
    return [item.strip() for item in raw.split(separator) if item.strip()]


# -----------------------------------------------------------------------------
# Boolean Parsing
# -----------------------------------------------------------------------------


@overload
def env_bool(name: str) -> bool | None: ...


@overload
def env_bool(name: str, *, default: bool) -> bool: ...


@overload
def env_bool(
    name: str,
    *,
    default: bool | None,
    on_invalid: OnInvalid,
    log_invalid: bool = False,
) -> bool | None: ...


def env_bool(
    name: str,
    *,
    default: bool | None = None,
    on_invalid: OnInvalid = "default",
    log_invalid: bool = False,
) -> bool | None:
    """Parse environment variable as boolean.

    Parameters
    ----------
    name
        Environment variable name.
    default
        Default value if not set. If None, returns None when unset.
    on_invalid
        Behavior when an invalid value is provided.
    log_invalid
        Whether to log invalid values.

    Returns
    -------
    bool | None
        Parsed boolean or default/None.
    """
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    if log_invalid:
        _LOGGER.warning("Invalid boolean for %s: %r", name, raw)
    if on_invalid == "none":
        return None
    if on_invalid == "false":
        return False
    return default


# -----------------------------------------------------------------------------
# Integer Parsing
# -----------------------------------------------------------------------------


@overload
def env_int(name: str) -> int | None: ...


@overload
def env_int(name: str, *, default: int) -> int: ...


@overload
def env_int(name: str, *, default: int | None) -> int | None: ...


def env_int(name: str, *, default: int | None = None) -> int | None:
    """Parse environment variable as integer with error logging.

    Parameters
    ----------
    name
        Environment variable name.
    default
        Default value if not set or invalid.

    Returns
    -------
    int | None
        Parsed integer or default/None.
    """
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        _LOGGER.warning("Invalid integer for %s: %r", name, raw)
        return default


__all__ = [
    "env_bool",
    "env_int",
    "env_list",
    "env_value",
]
