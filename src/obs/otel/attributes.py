"""Normalize OpenTelemetry attributes for resolver telemetry."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import cast

from opentelemetry.util.types import AttributeValue

from utils.env_utils import env_int, env_list

_MAX_ATTRIBUTES = env_int("OTEL_ATTRIBUTE_COUNT_LIMIT")
_MAX_ATTRIBUTE_LENGTH = env_int("OTEL_ATTRIBUTE_VALUE_LENGTH_LIMIT")
_DEFAULT_REDACT_KEYS = [
    "authorization",
    "password",
    "secret",
    "token",
]
_REDACT_KEYS = {
    key.lower()
    for key in env_list(
        "OMRESOLVE_OTEL_REDACT_KEYS",
        default=_DEFAULT_REDACT_KEYS,
    )
}


def _should_redact(key: str) -> bool:
    lowered = key.lower()
    return any(part in lowered for part in _REDACT_KEYS)


def _is_scalar(value: object) -> bool:
    return isinstance(value, (str, bool, int, float))


def _truncate_str(value: str, *, value_length_limit: int | None) -> str:
    if value_length_limit is None:
        return value
    if value_length_limit <= 0:
        return ""
    return value[:value_length_limit]


def _normalize_sequence(
    values: Sequence[object], *, value_length_limit: int | None
) -> AttributeValue:
    normalized = [item if _is_scalar(item) else str(item) for item in values if item is not None]
    if not normalized:
        return []
    if all(isinstance(item, bool) for item in normalized):
        return [bool(item) for item in normalized]
    if all(isinstance(item, int) and not isinstance(item, bool) for item in normalized):
        return [cast("int", item) for item in normalized]
    if all(isinstance(item, (int, float)) and not isinstance(item, bool) for item in normalized):
        return [float(cast("int | float", item)) for item in normalized]
    return [_truncate_str(str(item), value_length_limit=value_length_limit) for item in normalized]


def _normalize_value(value: object, *, value_length_limit: int | None) -> AttributeValue:
    if _is_scalar(value):
        if isinstance(value, str):
            return _truncate_str(value, value_length_limit=value_length_limit)
        return cast("AttributeValue", value)
    if isinstance(value, Mapping):
        return _truncate_str(
            json.dumps(value, sort_keys=True, default=str),
            value_length_limit=value_length_limit,
        )
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return _normalize_sequence(list(value), value_length_limit=value_length_limit)
    return _truncate_str(str(value), value_length_limit=value_length_limit)


def normalize_attributes(attrs: Mapping[str, object] | None) -> dict[str, AttributeValue]:
    """Normalize raw attribute values into OpenTelemetry-safe types.

    ``None`` values are dropped, keys matching a redaction pattern are masked,
    and the ``OTEL_ATTRIBUTE_*`` limits are applied.

    Returns
    -------
    dict[str, AttributeValue]
        Normalized attribute mapping.
    """
    if not attrs:
        return {}
    normalized: dict[str, AttributeValue] = {}
    for key, value in attrs.items():
        if value is None:
            continue
        key_str = str(key)
        if _should_redact(key_str):
            normalized[key_str] = _truncate_str(
                "[redacted]",
                value_length_limit=_MAX_ATTRIBUTE_LENGTH,
            )
            continue
        normalized[key_str] = _normalize_value(value, value_length_limit=_MAX_ATTRIBUTE_LENGTH)
    if _MAX_ATTRIBUTES is None or len(normalized) <= _MAX_ATTRIBUTES:
        return normalized
    if _MAX_ATTRIBUTES <= 0:
        return {}
    return {key: normalized[key] for key in sorted(normalized)[:_MAX_ATTRIBUTES]}


__all__ = ["normalize_attributes"]
