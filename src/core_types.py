"""Shared type aliases and small typing helpers."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Annotated, Literal

from msgspec import Meta
from pydantic import Field

type PathLike = str | Path
Severity = Literal["error", "warning"]

IDENTIFIER_PATTERN = "^[A-Za-z_][A-Za-z0-9_]{0,127}$"
QUALIFIED_NAME_PATTERN = "^[A-Za-z_][A-Za-z0-9_]*(\\.[A-Za-z_][A-Za-z0-9_]*)*$"
GUID_PATTERN = (
    "^\\{?[A-Fa-f0-9]{8}-[A-Fa-f0-9]{4}-[A-Fa-f0-9]{4}-"
    "[A-Fa-f0-9]{4}-[A-Fa-f0-9]{12}\\}?$"
)

type JsonPrimitive = str | int | float | bool | None
type JsonValue = JsonPrimitive | Mapping[str, JsonValue] | Sequence[JsonValue]
type JsonDict = dict[str, JsonValue]

PositiveInt = Annotated[int, Meta(gt=0), Field(gt=0)]
NonNegativeInt = Annotated[int, Meta(ge=0), Field(ge=0)]

IdentifierStr = Annotated[
    str,
    Meta(
        pattern=IDENTIFIER_PATTERN,
        title="Identifier",
        description="Simple declaration name.",
    ),
    Field(pattern=IDENTIFIER_PATTERN),
]
QualifiedNameStr = Annotated[
    str,
    Meta(
        pattern=QUALIFIED_NAME_PATTERN,
        title="Qualified Name",
        description="Dot-separated qualified declaration name.",
    ),
    Field(pattern=QUALIFIED_NAME_PATTERN),
]
GuidStr = Annotated[
    str,
    Meta(
        pattern=GUID_PATTERN,
        title="GUID",
        description="Interface or class GUID, optionally brace-wrapped.",
        examples=["78f71c87-1e0f-4cd1-89b2-3ae30a064a26"],
    ),
    Field(pattern=GUID_PATTERN),
]


def ensure_path(p: PathLike) -> Path:
    """Return a normalized ``Path`` for the provided value.

    Parameters
    ----------
    p:
        String or ``Path`` input to normalize.

    Returns
    -------
    pathlib.Path
        Normalized path instance.
    """
    return p if isinstance(p, Path) else Path(p)


__all__ = [
    "GUID_PATTERN",
    "IDENTIFIER_PATTERN",
    "QUALIFIED_NAME_PATTERN",
    "GuidStr",
    "IdentifierStr",
    "JsonDict",
    "JsonPrimitive",
    "JsonValue",
    "NonNegativeInt",
    "PathLike",
    "PositiveInt",
    "QualifiedNameStr",
    "Severity",
    "ensure_path",
]
