"""Runtime validation models for resolver configuration."""

from __future__ import annotations

import re
from typing import Literal

from pydantic import Field, field_validator, model_validator

from core_types import IDENTIFIER_PATTERN, QUALIFIED_NAME_PATTERN
from runtime_models.base import RuntimeBase

_QUALIFIED_NAME = re.compile(QUALIFIED_NAME_PATTERN)

_DECLARATION_KINDS = Literal[
    "type",
    "property",
    "event",
    "method",
    "enum",
    "enum_member",
    "delegate",
    "struct",
]


class AttributeKindRuntime(RuntimeBase):
    """Validated configuration-declared attribute kind."""

    name: str = Field(pattern=IDENTIFIER_PATTERN)
    targets: tuple[_DECLARATION_KINDS, ...] = Field(min_length=1)
    facet: str = Field(min_length=1)
    value_key: str | None = None
    flags: tuple[str, ...] = ()
    repeatable: bool = False
    allowed_on_interface_members: bool = True


class ResolverConfigRuntime(RuntimeBase):
    """Validated resolver configuration."""

    external_types: tuple[str, ...] = ()
    include_default_external_types: bool = True
    parallel: bool = True
    max_workers: int | None = Field(default=None, ge=1)
    first_ordinal: int = Field(default=1, ge=0)
    warnings_as_errors: bool = False
    attribute_kinds: tuple[AttributeKindRuntime, ...] = ()

    @field_validator("external_types")
    @classmethod
    def _check_external_types(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        invalid = [name for name in value if not _is_qualified(name)]
        if invalid:
            msg = f"Invalid external type names: {', '.join(sorted(invalid))}"
            raise ValueError(msg)
        return value

    @model_validator(mode="after")
    def _check_unique_kinds(self) -> ResolverConfigRuntime:
        names = [item.name for item in self.attribute_kinds]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            msg = f"Duplicate attribute kinds: {', '.join(duplicates)}"
            raise ValueError(msg)
        return self


def _is_qualified(name: str) -> bool:
    return _QUALIFIED_NAME.fullmatch(name) is not None


__all__ = ["AttributeKindRuntime", "ResolverConfigRuntime"]
