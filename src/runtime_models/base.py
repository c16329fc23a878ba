"""Pydantic base configuration for runtime validation models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class RuntimeBase(BaseModel):
    """Base class for runtime validation models.

    Models are frozen and reject unknown keys so configuration typos surface
    as validation errors instead of silently falling back to defaults.
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_default=True,
        frozen=True,
        revalidate_instances="always",
        str_strip_whitespace=True,
    )


__all__ = ["RuntimeBase"]
