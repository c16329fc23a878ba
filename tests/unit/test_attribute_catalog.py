"""Tests for the table-driven attribute catalog."""

from __future__ import annotations

import pytest

from omresolve.errors import AttributeCatalogError
from omresolve.normalizer import AttributeNormalizer
from omspec.attribute_catalog import (
    DEFAULT_RULES,
    AttributeCatalog,
    AttributeKindSpec,
    AttributeRule,
    default_attribute_catalog,
)
from omspec.builders import attr, flags, property_decl, type_decl
from omspec.kinds import DeclarationKind


def test_default_catalog_registers_every_builtin_kind() -> None:
    """Ensure the default catalog exposes every built-in rule in order."""
    catalog = default_attribute_catalog()
    assert catalog.kinds() == tuple(rule.name for rule in DEFAULT_RULES)
    assert catalog.rule("platform") is not None
    assert catalog.rule("no_such_kind") is None


def test_extend_registers_config_kind_without_code_changes() -> None:
    """Ensure a configuration entry mapped onto a facet normalizes like a built-in."""
    catalog = default_attribute_catalog().extend(
        [
            AttributeKindSpec(
                name="class_id",
                targets=(DeclarationKind.TYPE,),
                facet="stable_id",
                value_key="id",
            )
        ]
    )
    decl = type_decl("Panel", attributes=(attr("class_id", id="panel-7"),))
    record, diagnostics = AttributeNormalizer(catalog).normalize(0, decl)
    assert diagnostics == ()
    assert record.stable_id == "panel-7"


def test_extend_registers_flags_kind() -> None:
    """Ensure configured flags kinds merge into the flags facet."""
    catalog = default_attribute_catalog().extend(
        [
            AttributeKindSpec(
                name="render_flags",
                targets=(DeclarationKind.PROPERTY,),
                facet="flags",
                flags=("affects_render",),
                repeatable=True,
            )
        ]
    )
    decl = property_decl(
        "Panel",
        "Background",
        attributes=(
            flags("render_flags", "affects_render"),
            flags("property_flags", "needs_invoke"),
        ),
    )
    record, diagnostics = AttributeNormalizer(catalog).normalize(0, decl)
    assert diagnostics == ()
    assert record.flags == ("affects_render", "needs_invoke")


def test_extend_leaves_receiver_unchanged() -> None:
    """Ensure extending returns a new catalog."""
    base = default_attribute_catalog()
    base.extend(
        [AttributeKindSpec(name="internal", targets=(DeclarationKind.TYPE,), facet="hand_written")]
    )
    assert base.rule("internal") is None


def test_extend_rejects_duplicate_kind() -> None:
    """Ensure a configured kind cannot redefine a built-in kind."""
    with pytest.raises(AttributeCatalogError, match="already defined"):
        default_attribute_catalog().extend(
            [AttributeKindSpec(name="codegen", targets=(DeclarationKind.TYPE,), facet="codegen")]
        )


@pytest.mark.parametrize(
    ("spec", "message"),
    [
        (
            AttributeKindSpec(name="x", targets=(DeclarationKind.TYPE,), facet="colour"),
            "unknown facet",
        ),
        (
            AttributeKindSpec(name="x", targets=(), facet="hand_written"),
            "no target",
        ),
        (
            AttributeKindSpec(name="x", targets=(DeclarationKind.TYPE,), facet="flags"),
            "declares no flag names",
        ),
        (
            AttributeKindSpec(name="x", targets=(DeclarationKind.TYPE,), facet="native_name"),
            "needs a value_key",
        ),
    ],
)
def test_invalid_config_kinds_are_rejected(spec: AttributeKindSpec, message: str) -> None:
    """Ensure malformed catalog entries fail at catalog construction."""
    with pytest.raises(AttributeCatalogError, match=message):
        default_attribute_catalog().extend([spec])


def test_catalog_key_must_match_rule_name() -> None:
    """Ensure catalog keys agree with rule names."""
    rule = AttributeRule(
        name="imported",
        targets=frozenset({DeclarationKind.TYPE}),
        facet="imported",
    )
    with pytest.raises(AttributeCatalogError, match="does not match"):
        AttributeCatalog(rules={"external": rule})
