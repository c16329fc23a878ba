"""Tests for declaration set transport encodings."""

from __future__ import annotations

import pytest

from omresolve.errors import DeclarationDecodeError
from omspec.kinds import DeclarationKind
from omspec.serialization import (
    decode_declarations_json,
    decode_declarations_msgpack,
    encode_declarations_json,
    encode_declarations_msgpack,
)
from tests.test_helpers.schemas import ui_schema


def test_decode_parser_json() -> None:
    """Ensure parser JSON output decodes into declarations."""
    payload = (
        '[{"name": "Panel", "kind": "type", "namespace": "UI"},'
        ' {"name": "Width", "kind": "property", "parent": "UI.Panel", "getter": true,'
        ' "attributes": [{"kind": "platform", "params": {"contract": "C", "version": 2}}]}]'
    )
    panel, width = decode_declarations_json(payload)
    assert panel.qualified_name() == "UI.Panel"
    assert width.kind == DeclarationKind.PROPERTY
    assert width.attributes[0].params == {"contract": "C", "version": 2}


def test_encoded_schema_decodes_in_both_formats() -> None:
    """Ensure the shared schema survives both transports."""
    schema = ui_schema()
    assert decode_declarations_json(encode_declarations_json(schema)) == schema
    assert decode_declarations_msgpack(encode_declarations_msgpack(schema)) == schema


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        '[{"name": "Panel"}]',
        '[{"name": "Panel", "kind": "widget"}]',
        '[{"name": "Panel", "kind": "type", "color": "red"}]',
    ],
)
def test_invalid_json_payloads(payload: str) -> None:
    """Ensure malformed or off-model payloads raise a decode error."""
    with pytest.raises(DeclarationDecodeError, match="json"):
        decode_declarations_json(payload)


def test_invalid_msgpack_payload() -> None:
    """Ensure truncated MessagePack is reported as a decode error."""
    with pytest.raises(DeclarationDecodeError, match="msgpack"):
        decode_declarations_msgpack(b"\x92\xa5")
