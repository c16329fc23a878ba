"""Encode and decode declaration sets for transport between tools."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import msgspec

from omresolve.errors import DeclarationDecodeError
from omspec.declarations import Declaration
from serde_msgspec import dumps_json, dumps_msgpack, loads_json, loads_msgpack

logger = logging.getLogger(__name__)

_DECLARATIONS_TYPE = tuple[Declaration, ...]


def encode_declarations_json(declarations: Sequence[Declaration]) -> bytes:
    """Serialize declarations to JSON bytes.

    Returns
    -------
    bytes
        JSON array of declaration objects.
    """
    return dumps_json(tuple(declarations))


def encode_declarations_msgpack(declarations: Sequence[Declaration]) -> bytes:
    """Serialize declarations to MessagePack bytes.

    Returns
    -------
    bytes
        MessagePack array of declaration maps.
    """
    return dumps_msgpack(tuple(declarations))


def decode_declarations_json(payload: bytes | str) -> tuple[Declaration, ...]:
    """Decode a JSON array of declarations.

    Parameters
    ----------
    payload
        JSON payload produced by a schema parser.

    Returns
    -------
    tuple[Declaration, ...]
        Declarations in payload order.

    Raises
    ------
    DeclarationDecodeError
        Raised when the payload is malformed or does not match the model.
    """
    try:
        declarations = loads_json(payload, target_type=_DECLARATIONS_TYPE)
    except (msgspec.DecodeError, msgspec.ValidationError) as exc:
        msg = f"Invalid declaration payload (json): {exc}"
        raise DeclarationDecodeError(msg) from exc
    logger.debug("Decoded %d declarations from JSON", len(declarations))
    return declarations


def decode_declarations_msgpack(payload: bytes) -> tuple[Declaration, ...]:
    """Decode a MessagePack array of declarations.

    Returns
    -------
    tuple[Declaration, ...]
        Declarations in payload order.

    Raises
    ------
    DeclarationDecodeError
        Raised when the payload is malformed or does not match the model.
    """
    try:
        declarations = loads_msgpack(payload, target_type=_DECLARATIONS_TYPE)
    except (msgspec.DecodeError, msgspec.ValidationError) as exc:
        msg = f"Invalid declaration payload (msgpack): {exc}"
        raise DeclarationDecodeError(msg) from exc
    logger.debug("Decoded %d declarations from MessagePack", len(declarations))
    return declarations


__all__ = [
    "decode_declarations_json",
    "decode_declarations_msgpack",
    "encode_declarations_json",
    "encode_declarations_msgpack",
]
