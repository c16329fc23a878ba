"""Default table of externally-imported type names.

External types are reference sinks: declarations may name them as a base,
interface, or value type, but they are never resolved further.
"""

from __future__ import annotations

from collections.abc import Iterable

FOUNDATION_PRIMITIVES: tuple[str, ...] = (
    "Windows.Foundation.Boolean",
    "Windows.Foundation.Byte",
    "Windows.Foundation.Char",
    "Windows.Foundation.DateTime",
    "Windows.Foundation.Double",
    "Windows.Foundation.Guid",
    "Windows.Foundation.Int16",
    "Windows.Foundation.Int32",
    "Windows.Foundation.Int64",
    "Windows.Foundation.Object",
    "Windows.Foundation.Point",
    "Windows.Foundation.Rect",
    "Windows.Foundation.Single",
    "Windows.Foundation.Size",
    "Windows.Foundation.String",
    "Windows.Foundation.TimeSpan",
    "Windows.Foundation.UInt16",
    "Windows.Foundation.UInt32",
    "Windows.Foundation.UInt64",
    "Windows.Foundation.Uri",
)

FOUNDATION_INTERFACES: tuple[str, ...] = (
    "Windows.Foundation.IClosable",
    "Windows.Foundation.IStringable",
    "Windows.Foundation.Collections.IIterable",
    "Windows.Foundation.Collections.IVector",
    "Windows.Foundation.Collections.IVectorView",
    "Windows.Foundation.Collections.IMap",
    "Windows.Foundation.Collections.IObservableVector",
)

FOUNDATION_DELEGATES: tuple[str, ...] = (
    "Windows.Foundation.EventHandler",
    "Windows.Foundation.TypedEventHandler",
)

DEFAULT_EXTERNAL_TYPES: tuple[str, ...] = (
    *FOUNDATION_PRIMITIVES,
    *FOUNDATION_INTERFACES,
    *FOUNDATION_DELEGATES,
)


def external_type_table(
    extra: Iterable[str] = (),
    *,
    include_defaults: bool = True,
) -> frozenset[str]:
    """Return the external type table.

    Parameters
    ----------
    extra
        Additional external type names.
    include_defaults
        Whether to include the foundation types.

    Returns
    -------
    frozenset[str]
        Qualified external type names.
    """
    base = DEFAULT_EXTERNAL_TYPES if include_defaults else ()
    return frozenset((*base, *extra))


__all__ = [
    "DEFAULT_EXTERNAL_TYPES",
    "FOUNDATION_DELEGATES",
    "FOUNDATION_INTERFACES",
    "FOUNDATION_PRIMITIVES",
    "external_type_table",
]
