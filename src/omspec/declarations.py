"""Declaration model for object-model schemas.

Declarations are produced by an external parser and are treated as
immutable input. They carry names and raw attribute bags only; nothing here
resolves references or interprets attributes.
"""

from __future__ import annotations

import msgspec

from omspec.kinds import MEMBER_KINDS, TYPE_KINDS, DeclarationKind
from serde_msgspec import StructBaseStrict


class AttributeEntry(StructBaseStrict, frozen=True):
    """One raw ``(attribute-kind, parameters)`` pair from a declaration."""

    kind: str
    params: dict[str, object] = msgspec.field(default_factory=dict)

    def label(self) -> str:
        """Return a compact human-readable label for diagnostics.

        Returns
        -------
        str
            Label such as ``platform(contract=C, version=3)``.
        """
        if not self.params:
            return self.kind
        rendered = ", ".join(f"{key}={value}" for key, value in self.params.items())
        return f"{self.kind}({rendered})"


class Declaration(StructBaseStrict, frozen=True):
    """A named type or member declaration with its attribute bag."""

    name: str
    kind: DeclarationKind
    namespace: str = ""
    parent: str | None = None
    base: str | None = None
    interfaces: tuple[str, ...] = ()
    attributes: tuple[AttributeEntry, ...] = ()
    is_interface: bool = False
    getter: bool = False
    setter: bool = False
    type_ref: str | None = None

    @property
    def qualified_name(self) -> str:
        """Return the fully qualified declaration name.

        Returns
        -------
        str
            ``owner.Name`` for members, ``namespace.Name`` for types.
        """
        if self.parent:
            return f"{self.parent}.{self.name}"
        if self.namespace:
            return f"{self.namespace}.{self.name}"
        return self.name

    @property
    def is_type(self) -> bool:
        """Return whether the declaration is a type-level kind."""
        return self.kind in TYPE_KINDS

    @property
    def is_member(self) -> bool:
        """Return whether the declaration is a member-level kind."""
        return self.kind in MEMBER_KINDS

    def attributes_of(self, kind: str) -> tuple[AttributeEntry, ...]:
        """Return the attribute entries of one kind, in declaration order.

        Returns
        -------
        tuple[AttributeEntry, ...]
            Matching entries.
        """
        return tuple(entry for entry in self.attributes if entry.kind == kind)


__all__ = ["AttributeEntry", "Declaration"]
