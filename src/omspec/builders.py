"""Helpers for constructing declarations in code.

Schema parsers normally produce :class:`~omspec.declarations.Declaration`
values directly. These helpers keep hand-built schemas (fixtures, small
embedded models) short.
"""

from __future__ import annotations

from collections.abc import Iterable

from omspec.declarations import AttributeEntry, Declaration
from omspec.kinds import DeclarationKind


def attr(kind: str, **params: object) -> AttributeEntry:
    """Return an attribute entry, dropping ``None`` parameters.

    Returns
    -------
    AttributeEntry
        Entry such as ``attr("platform", contract="C", version=2)``.
    """
    return AttributeEntry(
        kind=kind,
        params={key: value for key, value in params.items() if value is not None},
    )


def platform(
    contract: str,
    version: int | str = 1,
    *,
    feature: str | None = None,
    type_version: int | None = None,
) -> AttributeEntry:
    """Return a ``platform`` gate entry."""
    return attr(
        "platform",
        contract=contract,
        version=version,
        feature=feature,
        type_version=type_version,
    )


def flags(kind: str, *names: str) -> AttributeEntry:
    """Return a flags entry enabling ``names``."""
    return attr(kind, **dict.fromkeys(names, True))


def type_decl(
    name: str,
    *,
    namespace: str = "",
    kind: DeclarationKind = DeclarationKind.TYPE,
    base: str | None = None,
    interfaces: Iterable[str] = (),
    attributes: Iterable[AttributeEntry] = (),
    is_interface: bool = False,
) -> Declaration:
    """Return a type-level declaration.

    Returns
    -------
    Declaration
        Declaration of ``kind`` named ``namespace.name``.
    """
    return Declaration(
        name=name,
        kind=kind,
        namespace=namespace,
        base=base,
        interfaces=tuple(interfaces),
        attributes=tuple(attributes),
        is_interface=is_interface,
    )


def contract_decl(
    name: str,
    versions: Iterable[int | tuple[int, int]],
    *,
    namespace: str = "",
) -> Declaration:
    """Return an API contract declaration.

    Parameters
    ----------
    name
        Contract simple name.
    versions
        Declared versions, each either ``version`` or
        ``(version, native_version)``.
    namespace
        Contract namespace.

    Returns
    -------
    Declaration
        Type declaration marked ``api_contract``.
    """
    entries = [attr("api_contract")]
    for item in versions:
        version, native = item if isinstance(item, tuple) else (item, None)
        entries.append(attr("contract_version", version=version, native_version=native))
    return type_decl(name, namespace=namespace, attributes=entries)


def member(
    owner: str,
    name: str,
    kind: DeclarationKind,
    *,
    attributes: Iterable[AttributeEntry] = (),
    getter: bool = False,
    setter: bool = False,
    type_ref: str | None = None,
) -> Declaration:
    """Return a member declaration owned by ``owner``.

    Returns
    -------
    Declaration
        Declaration named ``owner.name``.
    """
    return Declaration(
        name=name,
        kind=kind,
        parent=owner,
        attributes=tuple(attributes),
        getter=getter,
        setter=setter,
        type_ref=type_ref,
    )


def property_decl(
    owner: str,
    name: str,
    *,
    attributes: Iterable[AttributeEntry] = (),
    getter: bool = True,
    setter: bool = True,
    type_ref: str | None = None,
) -> Declaration:
    """Return a property declaration with a getter and setter by default."""
    return member(
        owner,
        name,
        DeclarationKind.PROPERTY,
        attributes=attributes,
        getter=getter,
        setter=setter,
        type_ref=type_ref,
    )


def event_decl(
    owner: str,
    name: str,
    *,
    attributes: Iterable[AttributeEntry] = (),
    type_ref: str | None = None,
) -> Declaration:
    """Return an event declaration."""
    return member(owner, name, DeclarationKind.EVENT, attributes=attributes, type_ref=type_ref)


def method_decl(
    owner: str,
    name: str,
    *,
    attributes: Iterable[AttributeEntry] = (),
    type_ref: str | None = None,
) -> Declaration:
    """Return a method declaration."""
    return member(owner, name, DeclarationKind.METHOD, attributes=attributes, type_ref=type_ref)


def enum_member_decl(
    owner: str,
    name: str,
    *,
    value: int | None = None,
    attributes: Iterable[AttributeEntry] = (),
) -> Declaration:
    """Return an enum member, with an explicit ``enum_value`` when given."""
    entries = list(attributes)
    if value is not None:
        entries.append(attr("enum_value", value=value))
    return member(owner, name, DeclarationKind.ENUM_MEMBER, attributes=entries)


__all__ = [
    "attr",
    "contract_decl",
    "enum_member_decl",
    "event_decl",
    "flags",
    "member",
    "method_decl",
    "platform",
    "property_decl",
    "type_decl",
]
