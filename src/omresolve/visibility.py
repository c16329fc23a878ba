"""Resolved platform gates and consuming-context visibility checks."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from serde_msgspec import StructBaseStrict

type VersionPairs = tuple[tuple[str, int], ...]


class ResolvedGate(StructBaseStrict, frozen=True, order=True):
    """A platform gate with a concrete contract version."""

    contract: str
    version: int
    features: tuple[str, ...] = ()

    def satisfied_by(self, context: ApiContext) -> bool:
        """Return whether ``context`` satisfies the gate."""
        available = context.version_of(self.contract)
        if available is None or available < self.version:
            return False
        return all(feature in context.features for feature in self.features)


class ApiContext(StructBaseStrict, frozen=True):
    """Contract versions and enabled features of a consuming context."""

    contracts: VersionPairs = ()
    features: frozenset[str] = frozenset()

    @classmethod
    def of(cls, contracts: Mapping[str, int], features: Iterable[str] = ()) -> ApiContext:
        """Build a context from a contract mapping and feature names.

        Returns
        -------
        ApiContext
            Consuming context.
        """
        return cls(contracts=tuple(sorted(contracts.items())), features=frozenset(features))

    def version_of(self, contract: str) -> int | None:
        """Return the available version of ``contract``, if any."""
        return version_of(self.contracts, contract)


class Visibility(StructBaseStrict, frozen=True):
    """Conjunction of gate clauses; each clause is satisfied by any one gate.

    An empty clause list means the declaration is unversioned and always
    visible. A member's clauses are its owner's clauses plus its own.
    """

    clauses: tuple[tuple[ResolvedGate, ...], ...] = ()

    @property
    def unversioned(self) -> bool:
        """Return whether no gate applies."""
        return not self.clauses

    def is_visible(self, context: ApiContext) -> bool:
        """Return whether the declaration is visible in ``context``."""
        return all(any(gate.satisfied_by(context) for gate in clause) for clause in self.clauses)

    def contracts(self) -> tuple[str, ...]:
        """Return every contract named by a gate, sorted."""
        return tuple(sorted({gate.contract for clause in self.clauses for gate in clause}))

    def min_versions(self) -> VersionPairs:
        """Return the lowest version of each contract that alone makes the declaration visible.

        A contract is listed only when a context holding just that contract
        can satisfy every clause; feature requirements are not considered.

        Returns
        -------
        tuple[tuple[str, int], ...]
            ``(contract, version)`` pairs sorted by contract.
        """
        result: list[tuple[str, int]] = []
        for contract in self.contracts():
            floors = [
                min((gate.version for gate in clause if gate.contract == contract), default=None)
                for clause in self.clauses
            ]
            if any(floor is None for floor in floors):
                continue
            result.append((contract, max(floor for floor in floors if floor is not None)))
        return tuple(result)

    def with_clause(self, gates: Iterable[ResolvedGate]) -> Visibility:
        """Return visibility narrowed by one more clause.

        Returns
        -------
        Visibility
            Visibility with the clause appended; unchanged when ``gates`` is empty.
        """
        clause = tuple(sorted(set(gates)))
        if not clause:
            return self
        return Visibility(clauses=(*self.clauses, clause))


def version_of(pairs: VersionPairs, contract: str) -> int | None:
    """Return the version paired with ``contract``, if any."""
    for name, version in pairs:
        if name == contract:
            return version
    return None


__all__ = ["ApiContext", "ResolvedGate", "VersionPairs", "Visibility", "version_of"]
