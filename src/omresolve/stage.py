"""Uniform outcome of one resolution stage."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from omresolve.diagnostics import Diagnostic, Stage, errors_of


@dataclass(frozen=True)
class StageOutcome[T]:
    """Facet produced by a stage plus its findings.

    ``aborted`` marks a stage that could not produce a facet, for example the
    storage stage on a cyclic hierarchy. An aborted stage contributes no
    facet; its own findings are still reported.
    """

    stage: Stage
    facet: T | None
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def aborted(self) -> bool:
        """Return whether the stage produced no facet."""
        return self.facet is None

    @property
    def has_errors(self) -> bool:
        """Return whether the stage reported an error."""
        return bool(errors_of(self.diagnostics))


type StageRunner[T] = Callable[[], tuple[T | None, tuple[Diagnostic, ...]]]


def run_stage[T](stage: Stage, runner: StageRunner[T]) -> StageOutcome[T]:
    """Run a stage callable and wrap its result.

    Returns
    -------
    StageOutcome[T]
        Facet and findings of the stage.
    """
    facet, diagnostics = runner()
    return StageOutcome(stage=stage, facet=facet, diagnostics=tuple(diagnostics))


__all__ = ["StageOutcome", "StageRunner", "run_stage"]
