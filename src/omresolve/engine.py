"""Orchestration of one schema resolution pass."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import cast

from opentelemetry import context as otel_context

from obs.otel.metrics import record_declarations, record_diagnostics
from obs.otel.tracing import root_span, set_span_attributes, stage_span
from omresolve.config import ResolverConfig
from omresolve.contracts import ContractFacet, resolve_contracts
from omresolve.diagnostics import STAGE_ORDER, Diagnostic, Stage, errors_of, warnings_of
from omresolve.errors import SchemaResolutionError
from omresolve.identity import IdentityFacet, allocate_identities
from omresolve.index import DeclarationIndex, build_index
from omresolve.merge import StageFacets, merge_registry
from omresolve.normalizer import NormalizedSet, normalize_declarations
from omresolve.registry import TypeRegistry
from omresolve.stage import StageOutcome, StageRunner, run_stage
from omresolve.storage import StorageFacet, map_storage
from omresolve.type_graph import TypeGraphFacet, build_type_graph
from omspec.attribute_catalog import AttributeCatalog
from omspec.declarations import Declaration

logger = logging.getLogger(__name__)

_MAX_RENDERED_DIAGNOSTICS = 20


@dataclass(frozen=True)
class ResolutionResult:
    """Registry (when resolution succeeded) plus every finding of the pass."""

    registry: TypeRegistry | None
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def ok(self) -> bool:
        """Return whether a registry was produced."""
        return self.registry is not None

    @property
    def errors(self) -> tuple[Diagnostic, ...]:
        """Return error diagnostics in report order."""
        return errors_of(self.diagnostics)

    @property
    def warnings(self) -> tuple[Diagnostic, ...]:
        """Return warning diagnostics in report order."""
        return warnings_of(self.diagnostics)

    def raise_for_errors(self) -> TypeRegistry:
        """Return the registry or raise with the blocking diagnostics.

        Returns
        -------
        TypeRegistry
            The resolved registry.

        Raises
        ------
        SchemaResolutionError
            Raised when no registry was produced.
        """
        if self.registry is not None:
            return self.registry
        blocking = self.errors or self.diagnostics
        lines = [diag.render() for diag in blocking[:_MAX_RENDERED_DIAGNOSTICS]]
        if len(blocking) > _MAX_RENDERED_DIAGNOSTICS:
            lines.append(f"... and {len(blocking) - _MAX_RENDERED_DIAGNOSTICS} more")
        msg = f"Schema resolution failed with {len(blocking)} diagnostic(s):\n" + "\n".join(
            f"  {line}" for line in lines
        )
        raise SchemaResolutionError(msg, self.diagnostics)


class SchemaResolver:
    """Run the resolution stages over a declaration set.

    Index and normalization run first. The contract, type graph, storage and
    identity stages depend only on their outputs and run concurrently when
    ``config.parallel`` is set. The merge runs only when no stage reported a
    blocking finding.
    """

    def __init__(
        self,
        config: ResolverConfig | None = None,
        *,
        catalog: AttributeCatalog | None = None,
    ) -> None:
        self._config = config or ResolverConfig()
        self._catalog = self._config.attribute_catalog(catalog)
        self._external_types = self._config.external_type_table()

    @property
    def config(self) -> ResolverConfig:
        """Return the effective configuration."""
        return self._config

    @property
    def catalog(self) -> AttributeCatalog:
        """Return the effective attribute catalog."""
        return self._catalog

    def resolve(self, declarations: Sequence[Declaration]) -> ResolutionResult:
        """Resolve ``declarations`` into a Type Registry.

        Parameters
        ----------
        declarations
            Parsed declarations in input order.

        Returns
        -------
        ResolutionResult
            Registry (or ``None``) and diagnostics in fixed stage order.
        """
        with root_span(
            "omresolve.resolve",
            attributes={
                "omresolve.declaration_count": len(declarations),
                "omresolve.parallel": self._config.parallel,
            },
        ) as span:
            result = self._resolve(declarations)
            set_span_attributes(
                span,
                {
                    "omresolve.ok": result.ok,
                    "omresolve.error_count": len(result.errors),
                    "omresolve.warning_count": len(result.warnings),
                },
            )
        record_declarations(len(declarations), status="ok" if result.ok else "error")
        registry = result.registry
        logger.info(
            "Resolved %d declarations: %s (%d types, %d members, %d errors, %d warnings)",
            len(declarations),
            "ok" if registry is not None else "failed",
            len(registry.types) if registry is not None else 0,
            len(registry.members) if registry is not None else 0,
            len(result.errors),
            len(result.warnings),
        )
        return result

    def _resolve(self, declarations: Sequence[Declaration]) -> ResolutionResult:
        indexed = _traced_stage(Stage.INDEX, lambda: build_index(declarations))
        index = cast("DeclarationIndex", indexed.facet)
        normalized_outcome = _traced_stage(
            Stage.NORMALIZE,
            lambda: normalize_declarations(index, catalog=self._catalog),
        )
        normalized = cast("NormalizedSet", normalized_outcome.facet)
        independent = self._run_independent(index, normalized)
        outcomes = {outcome.stage: outcome for outcome in (indexed, normalized_outcome)}
        outcomes.update(independent)
        diagnostics = tuple(
            diag
            for stage in STAGE_ORDER
            if stage in outcomes
            for diag in outcomes[stage].diagnostics
        )
        if self._blocked(diagnostics) or any(
            outcome.aborted for outcome in independent.values()
        ):
            logger.debug("Skipping merge: %d blocking diagnostics", len(diagnostics))
            return ResolutionResult(registry=None, diagnostics=diagnostics)
        facets = StageFacets(
            contracts=cast("ContractFacet", independent[Stage.CONTRACTS].facet),
            graph=cast("TypeGraphFacet", independent[Stage.TYPE_GRAPH].facet),
            storage=cast("StorageFacet", independent[Stage.STORAGE].facet),
            identity=cast("IdentityFacet", independent[Stage.IDENTITY].facet),
        )
        merged = _traced_stage(Stage.MERGE, lambda: (merge_registry(index, normalized, facets), ()))
        return ResolutionResult(
            registry=cast("TypeRegistry", merged.facet),
            diagnostics=diagnostics,
        )

    def _run_independent(
        self,
        index: DeclarationIndex,
        normalized: NormalizedSet,
    ) -> dict[Stage, StageOutcome[object]]:
        runners: dict[Stage, StageRunner[object]] = {
            Stage.CONTRACTS: lambda: resolve_contracts(index, normalized),
            Stage.TYPE_GRAPH: lambda: build_type_graph(
                index,
                normalized,
                external_types=self._external_types,
            ),
            Stage.STORAGE: lambda: map_storage(index, normalized),
            Stage.IDENTITY: lambda: allocate_identities(
                index,
                normalized,
                first_ordinal=self._config.first_ordinal,
            ),
        }
        if not self._config.parallel:
            return {stage: _traced_stage(stage, runner) for stage, runner in runners.items()}
        parent = otel_context.get_current()
        max_workers = self._config.max_workers or len(runners)
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="omresolve") as pool:
            futures = {
                stage: pool.submit(_in_context, parent, stage, runner)
                for stage, runner in runners.items()
            }
            return {stage: future.result() for stage, future in futures.items()}

    def _blocked(self, diagnostics: Sequence[Diagnostic]) -> bool:
        if errors_of(diagnostics):
            return True
        return self._config.warnings_as_errors and bool(diagnostics)


def _traced_stage[T](stage: Stage, runner: StageRunner[T]) -> StageOutcome[T]:
    with stage_span(f"omresolve.{stage}", stage=str(stage)) as span:
        outcome = run_stage(stage, runner)
        errors = len(errors_of(outcome.diagnostics))
        warnings = len(outcome.diagnostics) - errors
        set_span_attributes(
            span,
            {
                "omresolve.error_count": errors,
                "omresolve.warning_count": warnings,
                "omresolve.aborted": outcome.aborted,
            },
        )
    record_diagnostics(str(stage), errors, severity="error")
    record_diagnostics(str(stage), warnings, severity="warning")
    logger.debug(
        "Stage %s finished: %d errors, %d warnings%s",
        stage,
        errors,
        warnings,
        " (aborted)" if outcome.aborted else "",
    )
    return outcome


def _in_context[T](
    parent: otel_context.Context,
    stage: Stage,
    runner: StageRunner[T],
) -> StageOutcome[T]:
    token = otel_context.attach(parent)
    try:
        return _traced_stage(stage, runner)
    finally:
        otel_context.detach(token)


def resolve_declarations(
    declarations: Sequence[Declaration],
    *,
    config: ResolverConfig | None = None,
    catalog: AttributeCatalog | None = None,
) -> ResolutionResult:
    """Resolve declarations into a Type Registry.

    Parameters
    ----------
    declarations
        Parsed declarations in input order.
    config
        Resolver configuration; defaults apply when omitted.
    catalog
        Base attribute catalog; config-registered kinds extend it.

    Returns
    -------
    ResolutionResult
        Registry (or ``None``) and diagnostics.
    """
    return SchemaResolver(config, catalog=catalog).resolve(declarations)


def resolve_or_raise(
    declarations: Sequence[Declaration],
    *,
    config: ResolverConfig | None = None,
    catalog: AttributeCatalog | None = None,
) -> TypeRegistry:
    """Resolve declarations and raise on any blocking diagnostic.

    Returns
    -------
    TypeRegistry
        The resolved registry.
    """
    return resolve_declarations(declarations, config=config, catalog=catalog).raise_for_errors()


__all__ = [
    "ResolutionResult",
    "SchemaResolver",
    "resolve_declarations",
    "resolve_or_raise",
]
