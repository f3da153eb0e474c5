"""Audit orchestrator — the central coordinator for ethicalgates runs.

The orchestrator fans every (target, tool) and (target, carbon source) pair
out onto one bounded worker pool, then assembles the canonical
``EthicalAuditResult`` from whatever completed:

1. Validate the configuration (``ConfigurationError`` before any work).
2. Schedule each adapter call on the pool under a per-call timeout, with
   bounded retry and exponential backoff.  A call waits for a free worker
   before its timeout starts.  Tool output is mapped to finding
   candidates on the worker as part of the call.
3. Apply the overall audit deadline: anything still in flight is cancelled
   and recorded as such.
4. Deduplicate and score accessibility per target, combine carbon per target,
   derive carbon insights from the tool results, aggregate, evaluate the gate
   and generate action items.

Workers never write shared state; each call's outcome comes back as the
result of its own awaited task and is placed by target index, so output
order always follows configuration order.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from functools import partial
from typing import Any, Callable, NamedTuple

from ethicalgates.accessibility.normalizer import FindingCandidate, deduplicate, map_result
from ethicalgates.accessibility.scorer import overall_accessibility_score, score_target
from ethicalgates.carbon.combiner import combine_estimates, site_estimate
from ethicalgates.carbon.insights import (
    carbon_breakdown,
    carbon_recommendations,
    mean_factors,
    performance_factors,
)
from ethicalgates.core.adapters import AdapterRegistry, CarbonSource, ToolAdapter
from ethicalgates.core.errors import (
    CarbonAggregationError,
    CarbonSourceError,
    ToolExecutionError,
)
from ethicalgates.core.hasher import compute_config_hash
from ethicalgates.core.validation import validate_audit_config
from ethicalgates.models.carbon import CarbonEstimate, CarbonSourceFailure, TargetCarbonResult
from ethicalgates.models.config import AuditConfig
from ethicalgates.models.results import (
    AccessibilitySummary,
    CarbonFootprintSummary,
    ErrorKind,
    EthicalAuditResult,
    OverallAssessment,
    TargetCarbonInsights,
    TargetError,
)
from ethicalgates.models.targets import RawResult, Target
from ethicalgates.models.violations import AccessibilityResult, SectionStatus, SeverityCounts
from ethicalgates.scoring.actions import generate_action_items
from ethicalgates.scoring.aggregator import carbon_score, grade_for, overall_score
from ethicalgates.scoring.gate import evaluate_gate

logger = logging.getLogger(__name__)

_TOOL = "tool"
_CARBON = "carbon"


class WorkUnit(NamedTuple):
    """One adapter call: a target paired with a tool or carbon source."""

    section: str  # "tool" | "carbon"
    target_index: int
    target: Target
    adapter: Any  # ToolAdapter | CarbonSource


class ToolOutput(NamedTuple):
    """A tool's raw result and the finding candidates mapped from it."""

    candidates: list[FindingCandidate]
    result: RawResult


class Outcome(NamedTuple):
    """What came back for one work unit: a value or a captured error."""

    unit: WorkUnit
    value: ToolOutput | CarbonEstimate | None
    error: TargetError | None


def _run_tool(adapter: ToolAdapter, target: Target) -> ToolOutput:
    # Mapped on the worker so malformed tool output fails only this call.
    result = adapter.run(target)
    return ToolOutput(map_result(result), result)


def _error_kind(unit: WorkUnit, exc: BaseException) -> ErrorKind:
    if isinstance(exc, asyncio.TimeoutError):
        return ErrorKind.TIMEOUT
    if isinstance(exc, asyncio.CancelledError):
        return ErrorKind.CANCELLED
    return ErrorKind.TOOL if unit.section == _TOOL else ErrorKind.CARBON_SOURCE


def _describe(exc: BaseException) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return "adapter call timed out"
    if isinstance(exc, asyncio.CancelledError):
        return "cancelled by the audit deadline"
    if isinstance(exc, (ToolExecutionError, CarbonSourceError)):
        return str(exc)
    return f"{type(exc).__name__}: {exc}"


class WorkerSlots:
    """Admits at most ``max_workers`` adapter calls onto the pool at once.

    A slot is taken before a call is handed to the pool and given back when
    its worker thread returns, so a call never waits in the pool's queue
    and the per-call timeout measures execution only.  A timed-out call
    keeps its slot while its thread is still busy.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        pool: ThreadPoolExecutor,
        max_workers: int,
    ) -> None:
        self.loop = loop
        self.pool = pool
        self._slots = asyncio.Semaphore(max_workers)
        self._running: set[asyncio.Future[Any]] = set()

    async def submit(self, func: Callable[[Target], Any], target: Target) -> asyncio.Future[Any]:
        await self._slots.acquire()
        future = self.loop.run_in_executor(self.pool, func, target)
        self._running.add(future)
        future.add_done_callback(self._release)
        return future

    def _release(self, future: asyncio.Future[Any]) -> None:
        self._running.discard(future)
        self._slots.release()

    def abandon(self) -> None:
        """Detach every call still running so late results are dropped."""
        for future in list(self._running):
            future.cancel()


class AuditOrchestrator:
    """Runs one audit over every configured target.

    Parameters
    ----------
    config:
        The validated audit configuration.
    registry:
        Tool adapters and carbon sources, selected by configuration toggles.
    audit_id:
        Fixed id for the run; generated when omitted.
    """

    def __init__(
        self,
        config: AuditConfig,
        registry: AdapterRegistry,
        *,
        audit_id: str | None = None,
    ) -> None:
        self.config = config
        self.registry = registry
        ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        self.audit_id = audit_id or f"eg-{ts}-{uuid.uuid4().hex[:3]}"

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def run(
        self, *, accessibility: bool = True, carbon: bool = True
    ) -> EthicalAuditResult:
        """Run the audit to completion on a fresh event loop.

        Raises
        ------
        ConfigurationError
            Before any work, if the configuration is unusable.
        CarbonAggregationError
            If carbon is mandatory and no source produced an estimate.  The
            partial result is attached as ``exc.result``.
        """
        return asyncio.run(self.run_async(accessibility=accessibility, carbon=carbon))

    async def run_async(
        self, *, accessibility: bool = True, carbon: bool = True
    ) -> EthicalAuditResult:
        validate_audit_config(
            self.config, self.registry, accessibility=accessibility, carbon=carbon
        )
        units = self._plan(accessibility=accessibility, carbon=carbon)
        logger.info(
            "Audit %s: %d target(s), %d adapter call(s)",
            self.audit_id,
            len(self.config.targets),
            len(units),
        )
        outcomes = await self._execute(units)
        return self._assemble(outcomes, accessibility=accessibility, carbon=carbon)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _plan(self, *, accessibility: bool, carbon: bool) -> list[WorkUnit]:
        tools: list[ToolAdapter] = (
            self.registry.select_tools(self.config.accessibility) if accessibility else []
        )
        sources: list[CarbonSource] = (
            self.registry.select_carbon_sources(self.config.carbon) if carbon else []
        )
        units: list[WorkUnit] = []
        for index, target in enumerate(self.config.targets):
            units.extend(WorkUnit(_TOOL, index, target, tool) for tool in tools)
            units.extend(WorkUnit(_CARBON, index, target, source) for source in sources)
        return units

    async def _call(
        self,
        slots: WorkerSlots,
        func: Callable[[Target], Any],
        unit: WorkUnit,
    ) -> Any:
        execution = self.config.execution
        attempt = 0
        while True:
            future = await slots.submit(func, unit.target)
            try:
                # Shielded so a timeout leaves the call holding its slot
                # until the worker thread actually returns.
                return await asyncio.wait_for(
                    asyncio.shield(future),
                    timeout=execution.adapter_timeout_seconds,
                )
            except asyncio.CancelledError:
                future.cancel()
                raise
            except asyncio.TimeoutError:
                # The worker thread cannot be interrupted, so a retry would
                # only stack another call behind it.
                raise
            except Exception as exc:
                if attempt >= execution.retries:
                    raise
                delay = execution.retry_backoff_seconds * (2 ** attempt)
                attempt += 1
                logger.warning(
                    "%s on %s failed (%s); retry %d/%d in %.2fs",
                    unit.adapter.name,
                    unit.target.name,
                    exc,
                    attempt,
                    execution.retries,
                    delay,
                )
                await asyncio.sleep(delay)

    async def _run_unit(self, slots: WorkerSlots, unit: WorkUnit) -> Outcome:
        func = partial(_run_tool, unit.adapter) if unit.section == _TOOL else unit.adapter.run
        try:
            value = await self._call(slots, func, unit)
        except Exception as exc:
            logger.warning(
                "%s on %s failed: %s", unit.adapter.name, unit.target.name, _describe(exc)
            )
            return Outcome(unit, None, self._target_error(unit, exc))
        return Outcome(unit, value, None)

    def _target_error(self, unit: WorkUnit, exc: BaseException) -> TargetError:
        return TargetError(
            target_name=unit.target.name,
            target_url=unit.target.url,
            source=unit.adapter.name,
            kind=_error_kind(unit, exc),
            message=_describe(exc),
        )

    async def _execute(self, units: list[WorkUnit]) -> list[Outcome]:
        if not units:
            return []
        execution = self.config.execution
        pool = ThreadPoolExecutor(
            max_workers=execution.max_workers, thread_name_prefix="ethicalgates"
        )
        slots = WorkerSlots(asyncio.get_running_loop(), pool, execution.max_workers)
        try:
            tasks = [asyncio.ensure_future(self._run_unit(slots, u)) for u in units]
            done, pending = await asyncio.wait(
                tasks, timeout=execution.audit_timeout_seconds
            )
            if pending:
                logger.warning(
                    "Audit deadline of %.1fs reached — cancelling %d pending call(s)",
                    execution.audit_timeout_seconds,
                    len(pending),
                )
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)
        finally:
            # Abandon calls still blocking a worker; they cannot be interrupted.
            slots.abandon()
            pool.shutdown(wait=False, cancel_futures=True)

        outcomes: list[Outcome] = []
        for unit, task in zip(units, tasks):
            if task in done:
                outcomes.append(task.result())
            else:
                outcomes.append(
                    Outcome(unit, None, self._target_error(unit, asyncio.CancelledError()))
                )
        return outcomes

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    def _assemble_accessibility(
        self, outcomes: list[Outcome]
    ) -> AccessibilitySummary:
        config = self.config
        per_target: dict[int, list[Outcome]] = {}
        for outcome in outcomes:
            per_target.setdefault(outcome.unit.target_index, []).append(outcome)

        results: list[AccessibilityResult] = []
        for index, target in enumerate(config.targets):
            target_outcomes = per_target.get(index, [])
            candidates = [
                c for o in target_outcomes if o.error is None for c in o.value.candidates
            ]
            tools_run = [o.unit.adapter.name for o in target_outcomes if o.error is None]
            tools_failed = [o.unit.adapter.name for o in target_outcomes if o.error is not None]
            if not tools_failed:
                status = SectionStatus.OK
            elif tools_run:
                status = SectionStatus.DEGRADED
            else:
                status = SectionStatus.ERRORED
            violations = deduplicate(candidates, config.accessibility.dedup)
            results.append(score_target(
                target.name,
                target.url,
                violations,
                config.accessibility.wcag_level,
                config.constants,
                status=status,
                tools_run=tools_run,
                tools_failed=tools_failed,
            ))

        statuses = {r.status for r in results}
        if statuses <= {SectionStatus.OK}:
            section_status = SectionStatus.OK
        elif statuses == {SectionStatus.ERRORED}:
            section_status = SectionStatus.ERRORED
        else:
            section_status = SectionStatus.DEGRADED

        scored = [r for r in results if r.status != SectionStatus.ERRORED]
        counts = SeverityCounts()
        for result in scored:
            counts = counts + result.counts
        return AccessibilitySummary(
            status=section_status,
            wcag_level=config.accessibility.wcag_level,
            score=overall_accessibility_score(results, config.accessibility.target_weights),
            wcag_level_compliant=bool(scored) and all(r.wcag_level_compliant for r in scored),
            counts=counts,
            targets=results,
        )

    def _assemble_carbon(
        self, outcomes: list[Outcome], tool_outcomes: list[Outcome]
    ) -> CarbonFootprintSummary:
        config = self.config
        per_target: dict[int, list[Outcome]] = {}
        for outcome in outcomes:
            per_target.setdefault(outcome.unit.target_index, []).append(outcome)

        results: list[TargetCarbonResult] = []
        for index, target in enumerate(config.targets):
            estimates: list[CarbonEstimate] = []
            failures: list[CarbonSourceFailure] = []
            for outcome in per_target.get(index, []):
                if outcome.error is None:
                    estimates.append(outcome.value)
                    continue
                failures.append(CarbonSourceFailure(
                    source_name=outcome.unit.adapter.name,
                    source_kind=outcome.unit.adapter.kind,
                    target_url=target.url,
                    reason=outcome.error.message,
                    timed_out=outcome.error.kind == ErrorKind.TIMEOUT,
                ))
            results.append(TargetCarbonResult(
                target_name=target.name,
                target_url=target.url,
                estimates=estimates,
                failures=failures,
                combined=combine_estimates(estimates, config.carbon, config.constants),
            ))

        combined = [r.combined for r in results if r.combined is not None]
        estimate = site_estimate(combined, config.carbon, config.constants)
        if estimate is None:
            status = SectionStatus.ERRORED
        elif len(combined) < len(results) or any(r.failures for r in results):
            status = SectionStatus.DEGRADED
        else:
            status = SectionStatus.OK
        insights = self._carbon_insights(results, tool_outcomes)
        site_breakdown, site_recommendations = [], []
        if estimate is not None and insights:
            factors = mean_factors([i.factors for i in insights])
            grams = estimate.per_page_view.carbon_grams
            site_breakdown = carbon_breakdown(grams, factors.page_size_kb, config.carbon.insights)
            site_recommendations = carbon_recommendations(
                grams, factors, site_breakdown, config.carbon.insights
            )
        budget = config.carbon.budget_grams_per_page_view
        return CarbonFootprintSummary(
            status=status,
            estimate=estimate,
            carbon_score=(
                carbon_score(estimate.per_page_view.carbon_grams, budget)
                if estimate is not None
                else None
            ),
            budget_grams_per_page_view=budget,
            targets=results,
            breakdown=site_breakdown,
            recommendations=site_recommendations,
            insights=insights,
        )

    def _carbon_insights(
        self, results: list[TargetCarbonResult], tool_outcomes: list[Outcome]
    ) -> list[TargetCarbonInsights]:
        """Factors, breakdown and recommendations per target with an estimate."""
        config = self.config
        raw: dict[int, list[RawResult]] = {}
        for outcome in tool_outcomes:
            if outcome.error is None:
                raw.setdefault(outcome.unit.target_index, []).append(outcome.value.result)

        insights: list[TargetCarbonInsights] = []
        for index, result in enumerate(results):
            if result.combined is None:
                continue
            factors = performance_factors(
                raw.get(index, []), config.carbon.performance.default_page_size_kb
            )
            grams = result.combined.per_page_view.carbon_grams
            breakdown = carbon_breakdown(grams, factors.page_size_kb, config.carbon.insights)
            insights.append(TargetCarbonInsights(
                target_name=result.target_name,
                target_url=result.target_url,
                factors=factors,
                breakdown=breakdown,
                recommendations=carbon_recommendations(
                    grams, factors, breakdown, config.carbon.insights
                ),
            ))
        return insights

    def _assemble(
        self, outcomes: list[Outcome], *, accessibility: bool, carbon: bool
    ) -> EthicalAuditResult:
        config = self.config
        tool_outcomes = [o for o in outcomes if o.unit.section == _TOOL]
        carbon_outcomes = [o for o in outcomes if o.unit.section == _CARBON]

        a11y = (
            self._assemble_accessibility(tool_outcomes)
            if accessibility
            else AccessibilitySummary(
                status=SectionStatus.SKIPPED, wcag_level=config.accessibility.wcag_level
            )
        )
        footprint = (
            self._assemble_carbon(carbon_outcomes, tool_outcomes)
            if carbon and config.carbon.methods.enabled()
            else CarbonFootprintSummary(
                status=SectionStatus.SKIPPED,
                budget_grams_per_page_view=config.carbon.budget_grams_per_page_view,
            )
        )

        score = overall_score(a11y.score, footprint.carbon_score, config.constants)
        gate = evaluate_gate(a11y, footprint, score, config.quality_gates)
        overall = OverallAssessment(
            score=score,
            grade=grade_for(score),
            compliant=score >= config.quality_gates.min_score and gate.passed,
            gate=gate,
        )
        violations = [v for t in a11y.targets for v in t.violations]
        result = EthicalAuditResult(
            audit_id=self.audit_id,
            config_hash=compute_config_hash(config.fingerprint_dump()),
            accessibility=a11y,
            carbon_footprint=footprint,
            overall=overall,
            action_items=generate_action_items(
                violations,
                footprint.estimate,
                config.quality_gates,
                config.constants,
                recommendations=footprint.recommendations,
                overall_score=score,
            ),
            per_target_errors=[o.error for o in outcomes if o.error is not None],
            degraded=a11y.status in (SectionStatus.DEGRADED, SectionStatus.ERRORED)
            or footprint.status in (SectionStatus.DEGRADED, SectionStatus.ERRORED),
        )
        logger.info(
            "Audit %s finished: score %d (%s), gate %s",
            self.audit_id,
            score,
            overall.grade.value,
            "passed" if gate.passed else "failed",
        )

        if (
            carbon
            and config.quality_gates.carbon_mandatory
            and footprint.status == SectionStatus.ERRORED
        ):
            raise CarbonAggregationError(
                "carbon is mandatory but every carbon source failed", result=result
            )
        return result
