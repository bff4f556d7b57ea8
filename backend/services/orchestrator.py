"""
Report Orchestrator - the persisted pipeline state machine.

A report moves through:

    pending -> researching -> analyzing -> completed
    (any non-terminal state) -> failed

Transitions happen only after the phase output that justifies them has been
written:

- pending -> researching: Scout findings saved.
- researching -> analyzing: Researcher data saved.
- analyzing -> completed: specialist outputs, Director output, metrics and
  one recommendation row per unified recommendation saved.

Any exception in any phase writes `failed` with the error message, leaves
earlier phase outputs in place and is re-raised. There is no resume; a failed
report is regenerated by creating a new one.

The paid and organic agents run as a concurrent pair. The Director waits for
both, and a failure in either cancels the other and fails the report.

Usage:
    report = await create_report(context, client_id, date_range=date_range)
    report = await run_report(context, report)

    # Or from an API handler:
    report = await trigger_report(context, client_id, background_tasks, date_range=date_range)
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any, Awaitable, List, Optional, Tuple, TypeVar

from fastapi import BackgroundTasks

from backend.models import (
    ClientContext,
    DateRange,
    OrganicAgentOutput,
    PaidAgentOutput,
    PerformanceMetrics,
    Report,
    ReportSummary,
    ReportTrace,
    ReportTrigger,
    SkillMetadata,
)
from backend.services.director import run_director
from backend.services.errors import ClientNotFoundError, NoDataError
from backend.services.researcher import run_researcher
from backend.services.scout import run_scout
from backend.services.specialists import run_organic_agent, run_paid_agent
from backend.skills import get_skill_bundle
from backend.skills.types import SkillBundle

if TYPE_CHECKING:
    from backend.core.context import PipelineContext

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# Run State
# =============================================================================

def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


@dataclass
class RunState:
    """Counters accumulated across the phases of one run."""
    started: float = field(default_factory=time.perf_counter)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    warnings: List[str] = field(default_factory=list)
    tokens_used: int = 0
    skill_metadata: Optional[SkillMetadata] = None

    def finish(self) -> int:
        total = _elapsed_ms(self.started)
        self.performance.totalMs = total
        return total


async def _timed(awaitable: Awaitable[T]) -> Tuple[T, int]:
    started = time.perf_counter()
    value = await awaitable
    return value, _elapsed_ms(started)


async def _gather_or_cancel(*awaitables: Awaitable[Any]) -> List[Any]:
    """
    Await all awaitables concurrently.

    On the first failure the remaining tasks are cancelled and the error is
    raised, so no caller ever continues with a partial result.
    """
    tasks = [asyncio.ensure_future(awaitable) for awaitable in awaitables]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


# =============================================================================
# Date Ranges
# =============================================================================

def resolve_date_range(
    days: Optional[int] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    *,
    default_days: int = 30,
    today: Optional[date] = None,
) -> DateRange:
    """
    Build the analysis window.

    Explicit start/end win. Otherwise the window ends today (or at `end`)
    and reaches back `days` (default `default_days`).

    Raises:
        ValueError: start is after end.
    """
    if start is not None and end is not None:
        if start > end:
            raise ValueError(f"startDate {start} is after endDate {end}")
        return DateRange(start=start, end=end)

    window = days or default_days
    end = end or today or date.today()
    return DateRange(start=end - timedelta(days=window), end=end)


# =============================================================================
# Lifecycle
# =============================================================================

async def create_report(
    context: PipelineContext,
    client_id: str,
    *,
    date_range: DateRange,
    trigger: ReportTrigger = ReportTrigger.MANUAL,
) -> Report:
    """Create a pending report row for a client."""
    return await context.reports.create(client_id, trigger, date_range)


async def _load_client(context: PipelineContext, client_id: str) -> Tuple[ClientContext, SkillBundle, bool]:
    found = await context.clients.get_context(client_id)
    if found is None:
        raise ClientNotFoundError(client_id)
    client, using_fallback = found
    return client, get_skill_bundle(client.businessType), using_fallback


async def run_report(context: PipelineContext, report: Report) -> Report:
    """
    Run every phase for a pending report.

    Returns:
        The completed report as re-read from storage.

    Raises:
        Any phase error, after the report has been marked failed.
    """
    state = RunState()
    report_id = report.id
    date_range = DateRange(start=report.dateRangeStart, end=report.dateRangeEnd)
    settings = context.settings

    logger.info(
        f"Report {report_id}: starting for client {report.clientId} "
        f"({date_range.start} to {date_range.end}, trigger {report.trigger.value})"
    )

    try:
        await context.reports.mark_started(report_id)

        client, bundle, using_fallback = await _load_client(context, report.clientId)
        state.skill_metadata = SkillMetadata(
            businessType=bundle.business_type,
            skillVersion=bundle.version,
            usingFallback=using_fallback,
        )
        if using_fallback:
            state.warnings.append(
                f"Unsupported business type for client {client.name or client.clientId}; "
                f"using {bundle.business_type.value} skills"
            )
        logger.info(
            f"Report {report_id}: using {bundle.business_type.value} skills v{bundle.version}"
            + (" (fallback)" if using_fallback else "")
        )

        metrics = await context.metrics_provider.fetch(report.clientId, date_range)
        if metrics.is_empty:
            raise NoDataError()

        # Phase 1: Scout
        scout_started = time.perf_counter()
        findings = run_scout(metrics, bundle.scout, client)
        state.performance.scoutMs = _elapsed_ms(scout_started)
        await context.reports.save_scout_findings(report_id, findings)
        logger.info(
            f"Report {report_id}: scout shortlisted {len(findings.battlegroundKeywords)} keywords "
            f"and {len(findings.criticalPages)} pages"
        )

        # Phase 2: Researcher
        researcher_data, state.performance.researcherMs = await _timed(
            run_researcher(
                findings,
                bundle.researcher,
                client_id=report.clientId,
                date_range=date_range,
                competitive_provider=context.competitive_provider,
                page_fetcher=context.page_fetcher,
                signals=bundle.scout.signals,
                max_concurrency=settings.page_fetch_concurrency,
                fetch_timeout=settings.page_fetch_timeout_seconds,
            )
        )
        state.warnings.extend(researcher_data.warnings)
        await context.reports.save_researcher_data(report_id, researcher_data)

        # Phase 3: paid and organic agents, concurrently
        (paid, state.performance.paidAgentMs), (organic, state.performance.organicAgentMs) = (
            await _gather_or_cancel(
                _timed(
                    run_paid_agent(
                        researcher_data.enrichedKeywords,
                        bundle.paid,
                        context.gateway,
                        director_skill=bundle.director,
                        client=client,
                        max_keywords=settings.prompt_max_keywords,
                    )
                ),
                _timed(
                    run_organic_agent(
                        researcher_data.enrichedPages,
                        bundle.organic,
                        context.gateway,
                        director_skill=bundle.director,
                        client=client,
                        max_pages=settings.prompt_max_pages,
                    )
                ),
            )
        )
        await context.reports.save_agent_outputs(report_id, paid, organic)
        await _record_violations(context, report_id, bundle, paid, organic, state)

        # Phase 4: Director
        director, state.performance.directorMs = await _timed(
            run_director(paid, organic, bundle.director, context.gateway, client)
        )
        state.warnings.extend(director.warnings)
        state.tokens_used = paid.tokensUsed + organic.tokensUsed + director.tokensUsed

        processing_time_ms = state.finish()
        await context.reports.complete(
            report,
            director,
            skill_metadata=state.skill_metadata,
            performance=state.performance,
            warnings=state.warnings,
            tokens_used=state.tokens_used,
            processing_time_ms=processing_time_ms,
        )

        logger.info(
            f"Report {report_id}: completed in {processing_time_ms}ms with "
            f"{len(director.unifiedRecommendations)} recommendations ({state.tokens_used} tokens)"
        )
    except Exception as e:
        state.finish()
        logger.exception(f"Report {report_id}: failed: {e}")
        await context.reports.fail(
            report_id,
            str(e) or type(e).__name__,
            skill_metadata=state.skill_metadata,
            performance=state.performance,
            warnings=state.warnings,
        )
        raise

    completed = await context.reports.get(report_id)
    return completed if completed is not None else report


async def _record_violations(
    context: PipelineContext,
    report_id: str,
    bundle: SkillBundle,
    paid: PaidAgentOutput,
    organic: OrganicAgentOutput,
    state: RunState,
) -> None:
    violations = paid.violations + organic.violations
    state.performance.keywordsDroppedFromPrompt = paid.droppedFromPrompt
    state.performance.pagesDroppedFromPrompt = organic.droppedFromPrompt
    state.performance.constraintViolations = len(violations)
    if violations:
        await context.violations.record(
            report_id,
            violations,
            skill_version=bundle.version,
            business_type=bundle.business_type,
        )


async def generate_report(
    context: PipelineContext,
    client_id: str,
    *,
    date_range: DateRange,
    trigger: ReportTrigger = ReportTrigger.MANUAL,
) -> Report:
    """Create and run a report in one call. Errors propagate after the report is failed."""
    report = await create_report(context, client_id, date_range=date_range, trigger=trigger)
    return await run_report(context, report)


async def run_report_in_background(context: PipelineContext, report: Report) -> None:
    """Background entry point; the failure is already persisted, so it is only logged."""
    try:
        await run_report(context, report)
    except Exception as e:
        logger.error(f"Background report {report.id} ended in failure: {e}")


async def trigger_report(
    context: PipelineContext,
    client_id: str,
    background_tasks: BackgroundTasks,
    *,
    date_range: DateRange,
    trigger: ReportTrigger = ReportTrigger.MANUAL,
) -> Report:
    """
    Create a pending report and schedule its run.

    Returns:
        The pending report; callers poll get_report for progress.
    """
    report = await create_report(context, client_id, date_range=date_range, trigger=trigger)
    background_tasks.add_task(run_report_in_background, context, report)
    logger.info(f"Report {report.id}: scheduled for client {client_id}")
    return report


# =============================================================================
# Reads
# =============================================================================

async def get_report(context: PipelineContext, report_id: str) -> Optional[ReportSummary]:
    report = await context.reports.get(report_id)
    return ReportSummary.from_report(report) if report else None


async def get_latest_report(context: PipelineContext, client_id: str) -> Optional[ReportSummary]:
    report = await context.reports.latest_for_client(client_id)
    return ReportSummary.from_report(report) if report else None


async def get_report_trace(context: PipelineContext, report_id: str) -> Optional[ReportTrace]:
    report = await context.reports.get(report_id)
    return ReportTrace.from_report(report) if report else None


async def has_existing_reports(context: PipelineContext, client_id: str) -> bool:
    return await context.reports.exists_for_client(client_id)


__all__ = [
    "RunState",
    "resolve_date_range",
    "create_report",
    "run_report",
    "generate_report",
    "run_report_in_background",
    "trigger_report",
    "get_report",
    "get_latest_report",
    "get_report_trace",
    "has_existing_reports",
]
