"""
Persistence for reports, recommendations, constraint violations and client
context.

All stores wrap the shared asyncpg pool. JSONB columns round-trip as Python
objects through the codecs registered in backend.core.database, so phase
outputs are written as `model_dump(mode="json")` dicts and read back with
`model_validate`.

Each phase write touches only its own column(s). Completion updates the
report and inserts its recommendations in one transaction, so a completed
report always has its recommendation rows.
"""

import json
import logging
from typing import Any, Optional, Sequence, Tuple

from pydantic import BaseModel

from backend.models import (
    ApprovalStatus,
    BusinessType,
    ClientContext,
    ConstraintViolation,
    DateRange,
    DirectorOutput,
    OrganicAgentOutput,
    PaidAgentOutput,
    PerformanceMetrics,
    RecommendationSource,
    Report,
    ReportStatus,
    ReportTrigger,
    ResearcherData,
    ScoutFindings,
    SkillMetadata,
    UnifiedRecommendation,
)
from backend.skills import resolve_business_type
from backend.sql import (
    get_client_context_query,
    get_complete_report_query,
    get_fail_report_query,
    get_insert_constraint_violation_query,
    get_insert_recommendation_query,
    get_insert_report_query,
    get_latest_report_query,
    get_mark_report_started_query,
    get_report_by_id_query,
    get_report_exists_query,
    get_save_agent_outputs_query,
    get_save_researcher_data_query,
    get_save_scout_findings_query,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Row Conversion
# =============================================================================

def _json_value(value: Any) -> Any:
    """JSONB value from a row; tolerates connections without the JSON codec."""
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return value


def _blob(model: Optional[BaseModel]) -> Optional[Any]:
    return model.model_dump(mode="json") if model is not None else None


def _parse(model_cls, value: Any):
    value = _json_value(value)
    return model_cls.model_validate(value) if value is not None else None


def row_to_report(row: Any) -> Report:
    """Convert an interplay_reports row into a Report."""
    return Report(
        id=str(row['id']),
        clientId=str(row['client_account_id']),
        trigger=ReportTrigger(row['trigger_type']),
        status=ReportStatus(row['status']),
        dateRangeStart=row['date_range_start'],
        dateRangeEnd=row['date_range_end'],
        dateRangeDays=row['date_range_days'],
        scoutFindings=_parse(ScoutFindings, row['scout_findings']),
        researcherData=_parse(ResearcherData, row['researcher_data']),
        paidAgentOutput=_parse(PaidAgentOutput, row['paid_agent_output']),
        organicAgentOutput=_parse(OrganicAgentOutput, row['organic_agent_output']),
        directorOutput=_parse(DirectorOutput, row['director_output']),
        skillMetadata=_parse(SkillMetadata, row['skill_metadata']),
        performanceMetrics=_parse(PerformanceMetrics, row['performance_metrics']),
        warnings=_json_value(row['warnings']) or [],
        tokensUsed=row['tokens_used'],
        processingTimeMs=row['processing_time_ms'],
        errorMessage=row['error_message'],
        createdAt=row['created_at'],
        startedAt=row['started_at'],
        completedAt=row['completed_at'],
    )


def row_to_client_context(row: Any) -> Tuple[ClientContext, bool]:
    """
    Convert a client_accounts row into a ClientContext.

    Returns:
        (context, using_fallback). using_fallback is True when the stored
        business type is missing or unsupported and ecommerce was assumed.
    """
    business_type, using_fallback = resolve_business_type(row['business_type'])

    targets = _json_value(row['targets']) or {}
    context = ClientContext(
        clientId=str(row['id']),
        name=row['name'] or "",
        businessType=business_type,
        industry=row['industry'],
        targetMarket=row['target_market'],
        brandTerms=[term.lower() for term in (row['brand_terms'] or [])],
        competitorTerms=[term.lower() for term in (row['competitor_terms'] or [])],
        targets={name: float(value) for name, value in targets.items() if value is not None},
    )
    return context, using_fallback


# =============================================================================
# Reports
# =============================================================================

class ReportStore:
    """Reads and phase-by-phase writes of interplay_reports rows."""

    def __init__(self, pool):
        self.pool = pool

    async def create(self, client_id: str, trigger: ReportTrigger, date_range: DateRange) -> Report:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                get_insert_report_query(),
                client_id,
                trigger.value,
                ReportStatus.PENDING.value,
                date_range.start,
                date_range.end,
                date_range.days,
            )
        report = row_to_report(row)
        logger.info(f"Created report {report.id} for client {client_id} ({trigger.value})")
        return report

    async def mark_started(self, report_id: str) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(get_mark_report_started_query(), report_id)

    async def save_scout_findings(self, report_id: str, findings: ScoutFindings) -> None:
        """Persist Scout output and move pending -> researching."""
        async with self.pool.acquire() as conn:
            await conn.execute(
                get_save_scout_findings_query(),
                report_id,
                _blob(findings),
                ReportStatus.RESEARCHING.value,
            )

    async def save_researcher_data(self, report_id: str, data: ResearcherData) -> None:
        """Persist Researcher output and move researching -> analyzing."""
        async with self.pool.acquire() as conn:
            await conn.execute(
                get_save_researcher_data_query(),
                report_id,
                _blob(data),
                ReportStatus.ANALYZING.value,
            )

    async def save_agent_outputs(
        self,
        report_id: str,
        paid: PaidAgentOutput,
        organic: OrganicAgentOutput,
    ) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(get_save_agent_outputs_query(), report_id, _blob(paid), _blob(organic))

    async def complete(
        self,
        report: Report,
        director: DirectorOutput,
        *,
        skill_metadata: SkillMetadata,
        performance: PerformanceMetrics,
        warnings: Sequence[str],
        tokens_used: int,
        processing_time_ms: int,
    ) -> None:
        """
        Store the Director output, move analyzing -> completed and create one
        pending recommendation row per unified recommendation.
        """
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute(
                    get_complete_report_query(),
                    report.id,
                    _blob(director),
                    _blob(skill_metadata),
                    _blob(performance),
                    list(warnings),
                    tokens_used,
                    processing_time_ms,
                    ReportStatus.COMPLETED.value,
                )
                await RecommendationStore.insert_many(
                    conn, report.clientId, report.id, director.unifiedRecommendations
                )

    async def fail(
        self,
        report_id: str,
        error_message: str,
        *,
        skill_metadata: Optional[SkillMetadata] = None,
        performance: Optional[PerformanceMetrics] = None,
        warnings: Optional[Sequence[str]] = None,
    ) -> None:
        """Move a non-terminal report to failed, keeping earlier phase outputs."""
        async with self.pool.acquire() as conn:
            await conn.execute(
                get_fail_report_query(),
                report_id,
                error_message,
                ReportStatus.FAILED.value,
                ReportStatus.COMPLETED.value,
                _blob(skill_metadata),
                _blob(performance),
                list(warnings) if warnings is not None else None,
            )

    async def get(self, report_id: str) -> Optional[Report]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(get_report_by_id_query(), report_id)
        return row_to_report(row) if row else None

    async def latest_for_client(self, client_id: str) -> Optional[Report]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(get_latest_report_query(), client_id)
        return row_to_report(row) if row else None

    async def exists_for_client(self, client_id: str) -> bool:
        async with self.pool.acquire() as conn:
            return bool(await conn.fetchval(get_report_exists_query(), client_id))


# =============================================================================
# Recommendations
# =============================================================================

class RecommendationStore:
    """Creates recommendation rows; approval is owned by a downstream workflow."""

    @staticmethod
    async def insert_many(
        conn,
        client_id: str,
        report_id: str,
        recommendations: Sequence[UnifiedRecommendation],
    ) -> int:
        """Insert recommendations in their ranked order, all pending approval."""
        for sort_order, rec in enumerate(recommendations):
            await conn.execute(
                get_insert_recommendation_query(),
                client_id,
                report_id,
                RecommendationSource.INTERPLAY_REPORT.value,
                rec.category.value,
                rec.title,
                rec.description,
                rec.impact.value,
                rec.effort.value,
                list(rec.actionItems),
                ApprovalStatus.PENDING.value,
                sort_order,
            )
        return len(recommendations)


# =============================================================================
# Constraint Violations
# =============================================================================

class ConstraintViolationStore:
    """Quality-signal rows. Recording never fails a report."""

    def __init__(self, pool):
        self.pool = pool

    async def record(
        self,
        report_id: str,
        violations: Sequence[ConstraintViolation],
        *,
        skill_version: str,
        business_type: BusinessType,
    ) -> int:
        """
        Store violations for a report.

        Returns:
            Rows written; 0 when there was nothing to write or the write failed.
        """
        if not violations:
            return 0
        try:
            async with self.pool.acquire() as conn:
                await conn.executemany(
                    get_insert_constraint_violation_query(),
                    [
                        (
                            report_id,
                            violation.source.value,
                            violation.ruleId,
                            violation.matchedContent,
                            skill_version,
                            business_type.value,
                        )
                        for violation in violations
                    ],
                )
        except Exception as e:
            logger.warning(f"Failed to record {len(violations)} constraint violations for report {report_id}: {e}")
            return 0
        return len(violations)


# =============================================================================
# Clients
# =============================================================================

class ClientStore:
    def __init__(self, pool):
        self.pool = pool

    async def get_context(self, client_id: str) -> Optional[Tuple[ClientContext, bool]]:
        """Client context plus the business-type fallback flag, or None if unknown."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(get_client_context_query(), client_id)
        return row_to_client_context(row) if row else None


__all__ = [
    "row_to_report",
    "row_to_client_context",
    "ReportStore",
    "RecommendationStore",
    "ConstraintViolationStore",
    "ClientStore",
]
