"""
Pipeline context.

Everything a report run needs (settings, pool, AI gateway, data providers and
stores) is built once at process start and passed explicitly into the
orchestrator. Tests build a context from mocks instead of patching module
globals.

Usage:
    pool = await init_db()
    context = build_pipeline_context(get_settings(), pool)
    report = await generate_report(context, client_id, date_range=date_range)
"""

from dataclasses import dataclass
from typing import Optional

from backend.core.config import Settings
from backend.services.ai_gateway import AIGateway, AIProvider
from backend.services.competitive_metrics import CompetitiveMetricsProvider
from backend.services.metrics_provider import UnifiedMetricsProvider
from backend.services.page_content import PageContentFetcher
from backend.services.report_store import ClientStore, ConstraintViolationStore, ReportStore


@dataclass
class PipelineContext:
    settings: Settings
    pool: object
    gateway: AIGateway
    metrics_provider: UnifiedMetricsProvider
    competitive_provider: CompetitiveMetricsProvider
    page_fetcher: PageContentFetcher
    reports: ReportStore
    violations: ConstraintViolationStore
    clients: ClientStore


def build_pipeline_context(
    settings: Settings,
    pool,
    provider: Optional[AIProvider] = None,
) -> PipelineContext:
    """
    Wire the pipeline collaborators around a pool.

    Args:
        settings: Application settings.
        pool: asyncpg pool (or a test double with the same acquire() API).
        provider: Optional AI provider; built from settings when omitted.

    Raises:
        ConfigurationError: No provider was given and the selected provider
            has no API key.
    """
    return PipelineContext(
        settings=settings,
        pool=pool,
        gateway=AIGateway.from_settings(settings, provider=provider),
        metrics_provider=UnifiedMetricsProvider(pool),
        competitive_provider=CompetitiveMetricsProvider(pool),
        page_fetcher=PageContentFetcher.from_settings(settings),
        reports=ReportStore(pool),
        violations=ConstraintViolationStore(pool),
        clients=ClientStore(pool),
    )


__all__ = ["PipelineContext", "build_pipeline_context"]
