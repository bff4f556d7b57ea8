"""
Researcher - best-effort enrichment of the Scout shortlists.

Only shortlisted items are enriched, which bounds the number of database
lookups and page fetches per report.

Keywords:
    Auction-insight metrics at keyword level, falling back to the account
    aggregate (fetched once per run), otherwise none. Skill priority boosts
    are evaluated over the keyword's metrics, its competitive metrics and
    the skill's query signals; each matching boost multiplies priorityScore.

Pages:
    HTML fetched through PageContentFetcher under a semaphore and analyzed
    with the Researcher skill (schema, content signals, page type).

A failure on one item is logged at WARNING and counted; the item is kept
with whatever data it has. Data-quality warnings are added when coverage is
below the skill's minimums.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from backend.models import (
    BattlegroundKeyword,
    CompetitiveDataLevel,
    CompetitiveMetrics,
    CriticalPage,
    DateRange,
    EnrichedKeyword,
    EnrichedPage,
    ResearcherData,
    ResearcherDataQuality,
    ScoutFindings,
)
from backend.services.competitive_metrics import CompetitiveMetricsProvider
from backend.services.conditions import evaluate_condition
from backend.services.page_content import PageContentFetcher, analyze_page
from backend.services.scout import signal_values
from backend.skills.types import PriorityBoost, ResearcherSkill, SignalPattern

logger = logging.getLogger(__name__)


# =============================================================================
# Keyword Enrichment
# =============================================================================

def boost_namespace(
    keyword: BattlegroundKeyword,
    competitive: Optional[CompetitiveMetrics],
    signals: Sequence[SignalPattern] = (),
) -> Dict[str, Any]:
    """Names available to priority boost conditions."""
    namespace: Dict[str, Any] = {
        "spend": keyword.spend,
        "clicks": keyword.clicks,
        "impressions": keyword.impressions,
        "conversions": keyword.conversions,
        "roas": keyword.roas,
        "cpl": keyword.cpl,
        "organicPosition": keyword.organicPosition,
    }
    if competitive is not None:
        namespace.update(competitive.model_dump(exclude={"dataLevel"}))
    namespace.update(signal_values(signals, "query", keyword.query))
    return namespace


def apply_priority_boosts(
    namespace: Dict[str, Any],
    boosts: Sequence[PriorityBoost],
) -> tuple:
    """
    Multiply matching boosts together.

    Returns:
        (score, reasons) where score starts at 1.0.
    """
    score = 1.0
    reasons: List[str] = []
    for boost in boosts:
        if evaluate_condition(boost.condition, namespace):
            score *= boost.boost
            reasons.append(boost.reason)
    return score, reasons


async def _competitive_for_keyword(
    provider: CompetitiveMetricsProvider,
    client_id: str,
    keyword: str,
    date_range: DateRange,
    account_level: Optional[CompetitiveMetrics],
) -> Optional[CompetitiveMetrics]:
    metrics = await provider.keyword_metrics(client_id, keyword, date_range)
    if metrics is not None:
        return metrics
    return account_level


async def _account_metrics(
    provider: CompetitiveMetricsProvider,
    client_id: str,
    date_range: DateRange,
) -> Optional[CompetitiveMetrics]:
    try:
        return await provider.account_metrics(client_id, date_range)
    except Exception as e:
        logger.warning(f"Account-level competitive metrics unavailable for client {client_id}: {e}")
        return None


async def enrich_keyword(
    keyword: BattlegroundKeyword,
    skill: ResearcherSkill,
    *,
    provider: CompetitiveMetricsProvider,
    client_id: str,
    date_range: DateRange,
    account_level: Optional[CompetitiveMetrics],
    signals: Sequence[SignalPattern] = (),
) -> EnrichedKeyword:
    """
    Attach competitive metrics and priority boosts to one keyword.

    Raises:
        Exception: Whatever the competitive metrics lookup raises; the caller
            decides whether that is fatal.
    """
    competitive = await _competitive_for_keyword(
        provider, client_id, keyword.query, date_range, account_level
    )
    score, reasons = apply_priority_boosts(
        boost_namespace(keyword, competitive, signals),
        skill.priority_boosts,
    )

    data = keyword.model_dump()
    if competitive is not None and competitive.impressionShare is not None:
        data["impressionShare"] = competitive.impressionShare
    return EnrichedKeyword(
        **data,
        competitiveMetrics=competitive or CompetitiveMetrics(dataLevel=CompetitiveDataLevel.NONE),
        priorityScore=score,
        boostReasons=reasons,
    )


# =============================================================================
# Page Enrichment
# =============================================================================

async def enrich_page(
    page: CriticalPage,
    skill: ResearcherSkill,
    *,
    fetcher: PageContentFetcher,
    timeout: float,
) -> EnrichedPage:
    """
    Fetch and analyze one page. A page that returns no HTML is kept without
    content.

    Raises:
        httpx.HTTPError: On transport failures.
    """
    html = await fetcher.fetch_html(page.url, timeout=timeout)
    content = analyze_page(page.url, html, skill) if html else None
    return EnrichedPage(**page.model_dump(), pageContent=content)


# =============================================================================
# Entry Point
# =============================================================================

def _quality_warnings(skill: ResearcherSkill, findings: ScoutFindings, quality: ResearcherDataQuality) -> List[str]:
    warnings: List[str] = []
    keyword_count = len(findings.battlegroundKeywords)
    page_count = len(findings.criticalPages)

    if keyword_count and quality.keywordsWithCompetitiveData < skill.min_keywords_with_competitive_data:
        warnings.append(
            f"Only {quality.keywordsWithCompetitiveData} of {keyword_count} keywords have competitive data "
            f"(minimum {skill.min_keywords_with_competitive_data})"
        )
    if page_count and quality.pagesWithContent < skill.min_pages_with_content:
        warnings.append(
            f"Only {quality.pagesWithContent} of {page_count} pages returned content "
            f"(minimum {skill.min_pages_with_content})"
        )
    return warnings


async def run_researcher(
    findings: ScoutFindings,
    skill: ResearcherSkill,
    *,
    client_id: str,
    date_range: DateRange,
    competitive_provider: CompetitiveMetricsProvider,
    page_fetcher: PageContentFetcher,
    signals: Sequence[SignalPattern] = (),
    max_concurrency: int = 3,
    fetch_timeout: float = 10.0,
) -> ResearcherData:
    """
    Enrich Scout's shortlists.

    Args:
        findings: Scout output.
        skill: Researcher portion of the active skill bundle.
        client_id: Client account id.
        date_range: Report window for auction-insight lookups.
        competitive_provider: Auction-insight reader.
        page_fetcher: Landing page fetcher.
        signals: Query signals from the Scout skill, usable in boosts.
        max_concurrency: Configured fetch concurrency; the skill may lower it.
        fetch_timeout: Configured fetch timeout; the skill may lower it.

    Returns:
        ResearcherData in Scout order, with data-quality counters and warnings.
    """
    concurrency = max(1, min(max_concurrency, skill.max_concurrent_fetches))
    timeout = min(fetch_timeout, skill.max_fetch_timeout_seconds)
    semaphore = asyncio.Semaphore(concurrency)
    quality = ResearcherDataQuality()

    logger.info(
        f"Researcher enriching {len(findings.battlegroundKeywords)} keywords and "
        f"{len(findings.criticalPages)} pages (concurrency {concurrency}, timeout {timeout}s)"
    )

    account_level: Optional[CompetitiveMetrics] = None
    if findings.battlegroundKeywords:
        account_level = await _account_metrics(competitive_provider, client_id, date_range)

    async def _keyword_task(keyword: BattlegroundKeyword) -> EnrichedKeyword:
        try:
            return await enrich_keyword(
                keyword,
                skill,
                provider=competitive_provider,
                client_id=client_id,
                date_range=date_range,
                account_level=account_level,
                signals=signals,
            )
        except Exception as e:
            logger.warning(f"Competitive enrichment failed for keyword {keyword.query!r}: {e}")
            quality.keywordsEnrichmentFailed += 1
            return EnrichedKeyword(**keyword.model_dump())

    async def _page_task(page: CriticalPage) -> EnrichedPage:
        async with semaphore:
            try:
                return await enrich_page(page, skill, fetcher=page_fetcher, timeout=timeout)
            except Exception as e:
                logger.warning(f"Page enrichment failed for {page.url}: {e}")
                quality.pagesEnrichmentFailed += 1
                return EnrichedPage(**page.model_dump())

    enriched_keywords, enriched_pages = await asyncio.gather(
        asyncio.gather(*(_keyword_task(keyword) for keyword in findings.battlegroundKeywords)),
        asyncio.gather(*(_page_task(page) for page in findings.criticalPages)),
    )

    quality.keywordsWithCompetitiveData = sum(
        1 for keyword in enriched_keywords
        if keyword.competitiveMetrics is not None
        and keyword.competitiveMetrics.dataLevel != CompetitiveDataLevel.NONE
    )
    quality.pagesWithContent = sum(1 for page in enriched_pages if page.pageContent is not None)

    warnings = _quality_warnings(skill, findings, quality)
    for warning in warnings:
        logger.warning(f"Researcher data quality: {warning}")

    logger.info(
        f"Researcher complete: {quality.keywordsWithCompetitiveData} keywords with competitive data, "
        f"{quality.pagesWithContent} pages with content, "
        f"{quality.keywordsEnrichmentFailed + quality.pagesEnrichmentFailed} failures"
    )

    return ResearcherData(
        enrichedKeywords=list(enriched_keywords),
        enrichedPages=list(enriched_pages),
        dataQuality=quality,
        warnings=warnings,
        skillVersion=skill.version,
    )


__all__ = [
    "boost_namespace",
    "apply_priority_boosts",
    "enrich_keyword",
    "enrich_page",
    "run_researcher",
]
