"""
Tests for Researcher enrichment with mocked competitive metrics and page
fetching.
"""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from backend.models import (
    BattlegroundKeyword,
    CompetitiveDataLevel,
    CompetitiveMetrics,
    CriticalPage,
    PriorityLevel,
    ScoutFindings,
)
from backend.services.researcher import apply_priority_boosts, boost_namespace, run_researcher
from backend.skills.types import PriorityBoost


pytestmark = pytest.mark.asyncio

PAGE_HTML = '<html><head><title>Roof Repair</title></head><body><h1>Roof Repair</h1></body></html>'


def _keyword(query: str, conversions: float = 1.0) -> BattlegroundKeyword:
    return BattlegroundKeyword(
        query=query,
        priority=PriorityLevel.CRITICAL,
        ruleId='high-spend-low-conversions',
        reason='High Spend, Low Lead Volume',
        spend=350,
        clicks=100,
        impressions=2000,
        conversions=conversions,
    )


def _page(url: str) -> CriticalPage:
    return CriticalPage(url=url, priority=PriorityLevel.HIGH, ruleId='high-bounce-landing', reason='High Bounce')


@pytest.fixture
def findings() -> ScoutFindings:
    return ScoutFindings(
        battlegroundKeywords=[_keyword('roof repair near me', conversions=6), _keyword('roof inspection cost')],
        criticalPages=[_page('https://example.com/services/roof-repair'), _page('https://example.com/contact')],
    )


@pytest.fixture
def competitive_provider() -> AsyncMock:
    keyword_level = {
        'roof repair near me': CompetitiveMetrics(
            impressionShare=30.0, lostImpressionShareRank=45.0, dataLevel=CompetitiveDataLevel.KEYWORD,
        ),
    }
    provider = AsyncMock()
    provider.keyword_metrics = AsyncMock(side_effect=lambda client_id, keyword, date_range: keyword_level.get(keyword))
    provider.account_metrics = AsyncMock(return_value=CompetitiveMetrics(
        impressionShare=55.0, dataLevel=CompetitiveDataLevel.ACCOUNT,
    ))
    return provider


@pytest.fixture
def page_fetcher() -> AsyncMock:
    async def fetch_html(url, timeout=None):
        if url.endswith('/contact'):
            raise httpx.ConnectError('connection refused')
        return PAGE_HTML

    fetcher = AsyncMock()
    fetcher.fetch_html = AsyncMock(side_effect=fetch_html)
    return fetcher


async def _run(findings, bundle, date_range, competitive_provider, page_fetcher, **kwargs):
    return await run_researcher(
        findings,
        bundle.researcher,
        client_id='client-1',
        date_range=date_range,
        competitive_provider=competitive_provider,
        page_fetcher=page_fetcher,
        signals=bundle.scout.signals,
        **kwargs,
    )


class TestRunResearcher:

    async def test_keyword_enrichment_and_boosts(
        self, findings, lead_gen_bundle, date_range, competitive_provider, page_fetcher
    ) -> None:
        data = await _run(findings, lead_gen_bundle, date_range, competitive_provider, page_fetcher)

        first, second = data.enrichedKeywords
        assert first.query == 'roof repair near me'
        assert first.competitiveMetrics.dataLevel == CompetitiveDataLevel.KEYWORD
        assert first.impressionShare == 30.0
        # impression share boost (1.8) and service-query rank boost (1.4)
        assert first.priorityScore == pytest.approx(2.52)
        assert len(first.boostReasons) == 2

        assert second.competitiveMetrics.dataLevel == CompetitiveDataLevel.ACCOUNT
        assert second.priorityScore == 1.0
        competitive_provider.account_metrics.assert_awaited_once()

    async def test_page_failures_are_kept(
        self, findings, lead_gen_bundle, date_range, competitive_provider, page_fetcher
    ) -> None:
        data = await _run(findings, lead_gen_bundle, date_range, competitive_provider, page_fetcher)

        service, contact = data.enrichedPages
        assert service.pageContent is not None
        assert service.pageContent.title == 'Roof Repair'
        assert contact.url == 'https://example.com/contact'
        assert contact.pageContent is None
        assert data.dataQuality.pagesWithContent == 1
        assert data.dataQuality.pagesEnrichmentFailed == 1

    async def test_quality_warnings(
        self, findings, lead_gen_bundle, date_range, competitive_provider, page_fetcher
    ) -> None:
        data = await _run(findings, lead_gen_bundle, date_range, competitive_provider, page_fetcher)

        assert data.dataQuality.keywordsWithCompetitiveData == 2
        assert data.warnings == [
            'Only 2 of 2 keywords have competitive data (minimum 8)',
            'Only 1 of 2 pages returned content (minimum 4)',
        ]
        assert data.skillVersion == lead_gen_bundle.researcher.version

    async def test_keyword_lookup_failure_is_swallowed(
        self, findings, lead_gen_bundle, date_range, competitive_provider, page_fetcher
    ) -> None:
        competitive_provider.keyword_metrics.side_effect = RuntimeError('database unavailable')

        data = await _run(findings, lead_gen_bundle, date_range, competitive_provider, page_fetcher)

        assert data.dataQuality.keywordsEnrichmentFailed == 2
        assert [k.query for k in data.enrichedKeywords] == ['roof repair near me', 'roof inspection cost']
        assert all(k.competitiveMetrics is None for k in data.enrichedKeywords)

    async def test_account_failure_falls_back_to_none(
        self, findings, lead_gen_bundle, date_range, competitive_provider, page_fetcher
    ) -> None:
        competitive_provider.account_metrics.side_effect = RuntimeError('timeout')

        data = await _run(findings, lead_gen_bundle, date_range, competitive_provider, page_fetcher)

        second = data.enrichedKeywords[1]
        assert second.competitiveMetrics.dataLevel == CompetitiveDataLevel.NONE
        assert data.dataQuality.keywordsWithCompetitiveData == 1

    async def test_timeout_is_capped(
        self, findings, lead_gen_bundle, date_range, competitive_provider, page_fetcher
    ) -> None:
        await _run(findings, lead_gen_bundle, date_range, competitive_provider, page_fetcher,
                   fetch_timeout=60.0)
        timeouts = {call.kwargs['timeout'] for call in page_fetcher.fetch_html.call_args_list}
        assert timeouts == {lead_gen_bundle.researcher.max_fetch_timeout_seconds}

    async def test_fetch_concurrency_is_bounded(self, lead_gen_bundle, date_range, competitive_provider) -> None:
        state = {'active': 0, 'peak': 0}

        async def fetch_html(url, timeout=None):
            state['active'] += 1
            state['peak'] = max(state['peak'], state['active'])
            await asyncio.sleep(0.01)
            state['active'] -= 1
            return PAGE_HTML

        fetcher = AsyncMock()
        fetcher.fetch_html = AsyncMock(side_effect=fetch_html)
        findings = ScoutFindings(criticalPages=[_page(f'https://example.com/services/{i}') for i in range(6)])

        data = await _run(findings, lead_gen_bundle, date_range, competitive_provider, fetcher, max_concurrency=2)

        assert state['peak'] == 2
        assert data.dataQuality.pagesWithContent == 6

    async def test_empty_findings(self, lead_gen_bundle, date_range, competitive_provider, page_fetcher) -> None:
        data = await _run(ScoutFindings(), lead_gen_bundle, date_range, competitive_provider, page_fetcher)

        assert data.enrichedKeywords == []
        assert data.enrichedPages == []
        assert data.warnings == []
        competitive_provider.account_metrics.assert_not_awaited()


class TestPriorityBoosts:

    async def test_boosts_multiply(self) -> None:
        boosts = [
            PriorityBoost(metric='impressionShare', condition='impressionShare < 40', boost=1.5, reason='Low share'),
            PriorityBoost(metric='conversions', condition='conversions > 5', boost=2.0, reason='Converting'),
            PriorityBoost(metric='roas', condition='roas < 1', boost=3.0, reason='Unprofitable'),
        ]
        namespace = {'impressionShare': 20.0, 'conversions': 8, 'roas': None}
        score, reasons = apply_priority_boosts(namespace, boosts)
        assert score == 3.0
        assert reasons == ['Low share', 'Converting']

    async def test_namespace_includes_competitive_metrics(self, lead_gen_bundle) -> None:
        competitive = CompetitiveMetrics(lostImpressionShareRank=35.0, dataLevel=CompetitiveDataLevel.KEYWORD)
        namespace = boost_namespace(_keyword('roofing company denver'), competitive, lead_gen_bundle.scout.signals)
        assert namespace['lostImpressionShareRank'] == 35.0
        assert namespace['isServiceQuery']
        assert 'dataLevel' not in namespace
