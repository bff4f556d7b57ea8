"""
Tests for the report orchestrator: phase order, status transitions, failure
handling and the concurrent specialist pair.

Stores and data providers are mocks; the AI gateway runs over a provider that
answers by prompt type, so the paid and organic agents can run in any order.
"""

import asyncio
import dataclasses
import json
from datetime import date
from typing import Any, Dict, List
from unittest.mock import AsyncMock

import pytest
from fastapi import BackgroundTasks

from backend.core.context import PipelineContext
from backend.models import (
    BusinessType,
    ClientContext,
    ReportStatus,
    ReportSummary,
    ReportTrigger,
    UnifiedMetrics,
)
from backend.services.ai_gateway import AIGateway, AIProvider, Completion
from backend.services.director import EMPTY_RECOMMENDATIONS_WARNING
from backend.services.errors import AIRetryExhaustedError, ClientNotFoundError, NoDataError
from backend.services.orchestrator import (
    _gather_or_cancel,
    generate_report,
    get_report,
    resolve_date_range,
    run_report,
    run_report_in_background,
    trigger_report,
)
from backend.services.report_store import ClientStore, ConstraintViolationStore, ReportStore, row_to_report
from backend.sql import get_complete_report_query, get_fail_report_query, get_insert_recommendation_query
from backend.tests.conftest import (
    director_payload,
    make_report_row,
    organic_action_payload,
    paid_action_payload,
    recommendation_payload,
)


PAGE_HTML = '<html><head><title>Roof Repair</title></head><body><h1>Roof Repair</h1></body></html>'


class RoutingProvider(AIProvider):
    """Answers each prompt by the output contract it asks for."""

    name = "routing"

    def __init__(self, paid: Any, organic: Any, director: Any):
        self.responses = {'paid': paid, 'organic': organic, 'director': director}
        self.calls: List[str] = []

    async def complete(self, prompt: str, *, max_tokens: int) -> Completion:
        if '"unifiedRecommendations"' in prompt:
            kind = 'director'
        elif '"paidActions"' in prompt:
            kind = 'paid'
        else:
            kind = 'organic'
        self.calls.append(kind)
        response = self.responses[kind]
        text = response if isinstance(response, str) else json.dumps(response)
        return Completion(text=text, input_tokens=60, output_tokens=40)


def _default_responses() -> Dict[str, Any]:
    return {
        'paid': {'paidActions': [paid_action_payload()]},
        'organic': {'organicActions': [organic_action_payload()]},
        'director': director_payload([recommendation_payload()]),
    }


@pytest.fixture
def pending_report():
    return row_to_report(make_report_row())


@pytest.fixture
def build_context(test_settings, mock_db_pool, sleep_recorder, lead_gen_metrics, lead_gen_client, pending_report):
    """Factory for a PipelineContext over mocks; returns (context, provider)."""

    def _build(client=None, using_fallback=False, metrics=None, **responses):
        scripted = _default_responses()
        scripted.update(responses)
        provider = RoutingProvider(**scripted)
        gateway = AIGateway(provider, max_attempts=2, base_delay=0.5, sleep=sleep_recorder)

        metrics_provider = AsyncMock()
        metrics_provider.fetch = AsyncMock(return_value=metrics if metrics is not None else lead_gen_metrics)

        competitive_provider = AsyncMock()
        competitive_provider.keyword_metrics = AsyncMock(return_value=None)
        competitive_provider.account_metrics = AsyncMock(return_value=None)

        page_fetcher = AsyncMock()
        page_fetcher.fetch_html = AsyncMock(return_value=PAGE_HTML)

        reports = AsyncMock(spec=ReportStore)
        reports.create.return_value = pending_report
        reports.get.return_value = pending_report.model_copy(update={'status': ReportStatus.COMPLETED})

        clients = AsyncMock(spec=ClientStore)
        clients.get_context.return_value = (client or lead_gen_client, using_fallback)

        context = PipelineContext(
            settings=test_settings,
            pool=mock_db_pool,
            gateway=gateway,
            metrics_provider=metrics_provider,
            competitive_provider=competitive_provider,
            page_fetcher=page_fetcher,
            reports=reports,
            violations=AsyncMock(spec=ConstraintViolationStore),
            clients=clients,
        )
        return context, provider

    return _build


def _call_names(mock) -> List[str]:
    return [call[0] for call in mock.method_calls]


# =============================================================================
# Happy Path
# =============================================================================

@pytest.mark.asyncio
class TestRunReport:

    async def test_phases_run_in_order(self, build_context, pending_report) -> None:
        context, provider = build_context()

        result = await run_report(context, pending_report)

        assert result.status == ReportStatus.COMPLETED
        assert _call_names(context.reports) == [
            'mark_started',
            'save_scout_findings',
            'save_researcher_data',
            'save_agent_outputs',
            'complete',
            'get',
        ]
        assert sorted(provider.calls[:2]) == ['organic', 'paid']
        assert provider.calls[2] == 'director'
        context.reports.fail.assert_not_awaited()

    async def test_completion_payload(self, build_context, pending_report) -> None:
        context, _ = build_context()

        await run_report(context, pending_report)

        args = context.reports.complete.call_args
        report, director = args.args
        assert report is pending_report
        assert [r.title for r in director.unifiedRecommendations] == ['Consolidate roof repair spend']

        kwargs = args.kwargs
        assert kwargs['tokens_used'] == 300
        assert kwargs['skill_metadata'].businessType == BusinessType.LEAD_GEN
        assert not kwargs['skill_metadata'].usingFallback
        performance = kwargs['performance']
        assert performance.scoutMs is not None
        assert performance.directorMs is not None
        assert performance.totalMs == kwargs['processing_time_ms']
        # Researcher coverage warnings are carried onto the report
        assert any('competitive data' in warning for warning in kwargs['warnings'])

    async def test_scout_findings_are_saved(self, build_context, pending_report) -> None:
        context, _ = build_context()

        await run_report(context, pending_report)

        report_id, findings = context.reports.save_scout_findings.call_args.args
        assert report_id == 'report-1'
        assert findings.battlegroundKeywords[0].query == 'emergency roof repair'
        context.metrics_provider.fetch.assert_awaited_once()

    async def test_fallback_business_type_is_recorded(self, build_context, pending_report) -> None:
        client = ClientContext(clientId='client-1', name='Acme Roofing', businessType=BusinessType.ECOMMERCE)
        context, _ = build_context(client=client, using_fallback=True)

        await run_report(context, pending_report)

        kwargs = context.reports.complete.call_args.kwargs
        assert kwargs['skill_metadata'].usingFallback
        assert kwargs['skill_metadata'].businessType == BusinessType.ECOMMERCE
        assert kwargs['warnings'][0] == 'Unsupported business type for client Acme Roofing; using ecommerce skills'

    async def test_constraint_violations_are_recorded(self, build_context, pending_report) -> None:
        context, _ = build_context(
            paid={'paidActions': [paid_action_payload(action='Increase bids where ROAS is strongest')]},
        )

        await run_report(context, pending_report)

        context.violations.record.assert_awaited_once()
        violations = context.violations.record.call_args.args[1]
        assert [v.ruleId for v in violations] == ['metric:roas']
        assert context.reports.complete.call_args.kwargs['performance'].constraintViolations == 1

    async def test_no_violations_skips_recording(self, build_context, pending_report) -> None:
        context, _ = build_context()
        await run_report(context, pending_report)
        context.violations.record.assert_not_awaited()

    async def test_empty_director_list_still_completes(self, build_context, pending_report, mock_db_pool) -> None:
        context, provider = build_context(director=director_payload([]))
        context = dataclasses.replace(context, reports=ReportStore(mock_db_pool))
        mock_db_pool.conn.fetchrow.return_value = make_report_row(status='completed')

        result = await run_report(context, pending_report)

        assert result.status == ReportStatus.COMPLETED
        assert provider.calls.count('director') == 1

        queries = [call.args[0] for call in mock_db_pool.conn.execute.call_args_list]
        assert get_fail_report_query() not in queries
        assert get_insert_recommendation_query() not in queries

        complete_args = next(
            call.args for call in mock_db_pool.conn.execute.call_args_list
            if call.args[0] == get_complete_report_query()
        )
        assert complete_args[2]['unifiedRecommendations'] == []
        assert complete_args[2]['usedFallback'] is True
        assert EMPTY_RECOMMENDATIONS_WARNING in complete_args[5]
        assert complete_args[8] == 'completed'


# =============================================================================
# Failures
# =============================================================================

@pytest.mark.asyncio
class TestRunReportFailures:

    async def test_unknown_client(self, build_context, pending_report) -> None:
        context, provider = build_context()
        context.clients.get_context.return_value = None

        with pytest.raises(ClientNotFoundError):
            await run_report(context, pending_report)

        context.reports.fail.assert_awaited_once()
        assert context.reports.fail.call_args.args == ('report-1', 'Client not found: client-1')
        assert provider.calls == []

    async def test_no_data(self, build_context, pending_report) -> None:
        context, provider = build_context(metrics=UnifiedMetrics())

        with pytest.raises(NoDataError):
            await run_report(context, pending_report)

        assert context.reports.fail.call_args.args[1] == 'No data available for analysis'
        context.reports.save_scout_findings.assert_not_awaited()
        assert provider.calls == []

    async def test_specialist_failure_fails_report(self, build_context, pending_report, sleep_recorder) -> None:
        context, provider = build_context(paid='no json here')

        with pytest.raises(AIRetryExhaustedError) as exc_info:
            await run_report(context, pending_report)

        assert exc_info.value.label == 'Paid agent'
        assert provider.calls.count('paid') == 2
        assert 'director' not in provider.calls
        assert sleep_recorder.delays == [0.5]

        names = _call_names(context.reports)
        assert 'save_researcher_data' in names
        assert 'save_agent_outputs' not in names
        assert 'complete' not in names

        fail_call = context.reports.fail.call_args
        assert fail_call.args[1].startswith('Paid agent: AI gateway retries exhausted after 2 attempts')
        assert fail_call.kwargs['skill_metadata'].businessType == BusinessType.LEAD_GEN
        assert fail_call.kwargs['performance'].totalMs is not None

    async def test_director_failure_fails_report(self, build_context, pending_report) -> None:
        context, _ = build_context(director='still thinking')

        with pytest.raises(AIRetryExhaustedError):
            await run_report(context, pending_report)

        assert 'save_agent_outputs' in _call_names(context.reports)
        context.reports.complete.assert_not_awaited()

    async def test_background_run_swallows_errors(self, build_context, pending_report) -> None:
        context, _ = build_context()
        context.clients.get_context.return_value = None

        await run_report_in_background(context, pending_report)

        context.reports.fail.assert_awaited_once()


@pytest.mark.asyncio
class TestGatherOrCancel:

    async def test_failure_cancels_siblings(self) -> None:
        cancelled = asyncio.Event()

        async def slow():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        async def failing():
            await asyncio.sleep(0)
            raise RuntimeError('boom')

        with pytest.raises(RuntimeError):
            await _gather_or_cancel(slow(), failing())

        assert cancelled.is_set()

    async def test_results_in_order(self) -> None:
        async def value(v, delay):
            await asyncio.sleep(delay)
            return v

        assert await _gather_or_cancel(value('a', 0.02), value('b', 0)) == ['a', 'b']


# =============================================================================
# Entry Points
# =============================================================================

@pytest.mark.asyncio
class TestEntryPoints:

    async def test_generate_report(self, build_context, date_range) -> None:
        context, _ = build_context()

        report = await generate_report(context, 'client-1', date_range=date_range)

        context.reports.create.assert_awaited_once_with('client-1', ReportTrigger.MANUAL, date_range)
        assert report.status == ReportStatus.COMPLETED

    async def test_trigger_report_schedules_run(self, build_context, date_range) -> None:
        context, _ = build_context()
        background_tasks = BackgroundTasks()

        report = await trigger_report(
            context, 'client-1', background_tasks,
            date_range=date_range, trigger=ReportTrigger.CLIENT_CREATION,
        )

        assert report.status == ReportStatus.PENDING
        assert len(background_tasks.tasks) == 1
        assert background_tasks.tasks[0].func is run_report_in_background
        context.reports.create.assert_awaited_once_with('client-1', ReportTrigger.CLIENT_CREATION, date_range)
        context.reports.mark_started.assert_not_awaited()

    async def test_get_report_summary(self, build_context) -> None:
        context, _ = build_context()
        summary = await get_report(context, 'report-1')
        assert isinstance(summary, ReportSummary)
        assert summary.status == ReportStatus.COMPLETED

    async def test_get_missing_report(self, build_context) -> None:
        context, _ = build_context()
        context.reports.get.return_value = None
        assert await get_report(context, 'missing') is None


class TestResolveDateRange:

    def test_explicit_range(self) -> None:
        result = resolve_date_range(start=date(2024, 1, 1), end=date(2024, 1, 31))
        assert (result.start, result.end) == (date(2024, 1, 1), date(2024, 1, 31))

    def test_days_back_from_today(self) -> None:
        result = resolve_date_range(days=7, today=date(2024, 6, 15))
        assert (result.start, result.end) == (date(2024, 6, 8), date(2024, 6, 15))
        assert result.days == 7

    def test_default_window(self) -> None:
        result = resolve_date_range(today=date(2024, 6, 30), default_days=30)
        assert result.start == date(2024, 5, 31)

    def test_end_only(self) -> None:
        result = resolve_date_range(days=10, end=date(2024, 3, 11))
        assert result.start == date(2024, 3, 1)

    def test_inverted_range(self) -> None:
        with pytest.raises(ValueError):
            resolve_date_range(start=date(2024, 2, 1), end=date(2024, 1, 1))
