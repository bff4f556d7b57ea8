"""
Tests for the paid and organic specialist agents.

The AI gateway runs over a ScriptedProvider, so each test controls exactly
what the "model" returns.
"""

import pytest

from backend.models import ViolationSource
from backend.services.errors import AIRetryExhaustedError
from backend.services.specialists import filter_actions, run_organic_agent, run_paid_agent
from backend.skills.types import RecommendationTypes
from backend.tests.conftest import organic_action_payload, paid_action_payload


class TestFilterActions:

    TYPES = RecommendationTypes(
        prioritize=('negative-keywords', 'bid-adjustment'),
        deprioritize=('brand-campaign',),
        exclude=('shopping-campaigns',),
    )

    def test_exclude_prioritize_and_deprioritize(self) -> None:
        actions = [
            'Tweak ad copy for repair terms',
            'Pause the brand campaign on weekends',
            'Launch shopping campaigns for supplies',
            'Make a bid adjustment on mobile',
            'Add negative keywords for DIY queries',
        ]
        result = filter_actions(actions, self.TYPES, 10, lambda text: text)
        assert result == [
            'Add negative keywords for DIY queries',
            'Make a bid adjustment on mobile',
            'Tweak ad copy for repair terms',
            'Pause the brand campaign on weekends',
        ]

    def test_truncates(self) -> None:
        actions = ['first action', 'second action', 'third action']
        assert filter_actions(actions, RecommendationTypes(), 2, lambda text: text) == ['first action', 'second action']


@pytest.mark.asyncio
class TestPaidAgent:

    async def test_empty_shortlist_skips_ai_call(self, make_gateway, lead_gen_bundle) -> None:
        gateway, provider = make_gateway([{'paidActions': [paid_action_payload()]}])

        output = await run_paid_agent([], lead_gen_bundle.paid, gateway, director_skill=lead_gen_bundle.director)

        assert output.actions == []
        assert output.tokensUsed == 0
        assert provider.calls == 0

    async def test_filters_and_orders_actions(
        self, make_gateway, lead_gen_bundle, lead_gen_client, enriched_keywords
    ) -> None:
        gateway, provider = make_gateway([{'paidActions': [
            paid_action_payload(),
            paid_action_payload(action='Launch shopping campaigns for roofing supplies'),
            paid_action_payload(action='Add negative keywords for DIY repair queries'),
        ]}])

        output = await run_paid_agent(
            enriched_keywords, lead_gen_bundle.paid, gateway,
            director_skill=lead_gen_bundle.director, client=lead_gen_client,
        )

        assert [a.action for a in output.actions] == [
            'Add negative keywords for DIY repair queries',
            'Reduce bids on emergency roof repair by 30%',
        ]
        assert output.filteredOut == 1
        assert output.tokensUsed == 100
        assert output.attempts == 1
        assert output.violations == []

        prompt = provider.prompts[0]
        assert 'emergency roof repair' in prompt
        assert 'Client: Acme Roofing' in prompt

    async def test_records_constraint_violations(self, make_gateway, lead_gen_bundle, enriched_keywords) -> None:
        gateway, _ = make_gateway([{'paidActions': [
            paid_action_payload(action='Increase bids where ROAS is strongest'),
        ]}])

        output = await run_paid_agent(
            enriched_keywords, lead_gen_bundle.paid, gateway, director_skill=lead_gen_bundle.director,
        )

        # Violations are recorded, the action is kept
        assert len(output.actions) == 1
        assert len(output.violations) == 1
        violation = output.violations[0]
        assert violation.source == ViolationSource.PAID
        assert violation.ruleId == 'metric:roas'
        assert violation.matchedContent.startswith('increase bids where roas')

    async def test_prompt_truncation_is_reported(self, make_gateway, lead_gen_bundle, enriched_keywords) -> None:
        gateway, provider = make_gateway([{'paidActions': [paid_action_payload()]}])

        output = await run_paid_agent(
            enriched_keywords, lead_gen_bundle.paid, gateway,
            director_skill=lead_gen_bundle.director, max_keywords=1,
        )

        assert output.droppedFromPrompt == 1
        assert '1 lower-priority keywords omitted' in provider.prompts[0]
        assert 'roof inspection cost' not in provider.prompts[0]

    async def test_retries_exhausted_raises(self, make_gateway, sleep_recorder, lead_gen_bundle, enriched_keywords) -> None:
        gateway, provider = make_gateway(['I am unable to produce JSON today.'])

        with pytest.raises(AIRetryExhaustedError) as exc_info:
            await run_paid_agent(
                enriched_keywords, lead_gen_bundle.paid, gateway, director_skill=lead_gen_bundle.director,
            )

        assert exc_info.value.label == 'Paid agent'
        assert exc_info.value.attempts == 3
        assert 'retries exhausted after 3 attempts' in str(exc_info.value)
        assert provider.calls == 3
        assert sleep_recorder.delays == [1.0, 2.0]

    async def test_schema_invalid_then_valid(self, make_gateway, lead_gen_bundle, enriched_keywords) -> None:
        gateway, _ = make_gateway([
            {'paidActions': []},
            {'paidActions': [paid_action_payload()]},
        ])

        output = await run_paid_agent(
            enriched_keywords, lead_gen_bundle.paid, gateway, director_skill=lead_gen_bundle.director,
        )

        assert output.attempts == 2
        assert output.tokensUsed == 200


@pytest.mark.asyncio
class TestOrganicAgent:

    async def test_empty_shortlist_skips_ai_call(self, make_gateway, lead_gen_bundle) -> None:
        gateway, provider = make_gateway([{'organicActions': [organic_action_payload()]}])

        output = await run_organic_agent([], lead_gen_bundle.organic, gateway, director_skill=lead_gen_bundle.director)

        assert output.actions == []
        assert provider.calls == 0

    async def test_happy_path(self, make_gateway, lead_gen_bundle, enriched_pages) -> None:
        gateway, provider = make_gateway([{'organicActions': [
            organic_action_payload(),
            organic_action_payload(recommendation='Add Product schema to every service page'),
        ]}])

        output = await run_organic_agent(
            enriched_pages, lead_gen_bundle.organic, gateway, director_skill=lead_gen_bundle.director,
        )

        # "product schema" is an excluded recommendation type for lead generation
        assert [a.recommendation for a in output.actions] == ['Add Service schema to the roof repair page']
        assert output.filteredOut == 1
        assert output.violations == []
        assert 'https://example.com/services/roof-repair' in provider.prompts[0]

    async def test_records_schema_violation(self, make_gateway, lead_gen_bundle, enriched_pages) -> None:
        gateway, _ = make_gateway([{'organicActions': [
            organic_action_payload(
                recommendation='Add Offer schema to the pricing section',
                specificActions=['Implement Offer JSON-LD markup'],
            ),
        ]}])

        output = await run_organic_agent(
            enriched_pages, lead_gen_bundle.organic, gateway, director_skill=lead_gen_bundle.director,
        )

        assert len(output.violations) == 1
        assert output.violations[0].source == ViolationSource.ORGANIC
        assert output.violations[0].ruleId == 'schema:Offer'

    async def test_retries_exhausted_raises(self, make_gateway, lead_gen_bundle, enriched_pages, transport_error) -> None:
        gateway, _ = make_gateway([transport_error])

        with pytest.raises(AIRetryExhaustedError) as exc_info:
            await run_organic_agent(
                enriched_pages, lead_gen_bundle.organic, gateway, director_skill=lead_gen_bundle.director,
            )

        assert exc_info.value.label == 'Organic agent'
        assert 'TransportError' in str(exc_info.value)
