"""
Tests for Director synthesis and deterministic recommendation filtering.
"""

from typing import Any, Dict

import pytest

from backend.models import (
    EffortLevel,
    ImpactLevel,
    OrganicAgentOutput,
    PaidAgentOutput,
    RecommendationCategory,
    UnifiedRecommendation,
)
from backend.services.director import (
    EMPTY_RECOMMENDATIONS_SUMMARY,
    EMPTY_RECOMMENDATIONS_WARNING,
    NO_OPPORTUNITIES_SUMMARY,
    filter_recommendations,
    is_must_include,
    run_director,
    score_recommendation,
)
from backend.services.errors import AIRetryExhaustedError
from backend.tests.conftest import director_payload, recommendation_payload


def _rec(title: str, impact: str = 'medium', effort: str = 'medium', **kwargs: Any) -> UnifiedRecommendation:
    return UnifiedRecommendation(**recommendation_payload(title=title, impact=impact, effort=effort, **kwargs))


class TestScoring:

    @pytest.mark.parametrize('impact,effort,expected', [
        ('high', 'low', 1.5),
        ('high', 'high', 1.1),
        ('medium', 'low', 1.2),
        ('low', 'high', 0.5),
    ])
    def test_weighted_score(self, lead_gen_bundle, impact, effort, expected) -> None:
        score = score_recommendation(_rec('Some recommendation', impact, effort), lead_gen_bundle.director.filtering)
        assert score == pytest.approx(expected)


class TestFilterRecommendations:

    def test_ranks_by_score(self, lead_gen_bundle) -> None:
        recs = [
            _rec('High impact heavy lift', 'high', 'high'),
            _rec('Medium impact quick win', 'medium', 'low'),
            _rec('High impact quick win', 'high', 'low'),
            _rec('Low impact tweak', 'low', 'low'),
        ]
        final, stats = filter_recommendations(recs, lead_gen_bundle.director.filtering)

        assert [r.title for r in final] == [
            'High impact quick win',
            'Medium impact quick win',
            'High impact heavy lift',
        ]
        assert stats.received == 4
        assert stats.belowThreshold == 1

    def test_equal_scores_keep_model_order(self, lead_gen_bundle) -> None:
        recs = [_rec('First equal rec'), _rec('Second equal rec'), _rec('Third equal rec')]
        final, _ = filter_recommendations(recs, lead_gen_bundle.director.filtering)
        assert [r.title for r in final] == ['First equal rec', 'Second equal rec', 'Third equal rec']

    def test_must_exclude_metric_and_schema(self, lead_gen_bundle) -> None:
        recs = [
            _rec('Improve ROAS on repair campaigns', 'high', 'low'),
            _rec('Implement Product schema on service pages', 'high', 'low'),
            _rec('Tighten repair keyword bids', 'high', 'low'),
        ]
        final, stats = filter_recommendations(recs, lead_gen_bundle.director.filtering)

        assert [r.title for r in final] == ['Tighten repair keyword bids']
        assert stats.excluded == 2

    def test_sales_team_wording_is_not_a_revenue_metric(self, lead_gen_bundle) -> None:
        recs = [
            _rec('Speed up lead follow-up', 'high', 'low',
                 description='Route new form leads to the sales team within five minutes of submission.'),
            _rec('Report revenue per campaign', 'high', 'low'),
        ]
        final, stats = filter_recommendations(recs, lead_gen_bundle.director.filtering)

        assert [r.title for r in final] == ['Speed up lead follow-up']
        assert stats.excluded == 1

    def test_local_business_schema_excluded_for_ecommerce(self, ecommerce_bundle) -> None:
        recs = [
            _rec('Add LocalBusiness schema to store pages', 'high', 'low', category='organic'),
            _rec('Expand shopping feed coverage', 'high', 'low', category='paid'),
        ]
        final, stats = filter_recommendations(recs, ecommerce_bundle.director.filtering)

        assert [r.title for r in final] == ['Expand shopping feed coverage']
        assert stats.excluded == 1

    def test_literal_pattern_in_description(self, ecommerce_bundle) -> None:
        recs = [_rec('Fix structured data', 'high', 'low', description='Remove schema:LocalBusiness from product pages.')]
        final, stats = filter_recommendations(recs, ecommerce_bundle.director.filtering)
        assert final == []
        assert stats.excluded == 1

    def test_must_include_is_pinned_and_reinserted(self, lead_gen_bundle) -> None:
        recs = [
            _rec('High impact quick win', 'high', 'low'),
            _rec('Add a lead form above the fold', 'low', 'high'),
        ]
        final, stats = filter_recommendations(recs, lead_gen_bundle.director.filtering)

        assert [r.title for r in final] == ['Add a lead form above the fold', 'High impact quick win']
        assert stats.reinserted == 1
        assert stats.belowThreshold == 1

    def test_truncates_to_max(self, lead_gen_bundle) -> None:
        recs = [_rec(f'Recommendation number {i}', 'high', 'low') for i in range(14)]
        final, stats = filter_recommendations(recs, lead_gen_bundle.director.filtering)

        assert len(final) == lead_gen_bundle.director.filtering.max_recommendations == 10
        assert stats.truncated == 4

    def test_must_include_counts_toward_max(self, lead_gen_bundle) -> None:
        filtering = lead_gen_bundle.director.filtering.model_copy(update={'max_recommendations': 1})
        recs = [_rec('High impact quick win', 'high', 'low'), _rec('Lead form redesign', 'medium', 'medium')]
        final, _ = filter_recommendations(recs, filtering)
        assert [r.title for r in final] == ['Lead form redesign']

    def test_must_include_matches_title_case_insensitively(self, lead_gen_bundle) -> None:
        assert is_must_include(_rec('Shorten the LEAD FORM'), ('lead form',))
        assert not is_must_include(_rec('Shorten the contact page'), ('lead form',))


# =============================================================================
# run_director
# =============================================================================

def _recommendations() -> list:
    return [
        recommendation_payload(title='Consolidate roof repair spend', impact='high', effort='medium'),
        recommendation_payload(title='Add Service schema to repair page', category='SEO', impact='medium',
                               effort='low'),
    ]


@pytest.mark.asyncio
class TestRunDirector:

    async def test_no_actions_skips_ai_call(self, make_gateway, lead_gen_bundle) -> None:
        gateway, provider = make_gateway([director_payload(_recommendations())])

        output = await run_director(PaidAgentOutput(), OrganicAgentOutput(), lead_gen_bundle.director, gateway)

        assert output.skippedAiCall
        assert output.executiveSummary == NO_OPPORTUNITIES_SUMMARY
        assert output.unifiedRecommendations == []
        assert provider.calls == 0

    async def test_happy_path(self, make_gateway, lead_gen_bundle, lead_gen_client, paid_actions, organic_actions) -> None:
        gateway, provider = make_gateway([director_payload(_recommendations())])

        output = await run_director(
            PaidAgentOutput(actions=paid_actions),
            OrganicAgentOutput(actions=organic_actions),
            lead_gen_bundle.director,
            gateway,
            lead_gen_client,
        )

        assert [r.title for r in output.unifiedRecommendations] == [
            'Consolidate roof repair spend',
            'Add Service schema to repair page',
        ]
        assert output.unifiedRecommendations[1].category == RecommendationCategory.ORGANIC
        assert output.tokensUsed == 100
        assert not output.usedFallback
        assert output.filtering.received == 2

        prompt = provider.prompts[0]
        assert 'Reduce bids on emergency roof repair by 30%' in prompt
        assert 'Add Service schema to the roof repair page' in prompt

    async def test_only_one_channel_still_calls_ai(self, make_gateway, lead_gen_bundle, paid_actions) -> None:
        gateway, provider = make_gateway([director_payload(_recommendations())])
        output = await run_director(PaidAgentOutput(actions=paid_actions), OrganicAgentOutput(),
                                    lead_gen_bundle.director, gateway)
        assert provider.calls == 1
        assert not output.skippedAiCall

    async def test_empty_recommendation_list_uses_fallback(
        self, make_gateway, sleep_recorder, lead_gen_bundle, paid_actions
    ) -> None:
        gateway, provider = make_gateway([director_payload([])])

        output = await run_director(PaidAgentOutput(actions=paid_actions), OrganicAgentOutput(),
                                    lead_gen_bundle.director, gateway)

        assert output.usedFallback
        assert output.executiveSummary == EMPTY_RECOMMENDATIONS_SUMMARY
        assert output.unifiedRecommendations == []
        assert output.warnings == [EMPTY_RECOMMENDATIONS_WARNING]
        assert provider.calls == 1
        assert sleep_recorder.delays == []

    async def test_other_validation_failures_are_fatal(self, make_gateway, lead_gen_bundle, paid_actions) -> None:
        invalid: Dict[str, Any] = director_payload([])
        invalid['executiveSummary']['summary'] = 'Too short'
        gateway, provider = make_gateway([invalid])

        with pytest.raises(AIRetryExhaustedError) as exc_info:
            await run_director(PaidAgentOutput(actions=paid_actions), OrganicAgentOutput(),
                               lead_gen_bundle.director, gateway)

        assert exc_info.value.label == 'Director'
        assert provider.calls == 3

    async def test_output_is_bounded(self, make_gateway, lead_gen_bundle, paid_actions) -> None:
        many = [recommendation_payload(title=f'Recommendation number {i}') for i in range(15)]
        gateway, _ = make_gateway([director_payload(many)])

        output = await run_director(PaidAgentOutput(actions=paid_actions), OrganicAgentOutput(),
                                    lead_gen_bundle.director, gateway)

        assert len(output.unifiedRecommendations) == 10
        assert output.filtering.truncated == 5
        assert all(r.impact.ordinal >= ImpactLevel.MEDIUM.ordinal for r in output.unifiedRecommendations)
        assert all(isinstance(r.effort, EffortLevel) for r in output.unifiedRecommendations)
