"""
Tests for must-exclude pattern matching and constraint violation recording.
"""

import pytest

from backend.models import OrganicAction, PaidAction, ViolationSource
from backend.services.constraint_validation import (
    MATCHED_CONTENT_CHARS,
    ActionText,
    build_exclusion_rule,
    infer_action_types,
    matches_exclusion,
    mentioned_metrics,
    mentioned_schemas,
    validate_organic_actions,
    validate_paid_actions,
)
from backend.tests.conftest import organic_action_payload, paid_action_payload


class TestTextClassification:

    def test_metrics(self) -> None:
        assert mentioned_metrics('Lower cost per lead and lift CTR') == ['cpl', 'ctr']
        assert mentioned_metrics('Return on ad spend improved') == ['roas']
        assert mentioned_metrics('Nothing measurable here') == []
        assert mentioned_metrics('Hand qualified leads to the sales team') == []

    def test_schemas_are_whole_words(self) -> None:
        assert mentioned_schemas('Add FAQPage and Service markup') == ['Service', 'FAQPage']
        assert mentioned_schemas('Productivity tips') == []

    def test_action_types(self) -> None:
        assert infer_action_types('Implement Service schema markup') == ['schema-implementation']
        assert 'bid-adjustment' in infer_action_types('Reduce bids on mobile')
        assert 'schema-removal' in infer_action_types('Remove invalid schema from the page')


class TestExclusionRules:

    @pytest.mark.parametrize('pattern,text,expected', [
        ('metric:roas', 'Improve ROAS on brand terms', True),
        ('metric:roas', 'Improve lead volume on brand terms', False),
        ('schema:Product', 'Implement Product schema on service pages', True),
        # Mentioning a schema without recommending it is not a violation
        ('schema:Product', 'The Product listing page converts well', False),
        ('type:shopping-campaign', 'Launch a shopping campaign for supplies', True),
        ('type:shopping-campaign', 'Restructure the shopping-campaign budget', True),
        ('lead form', 'Shorten the Lead Form to three fields', True),
        ('lead form', 'Shorten the contact page', False),
    ])
    def test_rule_matching(self, pattern, text, expected) -> None:
        rule = build_exclusion_rule(pattern)
        assert rule.id == pattern
        assert rule.match(ActionText.from_text(text)) is expected

    def test_literal_pattern_always_matches(self) -> None:
        assert matches_exclusion('Category: schema:LocalBusiness', 'schema:LocalBusiness')
        assert matches_exclusion('Add LocalBusiness schema', 'schema:LocalBusiness')
        assert not matches_exclusion('LocalBusiness listing looks fine', 'schema:LocalBusiness')


class TestValidateActions:

    def test_paid_violation(self, lead_gen_bundle) -> None:
        actions = [
            PaidAction(**paid_action_payload()),
            PaidAction(**paid_action_payload(action='Raise bids where revenue is highest')),
        ]
        violations = validate_paid_actions(actions, lead_gen_bundle.director)

        assert len(violations) == 1
        assert violations[0].source == ViolationSource.PAID
        assert violations[0].ruleId == 'metric:revenue'

    def test_one_violation_per_action(self, lead_gen_bundle) -> None:
        action = PaidAction(**paid_action_payload(action='Chase ROAS and revenue with a shopping campaign'))
        violations = validate_paid_actions([action], lead_gen_bundle.director)
        assert [v.ruleId for v in violations] == ['metric:roas']

    def test_organic_violation_uses_specific_actions(self, lead_gen_bundle) -> None:
        action = OrganicAction(**organic_action_payload(
            recommendation='Improve rich results on the roof repair page',
            specificActions=['Implement Product JSON-LD markup'],
        ))
        violations = validate_organic_actions([action], lead_gen_bundle.director)

        assert len(violations) == 1
        assert violations[0].source == ViolationSource.ORGANIC
        assert violations[0].ruleId == 'schema:Product'

    def test_matched_content_is_bounded(self, lead_gen_bundle) -> None:
        action = PaidAction(**paid_action_payload(
            action='Improve ROAS across campaigns',
            reasoning='x' * 400,
        ))
        violations = validate_paid_actions([action], lead_gen_bundle.director)
        assert len(violations[0].matchedContent) == MATCHED_CONTENT_CHARS

    def test_clean_actions(self, ecommerce_bundle) -> None:
        actions = [PaidAction(**paid_action_payload(action='Improve ROAS on shopping campaigns'))]
        assert validate_paid_actions(actions, ecommerce_bundle.director) == []
