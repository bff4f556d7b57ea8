"""
Tests for skill rule condition evaluation.
"""

import pytest

from backend.services.conditions import (
    ConditionError,
    compile_condition,
    evaluate_condition,
    referenced_names,
    safe_ratio,
)


class TestEvaluateCondition:

    def test_high_spend_low_conversions(self) -> None:
        namespace = {"spend": 350, "conversions": 1, "highSpendThreshold": 300}
        assert evaluate_condition("spend > highSpendThreshold AND conversions < 3", namespace)

    def test_upper_and_lower_case_keywords(self) -> None:
        namespace = {"a": 1, "b": 0}
        assert evaluate_condition("a > 0 OR b > 0", namespace)
        assert evaluate_condition("a > 0 and not b", namespace)
        assert not evaluate_condition("NOT a", namespace)

    def test_parentheses(self) -> None:
        namespace = {"isContactPage": True, "bounceRate": 40, "avgTimeOnPage": 20}
        assert evaluate_condition("isContactPage AND (bounceRate > 60 OR avgTimeOnPage < 30)", namespace)

    def test_arithmetic(self) -> None:
        assert evaluate_condition("calls < clicks * 0.02", {"calls": 1, "clicks": 100})
        assert not evaluate_condition("calls < clicks * 0.02", {"calls": 3, "clicks": 100})

    def test_chained_comparison(self) -> None:
        assert evaluate_condition("3 < position <= 10", {"position": 7})
        assert not evaluate_condition("3 < position <= 10", {"position": 11})


class TestMissingData:

    def test_missing_name_never_matches(self) -> None:
        assert not evaluate_condition("roas < 2", {})

    def test_none_comparison_is_false(self) -> None:
        assert not evaluate_condition("roas < 2", {"roas": None})
        assert not evaluate_condition("roas >= 2", {"roas": None})

    def test_none_arithmetic_propagates(self) -> None:
        assert not evaluate_condition("spend / conversions > 50", {"spend": 100, "conversions": None})

    def test_division_by_zero_is_none(self) -> None:
        assert not evaluate_condition("spend / conversions > 50", {"spend": 100, "conversions": 0})

    def test_missing_flag_is_falsy(self) -> None:
        assert not evaluate_condition("isBrandTerm AND spend > 0", {"spend": 10})


class TestCompileCondition:

    @pytest.mark.parametrize("condition", [
        "",
        "   ",
        "spend >",
        "__import__('os')",
        "spend.real > 1",
        "'text' == name",
        "[1, 2]",
    ])
    def test_rejects_invalid(self, condition: str) -> None:
        with pytest.raises(ConditionError):
            compile_condition(condition)

    def test_referenced_names(self) -> None:
        names = referenced_names("spend > highSpendThreshold AND (roas < 2 OR isBrandTerm)")
        assert names == frozenset({"spend", "highSpendThreshold", "roas", "isBrandTerm"})


class TestSafeRatio:

    def test_ratio(self) -> None:
        assert safe_ratio(50, 200, 100.0) == 25.0

    def test_undefined(self) -> None:
        assert safe_ratio(None, 10) is None
        assert safe_ratio(10, 0) is None
        assert safe_ratio(10, None) is None
