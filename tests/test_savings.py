"""
Unit tests for fixed-plan savings.

Daily pacing (percentages against price / 30) and period totals (absolute
amounts against the monthly price) are tested separately on purpose.
"""

import pytest

from ai_usage_dashboard.core.savings import (
    DEFAULT_PRICING,
    PlanPricing,
    PlanTier,
    analyze_daily_pacing,
    compare_period_total,
)
from ai_usage_dashboard.core.series import Language


class TestPlanPricing:
    """Test plan pricing validation."""

    def test_daily_equivalents(self):
        assert DEFAULT_PRICING.lower_daily == pytest.approx(3.3333, abs=1e-4)
        assert DEFAULT_PRICING.upper_daily == pytest.approx(6.6667, abs=1e-4)

    def test_prices_must_increase(self):
        with pytest.raises(ValueError, match="greater than lower_monthly"):
            PlanPricing(lower_monthly=200.0, upper_monthly=100.0)

    def test_days_must_be_positive(self):
        with pytest.raises(ValueError, match="days_per_month"):
            PlanPricing(days_per_month=0)

    def test_labels(self):
        assert DEFAULT_PRICING.plan_label(PlanTier.LOWER) == "Max $100"
        assert DEFAULT_PRICING.plan_label(PlanTier.UPPER) == "Max $200"
        assert DEFAULT_PRICING.plan_label(PlanTier.OVER) == "Over"
        assert DEFAULT_PRICING.plan_label(PlanTier.OVER, Language.JA) == "超過"


class TestDailyPacing:
    """Test analyze_daily_pacing."""

    def test_below_lower_plan(self):
        """Cost 2 against 3.33/day saves about 40%."""
        result = analyze_daily_pacing(2.0)

        assert result.tier is PlanTier.LOWER
        assert result.plan_label == "Max $100"
        assert result.savings_percent == pytest.approx(40.0)

    def test_exactly_at_lower_plan(self):
        """The lower boundary is inclusive with 0% savings."""
        result = analyze_daily_pacing(100 / 30)

        assert result.tier is PlanTier.LOWER
        assert result.savings_percent == pytest.approx(0.0)

    def test_between_plans(self):
        result = analyze_daily_pacing(5.0)

        assert result.tier is PlanTier.UPPER
        assert result.savings_percent == pytest.approx(25.0)

    def test_exactly_at_upper_plan(self):
        """The upper boundary is inclusive with 0% savings."""
        result = analyze_daily_pacing(200 / 30)

        assert result.tier is PlanTier.UPPER
        assert result.savings_percent == pytest.approx(0.0)

    def test_above_upper_plan_is_negative(self):
        """One unit above the upper daily price is an overage."""
        cost = 200 / 30 + 1
        result = analyze_daily_pacing(cost)

        assert result.tier is PlanTier.OVER
        assert result.plan_label == "Over"
        assert result.savings_percent == pytest.approx(-(1 / cost * 100))
        assert result.savings_percent < 0

    def test_overage_formula_uses_cost_as_denominator(self):
        """Total 30 against 6.67/day is about 77.8% over."""
        result = analyze_daily_pacing(30.0)

        assert result.tier is PlanTier.OVER
        assert result.savings_percent == pytest.approx(-77.78, abs=0.01)

    def test_zero_cost_saves_everything(self):
        assert analyze_daily_pacing(0.0).savings_percent == pytest.approx(100.0)

    def test_custom_pricing(self):
        pricing = PlanPricing(lower_monthly=20.0, upper_monthly=60.0, days_per_month=20)

        result = analyze_daily_pacing(2.0, pricing)

        assert result.tier is PlanTier.UPPER
        assert result.plan_label == "Max $60"
        assert result.savings_percent == pytest.approx(33.333, abs=1e-3)


class TestPeriodTotal:
    """Test compare_period_total."""

    def test_below_both_plans(self):
        result = compare_period_total(30.0)

        assert result.tier is PlanTier.LOWER
        assert result.plan_label == "Max $100"
        lower, upper = result.differences
        assert lower.saving and lower.amount == pytest.approx(70.0)
        assert upper.saving and upper.amount == pytest.approx(170.0)

    def test_between_plans(self):
        result = compare_period_total(150.0)

        assert result.tier is PlanTier.UPPER
        lower, upper = result.differences
        assert not lower.saving and lower.amount == pytest.approx(50.0)
        assert upper.saving and upper.amount == pytest.approx(50.0)

    def test_over_both_plans(self):
        result = compare_period_total(250.0, language=Language.JA)

        assert result.tier is PlanTier.OVER
        assert result.plan_label == "超過"
        assert [d.saving for d in result.differences] == [False, False]
        assert [d.amount for d in result.differences] == [150.0, 50.0]

    def test_total_at_plan_price(self):
        """At exactly the price the plan is selected but nothing is saved."""
        result = compare_period_total(100.0)

        assert result.tier is PlanTier.LOWER
        lower = result.differences[0]
        assert not lower.saving
        assert lower.amount == 0.0

    def test_does_not_divide_by_days(self):
        """A total of 5 is far below $100; daily pacing would say otherwise."""
        assert compare_period_total(5.0).tier is PlanTier.LOWER
        assert analyze_daily_pacing(5.0).tier is PlanTier.UPPER
