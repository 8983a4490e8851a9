"""
Savings against fixed-price monthly plans.

Two separate comparisons are offered and must not be mixed up:

1. Daily pacing: a cost compared with each plan's daily-equivalent price
   (monthly price / days per month), reported as a signed percentage.
2. Period total: the period-to-date total compared with the monthly prices
   directly, reported as absolute amounts saved or exceeded.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from .series import Language


class PlanTier(Enum):
    """Which fixed plan a cost falls under."""
    LOWER = "lower"  # within the cheaper plan
    UPPER = "upper"  # above the cheaper plan, within the pricier one
    OVER = "over"    # above both plans


@dataclass(frozen=True)
class PlanPricing:
    """The two fixed monthly plan prices, in USD."""
    lower_monthly: float = 100.0
    upper_monthly: float = 200.0
    days_per_month: int = 30

    def __post_init__(self):
        """Validate prices are positive and strictly increasing."""
        if self.lower_monthly <= 0:
            raise ValueError("lower_monthly must be > 0")
        if self.upper_monthly <= self.lower_monthly:
            raise ValueError("upper_monthly must be greater than lower_monthly")
        if self.days_per_month <= 0:
            raise ValueError("days_per_month must be > 0")

    def daily_equivalent(self, monthly_price: float) -> float:
        return monthly_price / self.days_per_month

    @property
    def lower_daily(self) -> float:
        return self.daily_equivalent(self.lower_monthly)

    @property
    def upper_daily(self) -> float:
        return self.daily_equivalent(self.upper_monthly)

    def plan_label(self, tier: PlanTier, language: Language = Language.EN) -> str:
        if tier is PlanTier.LOWER:
            return f"Max ${self.lower_monthly:g}"
        if tier is PlanTier.UPPER:
            return f"Max ${self.upper_monthly:g}"
        return "超過" if language is Language.JA else "Over"


DEFAULT_PRICING = PlanPricing()


@dataclass(frozen=True)
class SavingsResult:
    """Daily pacing result. Negative ``savings_percent`` is an overage."""
    tier: PlanTier
    plan_label: str
    savings_percent: float


def analyze_daily_pacing(
    cost: float,
    pricing: PlanPricing = DEFAULT_PRICING,
    language: Language = Language.EN
) -> SavingsResult:
    """Compare a cost with the plans' daily-equivalent prices.

    Boundaries are inclusive: a cost exactly at a daily equivalent selects
    that plan with 0% savings.

    Args:
        cost: Cost in USD
        pricing: Plan prices
        language: Language for the plan label

    Returns:
        SavingsResult with percent saved, or negative percent over
    """
    lower = pricing.lower_daily
    upper = pricing.upper_daily

    if cost <= lower:
        tier = PlanTier.LOWER
        percent = (lower - cost) / lower * 100
    elif cost <= upper:
        tier = PlanTier.UPPER
        percent = (upper - cost) / upper * 100
    else:
        tier = PlanTier.OVER
        percent = -((cost - upper) / cost * 100)

    return SavingsResult(
        tier=tier,
        plan_label=pricing.plan_label(tier, language),
        savings_percent=percent,
    )


@dataclass(frozen=True)
class TierDifference:
    """Absolute difference between a period total and one plan's price."""
    monthly_price: float
    saving: bool
    amount: float  # USD, never negative


@dataclass(frozen=True)
class PeriodComparison:
    """Period total result for both plans."""
    total_cost: float
    tier: PlanTier
    plan_label: str
    differences: Tuple[TierDifference, TierDifference]


def compare_period_total(
    total_cost: float,
    pricing: PlanPricing = DEFAULT_PRICING,
    language: Language = Language.EN
) -> PeriodComparison:
    """Compare a period-to-date total with the monthly plan prices.

    A plan counts as saving only while its price is strictly above the
    total; a total exactly at the price is reported as over by zero.
    """
    if total_cost <= pricing.lower_monthly:
        tier = PlanTier.LOWER
    elif total_cost <= pricing.upper_monthly:
        tier = PlanTier.UPPER
    else:
        tier = PlanTier.OVER

    differences = tuple(
        _difference(total_cost, price)
        for price in (pricing.lower_monthly, pricing.upper_monthly)
    )
    return PeriodComparison(
        total_cost=total_cost,
        tier=tier,
        plan_label=pricing.plan_label(tier, language),
        differences=differences,
    )


def _difference(total_cost: float, monthly_price: float) -> TierDifference:
    saved = max(0.0, monthly_price - total_cost)
    if saved > 0:
        return TierDifference(monthly_price=monthly_price, saving=True, amount=saved)
    return TierDifference(
        monthly_price=monthly_price,
        saving=False,
        amount=total_cost - monthly_price,
    )
