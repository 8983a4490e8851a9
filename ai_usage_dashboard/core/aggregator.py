"""
Dashboard orchestration.

UsageAggregator drives a load cycle (usage feed, then per-date rates) and
exposes derived views. All session state lives in one frozen DashboardState
that is replaced as a whole, so readers never see a half-built rate table.
"""

import asyncio
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Awaitable, List, Optional, Protocol, Union

from ai_usage_dashboard.observability.logger import get_logger

from .currency import Currency, convert, format_rate
from .rates import RateTable, resolve_rates, validate_rate
from .records import DailyUsageRecord, UsageResponse
from .savings import (
    DEFAULT_PRICING,
    PeriodComparison,
    PlanPricing,
    SavingsResult,
    analyze_daily_pacing,
    compare_period_total,
)
from .series import ChartPoint, Language, build_series, long_date_label

log = get_logger("aggregator")

DEFAULT_INITIAL_RATE = 150.0
DAILY_TABLE_LIMIT = 8


class UsageSource(Protocol):
    """What the aggregator needs from the reporting API."""

    def fetch_usage(self) -> Awaitable[UsageResponse]: ...

    def fetch_exchange_rate(self, day: date) -> Awaitable[float]: ...


class DashboardNotLoadedError(Exception):
    """Raised when derived views are requested before a successful load."""


@dataclass(frozen=True)
class DashboardState:
    """Snapshot of the in-memory session state."""
    usage: Optional[UsageResponse] = None
    rates: RateTable = field(default_factory=RateTable)
    current_rate: float = DEFAULT_INITIAL_RATE
    currency: Currency = Currency.USD
    language: Language = Language.EN
    override_rate: Optional[float] = None

    @property
    def loaded(self) -> bool:
        return self.usage is not None


@dataclass(frozen=True)
class UsageSummary:
    """Headline figures, formatted for display."""
    total_cost: str
    total_tokens: str
    average_daily_cost: str
    active_days: int


@dataclass(frozen=True)
class DailyRow:
    """One row of the per-day table, formatted for display."""
    date: date
    label: str
    cost: str
    total_tokens: str
    input_tokens: str
    output_tokens: str


class UsageAggregator:
    """Owns the session state and computes dashboard views on demand."""

    def __init__(
        self,
        source: UsageSource,
        pricing: PlanPricing = DEFAULT_PRICING,
        initial_rate: float = DEFAULT_INITIAL_RATE,
        currency: Union[str, Currency] = Currency.USD,
        language: Union[str, Language] = Language.EN,
        rate_retries: int = 0
    ):
        self.source = source
        self.pricing = pricing
        self.rate_retries = rate_retries
        self.last_error: Optional[str] = None
        self._state = DashboardState(
            current_rate=validate_rate(initial_rate),
            currency=Currency.parse(currency),
            language=Language.parse(language),
        )
        self._reload_lock = asyncio.Lock()

    @property
    def state(self) -> DashboardState:
        return self._state

    async def reload(self) -> DashboardState:
        """Re-fetch usage and re-resolve every rate, then publish both at once.

        Overlapping calls run one after another. The seed for rate fallback
        is the current rate at the time this reload starts.

        Raises:
            UsageFeedError: If the usage feed cannot be retrieved; the
                previously published state is kept
        """
        async with self._reload_lock:
            try:
                usage = await self.source.fetch_usage()
            except Exception as e:
                self.last_error = str(e)
                log.error("reload_failed", error=str(e))
                raise

            resolution = await resolve_rates(
                usage.dates,
                self.source.fetch_exchange_rate,
                initial_rate=self._state.current_rate,
                retries=self.rate_retries,
            )

            self._state = replace(
                self._state,
                usage=usage,
                rates=resolution.table,
                current_rate=resolution.last_good_rate,
                override_rate=None,
            )
            self.last_error = None
            log.info("reload_complete", days=len(usage.daily), current_rate=self._state.current_rate)
            return self._state

    def set_currency(self, currency: Union[str, Currency]) -> None:
        self._state = replace(self._state, currency=Currency.parse(currency))

    def set_language(self, language: Union[str, Language]) -> None:
        self._state = replace(self._state, language=Language.parse(language))

    def set_override_rate(self, value: Union[str, float]) -> float:
        """Apply a user-supplied rate to every date, replacing resolved rates.

        The override lasts until the next reload.

        Raises:
            ValueError: If value is not a number > 0; state is left unchanged
        """
        if isinstance(value, str):
            value = value.strip()
        rate = validate_rate(value)
        self._state = replace(
            self._state,
            rates=self._state.rates.flatten(rate),
            current_rate=rate,
            override_rate=rate,
        )
        log.info("override_rate_applied", rate=rate, days=len(self._state.rates))
        return rate

    def _require_usage(self) -> UsageResponse:
        usage = self._state.usage
        if usage is None:
            raise DashboardNotLoadedError("Usage data has not been loaded")
        return usage

    def format_cost(self, amount_usd: float, day: Optional[date] = None) -> str:
        state = self._state
        return convert(amount_usd, state.currency, state.rates, state.current_rate, day)

    def rate_label(self) -> str:
        return format_rate(self._state.current_rate)

    def summary(self) -> UsageSummary:
        usage = self._require_usage()
        days = len(usage.daily)
        average = usage.totals.total_cost / days if days else 0.0
        return UsageSummary(
            total_cost=self.format_cost(usage.totals.total_cost),
            total_tokens=_millions(usage.totals.total_tokens),
            average_daily_cost=self.format_cost(average),
            active_days=days,
        )

    def daily_rows(self, limit: int = DAILY_TABLE_LIMIT) -> List[DailyRow]:
        """First ``limit`` records in delivered order."""
        usage = self._require_usage()
        return [self._row(record) for record in usage.daily[:limit]]

    def _row(self, record: DailyUsageRecord) -> DailyRow:
        return DailyRow(
            date=record.date,
            label=long_date_label(record.date, self._state.language),
            cost=self.format_cost(record.total_cost, record.date),
            total_tokens=_millions(record.total_tokens),
            input_tokens=_thousands(record.input_tokens),
            output_tokens=_thousands(record.output_tokens),
        )

    def chart_series(self) -> List[ChartPoint]:
        usage = self._require_usage()
        state = self._state
        return build_series(
            usage.daily,
            state.currency,
            state.rates,
            state.current_rate,
            state.language,
        )

    def daily_savings(self, cost: Optional[float] = None) -> SavingsResult:
        """Daily pacing comparison; defaults to the feed's total cost."""
        if cost is None:
            cost = self._require_usage().totals.total_cost
        return analyze_daily_pacing(cost, self.pricing, self._state.language)

    def period_comparison(self) -> PeriodComparison:
        usage = self._require_usage()
        return compare_period_total(usage.totals.total_cost, self.pricing, self._state.language)


def _millions(tokens: int) -> str:
    return f"{tokens / 1_000_000:.1f}M"


def _thousands(tokens: int) -> str:
    return f"{tokens / 1000:,.3f}".rstrip("0").rstrip(".") + "K"
