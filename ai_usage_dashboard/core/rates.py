"""
Per-date FX rate resolution.

Rates are resolved one date at a time in delivered order. A failed date
inherits the last successfully resolved rate, seeded from a caller-supplied
initial rate, so every date always ends up with a positive rate.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from functools import reduce
from types import MappingProxyType
from typing import Awaitable, Callable, Dict, Iterable, Iterator, Mapping, Optional, Sequence

from ai_usage_dashboard.observability.logger import get_logger

log = get_logger("rates")

RateFetcher = Callable[[date], Awaitable[float]]


class RateUnavailableError(Exception):
    """Raised when a rate for a single date cannot be obtained."""
    def __init__(self, day: date, reason: str):
        super().__init__(f"Exchange rate unavailable for {day.isoformat()}: {reason}")
        self.day = day
        self.reason = reason


def validate_rate(value: object) -> float:
    """Return ``value`` as a float if it is a finite rate > 0.

    Raises:
        ValueError: If the value is not a usable rate
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid exchange rate: {value!r}")
    try:
        rate = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid exchange rate: {value!r}")
    if math.isnan(rate) or math.isinf(rate) or rate <= 0:
        raise ValueError(f"Exchange rate must be > 0, got {value!r}")
    return rate


class RateTable(Mapping[date, float]):
    """Read-only mapping of date -> display-currency units per 1 USD."""

    def __init__(self, rates: Optional[Mapping[date, float]] = None):
        checked = {day: validate_rate(rate) for day, rate in (rates or {}).items()}
        self._rates = MappingProxyType(checked)

    def __getitem__(self, day: date) -> float:
        return self._rates[day]

    def __iter__(self) -> Iterator[date]:
        return iter(self._rates)

    def __len__(self) -> int:
        return len(self._rates)

    def __repr__(self) -> str:
        return f"RateTable({dict(self._rates)!r})"

    def flatten(self, rate: float) -> "RateTable":
        """Return a new table with every date set to ``rate``."""
        rate = validate_rate(rate)
        return RateTable({day: rate for day in self._rates})

    @property
    def is_uniform(self) -> bool:
        return len(set(self._rates.values())) <= 1


@dataclass(frozen=True)
class RateResolution:
    """Fold state: rates resolved so far plus the last known-good rate.

    ``last_good_rate`` starts as the initial rate and only moves on success.
    Once all dates are folded it becomes the new current rate.
    """
    last_good_rate: float
    rates: Mapping[date, float] = field(default_factory=dict)

    def __post_init__(self):
        """Validate the carried rate is positive."""
        validate_rate(self.last_good_rate)

    def advance(self, day: date, fetched: Optional[float]) -> "RateResolution":
        """Record the outcome for ``day``; ``None`` means the fetch failed."""
        if fetched is None:
            return RateResolution(
                last_good_rate=self.last_good_rate,
                rates={**self.rates, day: self.last_good_rate},
            )
        return RateResolution(
            last_good_rate=fetched,
            rates={**self.rates, day: fetched},
        )

    @property
    def table(self) -> RateTable:
        return RateTable(self.rates)


def fold_rates(
    outcomes: Iterable[tuple],
    initial_rate: float
) -> RateResolution:
    """Fold ``(date, rate_or_None)`` outcomes in order into a RateResolution."""
    return reduce(
        lambda state, outcome: state.advance(*outcome),
        outcomes,
        RateResolution(last_good_rate=validate_rate(initial_rate)),
    )


async def resolve_rates(
    dates: Sequence[date],
    fetch_rate: RateFetcher,
    initial_rate: float,
    retries: int = 0
) -> RateResolution:
    """Resolve one rate per date, strictly one request at a time.

    Failures of any kind for a single date are absorbed: the date gets the
    last known-good rate. Nothing raised by ``fetch_rate`` escapes.

    Args:
        dates: Dates in the order the usage feed delivered them
        fetch_rate: Coroutine function returning the rate for a date
        initial_rate: Rate used until the first successful fetch
        retries: Extra attempts per date before falling back

    Returns:
        Final RateResolution; ``table`` covers every date
    """
    if retries < 0:
        raise ValueError("retries cannot be negative")

    validate_rate(initial_rate)
    outcomes = []
    for day in dates:
        outcomes.append((day, await _fetch_with_retries(day, fetch_rate, retries)))
    state = fold_rates(outcomes, initial_rate)
    failures = sum(1 for _, fetched in outcomes if fetched is None)

    log.info(
        "rates_resolved",
        days=len(dates),
        failures=failures,
        current_rate=state.last_good_rate,
    )
    return state


async def _fetch_with_retries(
    day: date,
    fetch_rate: RateFetcher,
    retries: int
) -> Optional[float]:
    for attempt in range(retries + 1):
        try:
            return validate_rate(await fetch_rate(day))
        except Exception as e:  # noqa: BLE001
            log.warning(
                "rate_fetch_failed",
                date=day.isoformat(),
                attempt=attempt + 1,
                error=str(e),
            )
    return None


def describe_rates(table: RateTable) -> Dict[str, float]:
    """ISO-date keyed copy of ``table`` for display and JSON output."""
    return {day.isoformat(): rate for day, rate in sorted(table.items())}
