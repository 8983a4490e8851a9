"""
Display currency conversion and formatting.

Costs are stored in USD. Other currencies are converted with the rate for
the cost's own date when known, otherwise with the current rate.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Mapping, Optional

BASE_CURRENCY_SYMBOL = "$"


class Currency(Enum):
    """Supported display currencies."""
    USD = "USD"
    JPY = "JPY"

    @property
    def symbol(self) -> str:
        return {Currency.USD: "$", Currency.JPY: "¥"}[self]

    @property
    def is_base(self) -> bool:
        return self is Currency.USD

    @classmethod
    def parse(cls, value: "str | Currency") -> "Currency":
        if isinstance(value, Currency):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            valid = [currency.value for currency in cls]
            raise ValueError(f"Unsupported currency {value!r}; must be one of: {valid}")


def select_rate(
    rates: Mapping[date, float],
    current_rate: float,
    day: Optional[date] = None
) -> float:
    """Rate for ``day`` if present in ``rates``, else ``current_rate``."""
    if day is not None and day in rates:
        return rates[day]
    return current_rate


def convert_amount(
    amount_usd: float,
    currency: Currency,
    rates: Mapping[date, float],
    current_rate: float,
    day: Optional[date] = None
) -> float:
    """Convert a USD amount to ``currency`` without formatting."""
    if currency.is_base:
        return amount_usd
    return amount_usd * select_rate(rates, current_rate, day)


def format_amount(amount: float, currency: Currency) -> str:
    """Format an amount already expressed in ``currency``.

    USD keeps two decimals; JPY is grouped with no fractional digits and
    halves round away from zero.
    """
    if currency.is_base:
        return f"{currency.symbol}{amount:.2f}"
    whole = Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{currency.symbol}{whole:,}"


def convert(
    amount_usd: float,
    currency: Currency,
    rates: Mapping[date, float],
    current_rate: float,
    day: Optional[date] = None
) -> str:
    """Convert a USD amount and format it for display.

    Args:
        amount_usd: Amount in USD
        currency: Display currency
        rates: Per-date rates (display units per 1 USD)
        current_rate: Override or default rate for dates without an entry
        day: Date the amount belongs to, if any

    Returns:
        Formatted string such as ``"$12.34"`` or ``"¥1,851"``
    """
    return format_amount(
        convert_amount(amount_usd, currency, rates, current_rate, day),
        currency,
    )


def format_rate(rate: float, currency: Currency = Currency.JPY) -> str:
    """Human-readable rate line, e.g. ``1 USD = ¥150.00``."""
    return f"1 USD = {currency.symbol}{rate:.2f}"
