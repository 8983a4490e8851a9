"""
Chart series construction.

Turns the raw daily feed into ascending, chart-ready points. Nothing is
cached; the series is rebuilt whenever the currency or rates change.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable, List, Mapping

from .currency import Currency, convert_amount
from .records import DailyUsageRecord

TOKENS_PER_MILLION = 1_000_000


class Language(Enum):
    """Supported display languages."""
    EN = "en"
    JA = "ja"

    @classmethod
    def parse(cls, value: "str | Language") -> "Language":
        if isinstance(value, Language):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            valid = [language.value for language in cls]
            raise ValueError(f"Unsupported language {value!r}; must be one of: {valid}")


_MONTHS_SHORT = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
                 "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def short_date_label(day: date, language: Language) -> str:
    """Month and day, e.g. ``Jan 5`` or ``1月5日``."""
    if language is Language.JA:
        return f"{day.month}月{day.day}日"
    return f"{_MONTHS_SHORT[day.month - 1]} {day.day}"


def long_date_label(day: date, language: Language) -> str:
    """Numeric date, e.g. ``1/5/2025`` or ``2025/1/5``."""
    if language is Language.JA:
        return f"{day.year}/{day.month}/{day.day}"
    return f"{day.month}/{day.day}/{day.year}"


@dataclass(frozen=True)
class ChartPoint:
    """One plotted day. Cost is in display currency, tokens in millions."""
    label: str
    cost: float
    tokens: float
    input_tokens: float
    output_tokens: float
    cache_tokens: float
    original_date: date

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "cost": self.cost,
            "tokens": self.tokens,
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "cacheTokens": self.cache_tokens,
            "originalDate": self.original_date.isoformat(),
        }


def build_series(
    daily: Iterable[DailyUsageRecord],
    currency: Currency,
    rates: Mapping[date, float],
    current_rate: float,
    language: Language = Language.EN
) -> List[ChartPoint]:
    """Build one ChartPoint per record, oldest first.

    Each cost uses that record's own date rate when ``rates`` has it.
    """
    ordered = sorted(daily, key=lambda record: record.date)
    return [
        ChartPoint(
            label=short_date_label(record.date, language),
            cost=convert_amount(record.total_cost, currency, rates, current_rate, record.date),
            tokens=record.total_tokens / TOKENS_PER_MILLION,
            input_tokens=record.input_tokens / TOKENS_PER_MILLION,
            output_tokens=record.output_tokens / TOKENS_PER_MILLION,
            cache_tokens=record.cache_tokens / TOKENS_PER_MILLION,
            original_date=record.date,
        )
        for record in ordered
    ]
