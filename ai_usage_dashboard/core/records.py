"""
Usage feed records.

Immutable views of the JSON payload served by the reporting API.
"""

import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Tuple

TOKEN_FIELDS = (
    "inputTokens",
    "outputTokens",
    "cacheCreationTokens",
    "cacheReadTokens",
)


@dataclass(frozen=True)
class DailyUsageRecord:
    """Usage for a single calendar day. Costs are in USD."""
    date: date
    total_cost: float
    total_tokens: int
    input_tokens: int
    output_tokens: int
    cache_creation_tokens: int
    cache_read_tokens: int

    def __post_init__(self):
        """Validate counts and cost are finite and non-negative."""
        if not math.isfinite(self.total_cost):
            raise ValueError("total_cost must be finite")
        if self.total_cost < 0:
            raise ValueError("total_cost cannot be negative")
        for name in ("total_tokens", "input_tokens", "output_tokens",
                     "cache_creation_tokens", "cache_read_tokens"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")

    @property
    def cache_tokens(self) -> int:
        """Cache creation plus cache read tokens."""
        return self.cache_creation_tokens + self.cache_read_tokens

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DailyUsageRecord":
        if not isinstance(data, dict):
            raise ValueError("daily entry must be an object")
        if "date" not in data:
            raise ValueError("daily entry missing 'date'")
        return cls(
            date=_parse_date(data["date"]),
            **_parse_amounts(data, "daily entry"),
        )


@dataclass(frozen=True)
class UsageTotals:
    """Aggregate usage across all days, computed upstream."""
    total_cost: float
    total_tokens: int
    input_tokens: int
    output_tokens: int
    cache_creation_tokens: int
    cache_read_tokens: int

    def __post_init__(self):
        if not math.isfinite(self.total_cost) or self.total_cost < 0:
            raise ValueError("total_cost must be a finite non-negative number")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UsageTotals":
        if not isinstance(data, dict):
            raise ValueError("'totals' must be an object")
        return cls(**_parse_amounts(data, "totals"))


@dataclass(frozen=True)
class UsageResponse:
    """Full payload of GET /usage.

    ``daily`` keeps the delivered order, which is not guaranteed to be
    chronological.
    """
    daily: Tuple[DailyUsageRecord, ...]
    totals: UsageTotals

    def __post_init__(self):
        """Validate dates are unique."""
        seen = set()
        for record in self.daily:
            if record.date in seen:
                raise ValueError(f"Duplicate date in daily usage: {record.date.isoformat()}")
            seen.add(record.date)

    @property
    def dates(self) -> List[date]:
        """Record dates in delivered order."""
        return [record.date for record in self.daily]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UsageResponse":
        """Parse and validate a raw /usage payload.

        Raises:
            ValueError: If the payload does not have the expected shape
        """
        if not isinstance(data, dict):
            raise ValueError("usage payload must be an object")
        if "daily" not in data:
            raise ValueError("usage payload missing 'daily'")
        if "totals" not in data:
            raise ValueError("usage payload missing 'totals'")
        daily = data["daily"]
        if not isinstance(daily, list):
            raise ValueError("'daily' must be a list")
        return cls(
            daily=tuple(DailyUsageRecord.from_dict(entry) for entry in daily),
            totals=UsageTotals.from_dict(data["totals"]),
        )


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid date: {value!r}")
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise ValueError(f"Invalid date: {value!r}")


def _parse_amounts(data: Dict[str, Any], path: str) -> Dict[str, Any]:
    if "totalCost" not in data:
        raise ValueError(f"Missing 'totalCost' in {path}")
    cost = _finite_number(data["totalCost"], "totalCost", path)

    tokens = {}
    for key in TOKEN_FIELDS:
        tokens[key] = int(_finite_number(data.get(key, 0), key, path))

    total_tokens = data.get("totalTokens")
    if total_tokens is None:
        total_tokens = sum(tokens.values())
    else:
        total_tokens = _finite_number(total_tokens, "totalTokens", path)

    return {
        "total_cost": float(cost),
        "total_tokens": int(total_tokens),
        "input_tokens": tokens["inputTokens"],
        "output_tokens": tokens["outputTokens"],
        "cache_creation_tokens": tokens["cacheCreationTokens"],
        "cache_read_tokens": tokens["cacheReadTokens"],
    }


def _finite_number(value: Any, key: str, path: str) -> float:
    # json.loads accepts bare NaN and Infinity literals
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{key}' in {path} must be a number")
    if math.isnan(value) or math.isinf(value):
        raise ValueError(f"'{key}' in {path} must be finite")
    return value
