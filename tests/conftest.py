"""
Shared fixtures and fakes for dashboard tests.
"""

import asyncio
from datetime import date
from typing import Dict, List, Optional

import pytest

from ai_usage_dashboard.core.rates import RateUnavailableError
from ai_usage_dashboard.core.records import UsageResponse


def make_day(day: str, cost: float, input_tokens: int = 1000, output_tokens: int = 500,
             cache_creation: int = 0, cache_read: int = 0) -> dict:
    """Build one raw daily entry as served by GET /usage."""
    return {
        "date": day,
        "totalCost": cost,
        "totalTokens": input_tokens + output_tokens + cache_creation + cache_read,
        "inputTokens": input_tokens,
        "outputTokens": output_tokens,
        "cacheCreationTokens": cache_creation,
        "cacheReadTokens": cache_read,
    }


def make_payload(days: List[dict]) -> dict:
    """Build a raw /usage payload with totals summed from ``days``."""
    keys = ("totalTokens", "inputTokens", "outputTokens",
            "cacheCreationTokens", "cacheReadTokens")
    totals = {key: sum(entry[key] for entry in days) for key in keys}
    totals["totalCost"] = sum(entry["totalCost"] for entry in days)
    return {"daily": days, "totals": totals}


class FakeUsageSource:
    """In-memory stand-in for the reporting API.

    ``rates`` maps a date to a rate; dates missing from it fail.
    """

    def __init__(self, payload: Optional[dict], rates: Optional[Dict[date, float]] = None,
                 error: Optional[Exception] = None):
        self.payload = payload
        self.rates = rates or {}
        self.error = error
        self.usage_calls = 0
        self.rate_calls: List[date] = []
        self.active = 0
        self.max_active = 0

    async def fetch_usage(self) -> UsageResponse:
        self.usage_calls += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(0)
            if self.error is not None:
                raise self.error
            return UsageResponse.from_dict(self.payload)
        finally:
            self.active -= 1

    async def fetch_exchange_rate(self, day: date) -> float:
        self.rate_calls.append(day)
        await asyncio.sleep(0)
        if day not in self.rates:
            raise RateUnavailableError(day, "HTTP 500")
        return self.rates[day]


@pytest.fixture
def two_day_payload():
    """Two days delivered newest first."""
    return make_payload([
        make_day("2025-01-02", 20.0, input_tokens=2_000_000, output_tokens=500_000,
                 cache_creation=100_000, cache_read=400_000),
        make_day("2025-01-01", 10.0, input_tokens=1_000_000, output_tokens=250_000),
    ])
