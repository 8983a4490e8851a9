"""
Unit tests for chart series construction.
"""

from datetime import date

import pytest

from ai_usage_dashboard.core.currency import Currency
from ai_usage_dashboard.core.records import UsageResponse
from ai_usage_dashboard.core.series import (
    Language,
    build_series,
    long_date_label,
    short_date_label,
)

from conftest import make_day, make_payload


def usage_for(*days):
    return UsageResponse.from_dict(make_payload(list(days))).daily


class TestDateLabels:
    """Test localized date labels."""

    def test_short_labels(self):
        day = date(2025, 1, 5)
        assert short_date_label(day, Language.EN) == "Jan 5"
        assert short_date_label(day, Language.JA) == "1月5日"

    def test_long_labels(self):
        day = date(2025, 11, 5)
        assert long_date_label(day, Language.EN) == "11/5/2025"
        assert long_date_label(day, Language.JA) == "2025/11/5"

    def test_language_parse(self):
        assert Language.parse("JA") is Language.JA
        with pytest.raises(ValueError, match="Unsupported language"):
            Language.parse("fr")


class TestBuildSeries:
    """Test build_series ordering, scaling and conversion."""

    def test_newest_first_feed_is_reversed(self, two_day_payload):
        daily = UsageResponse.from_dict(two_day_payload).daily

        points = build_series(daily, Currency.USD, {}, 150.0)

        assert [point.original_date for point in points] == [date(2025, 1, 1), date(2025, 1, 2)]

    def test_unordered_feed_is_sorted(self):
        daily = usage_for(
            make_day("2025-01-03", 1.0),
            make_day("2025-01-01", 1.0),
            make_day("2025-01-02", 1.0),
        )

        points = build_series(daily, Currency.USD, {}, 150.0)

        assert [point.original_date.day for point in points] == [1, 2, 3]
        assert len(points) == len(daily)

    def test_tokens_scaled_to_millions(self, two_day_payload):
        daily = UsageResponse.from_dict(two_day_payload).daily

        latest = build_series(daily, Currency.USD, {}, 150.0)[-1]

        assert latest.tokens == pytest.approx(3.0)
        assert latest.input_tokens == pytest.approx(2.0)
        assert latest.output_tokens == pytest.approx(0.5)
        assert latest.cache_tokens == pytest.approx(0.5)

    def test_cost_uses_each_date_rate(self, two_day_payload):
        daily = UsageResponse.from_dict(two_day_payload).daily
        rates = {date(2025, 1, 1): 150.0, date(2025, 1, 2): 100.0}

        points = build_series(daily, Currency.JPY, rates, 140.0)

        assert [point.cost for point in points] == [1500.0, 2000.0]

    def test_cost_without_date_rate_uses_current_rate(self, two_day_payload):
        daily = UsageResponse.from_dict(two_day_payload).daily

        points = build_series(daily, Currency.JPY, {date(2025, 1, 1): 150.0}, 140.0)

        assert [point.cost for point in points] == [1500.0, 2800.0]

    def test_usd_cost_unconverted(self, two_day_payload):
        daily = UsageResponse.from_dict(two_day_payload).daily

        points = build_series(daily, Currency.USD, {date(2025, 1, 1): 150.0}, 150.0)

        assert [point.cost for point in points] == [10.0, 20.0]

    def test_labels_follow_language(self, two_day_payload):
        daily = UsageResponse.from_dict(two_day_payload).daily

        points = build_series(daily, Currency.USD, {}, 150.0, Language.JA)

        assert [point.label for point in points] == ["1月1日", "1月2日"]

    def test_empty_feed(self):
        assert build_series([], Currency.JPY, {}, 150.0) == []

    def test_to_dict_uses_chart_keys(self, two_day_payload):
        daily = UsageResponse.from_dict(two_day_payload).daily

        data = build_series(daily, Currency.USD, {}, 150.0)[0].to_dict()

        assert data["originalDate"] == "2025-01-01"
        assert set(data) == {"label", "cost", "tokens", "inputTokens", "outputTokens",
                             "cacheTokens", "originalDate"}
