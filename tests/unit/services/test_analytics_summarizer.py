"""Tests for the analytics summarizer."""

import math

import pytest

from src.core.entities.analytics import Trend, UsageStats
from src.core.services.analytics_summarizer import AnalyticsSummarizer
from src.core.services.trend_comparator import TrendComparator
from src.core.timestamps import period_label


def _stats(total: float, month: int, year: int = 2025) -> UsageStats:
    return UsageStats(
        product_id="PROD000001",
        product_name="Flour",
        period=period_label(month, year),
        month=month,
        year=year,
        total_used=total,
        days_in_month=30,
        days_elapsed=30,
        estimated_days_remaining=0.0,
        current_stock=50.0,
    )


@pytest.fixture
def summarizer() -> AnalyticsSummarizer:
    return AnalyticsSummarizer(TrendComparator(significant_change_percent=50))


class TestSummarize:
    def test_scenario_e_zero_months_count_toward_average(self, summarizer):
        summary = summarizer.summarize(
            _stats(25, 10), [_stats(0, 9), _stats(0, 8)], current_stock=50.0
        )

        assert summary.total_months_analyzed == 3
        assert summary.average_monthly_usage == 8.33
        assert summary.estimated_months_remaining == pytest.approx(50.0 / (25 / 3))
        assert summary.highest_usage_month.period == "October 2025"
        # Tie between August and September goes to the most recent month
        assert summary.lowest_usage_month.period == "September 2025"
        assert summary.overall_trend is Trend.SIGNIFICANT_INCREASE

    def test_highest_tie_goes_to_most_recent(self, summarizer):
        summary = summarizer.summarize(
            _stats(5, 1, 2026), [_stats(12, 12), _stats(12, 11)], current_stock=10.0
        )
        assert summary.highest_usage_month.period == "December 2025"
        assert summary.lowest_usage_month.period == "January 2026"
        assert summary.overall_trend is Trend.SIGNIFICANT_DECREASE

    def test_no_usage_never_runs_out(self, summarizer):
        summary = summarizer.summarize(_stats(0, 10), [_stats(0, 9)], current_stock=12.0)
        assert summary.average_monthly_usage == 0
        assert summary.estimated_months_remaining == math.inf
        assert summary.overall_trend is Trend.STABLE

    def test_current_month_only(self, summarizer):
        summary = summarizer.summarize(_stats(9, 10), [], current_stock=18.0)
        assert summary.total_months_analyzed == 1
        assert summary.overall_trend is Trend.STABLE
        assert summary.estimated_months_remaining == 2.0
        assert summary.highest_usage_month == summary.lowest_usage_month

    def test_trend_uses_most_recent_previous_month(self, summarizer):
        # October vs September is a mild increase even though August was far lower
        summary = summarizer.summarize(
            _stats(12, 10), [_stats(10, 9), _stats(1, 8)], current_stock=0.0
        )
        assert summary.overall_trend is Trend.INCREASE
        assert summary.estimated_months_remaining == 0
