"""
Analytics Summarizer.

Reduces a current month and its preceding months into overall statistics.
"""

import math

from src.core.entities.analytics import (
    AnalyticsSummary,
    MonthUsage,
    Trend,
    UsageStats,
)
from src.core.entities.movement import STOCK_PRECISION
from src.core.services.trend_comparator import TrendComparator


def _month_index(stats: UsageStats) -> int:
    return stats.year * 12 + stats.month


def _month_usage(stats: UsageStats) -> MonthUsage:
    return MonthUsage(
        period=stats.period,
        month=stats.month,
        year=stats.year,
        total_used=stats.total_used,
    )


class AnalyticsSummarizer:
    """Summarizes usage over the analyzed months."""

    def __init__(self, comparator: TrendComparator | None = None):
        self.comparator = comparator or TrendComparator()

    def summarize(
        self,
        current: UsageStats,
        previous_months: list[UsageStats],
        current_stock: float,
    ) -> AnalyticsSummary:
        """
        Build the summary.

        Months without usage count toward the average. Ties for the highest or
        lowest month go to the most recent month. The overall trend compares
        the current month with the most recent previous one.

        Args:
            current: Current month usage.
            previous_months: Earlier months, most recent first.
            current_stock: Stock on hand now.
        """
        months = [current, *previous_months]
        average = sum(m.total_used for m in months) / len(months)

        highest = max(months, key=lambda m: (m.total_used, _month_index(m)))
        lowest = min(months, key=lambda m: (m.total_used, -_month_index(m)))

        if previous_months:
            overall = self.comparator.compare(current, previous_months[0]).trend
        else:
            overall = Trend.STABLE

        return AnalyticsSummary(
            total_months_analyzed=len(months),
            average_monthly_usage=round(average, STOCK_PRECISION),
            highest_usage_month=_month_usage(highest),
            lowest_usage_month=_month_usage(lowest),
            overall_trend=overall,
            current_stock=current_stock,
            estimated_months_remaining=current_stock / average if average > 0 else math.inf,
        )
