"""Period-over-period usage comparison."""

from src.config import get_settings
from src.core.entities.analytics import Comparison, Trend, UsageStats
from src.core.entities.movement import STOCK_PRECISION


class TrendComparator:
    """Compares two months of usage and labels the change."""

    def __init__(self, significant_change_percent: float | None = None):
        if significant_change_percent is None:
            significant_change_percent = get_settings().analytics.significant_change_percent
        self.significant_change_percent = significant_change_percent

    @staticmethod
    def change_percent(current: float, previous: float) -> float:
        """Percent change; 0 when both are zero, 100 when growing from zero."""
        if previous == 0:
            return 100.0 if current > 0 else 0.0
        return (current - previous) / previous * 100

    def classify(self, change: float) -> Trend:
        """Label a percent change; the significance bounds are inclusive."""
        if change <= -self.significant_change_percent:
            return Trend.SIGNIFICANT_DECREASE
        if change < 0:
            return Trend.DECREASE
        if change == 0:
            return Trend.STABLE
        if change < self.significant_change_percent:
            return Trend.INCREASE
        return Trend.SIGNIFICANT_INCREASE

    def compare(self, current: UsageStats, previous: UsageStats) -> Comparison:
        change = self.change_percent(current.total_used, previous.total_used)
        return Comparison(
            compared_to_period=previous.period,
            current_month_total=current.total_used,
            compared_month_total=previous.total_used,
            absolute_change=round(current.total_used - previous.total_used, STOCK_PRECISION),
            usage_change=round(change, STOCK_PRECISION),
            trend=self.classify(change),
        )
