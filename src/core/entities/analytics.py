"""Usage analytics entities.

Pure Pydantic models, never persisted. They are recomputed on demand from the
movement ledger. ``math.inf`` is the sentinel for "never depletes at the
observed rate".
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class Trend(str, Enum):
    """Qualitative label for a period-over-period usage change."""

    SIGNIFICANT_DECREASE = "significant_decrease"
    DECREASE = "decrease"
    STABLE = "stable"
    INCREASE = "increase"
    SIGNIFICANT_INCREASE = "significant_increase"


class UsageEvent(BaseModel):
    """A single distribution line that consumed a product."""

    date: datetime
    quantity_used: float
    movement_id: str
    department_id: str
    used_by: str
    notes: str | None = None


class UsageStats(BaseModel):
    """Usage of one product during one calendar month."""

    product_id: str
    product_name: str
    period: str
    month: int = Field(ge=1, le=12)
    year: int
    total_used: float = 0.0
    usage_count: int = 0
    average_daily_usage: float = 0.0
    days_in_month: int
    days_elapsed: int
    estimated_days_remaining: float
    current_stock: float
    usage_events: list[UsageEvent] = Field(default_factory=list)


class Comparison(BaseModel):
    """Current month usage compared with an earlier month."""

    compared_to_period: str
    current_month_total: float
    compared_month_total: float
    absolute_change: float
    usage_change: float  # percent
    trend: Trend


class MonthUsage(BaseModel):
    """A period label with its usage total."""

    period: str
    month: int
    year: int
    total_used: float


class AnalyticsSummary(BaseModel):
    """Overall statistics across all analyzed months."""

    total_months_analyzed: int
    average_monthly_usage: float
    highest_usage_month: MonthUsage
    lowest_usage_month: MonthUsage
    overall_trend: Trend
    current_stock: float
    estimated_months_remaining: float


class UsageAnalytics(BaseModel):
    """Current month, earlier months (most recent first), comparisons and summary."""

    product_id: str
    product_name: str
    current_month: UsageStats
    previous_months: list[UsageStats]
    comparisons: list[Comparison]
    summary: AnalyticsSummary


class MovementStatistics(BaseModel):
    """Counts and totals over the movements of a reporting period."""

    period: str
    start: datetime | None = None
    end: datetime
    total_movements: int = 0
    stock_in_count: int = 0
    distribution_count: int = 0
    total_items_in: float = 0.0
    total_items_out: float = 0.0
    total_value_in: float = 0.0
    items_by_department: dict[str, float] = Field(default_factory=dict)
