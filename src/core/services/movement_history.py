"""
Movement history helpers: day grouping, reporting periods and statistics.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from zoneinfo import ZoneInfo

from src.core.entities.analytics import MovementStatistics
from src.core.entities.movement import (
    STOCK_PRECISION,
    DistributionMovement,
    StockInMovement,
)
from src.core.interfaces.movement_store import AnyMovement
from src.core.timestamps import local_date, shift_month


class ReportPeriod(str, Enum):
    """Reporting windows for statistics and history."""

    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL = "all"


@dataclass
class DayGroup:
    """Movements of one local calendar day, most recent first."""

    date: date
    movements: list[AnyMovement] = field(default_factory=list)

    @property
    def label(self) -> str:
        return f"{self.date:%A}, {self.date:%B} {self.date.day}, {self.date.year}"


@dataclass
class ProductTotal:
    """Quantity of one product handed to a department."""

    product_id: str
    product_name: str
    unit: str
    total_quantity: float = 0.0
    movement_count: int = 0


def _sort_key(movement: AnyMovement) -> tuple[datetime, str]:
    return movement.timestamp, movement.id or ""


def group_by_day(movements: list[AnyMovement], tz: ZoneInfo) -> list[DayGroup]:
    """Bucket movements by local calendar day; groups and members newest first."""
    buckets: dict[date, list[AnyMovement]] = defaultdict(list)
    for movement in movements:
        buckets[local_date(movement.timestamp, tz)].append(movement)

    return [
        DayGroup(date=day, movements=sorted(buckets[day], key=_sort_key, reverse=True))
        for day in sorted(buckets, reverse=True)
    ]


def period_window(period: ReportPeriod, now: datetime, tz: ZoneInfo) -> datetime | None:
    """
    Start instant of a reporting period ending at ``now``.

    ``today`` starts at local midnight, ``week`` covers the last 7 days,
    ``month`` and ``year`` go back one calendar month or year to the same day.
    Returns ``None`` for ``all``.
    """
    local_now = now.astimezone(tz)
    if period is ReportPeriod.TODAY:
        start = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    elif period is ReportPeriod.WEEK:
        start = local_now - timedelta(days=7)
    elif period is ReportPeriod.MONTH:
        month, year = shift_month(local_now.month, local_now.year, -1)
        start = _same_day(local_now, month, year)
    elif period is ReportPeriod.YEAR:
        start = _same_day(local_now, local_now.month, local_now.year - 1)
    else:
        return None
    return start.astimezone(now.tzinfo)


def _same_day(value: datetime, month: int, year: int) -> datetime:
    # 31 March minus one month is 28/29 February
    for day in range(value.day, 27, -1):
        try:
            return value.replace(year=year, month=month, day=day)
        except ValueError:
            continue
    return value.replace(year=year, month=month, day=min(value.day, 28))


def compute_statistics(
    movements: list[AnyMovement],
    period: ReportPeriod,
    start: datetime | None,
    end: datetime,
) -> MovementStatistics:
    """Counts and totals over the movements of a reporting window."""
    stats = MovementStatistics(period=period.value, start=start, end=end)
    by_department: dict[str, float] = defaultdict(float)

    for movement in movements:
        stats.total_movements += 1
        if isinstance(movement, StockInMovement):
            stats.stock_in_count += 1
            stats.total_items_in += movement.total_items
            stats.total_value_in += movement.total_value
        else:
            stats.distribution_count += 1
            stats.total_items_out += movement.total_items
            by_department[movement.department] += movement.total_items

    stats.total_items_in = round(stats.total_items_in, STOCK_PRECISION)
    stats.total_items_out = round(stats.total_items_out, STOCK_PRECISION)
    stats.total_value_in = round(stats.total_value_in, STOCK_PRECISION)
    stats.items_by_department = {
        dept: round(total, STOCK_PRECISION) for dept, total in sorted(by_department.items())
    }
    return stats


def department_totals(movements: list[DistributionMovement]) -> list[ProductTotal]:
    """Per-product totals across a department's distributions, largest first."""
    totals: dict[str, ProductTotal] = {}
    for movement in movements:
        for line in movement.products:
            total = totals.setdefault(
                line.product_id,
                ProductTotal(
                    product_id=line.product_id,
                    product_name=line.product_name,
                    unit=line.unit,
                ),
            )
            total.total_quantity = round(total.total_quantity + line.quantity, STOCK_PRECISION)
        # A movement with several lines for one product counts once
        for product_id in movement.product_ids:
            totals[product_id].movement_count += 1
    return sorted(totals.values(), key=lambda t: (-t.total_quantity, t.product_name))
