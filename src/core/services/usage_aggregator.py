"""
Usage Aggregator.

Computes per-product monthly usage from the distribution ledger. Calendar
months are taken in the configured ledger timezone.
"""

import math
from collections.abc import Callable
from datetime import MAXYEAR, MINYEAR, datetime
from zoneinfo import ZoneInfo

from src.config import get_settings
from src.config.logging import get_logger
from src.core.entities.analytics import UsageEvent, UsageStats
from src.core.entities.movement import STOCK_PRECISION, DistributionMovement
from src.core.entities.product import Product
from src.core.exceptions import ProductNotFoundError, ValidationError
from src.core.interfaces.movement_store import IMovementStore
from src.core.interfaces.product_store import IProductStore
from src.core.timestamps import days_in_month, month_window, period_label, utc_now

logger = get_logger(__name__)

# A month window also touches its neighbours, so the edge years are excluded
YEAR_RANGE = (MINYEAR + 1, MAXYEAR - 1)


def build_usage_stats(
    product: Product,
    month: int,
    year: int,
    distributions: list[DistributionMovement],
    now: datetime,
    tz: ZoneInfo,
) -> UsageStats:
    """
    Fold distributions of one month into usage statistics.

    The daily average divides by the days elapsed so far for the current
    month and by the full month length otherwise. A zero average means the
    stock never depletes, reported as ``math.inf`` days remaining.
    """
    events = [
        UsageEvent(
            date=movement.timestamp,
            quantity_used=line.quantity,
            movement_id=movement.id,
            department_id=movement.department,
            used_by=movement.stock_manager,
            notes=movement.notes,
        )
        for movement in distributions
        for line in movement.products
        if line.product_id == product.id
    ]
    events.sort(key=lambda e: (e.date, e.movement_id))

    total_used = round(sum(e.quantity_used for e in events), STOCK_PRECISION)
    month_days = days_in_month(month, year)

    local_now = now.astimezone(tz)
    if (year, month) == (local_now.year, local_now.month):
        days_elapsed = max(1, local_now.day)
        divisor = days_elapsed
    elif (year, month) < (local_now.year, local_now.month):
        days_elapsed = month_days
        divisor = month_days
    else:
        days_elapsed = 0
        divisor = month_days

    average = total_used / divisor
    estimated = product.quantity / average if average > 0 else math.inf

    return UsageStats(
        product_id=product.id,
        product_name=product.name,
        period=period_label(month, year),
        month=month,
        year=year,
        total_used=total_used,
        usage_count=len(events),
        average_daily_usage=round(average, 4),
        days_in_month=month_days,
        days_elapsed=days_elapsed,
        estimated_days_remaining=estimated,
        current_stock=product.quantity,
        usage_events=events,
    )


class UsageAggregator:
    """Reads distributions for a product and month and aggregates them."""

    def __init__(
        self,
        product_store: IProductStore,
        movement_store: IMovementStore,
        timezone: str | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._product_store = product_store
        self._movement_store = movement_store
        self.tz = ZoneInfo(timezone or get_settings().ledger.timezone)
        self.clock = clock

    def current_period(self) -> tuple[int, int]:
        """(month, year) of the current calendar month in the ledger zone."""
        now = self.clock().astimezone(self.tz)
        return now.month, now.year

    async def get_product(self, product_id: str) -> Product:
        product = await self._product_store.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    async def aggregate_month(
        self,
        product_id: str,
        month: int | None = None,
        year: int | None = None,
        product: Product | None = None,
    ) -> UsageStats:
        """
        Usage of one product in one month; defaults to the current month.

        Raises:
            ProductNotFoundError: if the product does not exist.
            ValidationError: if month is outside 1-12 or year outside YEAR_RANGE.
        """
        current_month, current_year = self.current_period()
        month = current_month if month is None else month
        year = current_year if year is None else year
        if not 1 <= month <= 12:
            raise ValidationError("month", "must be between 1 and 12", month)
        if not YEAR_RANGE[0] <= year <= YEAR_RANGE[1]:
            raise ValidationError(
                "year", f"must be between {YEAR_RANGE[0]} and {YEAR_RANGE[1]}", year
            )

        if product is None:
            product = await self.get_product(product_id)

        start, end = month_window(month, year, self.tz)
        distributions = await self._movement_store.list_distributions(product_id, start, end)

        stats = build_usage_stats(product, month, year, distributions, self.clock(), self.tz)
        logger.debug(
            "usage_aggregated",
            product_id=product_id,
            period=stats.period,
            total_used=stats.total_used,
            events=stats.usage_count,
        )
        return stats
