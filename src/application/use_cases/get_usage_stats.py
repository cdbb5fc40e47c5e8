"""Get Usage Stats Use Case: monthly usage of one product."""

from src.application.dto.responses import CurrentMonthUsageResponse, UsageStatsResponse
from src.config import get_logger
from src.core.entities.analytics import UsageStats
from src.core.interfaces import IMovementStore, IProductStore
from src.core.services import UsageAggregator

logger = get_logger(__name__)


class GetUsageStatsUseCase:
    """Usage statistics for a product and calendar month."""

    def __init__(
        self,
        product_store: IProductStore | None = None,
        movement_store: IMovementStore | None = None,
        aggregator: UsageAggregator | None = None,
    ):
        self._product_store = product_store
        self._movement_store = movement_store
        self._aggregator = aggregator

    async def _get_aggregator(self) -> UsageAggregator:
        if self._aggregator is None:
            from src.application.services import get_usage_aggregator

            self._aggregator = await get_usage_aggregator(
                product_store=self._product_store,
                movement_store=self._movement_store,
            )
        return self._aggregator

    async def execute(
        self,
        product_id: str,
        month: int | None = None,
        year: int | None = None,
    ) -> UsageStats:
        """
        Aggregate one month; the current month when month/year are omitted.

        Raises:
            ProductNotFoundError: if the product does not exist.
            ValidationError: if month is outside 1-12.
        """
        aggregator = await self._get_aggregator()
        stats = await aggregator.aggregate_month(product_id, month, year)
        logger.info(
            "usage_stats_computed",
            product_id=product_id,
            period=stats.period,
            total_used=stats.total_used,
        )
        return stats

    async def current_month_usage(self, product_id: str) -> CurrentMonthUsageResponse:
        """Total used so far this month."""
        stats = await self.execute(product_id)
        return CurrentMonthUsageResponse(
            product_id=stats.product_id,
            product_name=stats.product_name,
            current_month_usage=stats.total_used,
        )

    def to_response(self, stats: UsageStats) -> UsageStatsResponse:
        """Convert result to API response."""
        return UsageStatsResponse.from_entity(stats)
