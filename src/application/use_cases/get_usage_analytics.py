"""Get Usage Analytics Use Case: current month against previous months."""

from src.application.dto.responses import UsageAnalyticsResponse
from src.config import get_logger, get_settings
from src.core.entities.analytics import UsageAnalytics
from src.core.exceptions import ValidationError
from src.core.interfaces import IMovementStore, IProductStore
from src.core.services import AnalyticsSummarizer, TrendComparator, UsageAggregator
from src.core.timestamps import shift_month

logger = get_logger(__name__)


class GetUsageAnalyticsUseCase:
    """Build the analytics bundle for one product."""

    def __init__(
        self,
        product_store: IProductStore | None = None,
        movement_store: IMovementStore | None = None,
        aggregator: UsageAggregator | None = None,
        comparator: TrendComparator | None = None,
        summarizer: AnalyticsSummarizer | None = None,
    ):
        self._product_store = product_store
        self._movement_store = movement_store
        self._aggregator = aggregator
        self._comparator = comparator
        self._summarizer = summarizer

    async def _get_aggregator(self) -> UsageAggregator:
        if self._aggregator is None:
            from src.application.services import get_usage_aggregator

            self._aggregator = await get_usage_aggregator(
                product_store=self._product_store,
                movement_store=self._movement_store,
            )
        return self._aggregator

    def _get_comparator(self) -> TrendComparator:
        if self._comparator is None:
            from src.application.services import get_trend_comparator

            self._comparator = get_trend_comparator()
        return self._comparator

    def _get_summarizer(self) -> AnalyticsSummarizer:
        if self._summarizer is None:
            self._summarizer = AnalyticsSummarizer(comparator=self._get_comparator())
        return self._summarizer

    async def execute(
        self, product_id: str, previous_months: int | None = None
    ) -> UsageAnalytics:
        """
        Current month, ``previous_months`` earlier months (most recent first),
        a comparison of the current month against each, and a summary.

        Raises:
            ProductNotFoundError: if the product does not exist.
            ValidationError: if previous_months is out of range.
        """
        settings = get_settings().analytics
        if previous_months is None:
            previous_months = settings.default_previous_months
        if not 1 <= previous_months <= settings.max_previous_months:
            raise ValidationError(
                "previousMonths",
                f"must be between 1 and {settings.max_previous_months}",
                previous_months,
            )

        aggregator = await self._get_aggregator()
        product = await aggregator.get_product(product_id)
        month, year = aggregator.current_period()

        current = await aggregator.aggregate_month(product_id, month, year, product=product)
        previous = []
        for offset in range(1, previous_months + 1):
            prev_month, prev_year = shift_month(month, year, -offset)
            previous.append(
                await aggregator.aggregate_month(
                    product_id, prev_month, prev_year, product=product
                )
            )

        comparator = self._get_comparator()
        comparisons = [comparator.compare(current, p) for p in previous]
        summary = self._get_summarizer().summarize(current, previous, product.quantity)

        logger.info(
            "usage_analytics_computed",
            product_id=product_id,
            months=summary.total_months_analyzed,
            overall_trend=summary.overall_trend.value,
        )
        return UsageAnalytics(
            product_id=product.id,
            product_name=product.name,
            current_month=current,
            previous_months=previous,
            comparisons=comparisons,
            summary=summary,
        )

    def to_response(self, analytics: UsageAnalytics) -> UsageAnalyticsResponse:
        """Convert result to API response."""
        return UsageAnalyticsResponse.from_entity(analytics)
