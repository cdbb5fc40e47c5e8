"""Movement Reports Use Case: listings, day-grouped history and statistics."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from zoneinfo import ZoneInfo

from src.application.dto.responses import (
    DayGroupResponse,
    DepartmentMovementsResponse,
    DepartmentResponse,
    MovementHistoryResponse,
    MovementListResponse,
    MovementResponse,
    MovementStatisticsResponse,
    PaginationResponse,
    ProductTotalResponse,
)
from src.config import get_logger, get_settings
from src.core.entities.analytics import MovementStatistics
from src.core.entities.department import Department
from src.core.entities.movement import STOCK_PRECISION, DistributionMovement, MovementType
from src.core.exceptions import DepartmentNotFoundError, MovementNotFoundError
from src.core.interfaces import (
    AnyMovement,
    IDepartmentStore,
    IMovementStore,
    MovementFilter,
    MovementPage,
)
from src.core.services import (
    DayGroup,
    ProductTotal,
    ReportPeriod,
    compute_statistics,
    department_totals,
    group_by_day,
    period_window,
)
from src.core.timestamps import utc_now

logger = get_logger(__name__)


@dataclass
class MovementHistory:
    groups: list[DayGroup]
    page: MovementPage


@dataclass
class DepartmentReport:
    department: Department
    movements: list[DistributionMovement] = field(default_factory=list)
    totals: list[ProductTotal] = field(default_factory=list)

    @property
    def total_items(self) -> float:
        return round(sum(m.total_items for m in self.movements), STOCK_PRECISION)


class MovementReportsUseCase:
    """Read-side queries over the movement ledger."""

    def __init__(
        self,
        movement_store: IMovementStore | None = None,
        department_store: IDepartmentStore | None = None,
        timezone: str | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._movement_store = movement_store
        self._department_store = department_store
        self.tz = ZoneInfo(timezone or get_settings().ledger.timezone)
        self.clock = clock

    async def _get_movement_store(self) -> IMovementStore:
        if self._movement_store is None:
            from src.infrastructure.storage.sqlite import get_movement_store

            self._movement_store = await get_movement_store()
        return self._movement_store

    async def _get_department_store(self) -> IDepartmentStore:
        if self._department_store is None:
            from src.infrastructure.storage.sqlite import get_department_store

            self._department_store = await get_department_store()
        return self._department_store

    async def get(self, movement_id: str) -> AnyMovement:
        """Raises MovementNotFoundError if the movement does not exist."""
        movement = await (await self._get_movement_store()).get_movement(movement_id)
        if movement is None:
            raise MovementNotFoundError(movement_id)
        return movement

    async def list_movements(self, movement_filter: MovementFilter) -> MovementPage:
        return await (await self._get_movement_store()).list_movements(movement_filter)

    async def history(
        self,
        movement_filter: MovementFilter,
        period: ReportPeriod | None = None,
    ) -> MovementHistory:
        """One page of movements grouped by local calendar day."""
        if period is not None and movement_filter.start is None:
            start = period_window(period, self.clock(), self.tz)
            movement_filter = movement_filter.model_copy(update={"start": start})

        page = await self.list_movements(movement_filter)
        return MovementHistory(groups=group_by_day(page.items, self.tz), page=page)

    async def statistics(self, period: ReportPeriod = ReportPeriod.MONTH) -> MovementStatistics:
        """Counts and totals for a reporting period ending now."""
        end = self.clock()
        start = period_window(period, end, self.tz)
        movements = await (await self._get_movement_store()).list_between(start, end)
        stats = compute_statistics(movements, period, start, end)
        logger.info(
            "movement_statistics_computed",
            period=period.value,
            total_movements=stats.total_movements,
        )
        return stats

    async def department_report(self, department_id: str) -> DepartmentReport:
        """
        Every distribution to a department with per-product totals.

        Raises:
            DepartmentNotFoundError: if the department does not exist.
        """
        department = await (await self._get_department_store()).get_department(department_id)
        if department is None:
            raise DepartmentNotFoundError(department_id)

        store = await self._get_movement_store()
        limit = get_settings().api.max_page_size
        movements: list[DistributionMovement] = []
        page_number = 1
        while True:
            page = await store.list_movements(
                MovementFilter(
                    type=MovementType.DISTRIBUTION,
                    department=department_id,
                    page=page_number,
                    limit=limit,
                )
            )
            movements.extend(page.items)  # type: ignore[arg-type]
            if page_number >= page.pages:
                break
            page_number += 1

        return DepartmentReport(
            department=department,
            movements=movements,
            totals=department_totals(movements),
        )

    # --- Response conversion ---

    def to_list_response(self, page: MovementPage) -> MovementListResponse:
        return MovementListResponse(
            data=[MovementResponse.from_entity(m) for m in page.items],
            pagination=PaginationResponse.from_page(page),
        )

    def to_history_response(self, history: MovementHistory) -> MovementHistoryResponse:
        return MovementHistoryResponse(
            data=[DayGroupResponse.from_group(g) for g in history.groups],
            pagination=PaginationResponse.from_page(history.page),
        )

    def to_statistics_response(self, stats: MovementStatistics) -> MovementStatisticsResponse:
        return MovementStatisticsResponse.from_entity(stats)

    def to_department_response(self, report: DepartmentReport) -> DepartmentMovementsResponse:
        return DepartmentMovementsResponse(
            department=DepartmentResponse.from_entity(report.department),
            movements=[MovementResponse.from_entity(m) for m in report.movements],
            product_totals=[ProductTotalResponse.from_total(t) for t in report.totals],
            total_items=report.total_items,
        )
