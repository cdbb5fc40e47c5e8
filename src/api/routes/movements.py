"""Stock movement endpoints."""

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    get_app_settings,
    get_delete_movement_use_case,
    get_movement_reports_use_case,
    get_record_movement_use_case,
)
from src.application.dto.requests import CreateMovementRequest
from src.application.dto.responses import (
    ApiResponse,
    CanDeleteResponse,
    DeleteMovementResponse,
    DepartmentMovementsResponse,
    ErrorResponse,
    MovementHistoryResponse,
    MovementListResponse,
    MovementResponse,
    MovementStatisticsResponse,
)
from src.application.use_cases import (
    DeleteMovementUseCase,
    MovementReportsUseCase,
    RecordMovementUseCase,
)
from src.config import Settings
from src.core.entities.movement import MovementType
from src.core.exceptions import ValidationError
from src.core.interfaces import MovementFilter
from src.core.services import ReportPeriod
from src.core.timestamps import normalize_timestamp

router = APIRouter(prefix="/api/movements", tags=["movements"])


def _parse_bound(name: str, value: str | None, tz: ZoneInfo, end: bool) -> datetime | None:
    """Parse a date filter; a bare date covers the whole local day."""
    if not value:
        return None
    try:
        if len(value) == 10:
            day = date.fromisoformat(value)
            if end:
                return datetime.combine(day + timedelta(days=1), time(), tz) - timedelta(
                    microseconds=1
                )
            return datetime.combine(day, time(), tz)
        return normalize_timestamp(value)
    except ValueError as e:
        raise ValidationError(name, "must be an ISO-8601 date or timestamp", value) from e


def movement_filter(
    movement_type: MovementType | None = Query(default=None, alias="type"),
    department: str | None = Query(default=None),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    product_id: str | None = Query(default=None, alias="productId"),
    search: str | None = Query(default=None, max_length=200),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    settings: Settings = Depends(get_app_settings),
) -> MovementFilter:
    """Build the listing filter from query parameters."""
    tz = ZoneInfo(settings.ledger.timezone)
    return MovementFilter(
        type=movement_type,
        department=department,
        product_id=product_id,
        start=_parse_bound("startDate", start_date, tz, end=False),
        end=_parse_bound("endDate", end_date, tz, end=True),
        search=search.strip() if search and search.strip() else None,
        page=page,
        limit=min(limit or settings.api.default_page_size, settings.api.max_page_size),
    )


@router.post(
    "",
    response_model=ApiResponse[MovementResponse],
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def create_movement(
    request: CreateMovementRequest,
    use_case: RecordMovementUseCase = Depends(get_record_movement_use_case),
) -> ApiResponse[MovementResponse]:
    """Record a stock in or a distribution and apply it to stock."""
    result = await use_case.execute(request)
    return ApiResponse(
        data=use_case.to_response(result),
        message="Stock movement recorded",
    )


@router.get("", response_model=MovementListResponse)
async def list_movements(
    filters: MovementFilter = Depends(movement_filter),
    use_case: MovementReportsUseCase = Depends(get_movement_reports_use_case),
) -> MovementListResponse:
    """List movements, newest first."""
    page = await use_case.list_movements(filters)
    return use_case.to_list_response(page)


@router.get("/history", response_model=MovementHistoryResponse)
async def movement_history(
    period: ReportPeriod | None = Query(default=None),
    filters: MovementFilter = Depends(movement_filter),
    use_case: MovementReportsUseCase = Depends(get_movement_reports_use_case),
) -> MovementHistoryResponse:
    """Movements grouped by local calendar day."""
    history = await use_case.history(filters, period)
    return use_case.to_history_response(history)


@router.get("/stats/overview", response_model=ApiResponse[MovementStatisticsResponse])
async def movement_statistics(
    period: ReportPeriod = Query(default=ReportPeriod.MONTH),
    use_case: MovementReportsUseCase = Depends(get_movement_reports_use_case),
) -> ApiResponse[MovementStatisticsResponse]:
    """Counts and totals for a reporting period."""
    stats = await use_case.statistics(period)
    return ApiResponse(data=use_case.to_statistics_response(stats))


@router.get(
    "/department/{department_id}",
    response_model=ApiResponse[DepartmentMovementsResponse],
    responses={404: {"model": ErrorResponse}},
)
async def department_movements(
    department_id: str,
    use_case: MovementReportsUseCase = Depends(get_movement_reports_use_case),
) -> ApiResponse[DepartmentMovementsResponse]:
    """Every distribution to a department with per-product totals."""
    report = await use_case.department_report(department_id)
    return ApiResponse(data=use_case.to_department_response(report))


@router.get(
    "/{movement_id}",
    response_model=ApiResponse[MovementResponse],
    responses={404: {"model": ErrorResponse}},
)
async def get_movement(
    movement_id: str,
    use_case: MovementReportsUseCase = Depends(get_movement_reports_use_case),
) -> ApiResponse[MovementResponse]:
    """Get a single movement."""
    movement = await use_case.get(movement_id)
    return ApiResponse(data=MovementResponse.from_entity(movement))


@router.get(
    "/{movement_id}/can-delete",
    response_model=ApiResponse[CanDeleteResponse],
    responses={404: {"model": ErrorResponse}},
)
async def can_delete_movement(
    movement_id: str,
    use_case: DeleteMovementUseCase = Depends(get_delete_movement_use_case),
) -> ApiResponse[CanDeleteResponse]:
    """Preview whether deleting would drive any stock balance negative."""
    return ApiResponse(data=await use_case.check(movement_id))


@router.delete(
    "/{movement_id}",
    response_model=ApiResponse[DeleteMovementResponse],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_movement(
    movement_id: str,
    use_case: DeleteMovementUseCase = Depends(get_delete_movement_use_case),
) -> ApiResponse[DeleteMovementResponse]:
    """Delete a movement and undo its stock effect."""
    result = await use_case.execute(movement_id)
    return ApiResponse(
        data=use_case.to_response(result),
        message="Stock movement deleted",
    )
