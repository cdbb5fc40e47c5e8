"""Product catalog and usage analytics endpoints."""

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    get_app_settings,
    get_mov_store,
    get_prod_store,
    get_usage_analytics_use_case,
    get_usage_stats_use_case,
    get_validator,
)
from src.application.dto.requests import CreateProductRequest, UpdateProductRequest
from src.application.dto.responses import (
    ApiResponse,
    CurrentMonthUsageResponse,
    ErrorResponse,
    ProductResponse,
    UsageAnalyticsResponse,
    UsageStatsResponse,
)
from src.application.use_cases import GetUsageAnalyticsUseCase, GetUsageStatsUseCase
from src.config import Settings
from src.core.entities.product import Product
from src.core.exceptions import ProductNotFoundError, ValidationError
from src.core.services import MovementValidator
from src.infrastructure.storage.sqlite import SQLiteMovementStore, SQLiteProductStore

router = APIRouter(prefix="/api/products", tags=["products"])


def _require_known_unit(validator: MovementValidator, unit: str) -> None:
    if validator.unit_class(unit) is None:
        raise ValidationError("unit", f"unknown unit '{unit}'", unit)


@router.get("", response_model=ApiResponse[list[ProductResponse]])
async def list_products(
    search: str | None = Query(default=None, max_length=200),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    store: SQLiteProductStore = Depends(get_prod_store),
) -> ApiResponse[list[ProductResponse]]:
    """List products ordered by name."""
    products = await store.list_products(limit=limit, offset=offset, search=search)
    return ApiResponse(data=[ProductResponse.from_entity(p) for p in products])


@router.post(
    "",
    response_model=ApiResponse[ProductResponse],
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_product(
    request: CreateProductRequest,
    store: SQLiteProductStore = Depends(get_prod_store),
    validator: MovementValidator = Depends(get_validator),
) -> ApiResponse[ProductResponse]:
    """Add a product to the catalog. Stock starts at zero."""
    _require_known_unit(validator, request.unit)
    product = await store.create_product(
        Product(
            name=request.name,
            unit=request.unit,
            unit_price=request.unit_price,
            category=request.category,
        )
    )
    return ApiResponse(data=ProductResponse.from_entity(product), message="Product created")


@router.get("/low-stock", response_model=ApiResponse[list[ProductResponse]])
async def low_stock_products(
    threshold: float | None = Query(default=None, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    store: SQLiteProductStore = Depends(get_prod_store),
    settings: Settings = Depends(get_app_settings),
) -> ApiResponse[list[ProductResponse]]:
    """Products at or below the low-stock threshold."""
    if threshold is None:
        threshold = settings.ledger.low_stock_threshold
    products = await store.list_low_stock(threshold=threshold, limit=limit)
    return ApiResponse(data=[ProductResponse.from_entity(p) for p in products])


@router.get(
    "/{product_id}",
    response_model=ApiResponse[ProductResponse],
    responses={404: {"model": ErrorResponse}},
)
async def get_product(
    product_id: str,
    store: SQLiteProductStore = Depends(get_prod_store),
) -> ApiResponse[ProductResponse]:
    """Get a product with its live stock."""
    product = await store.get_product(product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return ApiResponse(data=ProductResponse.from_entity(product))


@router.patch(
    "/{product_id}",
    response_model=ApiResponse[ProductResponse],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def update_product(
    product_id: str,
    request: UpdateProductRequest,
    store: SQLiteProductStore = Depends(get_prod_store),
    movement_store: SQLiteMovementStore = Depends(get_mov_store),
    validator: MovementValidator = Depends(get_validator),
) -> ApiResponse[ProductResponse]:
    """
    Edit catalog fields. Stock only changes through movements.

    The unit can only change while the product has no recorded movements;
    ledger lines and usage totals are kept in the unit they were recorded in.
    """
    product = await store.get_product(product_id)
    if product is None:
        raise ProductNotFoundError(product_id)

    changes = request.model_dump(exclude_unset=True)
    new_unit = changes.get("unit")
    if new_unit is not None and new_unit.lower() != product.unit.lower():
        _require_known_unit(validator, new_unit)
        if await movement_store.has_movements(product_id):
            raise ValidationError(
                "unit",
                f"cannot change unit from '{product.unit}' once movements are recorded",
                new_unit,
            )
    updated = await store.update_product(product.model_copy(update=changes))
    return ApiResponse(data=ProductResponse.from_entity(updated), message="Product updated")


@router.get(
    "/{product_id}/usage-stats",
    response_model=ApiResponse[UsageStatsResponse],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def usage_stats(
    product_id: str,
    month: int | None = Query(default=None, ge=1, le=12),
    year: int | None = Query(default=None, ge=1970, le=9998),
    use_case: GetUsageStatsUseCase = Depends(get_usage_stats_use_case),
) -> ApiResponse[UsageStatsResponse]:
    """Usage of a product in one calendar month (current month by default)."""
    stats = await use_case.execute(product_id, month=month, year=year)
    return ApiResponse(data=use_case.to_response(stats))


@router.get(
    "/{product_id}/usage-analytics",
    response_model=ApiResponse[UsageAnalyticsResponse],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def usage_analytics(
    product_id: str,
    previous_months: int | None = Query(default=None, alias="previousMonths"),
    use_case: GetUsageAnalyticsUseCase = Depends(get_usage_analytics_use_case),
) -> ApiResponse[UsageAnalyticsResponse]:
    """Current month compared against previous months, with a summary."""
    analytics = await use_case.execute(product_id, previous_months=previous_months)
    return ApiResponse(data=use_case.to_response(analytics))


@router.get(
    "/{product_id}/current-month-usage",
    response_model=ApiResponse[CurrentMonthUsageResponse],
    responses={404: {"model": ErrorResponse}},
)
async def current_month_usage(
    product_id: str,
    use_case: GetUsageStatsUseCase = Depends(get_usage_stats_use_case),
) -> ApiResponse[CurrentMonthUsageResponse]:
    """Total quantity distributed so far this month."""
    return ApiResponse(data=await use_case.current_month_usage(product_id))
