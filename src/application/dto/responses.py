"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization. Success bodies are
wrapped in ``ApiResponse`` and serialized with camelCase keys.

JSON has no infinity: "never depletes" estimates (``math.inf``) are written
as ``null`` and read back as ``math.inf``.
"""

import math
from datetime import datetime
from typing import Annotated, Any, Generic, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

from src.core.entities.analytics import (
    AnalyticsSummary,
    Comparison,
    MonthUsage,
    MovementStatistics,
    Trend,
    UsageAnalytics,
    UsageEvent,
    UsageStats,
)
from src.core.entities.department import Department
from src.core.entities.movement import ProductLine
from src.core.entities.product import Product
from src.core.interfaces.movement_store import AnyMovement, MovementPage
from src.core.services.movement_history import DayGroup, ProductTotal
from src.core.timestamps import normalize_timestamp, utc_now

T = TypeVar("T")


def _none_to_inf(v: Any) -> Any:
    return math.inf if v is None else v


def _inf_to_none(v: float) -> float | None:
    return None if math.isinf(v) else v


# +inf travels as null
InfFloat = Annotated[
    float,
    BeforeValidator(_none_to_inf),
    PlainSerializer(_inf_to_none, return_type=float | None, when_used="json"),
]


class CamelModel(BaseModel):
    """Base for DTOs exchanged as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(CamelModel, Generic[T]):
    """Success envelope."""

    success: bool = True
    data: T
    message: str | None = None


# --- Movements ---


class ProductLineResponse(CamelModel):
    """Movement line with its stock snapshot."""

    product_id: str
    product_name: str
    quantity: float
    unit: str
    unit_price: float | None = None
    previous_stock: float
    new_stock: float

    @classmethod
    def from_entity(cls, line: ProductLine) -> "ProductLineResponse":
        return cls(**line.model_dump())


class MovementResponse(CamelModel):
    """A stock movement."""

    id: str
    type: str
    supplier: str | None = None
    department: str | None = None
    stock_manager: str
    notes: str | None = None
    timestamp: datetime
    products: list[ProductLineResponse]
    total_items: float
    total_value: float | None = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_timestamp(cls, v: Any) -> datetime:
        return normalize_timestamp(v)

    @classmethod
    def from_entity(cls, movement: AnyMovement) -> "MovementResponse":
        return cls(
            id=movement.id,
            type=movement.type,
            supplier=getattr(movement, "supplier", None),
            department=getattr(movement, "department", None),
            stock_manager=movement.stock_manager,
            notes=movement.notes,
            timestamp=movement.timestamp,
            products=[ProductLineResponse.from_entity(line) for line in movement.products],
            total_items=movement.total_items,
            total_value=movement.total_value,
        )


class PaginationResponse(CamelModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def from_page(cls, page: MovementPage) -> "PaginationResponse":
        return cls(page=page.page, limit=page.limit, total=page.total, pages=page.pages)


class MovementListResponse(CamelModel):
    """Paginated movement listing."""

    success: bool = True
    data: list[MovementResponse]
    pagination: PaginationResponse


class DayGroupResponse(CamelModel):
    """Movements of one local calendar day."""

    date: str
    label: str
    movements: list[MovementResponse]

    @classmethod
    def from_group(cls, group: DayGroup) -> "DayGroupResponse":
        return cls(
            date=group.date.isoformat(),
            label=group.label,
            movements=[MovementResponse.from_entity(m) for m in group.movements],
        )


class MovementHistoryResponse(CamelModel):
    """Day-grouped movement history."""

    success: bool = True
    data: list[DayGroupResponse]
    pagination: PaginationResponse


class MovementStatisticsResponse(CamelModel):
    period: str
    start: datetime | None = None
    end: datetime
    total_movements: int
    stock_in_count: int
    distribution_count: int
    total_items_in: float
    total_items_out: float
    total_value_in: float
    items_by_department: dict[str, float]

    @classmethod
    def from_entity(cls, stats: MovementStatistics) -> "MovementStatisticsResponse":
        return cls(**stats.model_dump())


class ProductTotalResponse(CamelModel):
    product_id: str
    product_name: str
    unit: str
    total_quantity: float
    movement_count: int

    @classmethod
    def from_total(cls, total: ProductTotal) -> "ProductTotalResponse":
        return cls(
            product_id=total.product_id,
            product_name=total.product_name,
            unit=total.unit,
            total_quantity=total.total_quantity,
            movement_count=total.movement_count,
        )


class DepartmentMovementsResponse(CamelModel):
    """Distributions to one department with per-product totals."""

    department: "DepartmentResponse"
    movements: list[MovementResponse]
    product_totals: list[ProductTotalResponse]
    total_items: float


class ReversalConflictResponse(CamelModel):
    product_id: str
    product_name: str
    quantity_removed: float
    lowest_balance: float
    conflicting_movement_ids: list[str]
    message: str


class CanDeleteResponse(CamelModel):
    """Whether a movement can be removed without driving stock negative."""

    movement_id: str
    can_delete: bool
    reason: str | None = None
    conflicts: list[ReversalConflictResponse] = Field(default_factory=list)


class DeleteMovementResponse(CamelModel):
    movement_id: str
    type: str
    products: list["ProductResponse"]


# --- Catalog ---


class ProductResponse(CamelModel):
    """Catalog product with its live stock."""

    id: str
    name: str
    unit: str
    quantity: float
    unit_price: float
    category: str | None = None
    total_value: float
    is_out_of_stock: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, product: Product) -> "ProductResponse":
        return cls(
            id=product.id,
            name=product.name,
            unit=product.unit,
            quantity=product.quantity,
            unit_price=product.unit_price,
            category=product.category,
            total_value=round(product.total_value, 2),
            is_out_of_stock=product.is_out_of_stock,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


class DepartmentResponse(CamelModel):
    id: str
    name: str
    description: str = ""
    icon: str | None = None
    color: str | None = None
    created_at: datetime

    @classmethod
    def from_entity(cls, department: Department) -> "DepartmentResponse":
        return cls(**department.model_dump())


# --- Usage analytics ---


class UsageEventResponse(CamelModel):
    date: datetime
    quantity_used: float
    movement_id: str
    department_id: str
    used_by: str
    notes: str | None = None

    @classmethod
    def from_entity(cls, event: UsageEvent) -> "UsageEventResponse":
        return cls(**event.model_dump())


class UsageStatsResponse(CamelModel):
    """Usage of one product in one month."""

    product_id: str
    product_name: str
    period: str
    month: int
    year: int
    total_used: float
    usage_count: int
    average_daily_usage: float
    days_in_month: int
    days_elapsed: int
    estimated_days_remaining: InfFloat
    current_stock: float
    usage_events: list[UsageEventResponse] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, stats: UsageStats) -> "UsageStatsResponse":
        data = stats.model_dump(exclude={"usage_events"})
        return cls(
            **data,
            usage_events=[UsageEventResponse.from_entity(e) for e in stats.usage_events],
        )


class ComparisonResponse(CamelModel):
    compared_to_period: str
    current_month_total: float
    compared_month_total: float
    absolute_change: float
    usage_change: float
    trend: Trend

    @classmethod
    def from_entity(cls, comparison: Comparison) -> "ComparisonResponse":
        return cls(**comparison.model_dump())


class MonthUsageResponse(CamelModel):
    period: str
    total_used: float

    @classmethod
    def from_entity(cls, usage: MonthUsage) -> "MonthUsageResponse":
        return cls(period=usage.period, total_used=usage.total_used)


class AnalyticsSummaryResponse(CamelModel):
    total_months_analyzed: int
    average_monthly_usage: float
    highest_usage_month: MonthUsageResponse
    lowest_usage_month: MonthUsageResponse
    overall_trend: Trend
    current_stock: float
    estimated_months_remaining: InfFloat

    @classmethod
    def from_entity(cls, summary: AnalyticsSummary) -> "AnalyticsSummaryResponse":
        return cls(
            total_months_analyzed=summary.total_months_analyzed,
            average_monthly_usage=summary.average_monthly_usage,
            highest_usage_month=MonthUsageResponse.from_entity(summary.highest_usage_month),
            lowest_usage_month=MonthUsageResponse.from_entity(summary.lowest_usage_month),
            overall_trend=summary.overall_trend,
            current_stock=summary.current_stock,
            estimated_months_remaining=summary.estimated_months_remaining,
        )


class UsageAnalyticsResponse(CamelModel):
    """Current month, previous months (most recent first), comparisons and summary."""

    product_id: str
    product_name: str
    current_month: UsageStatsResponse
    previous_months: list[UsageStatsResponse]
    comparisons: list[ComparisonResponse]
    summary: AnalyticsSummaryResponse

    @classmethod
    def from_entity(cls, analytics: UsageAnalytics) -> "UsageAnalyticsResponse":
        return cls(
            product_id=analytics.product_id,
            product_name=analytics.product_name,
            current_month=UsageStatsResponse.from_entity(analytics.current_month),
            previous_months=[UsageStatsResponse.from_entity(m) for m in analytics.previous_months],
            comparisons=[ComparisonResponse.from_entity(c) for c in analytics.comparisons],
            summary=AnalyticsSummaryResponse.from_entity(analytics.summary),
        )


class CurrentMonthUsageResponse(CamelModel):
    product_id: str
    product_name: str
    current_month_usage: float


# --- System ---


class ComponentHealthResponse(BaseModel):
    """Health of one dependency."""

    status: str
    latency_ms: float | None = None
    details: dict[str, Any] | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ComponentHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error envelope.

    Every error response includes:
    - error_code: machine-readable code (e.g. MOVEMENT_NOT_FOUND)
    - message: human-readable description
    - errors: one message per offending item (product line, conflict, field)
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    success: bool = False
    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    errors: list[str] = Field(default_factory=list, description="Individual problems")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    details: dict[str, Any] | None = Field(default=None, description="Structured details")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=utc_now)


DepartmentMovementsResponse.model_rebuild()
DeleteMovementResponse.model_rebuild()
