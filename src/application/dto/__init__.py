"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
"""

from src.application.dto.requests import (
    CreateDepartmentRequest,
    CreateMovementRequest,
    CreateProductRequest,
    MovementLineRequest,
    UpdateProductRequest,
)
from src.application.dto.responses import (
    AnalyticsSummaryResponse,
    ApiResponse,
    CanDeleteResponse,
    ComparisonResponse,
    CurrentMonthUsageResponse,
    DayGroupResponse,
    DeleteMovementResponse,
    DepartmentMovementsResponse,
    DepartmentResponse,
    ErrorResponse,
    HealthResponse,
    MovementHistoryResponse,
    MovementListResponse,
    MovementResponse,
    MovementStatisticsResponse,
    PaginationResponse,
    ProductResponse,
    UsageAnalyticsResponse,
    UsageStatsResponse,
)

__all__ = [
    # Requests
    "CreateMovementRequest",
    "MovementLineRequest",
    "CreateProductRequest",
    "UpdateProductRequest",
    "CreateDepartmentRequest",
    # Responses
    "ApiResponse",
    "MovementResponse",
    "MovementListResponse",
    "MovementHistoryResponse",
    "DayGroupResponse",
    "MovementStatisticsResponse",
    "DepartmentMovementsResponse",
    "CanDeleteResponse",
    "DeleteMovementResponse",
    "PaginationResponse",
    "ProductResponse",
    "DepartmentResponse",
    "UsageStatsResponse",
    "ComparisonResponse",
    "AnalyticsSummaryResponse",
    "UsageAnalyticsResponse",
    "CurrentMonthUsageResponse",
    "HealthResponse",
    "ErrorResponse",
]
