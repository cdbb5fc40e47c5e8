"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate core services
3. Providing factory functions for dependency injection

Use cases are the only entry point for API handlers that change stock.
"""

from src.application.dto.requests import (
    CreateDepartmentRequest,
    CreateMovementRequest,
    CreateProductRequest,
    UpdateProductRequest,
)
from src.application.dto.responses import (
    ApiResponse,
    ErrorResponse,
    HealthResponse,
    MovementResponse,
    UsageAnalyticsResponse,
    UsageStatsResponse,
)
from src.application.services import (
    get_lock_registry,
    get_movement_validator,
    get_stock_ledger,
    get_usage_aggregator,
    reset_services,
)
from src.application.use_cases import (
    DeleteMovementUseCase,
    GetUsageAnalyticsUseCase,
    GetUsageStatsUseCase,
    MovementReportsUseCase,
    RecordMovementUseCase,
)

__all__ = [
    # Request DTOs
    "CreateMovementRequest",
    "CreateProductRequest",
    "UpdateProductRequest",
    "CreateDepartmentRequest",
    # Response DTOs
    "ApiResponse",
    "MovementResponse",
    "UsageStatsResponse",
    "UsageAnalyticsResponse",
    "HealthResponse",
    "ErrorResponse",
    # Use Cases
    "RecordMovementUseCase",
    "DeleteMovementUseCase",
    "GetUsageStatsUseCase",
    "GetUsageAnalyticsUseCase",
    "MovementReportsUseCase",
    # Service factories
    "get_lock_registry",
    "get_movement_validator",
    "get_stock_ledger",
    "get_usage_aggregator",
    "reset_services",
]
