"""
Dependency injection container for FastAPI.

Provides store and use case instances to route handlers.
"""

from functools import lru_cache

from src.application.use_cases import (
    DeleteMovementUseCase,
    GetUsageAnalyticsUseCase,
    GetUsageStatsUseCase,
    MovementReportsUseCase,
    RecordMovementUseCase,
)
from src.application.services import get_movement_validator
from src.config import Settings, get_settings
from src.core.services import MovementValidator
from src.infrastructure.storage.sqlite import (
    SQLiteDepartmentStore,
    SQLiteMovementStore,
    SQLiteProductStore,
    get_department_store,
    get_movement_store,
    get_product_store,
)


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


# Store dependencies
async def get_prod_store() -> SQLiteProductStore:
    """Get product store."""
    return await get_product_store()


async def get_dept_store() -> SQLiteDepartmentStore:
    """Get department store."""
    return await get_department_store()


async def get_mov_store() -> SQLiteMovementStore:
    """Get movement store."""
    return await get_movement_store()


def get_validator() -> MovementValidator:
    """Get the movement validator (unit classes from settings)."""
    return get_movement_validator()


# Use case dependencies
def get_record_movement_use_case() -> RecordMovementUseCase:
    """Get record movement use case."""
    return RecordMovementUseCase()


def get_delete_movement_use_case() -> DeleteMovementUseCase:
    """Get delete movement use case."""
    return DeleteMovementUseCase()


def get_movement_reports_use_case() -> MovementReportsUseCase:
    """Get movement reports use case."""
    return MovementReportsUseCase()


def get_usage_stats_use_case() -> GetUsageStatsUseCase:
    """Get usage stats use case."""
    return GetUsageStatsUseCase()


def get_usage_analytics_use_case() -> GetUsageAnalyticsUseCase:
    """Get usage analytics use case."""
    return GetUsageAnalyticsUseCase()
