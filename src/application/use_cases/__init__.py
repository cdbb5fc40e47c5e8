"""Application use cases."""

from src.application.use_cases.delete_movement import (
    DeleteMovementResult,
    DeleteMovementUseCase,
)
from src.application.use_cases.get_usage_analytics import GetUsageAnalyticsUseCase
from src.application.use_cases.get_usage_stats import GetUsageStatsUseCase
from src.application.use_cases.movement_reports import (
    DepartmentReport,
    MovementHistory,
    MovementReportsUseCase,
)
from src.application.use_cases.record_movement import (
    RecordMovementResult,
    RecordMovementUseCase,
)

__all__ = [
    "RecordMovementUseCase",
    "RecordMovementResult",
    "DeleteMovementUseCase",
    "DeleteMovementResult",
    "GetUsageStatsUseCase",
    "GetUsageAnalyticsUseCase",
    "MovementReportsUseCase",
    "MovementHistory",
    "DepartmentReport",
]
