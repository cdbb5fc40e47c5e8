"""Core domain entities."""

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
from src.core.entities.movement import (
    STOCK_PRECISION,
    DistributionMovement,
    DraftLine,
    MovementDraft,
    MovementType,
    ProductLine,
    StockInMovement,
    StockMovement,
    ValidatedLine,
    ValidatedMovement,
    stock_movement_adapter,
)
from src.core.entities.product import Product

__all__ = [
    # Catalog
    "Product",
    "Department",
    # Movements
    "STOCK_PRECISION",
    "MovementType",
    "ProductLine",
    "StockInMovement",
    "DistributionMovement",
    "StockMovement",
    "stock_movement_adapter",
    "DraftLine",
    "MovementDraft",
    "ValidatedLine",
    "ValidatedMovement",
    # Analytics
    "Trend",
    "UsageEvent",
    "UsageStats",
    "Comparison",
    "MonthUsage",
    "AnalyticsSummary",
    "UsageAnalytics",
    "MovementStatistics",
]
