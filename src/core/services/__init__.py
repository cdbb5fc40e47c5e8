"""
Core business logic services.

Layer-pure services that depend only on:
- src/core/entities/*
- src/core/interfaces/*
- src/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from src.core.services.analytics_summarizer import AnalyticsSummarizer
from src.core.services.movement_history import (
    DayGroup,
    ProductTotal,
    ReportPeriod,
    compute_statistics,
    department_totals,
    group_by_day,
    period_window,
)
from src.core.services.movement_validator import (
    MovementValidator,
    QuantityFormatError,
    ReasonKind,
    UnitClass,
    ValidationReason,
    ValidationResult,
    format_quantity,
    insufficient_stock_reasons,
)
from src.core.services.stock_ledger import (
    AppliedMovement,
    ProductLockRegistry,
    ReversalConflict,
    StockLedgerApplier,
    materialize_movement,
    plan_reversal,
)
from src.core.services.trend_comparator import TrendComparator
from src.core.services.usage_aggregator import UsageAggregator, build_usage_stats

__all__ = [
    # Movement Validator
    "MovementValidator",
    "QuantityFormatError",
    "ReasonKind",
    "UnitClass",
    "ValidationReason",
    "ValidationResult",
    "format_quantity",
    "insufficient_stock_reasons",
    # Stock Ledger
    "AppliedMovement",
    "ProductLockRegistry",
    "ReversalConflict",
    "StockLedgerApplier",
    "materialize_movement",
    "plan_reversal",
    # Usage analytics
    "UsageAggregator",
    "build_usage_stats",
    "TrendComparator",
    "AnalyticsSummarizer",
    # History
    "DayGroup",
    "ProductTotal",
    "ReportPeriod",
    "compute_statistics",
    "department_totals",
    "group_by_day",
    "period_window",
]
