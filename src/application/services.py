"""
Service factory functions for dependency injection.

This module provides factory functions that wire infrastructure
implementations to core services. Use cases should import from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from typing import TYPE_CHECKING

from src.core.services import (
    MovementValidator,
    ProductLockRegistry,
    StockLedgerApplier,
    TrendComparator,
    UsageAggregator,
)

if TYPE_CHECKING:
    from src.core.interfaces import IMovementStore, IProductStore


# Singleton service instances
_lock_registry: ProductLockRegistry | None = None
_movement_validator: MovementValidator | None = None
_stock_ledger: StockLedgerApplier | None = None
_usage_aggregator: UsageAggregator | None = None
_trend_comparator: TrendComparator | None = None


def get_lock_registry() -> ProductLockRegistry:
    """
    Get the process-wide product lock registry.

    Every stock mutation in the process must share it, otherwise two
    movements on the same product are not serialized.
    """
    global _lock_registry
    if _lock_registry is None:
        _lock_registry = ProductLockRegistry()
    return _lock_registry


def get_movement_validator() -> MovementValidator:
    """Get or create the movement validator (unit classes from settings)."""
    global _movement_validator
    if _movement_validator is None:
        _movement_validator = MovementValidator()
    return _movement_validator


async def get_stock_ledger(
    product_store: "IProductStore | None" = None,
    movement_store: "IMovementStore | None" = None,
) -> StockLedgerApplier:
    """
    Get or create StockLedgerApplier.

    Store overrides produce a fresh instance that still shares the
    process-wide lock registry.

    Args:
        product_store: Optional product store override
        movement_store: Optional movement store override

    Returns:
        Configured StockLedgerApplier
    """
    global _stock_ledger

    overridden = product_store is not None or movement_store is not None
    if _stock_ledger is not None and not overridden:
        return _stock_ledger

    # Lazy import infrastructure to avoid circular imports
    from src.infrastructure.storage.sqlite import get_movement_store, get_product_store

    service = StockLedgerApplier(
        product_store=product_store or await get_product_store(),
        movement_store=movement_store or await get_movement_store(),
        locks=get_lock_registry(),
    )

    if not overridden:
        _stock_ledger = service
    return service


async def get_usage_aggregator(
    product_store: "IProductStore | None" = None,
    movement_store: "IMovementStore | None" = None,
) -> UsageAggregator:
    """Get or create UsageAggregator (timezone from settings)."""
    global _usage_aggregator

    overridden = product_store is not None or movement_store is not None
    if _usage_aggregator is not None and not overridden:
        return _usage_aggregator

    from src.infrastructure.storage.sqlite import get_movement_store, get_product_store

    service = UsageAggregator(
        product_store=product_store or await get_product_store(),
        movement_store=movement_store or await get_movement_store(),
    )

    if not overridden:
        _usage_aggregator = service
    return service


def get_trend_comparator() -> TrendComparator:
    """Get or create TrendComparator (threshold from settings)."""
    global _trend_comparator
    if _trend_comparator is None:
        _trend_comparator = TrendComparator()
    return _trend_comparator


def reset_services() -> None:
    """
    Reset all singleton service instances.

    Useful for testing or when configuration changes.
    """
    global _lock_registry
    global _movement_validator
    global _stock_ledger
    global _usage_aggregator
    global _trend_comparator

    _lock_registry = None
    _movement_validator = None
    _stock_ledger = None
    _usage_aggregator = None
    _trend_comparator = None


__all__ = [
    # Factory functions
    "get_lock_registry",
    "get_movement_validator",
    "get_stock_ledger",
    "get_usage_aggregator",
    "get_trend_comparator",
    # Reset
    "reset_services",
]
