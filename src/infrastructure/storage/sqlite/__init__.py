"""SQLite storage implementations."""

from src.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)
from src.infrastructure.storage.sqlite.department_store import SQLiteDepartmentStore
from src.infrastructure.storage.sqlite.movement_store import SQLiteMovementStore
from src.infrastructure.storage.sqlite.product_store import SQLiteProductStore

# Singleton instances
_product_store: SQLiteProductStore | None = None
_department_store: SQLiteDepartmentStore | None = None
_movement_store: SQLiteMovementStore | None = None


async def get_product_store() -> SQLiteProductStore:
    """Get singleton product store instance."""
    global _product_store
    if _product_store is None:
        _product_store = SQLiteProductStore()
    return _product_store


async def get_department_store() -> SQLiteDepartmentStore:
    """Get singleton department store instance."""
    global _department_store
    if _department_store is None:
        _department_store = SQLiteDepartmentStore()
    return _department_store


async def get_movement_store() -> SQLiteMovementStore:
    """Get singleton movement store instance."""
    global _movement_store
    if _movement_store is None:
        _movement_store = SQLiteMovementStore()
    return _movement_store


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    # Store classes
    "SQLiteProductStore",
    "SQLiteDepartmentStore",
    "SQLiteMovementStore",
    # Factory functions
    "get_product_store",
    "get_department_store",
    "get_movement_store",
]
