"""Storage infrastructure implementations."""

from src.infrastructure.storage.sqlite import (
    SQLiteDepartmentStore,
    SQLiteMovementStore,
    SQLiteProductStore,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)

__all__ = [
    # SQLite stores
    "SQLiteProductStore",
    "SQLiteDepartmentStore",
    "SQLiteMovementStore",
    # Connection pool
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
]
