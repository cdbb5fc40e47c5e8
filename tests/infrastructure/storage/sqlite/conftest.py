"""Pytest fixtures for SQLite storage tests."""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

import src.infrastructure.storage.sqlite.connection as conn_module
from src.core.entities.department import Department
from src.core.entities.product import Product
from src.infrastructure.storage.sqlite import (
    SQLiteDepartmentStore,
    SQLiteMovementStore,
    SQLiteProductStore,
    close_pool,
)
from src.infrastructure.storage.sqlite.migrations import initialize_database


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
def mock_settings(temp_db_path: Path):
    """Mock settings with temp database path."""
    mock = MagicMock()
    mock.storage.db_path = temp_db_path
    mock.storage.pool_size = 2
    mock.storage.busy_timeout = 5000
    return mock


@pytest.fixture
async def initialized_db(temp_db_path: Path, mock_settings) -> AsyncGenerator[Path, None]:
    """Migrated temporary database with the global pool pointed at it."""
    results = await initialize_database(temp_db_path, create_backup_before=False)
    assert all(r.success for r in results)

    conn_module._pool = None
    with patch.object(conn_module, "get_settings", return_value=mock_settings):
        try:
            yield temp_db_path
        finally:
            await close_pool()


@pytest.fixture
def product_store(initialized_db) -> SQLiteProductStore:
    return SQLiteProductStore()


@pytest.fixture
def department_store(initialized_db) -> SQLiteDepartmentStore:
    return SQLiteDepartmentStore()


@pytest.fixture
def movement_store(initialized_db) -> SQLiteMovementStore:
    return SQLiteMovementStore()


@pytest.fixture
async def seeded(product_store, department_store) -> dict:
    """Flour (kg), croissants (units) and the pastry department, all at zero stock."""
    flour = await product_store.create_product(
        Product(name="Flour", unit="kg", unit_price=1.2, category="Baking")
    )
    croissant = await product_store.create_product(
        Product(name="Croissant", unit="units", unit_price=0.8)
    )
    pastry = await department_store.create_department(Department(id="pastry", name="Pastry"))
    return {"flour": flour, "croissant": croissant, "pastry": pastry}
