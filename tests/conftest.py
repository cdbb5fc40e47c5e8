"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.api.main import app
from src.core.entities.department import Department
from src.core.entities.movement import (
    DistributionMovement,
    ProductLine,
    StockInMovement,
)
from src.core.entities.product import Product

# Mid-month reference instant used by time-dependent tests
FIXED_NOW = datetime(2025, 10, 17, 15, 30, tzinfo=UTC)


@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def flour() -> Product:
    return Product(id="PROD000001", name="Flour", unit="kg", quantity=100.0, unit_price=1.2)


@pytest.fixture
def croissant() -> Product:
    return Product(id="PROD000002", name="Croissant", unit="units", quantity=40.0, unit_price=0.8)


@pytest.fixture
def pastry() -> Department:
    return Department(id="pastry", name="Pastry", color="#E91E63")


def make_stock_in(
    movement_id: str,
    product: Product,
    quantity: float,
    previous: float,
    timestamp: datetime = FIXED_NOW,
    supplier: str = "Mill Co",
) -> StockInMovement:
    """Build a stored stock in of a single product."""
    return StockInMovement(
        id=movement_id,
        supplier=supplier,
        stock_manager="Ana",
        timestamp=timestamp,
        products=[
            ProductLine(
                product_id=product.id,
                product_name=product.name,
                quantity=quantity,
                unit=product.unit,
                unit_price=product.unit_price,
                previous_stock=previous,
                new_stock=round(previous + quantity, 2),
            )
        ],
    )


def make_distribution(
    movement_id: str,
    product: Product,
    quantity: float,
    previous: float,
    timestamp: datetime = FIXED_NOW,
    department: str = "pastry",
) -> DistributionMovement:
    """Build a stored distribution of a single product."""
    return DistributionMovement(
        id=movement_id,
        department=department,
        stock_manager="Ana",
        timestamp=timestamp,
        products=[
            ProductLine(
                product_id=product.id,
                product_name=product.name,
                quantity=quantity,
                unit=product.unit,
                previous_stock=previous,
                new_stock=round(previous - quantity, 2),
            )
        ],
    )


@pytest.fixture
def stock_in_factory():
    """Factory for stored single-line stock ins."""
    return make_stock_in


@pytest.fixture
def distribution_factory():
    """Factory for stored single-line distributions."""
    return make_distribution
