"""Pytest configuration for unit tests.

Store doubles keep product stock in a dict so ledger behaviour can be
observed without a database.
"""

from unittest.mock import AsyncMock

import pytest

from src.core.entities.product import Product
from src.core.interfaces import IMovementStore, IProductStore


@pytest.fixture
def stock() -> dict[str, Product]:
    return {
        "PROD000001": Product(id="PROD000001", name="Flour", unit="kg", quantity=0.0, unit_price=1.2),
        "PROD000002": Product(id="PROD000002", name="Croissant", unit="units", quantity=40.0),
    }


@pytest.fixture
def product_store(stock):
    store = AsyncMock(spec=IProductStore)

    async def get_products(product_ids):
        return {pid: stock[pid] for pid in product_ids if pid in stock}

    async def get_product(product_id):
        return stock.get(product_id)

    store.get_products.side_effect = get_products
    store.get_product.side_effect = get_product
    return store


@pytest.fixture
def movement_store(stock):
    """Movement store double that writes line snapshots back to ``stock``."""
    store = AsyncMock(spec=IMovementStore)
    ledger: list = []

    async def create_movement(movement):
        stored = movement.model_copy(update={"id": f"MOV{len(ledger) + 1:06d}"})
        for line in stored.products:
            stock[line.product_id] = stock[line.product_id].model_copy(
                update={"quantity": line.new_stock}
            )
        ledger.append(stored)
        return stored

    async def get_movement(movement_id):
        return next((m for m in ledger if m.id == movement_id), None)

    async def list_movements_after(movement_id, product_ids):
        index = next(i for i, m in enumerate(ledger) if m.id == movement_id)
        return [
            m for m in ledger[index + 1 :] if set(m.product_ids) & set(product_ids)
        ]

    async def delete_movement(plan):
        for update in plan.updates:
            stock[update.product_id] = stock[update.product_id].model_copy(
                update={"quantity": update.new}
            )
        ledger[:] = [m for m in ledger if m.id != plan.movement_id]

    store.create_movement.side_effect = create_movement
    store.get_movement.side_effect = get_movement
    store.list_movements_after.side_effect = list_movements_after
    store.delete_movement.side_effect = delete_movement
    store.ledger = ledger
    return store
