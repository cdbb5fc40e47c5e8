"""Tests for stock movement entities."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from src.core.entities.movement import (
    DistributionMovement,
    MovementType,
    ProductLine,
    StockInMovement,
    ValidatedLine,
    ValidatedMovement,
    stock_movement_adapter,
)


def _line(**overrides) -> ProductLine:
    data = {
        "product_id": "PROD000001",
        "product_name": "Flour",
        "quantity": 25.0,
        "unit": "kg",
        "unit_price": 1.2,
        "previous_stock": 100.0,
        "new_stock": 125.0,
    }
    data.update(overrides)
    return ProductLine(**data)


class TestMovementType:
    def test_sign(self):
        assert MovementType.STOCK_IN.sign == 1
        assert MovementType.DISTRIBUTION.sign == -1


class TestStockInMovement:
    def test_totals(self):
        movement = StockInMovement(
            supplier="Mill Co",
            stock_manager="Ana",
            products=[
                _line(),
                _line(product_id="PROD000002", product_name="Sugar", quantity=10.0,
                      unit_price=2.0, previous_stock=0.0, new_stock=10.0),
            ],
        )
        assert movement.total_items == 35.0
        assert movement.total_value == 50.0
        assert movement.party == "Mill Co"
        assert movement.movement_type is MovementType.STOCK_IN

    def test_ledger_invariant_enforced(self):
        with pytest.raises(ValidationError, match="new_stock"):
            StockInMovement(
                supplier="Mill Co",
                stock_manager="Ana",
                products=[_line(new_stock=120.0)],
            )

    def test_requires_products(self):
        with pytest.raises(ValidationError):
            StockInMovement(supplier="Mill Co", stock_manager="Ana", products=[])

    def test_requires_supplier(self):
        with pytest.raises(ValidationError):
            StockInMovement(supplier="", stock_manager="Ana", products=[_line()])

    def test_frozen(self):
        movement = StockInMovement(supplier="Mill Co", stock_manager="Ana", products=[_line()])
        with pytest.raises(ValidationError):
            movement.notes = "changed"


class TestDistributionMovement:
    def test_negative_result_rejected(self):
        with pytest.raises(ValidationError, match="below zero"):
            DistributionMovement(
                department="pastry",
                stock_manager="Ana",
                products=[_line(quantity=30.0, previous_stock=20.0, new_stock=-10.0)],
            )

    def test_quantity_for_sums_repeated_lines(self):
        movement = DistributionMovement(
            department="pastry",
            stock_manager="Ana",
            products=[
                _line(quantity=10.0, unit_price=None, previous_stock=100.0, new_stock=90.0),
                _line(quantity=5.5, unit_price=None, previous_stock=90.0, new_stock=84.5),
            ],
        )
        assert movement.quantity_for("PROD000001") == 15.5
        assert movement.quantity_for("PROD999999") == 0
        assert movement.product_ids == ["PROD000001"]
        assert movement.total_value is None
        assert movement.party == "pastry"

class TestStockMovementAdapter:
    def test_dispatches_on_type(self):
        movement = stock_movement_adapter.validate_python(
            {
                "id": "MOV000001",
                "type": "distribution",
                "department": "pastry",
                "stock_manager": "Ana",
                "timestamp": {"_seconds": 1760715000, "_nanoseconds": 0},
                "products": [
                    {
                        "product_id": "PROD000001",
                        "product_name": "Flour",
                        "quantity": 5,
                        "unit": "kg",
                        "previous_stock": 10,
                        "new_stock": 5,
                    }
                ],
            }
        )
        assert isinstance(movement, DistributionMovement)
        assert movement.timestamp == datetime.fromtimestamp(1760715000, tz=UTC)

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            stock_movement_adapter.validate_python(
                {"type": "adjustment", "stock_manager": "Ana", "products": []}
            )


class TestValidatedMovement:
    def test_requested_by_product(self):
        movement = ValidatedMovement(
            type=MovementType.DISTRIBUTION,
            department="pastry",
            stock_manager="Ana",
            lines=[
                ValidatedLine(product_id="B", product_name="Sugar", quantity=1.1, unit="kg"),
                ValidatedLine(product_id="A", product_name="Flour", quantity=2.0, unit="kg"),
                ValidatedLine(product_id="B", product_name="Sugar", quantity=2.2, unit="kg"),
            ],
        )
        assert movement.requested_by_product() == {"B": 3.3, "A": 2.0}
        assert list(movement.requested_by_product()) == ["B", "A"]
