"""Tests for RecordMovementUseCase."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.application.dto.requests import CreateMovementRequest
from src.application.use_cases.record_movement import RecordMovementUseCase
from src.core.entities.department import Department
from src.core.exceptions import MovementValidationError
from src.core.interfaces import IDepartmentStore
from src.core.services import MovementValidator, ProductLockRegistry, StockLedgerApplier


@pytest.fixture
def department_store():
    store = AsyncMock(spec=IDepartmentStore)
    departments = {"pastry": Department(id="pastry", name="Pastry")}

    async def get_department(department_id):
        return departments.get(department_id)

    store.get_department.side_effect = get_department
    return store


@pytest.fixture
def use_case(product_store, department_store, movement_store):
    return RecordMovementUseCase(
        product_store=product_store,
        department_store=department_store,
        movement_store=movement_store,
        validator=MovementValidator(count_units=["units"], continuous_units=["kg"]),
        ledger=StockLedgerApplier(product_store, movement_store, ProductLockRegistry()),
    )


def _stock_in(quantity="50", product_id="PROD000001", unit="kg") -> CreateMovementRequest:
    return CreateMovementRequest.model_validate(
        {
            "type": "stock_in",
            "supplier": "Acme",
            "stockManager": "Ana",
            "products": [{"productId": product_id, "quantity": quantity, "unit": unit}],
        }
    )


def _distribution(quantity, product_id="PROD000001", unit="kg", department="pastry"):
    return CreateMovementRequest.model_validate(
        {
            "type": "distribution",
            "department": department,
            "stockManager": "Ana",
            "products": [{"productId": product_id, "quantity": quantity, "unit": unit}],
        }
    )


class TestRecordMovementUseCase:
    async def test_scenarios_a_b_c(self, use_case, stock, movement_store):
        """Receive 50, refuse 60, then hand out 15."""
        received = await use_case.execute(_stock_in("50"))
        line = received.movement.products[0]
        assert (line.previous_stock, line.new_stock) == (0.0, 50.0)
        assert received.movement.supplier == "Acme"
        assert line.unit_price == 1.2

        with pytest.raises(MovementValidationError) as exc_info:
            await use_case.execute(_distribution("60"))
        assert exc_info.value.errors == [
            "Insufficient stock for Flour: 50 kg available, 60 requested"
        ]
        assert stock["PROD000001"].quantity == 50.0

        handed_out = await use_case.execute(_distribution("15"))
        assert handed_out.movement.department == "pastry"
        assert handed_out.products[0].quantity == 35.0
        assert len(movement_store.ledger) == 2

    async def test_decimal_comma_accepted(self, use_case, stock):
        await use_case.execute(_stock_in("2,5"))
        assert stock["PROD000001"].quantity == 2.5

    async def test_department_object_reduced_to_id(self, use_case, stock):
        request = _distribution("4", product_id="PROD000002", unit="units",
                                department={"id": "pastry", "name": "Pastry"})
        result = await use_case.execute(request)
        assert result.movement.department == "pastry"
        assert stock["PROD000002"].quantity == 36.0

    async def test_unknown_department(self, use_case, movement_store):
        with pytest.raises(MovementValidationError) as exc_info:
            await use_case.execute(_distribution("1", department="bakery"))
        assert exc_info.value.reasons[0].reason_kind.value == "unknown_department"
        movement_store.create_movement.assert_not_called()

    async def test_fractional_count_rejected(self, use_case):
        with pytest.raises(MovementValidationError) as exc_info:
            await use_case.execute(_stock_in("1.5", product_id="PROD000002", unit="units"))
        assert exc_info.value.reasons[0].reason_kind.value == "fractional_count"

    async def test_unknown_product(self, use_case):
        with pytest.raises(MovementValidationError) as exc_info:
            await use_case.execute(_stock_in(product_id="PROD000404"))
        assert exc_info.value.reasons[0].reason_kind.value == "unknown_product"

    async def test_scenario_f_concurrent_requests(self, use_case, stock):
        results = await asyncio.gather(
            use_case.execute(_distribution("30", product_id="PROD000002", unit="units")),
            use_case.execute(_distribution("30", product_id="PROD000002", unit="units")),
            return_exceptions=True,
        )
        assert sum(isinstance(r, MovementValidationError) for r in results) == 1
        assert stock["PROD000002"].quantity == 10.0

    async def test_to_response(self, use_case):
        result = await use_case.execute(_stock_in("5"))
        response = use_case.to_response(result)
        body = response.model_dump(by_alias=True)
        assert body["id"] == "MOV000001"
        assert body["totalItems"] == 5.0
        assert body["totalValue"] == 6.0
        assert body["products"][0]["newStock"] == 5.0
