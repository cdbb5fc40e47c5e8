"""Tests for DeleteMovementUseCase."""

import pytest

from src.application.use_cases.delete_movement import DeleteMovementUseCase
from src.core.entities.movement import MovementType, ValidatedLine, ValidatedMovement
from src.core.exceptions import MovementNotFoundError, ReversalUnsafeError
from src.core.services import ProductLockRegistry, StockLedgerApplier


@pytest.fixture
def ledger(product_store, movement_store):
    return StockLedgerApplier(product_store, movement_store, ProductLockRegistry())


@pytest.fixture
def use_case(product_store, movement_store, ledger):
    return DeleteMovementUseCase(
        product_store=product_store, movement_store=movement_store, ledger=ledger
    )


def _flour(movement_type: MovementType, quantity: float) -> ValidatedMovement:
    return ValidatedMovement(
        type=movement_type,
        supplier="Acme" if movement_type is MovementType.STOCK_IN else None,
        department="pastry" if movement_type is MovementType.DISTRIBUTION else None,
        stock_manager="Ana",
        lines=[
            ValidatedLine(product_id="PROD000001", product_name="Flour", quantity=quantity, unit="kg")
        ],
    )


class TestDeleteMovementUseCase:
    async def test_delete_distribution_restores_stock(self, use_case, ledger, stock):
        await ledger.apply(_flour(MovementType.STOCK_IN, 50.0))
        applied = await ledger.apply(_flour(MovementType.DISTRIBUTION, 15.0))

        result = await use_case.execute(applied.movement.id)

        assert result.movement.id == "MOV000002"
        assert [p.quantity for p in result.products] == [50.0]
        assert stock["PROD000001"].quantity == 50.0

    async def test_delete_consumed_stock_in_refused(self, use_case, ledger, stock, movement_store):
        receipt = await ledger.apply(_flour(MovementType.STOCK_IN, 50.0))
        await ledger.apply(_flour(MovementType.DISTRIBUTION, 30.0))

        with pytest.raises(ReversalUnsafeError) as exc_info:
            await use_case.execute(receipt.movement.id)

        assert exc_info.value.code == "REVERSAL_UNSAFE"
        assert stock["PROD000001"].quantity == 20.0
        assert len(movement_store.ledger) == 2

    async def test_delete_unknown(self, use_case):
        with pytest.raises(MovementNotFoundError):
            await use_case.execute("MOV999999")

    async def test_check_reports_conflicts(self, use_case, ledger):
        receipt = await ledger.apply(_flour(MovementType.STOCK_IN, 50.0))
        await ledger.apply(_flour(MovementType.DISTRIBUTION, 30.0))

        preview = await use_case.check(receipt.movement.id)

        assert not preview.can_delete
        assert preview.conflicts[0].conflicting_movement_ids == ["MOV000002"]
        assert preview.conflicts[0].product_name == "Flour"
        assert preview.reason

    async def test_check_safe(self, use_case, ledger, movement_store):
        receipt = await ledger.apply(_flour(MovementType.STOCK_IN, 50.0))
        preview = await use_case.check(receipt.movement.id)
        assert preview.can_delete
        assert preview.conflicts == []
        movement_store.delete_movement.assert_not_called()

    async def test_to_response(self, use_case, ledger):
        applied = await ledger.apply(_flour(MovementType.STOCK_IN, 5.0))
        response = use_case.to_response(await use_case.execute(applied.movement.id))
        body = response.model_dump(by_alias=True)
        assert body["movementId"] == "MOV000001"
        assert body["type"] == "stock_in"
        assert body["products"][0]["quantity"] == 0.0
