"""Delete Movement Use Case: remove a movement and undo its stock effect."""

from dataclasses import dataclass, field

from src.application.dto.responses import (
    CanDeleteResponse,
    DeleteMovementResponse,
    ProductResponse,
    ReversalConflictResponse,
)
from src.config import get_logger
from src.core.entities.product import Product
from src.core.exceptions import ReversalUnsafeError
from src.core.interfaces import AnyMovement, IMovementStore, IProductStore
from src.core.services import StockLedgerApplier

logger = get_logger(__name__)


@dataclass
class DeleteMovementResult:
    """The removed movement and the stock it left behind."""

    movement: AnyMovement
    products: list[Product] = field(default_factory=list)


class DeleteMovementUseCase:
    """Delete a movement, refusing when stock would go negative."""

    def __init__(
        self,
        product_store: IProductStore | None = None,
        movement_store: IMovementStore | None = None,
        ledger: StockLedgerApplier | None = None,
    ):
        self._product_store = product_store
        self._movement_store = movement_store
        self._ledger = ledger

    async def _get_product_store(self) -> IProductStore:
        if self._product_store is None:
            from src.infrastructure.storage.sqlite import get_product_store

            self._product_store = await get_product_store()
        return self._product_store

    async def _get_ledger(self) -> StockLedgerApplier:
        if self._ledger is None:
            from src.application.services import get_stock_ledger

            self._ledger = await get_stock_ledger(
                product_store=self._product_store,
                movement_store=self._movement_store,
            )
        return self._ledger

    async def execute(self, movement_id: str) -> DeleteMovementResult:
        """
        Delete a movement.

        Raises:
            MovementNotFoundError: if the movement does not exist.
            ReversalUnsafeError: if a later balance would drop below zero.
            ConcurrencyConflictError: if stock changed while deleting.
        """
        logger.info("delete_movement_started", movement_id=movement_id)

        movement = await (await self._get_ledger()).reverse(movement_id)
        products = await (await self._get_product_store()).get_products(movement.product_ids)

        logger.info("delete_movement_complete", movement_id=movement_id)
        return DeleteMovementResult(
            movement=movement,
            products=[products[pid] for pid in movement.product_ids if pid in products],
        )

    async def check(self, movement_id: str) -> CanDeleteResponse:
        """
        Preview whether a movement can be deleted.

        Raises:
            MovementNotFoundError: if the movement does not exist.
        """
        try:
            await (await self._get_ledger()).check_reversal(movement_id)
        except ReversalUnsafeError as e:
            return CanDeleteResponse(
                movement_id=movement_id,
                can_delete=False,
                reason=e.message,
                conflicts=[ReversalConflictResponse(**c) for c in e.conflicts],
            )
        return CanDeleteResponse(movement_id=movement_id, can_delete=True)

    def to_response(self, result: DeleteMovementResult) -> DeleteMovementResponse:
        """Convert result to API response."""
        return DeleteMovementResponse(
            movement_id=result.movement.id,
            type=result.movement.type,
            products=[ProductResponse.from_entity(p) for p in result.products],
        )
