"""
Stock Ledger.

Applies validated movements to product stock and plans movement reversals.

All stock mutation for a product goes through a per-product lock, so
concurrent movements touching the same product are serialized within the
process. Across processes, the store's conditional writes reject any stock
that changed after it was read and the whole movement is rolled back.
"""

import asyncio
from collections.abc import AsyncIterator, Iterable, Mapping
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass, field

from src.config.logging import get_logger
from src.core.entities.movement import (
    STOCK_PRECISION,
    DistributionMovement,
    MovementType,
    ProductLine,
    StockInMovement,
    ValidatedMovement,
)
from src.core.entities.product import Product
from src.core.exceptions import (
    MovementNotFoundError,
    MovementValidationError,
    ProductNotFoundError,
    ReversalUnsafeError,
)
from src.core.interfaces.movement_store import (
    AnyMovement,
    IMovementStore,
    ReversalPlan,
    StockUpdate,
)
from src.core.interfaces.product_store import IProductStore
from src.core.services.movement_validator import (
    format_quantity,
    insufficient_stock_reasons,
)
from src.core.timestamps import utc_now

logger = get_logger(__name__)


class ProductLockRegistry:
    """Per-product asyncio locks, acquired in sorted product-id order."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._loop: asyncio.AbstractEventLoop | None = None

    def lock_for(self, product_id: str) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if loop is not self._loop:
            # Locks are bound to the loop they first wait on
            self._loop = loop
            self._locks = {}
        return self._locks.setdefault(product_id, asyncio.Lock())

    @asynccontextmanager
    async def hold(self, product_ids: Iterable[str]) -> AsyncIterator[None]:
        """Hold the locks of every given product for the duration of the block."""
        async with AsyncExitStack() as stack:
            for product_id in sorted(set(product_ids)):
                await stack.enter_async_context(self.lock_for(product_id))
            yield


@dataclass
class AppliedMovement:
    """A stored movement and the product stock it left behind."""

    movement: AnyMovement
    products: list[Product] = field(default_factory=list)


@dataclass
class ReversalConflict:
    """A product whose stock would go negative if a movement were removed."""

    product_id: str
    product_name: str
    unit: str
    quantity_removed: float
    lowest_balance: float
    conflicting_movement_ids: list[str]

    @property
    def message(self) -> str:
        ids = ", ".join(self.conflicting_movement_ids) or "current stock"
        return (
            f"{self.product_name}: removing {format_quantity(self.quantity_removed)} "
            f"{self.unit} would leave stock at "
            f"{format_quantity(self.lowest_balance - self.quantity_removed)} after {ids}"
        )

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity_removed": self.quantity_removed,
            "lowest_balance": self.lowest_balance,
            "conflicting_movement_ids": self.conflicting_movement_ids,
            "message": self.message,
        }


def materialize_movement(
    validated: ValidatedMovement, current_stock: Mapping[str, float]
) -> AnyMovement:
    """
    Build the persisted movement, snapshotting stock line by line.

    Lines naming the same product chain: the second line's previous stock is
    the first line's new stock.
    """
    sign = validated.type.sign
    running = dict(current_stock)
    lines = []
    for line in validated.lines:
        previous = running[line.product_id]
        new = round(previous + sign * line.quantity, STOCK_PRECISION)
        running[line.product_id] = new
        lines.append(
            ProductLine(
                product_id=line.product_id,
                product_name=line.product_name,
                quantity=line.quantity,
                unit=line.unit,
                unit_price=line.unit_price if validated.type is MovementType.STOCK_IN else None,
                previous_stock=previous,
                new_stock=new,
            )
        )

    common = {
        "timestamp": validated.timestamp,
        "stock_manager": validated.stock_manager,
        "notes": validated.notes,
        "products": lines,
    }
    if validated.type is MovementType.STOCK_IN:
        return StockInMovement(supplier=validated.supplier, **common)
    return DistributionMovement(department=validated.department, **common)


def plan_reversal(
    movement: AnyMovement,
    later_movements: list[AnyMovement],
    current_stock: Mapping[str, float],
) -> ReversalPlan:
    """
    Plan the stock writes that undo ``movement``.

    Removing a stock-in lowers every balance recorded after it by the received
    quantity. The removal is unsafe when any of those balances (including the
    current stock) is smaller than that quantity. Removing a distribution only
    adds stock back and is always safe.

    Args:
        movement: Movement to remove.
        later_movements: Movements recorded after it touching its products,
            oldest first.
        current_stock: Current stock per product.

    Raises:
        ReversalUnsafeError: listing every conflicting product.
    """
    conflicts: list[ReversalConflict] = []
    updates: list[StockUpdate] = []

    for product_id in sorted(movement.product_ids):
        delta = movement.movement_type.sign * movement.quantity_for(product_id)
        current = current_stock[product_id]

        if delta > 0:
            # Walk back from current stock to the balance after each later movement
            balance = current
            lowest = current
            offending: list[str] = []
            for later in reversed(later_movements):
                later_delta = later.movement_type.sign * later.quantity_for(product_id)
                if later_delta == 0:
                    continue
                if balance < delta:
                    offending.append(later.id)
                lowest = min(lowest, balance)
                balance = round(balance - later_delta, STOCK_PRECISION)

            if lowest < delta:
                line = next(li for li in movement.products if li.product_id == product_id)
                conflicts.append(
                    ReversalConflict(
                        product_id=product_id,
                        product_name=line.product_name,
                        unit=line.unit,
                        quantity_removed=delta,
                        lowest_balance=lowest,
                        conflicting_movement_ids=list(reversed(offending)),
                    )
                )
                continue

        updates.append(
            StockUpdate(
                product_id=product_id,
                expected=current,
                new=round(current - delta, STOCK_PRECISION),
            )
        )

    if conflicts:
        raise ReversalUnsafeError(
            movement_id=movement.id,
            conflicts=[c.to_dict() for c in conflicts],
        )

    return ReversalPlan(movement_id=movement.id, updates=updates)


class StockLedgerApplier:
    """Applies and reverses movements against product stock."""

    def __init__(
        self,
        product_store: IProductStore,
        movement_store: IMovementStore,
        locks: ProductLockRegistry | None = None,
    ):
        self._product_store = product_store
        self._movement_store = movement_store
        self._locks = locks or ProductLockRegistry()

    async def apply(self, validated: ValidatedMovement) -> AppliedMovement:
        """
        Apply a validated movement.

        Stock is re-read under the product locks; a distribution that the
        current stock can no longer cover is rejected with the same reasons
        the validator would give.

        Raises:
            ProductNotFoundError: if a product disappeared.
            MovementValidationError: if stock became insufficient.
            ConcurrencyConflictError: if stock changed outside this process.
        """
        requested = validated.requested_by_product()

        async with self._locks.hold(requested):
            products = await self._current_products(list(requested))

            if validated.type is MovementType.DISTRIBUTION:
                reasons = insufficient_stock_reasons(requested, products)
                if reasons:
                    logger.warning(
                        "movement_rejected_insufficient_stock",
                        products=[r.product_name for r in reasons],
                    )
                    raise MovementValidationError(reasons)

            movement = materialize_movement(
                validated, {pid: p.quantity for pid, p in products.items()}
            )
            stored = await self._movement_store.create_movement(movement)

        now = utc_now()
        final_stock = {line.product_id: line.new_stock for line in stored.products}
        updated = [
            products[pid].model_copy(update={"quantity": qty, "updated_at": now})
            for pid, qty in final_stock.items()
        ]

        logger.info(
            "movement_applied",
            movement_id=stored.id,
            type=stored.type,
            lines=len(stored.products),
            total_items=stored.total_items,
        )
        return AppliedMovement(movement=stored, products=updated)

    async def check_reversal(self, movement_id: str) -> ReversalPlan:
        """
        Plan the removal of a movement without writing anything.

        Raises:
            MovementNotFoundError: if the movement does not exist.
            ReversalUnsafeError: if removal would drive stock negative.
        """
        movement = await self._get_movement(movement_id)
        return await self._plan(movement)

    async def reverse(self, movement_id: str) -> AnyMovement:
        """
        Remove a movement and undo its stock effect atomically.

        Raises:
            MovementNotFoundError: if the movement does not exist.
            ReversalUnsafeError: if removal would drive stock negative.
            ConcurrencyConflictError: if stock changed outside this process.
        """
        movement = await self._get_movement(movement_id)

        async with self._locks.hold(movement.product_ids):
            plan = await self._plan(movement)
            await self._movement_store.delete_movement(plan)

        logger.info(
            "movement_reversed",
            movement_id=movement_id,
            type=movement.type,
            products=len(plan.updates),
        )
        return movement

    async def _get_movement(self, movement_id: str) -> AnyMovement:
        movement = await self._movement_store.get_movement(movement_id)
        if movement is None:
            raise MovementNotFoundError(movement_id)
        return movement

    async def _plan(self, movement: AnyMovement) -> ReversalPlan:
        products = await self._current_products(movement.product_ids)
        later = await self._movement_store.list_movements_after(
            movement.id, movement.product_ids
        )
        return plan_reversal(
            movement, later, {pid: p.quantity for pid, p in products.items()}
        )

    async def _current_products(self, product_ids: list[str]) -> dict[str, Product]:
        products = await self._product_store.get_products(product_ids)
        for product_id in product_ids:
            if product_id not in products:
                raise ProductNotFoundError(product_id)
        return products
