"""Record Movement Use Case: validate a movement request and apply it to stock."""

from dataclasses import dataclass, field

from src.application.dto.requests import CreateMovementRequest
from src.application.dto.responses import MovementResponse
from src.config import get_logger
from src.core.entities.department import Department
from src.core.entities.product import Product
from src.core.exceptions import MovementValidationError
from src.core.interfaces import AnyMovement, IDepartmentStore, IMovementStore, IProductStore
from src.core.services import MovementValidator, StockLedgerApplier

logger = get_logger(__name__)


@dataclass
class RecordMovementResult:
    """Result of recording a movement."""

    movement: AnyMovement
    products: list[Product] = field(default_factory=list)


class RecordMovementUseCase:
    """Validate, then apply a stock-in or distribution."""

    def __init__(
        self,
        product_store: IProductStore | None = None,
        department_store: IDepartmentStore | None = None,
        movement_store: IMovementStore | None = None,
        validator: MovementValidator | None = None,
        ledger: StockLedgerApplier | None = None,
    ):
        self._product_store = product_store
        self._department_store = department_store
        self._movement_store = movement_store
        self._validator = validator
        self._ledger = ledger

    async def _get_product_store(self) -> IProductStore:
        if self._product_store is None:
            from src.infrastructure.storage.sqlite import get_product_store

            self._product_store = await get_product_store()
        return self._product_store

    async def _get_department_store(self) -> IDepartmentStore:
        if self._department_store is None:
            from src.infrastructure.storage.sqlite import get_department_store

            self._department_store = await get_department_store()
        return self._department_store

    def _get_validator(self) -> MovementValidator:
        if self._validator is None:
            from src.application.services import get_movement_validator

            self._validator = get_movement_validator()
        return self._validator

    async def _get_ledger(self) -> StockLedgerApplier:
        if self._ledger is None:
            from src.application.services import get_stock_ledger

            self._ledger = await get_stock_ledger(
                product_store=self._product_store,
                movement_store=self._movement_store,
            )
        return self._ledger

    async def execute(self, request: CreateMovementRequest) -> RecordMovementResult:
        """
        Record a movement.

        Raises:
            MovementValidationError: with every reason of the failing category.
            ConcurrencyConflictError: if stock changed while applying.
        """
        draft = request.to_draft()
        logger.info(
            "record_movement_started",
            type=draft.type.value,
            lines=len(draft.products),
        )

        product_ids = list(
            dict.fromkeys(
                line.product_id.strip() for line in draft.products if line.product_id
            )
        )
        products = await (await self._get_product_store()).get_products(product_ids)

        departments: dict[str, Department] = {}
        department_id = (draft.department or "").strip()
        if department_id:
            department = await (await self._get_department_store()).get_department(department_id)
            if department is not None:
                departments[department_id] = department

        result = self._get_validator().validate(draft, products, departments)
        if not result.ok:
            logger.warning(
                "movement_validation_failed",
                type=draft.type.value,
                reasons=[r.reason_kind.value for r in result.reasons],
            )
            raise MovementValidationError(result.reasons)

        applied = await (await self._get_ledger()).apply(result.movement)

        logger.info(
            "record_movement_complete",
            movement_id=applied.movement.id,
            total_items=applied.movement.total_items,
        )
        return RecordMovementResult(movement=applied.movement, products=applied.products)

    def to_response(self, result: RecordMovementResult) -> MovementResponse:
        """Convert result to API response."""
        return MovementResponse.from_entity(result.movement)
