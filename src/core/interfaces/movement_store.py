"""Abstract interface for stock movement storage."""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime

from pydantic import BaseModel, Field

from src.core.entities.movement import (
    DistributionMovement,
    MovementType,
    StockInMovement,
)

AnyMovement = StockInMovement | DistributionMovement


class MovementFilter(BaseModel):
    """Filter and pagination for movement listings. ``None`` means no filter."""

    type: MovementType | None = None
    department: str | None = None
    product_id: str | None = None
    start: datetime | None = None  # inclusive
    end: datetime | None = None  # inclusive
    search: str | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class MovementPage:
    """One page of movements, newest first."""

    items: list[AnyMovement]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


@dataclass(frozen=True)
class StockUpdate:
    """Conditional stock write: only applies while stock still equals ``expected``."""

    product_id: str
    expected: float
    new: float


@dataclass
class ReversalPlan:
    """Stock writes that undo a movement's effect, in product-id order."""

    movement_id: str
    updates: list[StockUpdate] = field(default_factory=list)


class IMovementStore(ABC):
    """Interface for the movement ledger.

    ``create_movement`` and ``delete_movement`` change product stock and the
    ledger in a single transaction. Each stock write is conditional on the
    stock the caller read; if any product no longer matches, the whole
    transaction is rolled back and ``ConcurrencyConflictError`` is raised.
    """

    @abstractmethod
    async def create_movement(self, movement: AnyMovement) -> AnyMovement:
        """Persist a materialized movement and apply its line snapshots to stock."""
        pass

    @abstractmethod
    async def get_movement(self, movement_id: str) -> AnyMovement | None:
        """Get movement by ID."""
        pass

    @abstractmethod
    async def list_movements(self, movement_filter: MovementFilter) -> MovementPage:
        """List movements, newest first (timestamp, then ID)."""
        pass

    @abstractmethod
    async def delete_movement(self, plan: ReversalPlan) -> None:
        """Remove a movement and apply its reversal stock writes."""
        pass

    @abstractmethod
    async def list_distributions(
        self, product_id: str, start: datetime, end: datetime
    ) -> list[DistributionMovement]:
        """Distributions containing the product with ``start <= timestamp < end``,
        oldest first."""
        pass

    @abstractmethod
    async def list_movements_after(
        self, movement_id: str, product_ids: list[str]
    ) -> list[AnyMovement]:
        """Movements recorded after the given one (ledger order) that touch any
        of the products, oldest first."""
        pass

    @abstractmethod
    async def has_movements(self, product_id: str) -> bool:
        """Whether any recorded movement has a line for the product."""
        pass

    @abstractmethod
    async def list_between(
        self, start: datetime | None, end: datetime
    ) -> list[AnyMovement]:
        """All movements with ``start <= timestamp <= end``, newest first."""
        pass
