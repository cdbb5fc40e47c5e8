"""Core interfaces (ports) for dependency injection."""

from src.core.interfaces.department_store import IDepartmentStore
from src.core.interfaces.movement_store import (
    AnyMovement,
    IMovementStore,
    MovementFilter,
    MovementPage,
    ReversalPlan,
    StockUpdate,
)
from src.core.interfaces.product_store import IProductStore

__all__ = [
    "IProductStore",
    "IDepartmentStore",
    "IMovementStore",
    "AnyMovement",
    "MovementFilter",
    "MovementPage",
    "ReversalPlan",
    "StockUpdate",
]
