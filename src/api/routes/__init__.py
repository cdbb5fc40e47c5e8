"""API route modules."""

from src.api.routes.departments import router as departments_router
from src.api.routes.health import router as health_router
from src.api.routes.movements import router as movements_router
from src.api.routes.products import router as products_router

__all__ = [
    "health_router",
    "movements_router",
    "products_router",
    "departments_router",
]
