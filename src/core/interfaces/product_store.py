"""Abstract interface for product storage."""

from abc import ABC, abstractmethod

from src.core.entities.product import Product


class IProductStore(ABC):
    """Interface for the product catalog.

    Stock levels are read through this interface but written only by the
    movement store, inside the same transaction as the movement itself.
    """

    @abstractmethod
    async def create_product(self, product: Product) -> Product:
        """Create a new product (stock starts at zero)."""
        pass

    @abstractmethod
    async def get_product(self, product_id: str) -> Product | None:
        """Get product by ID."""
        pass

    @abstractmethod
    async def get_products(self, product_ids: list[str]) -> dict[str, Product]:
        """Get several products at once, keyed by ID. Unknown IDs are omitted."""
        pass

    @abstractmethod
    async def update_product(self, product: Product) -> Product:
        """Update catalog fields (name, unit, price, category); never quantity."""
        pass

    @abstractmethod
    async def list_products(
        self, limit: int = 100, offset: int = 0, search: str | None = None
    ) -> list[Product]:
        """List products ordered by name."""
        pass

    @abstractmethod
    async def list_low_stock(
        self, threshold: float = 10.0, limit: int = 100
    ) -> list[Product]:
        """List products whose quantity is at or below the threshold."""
        pass
