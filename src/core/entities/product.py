"""Product catalog entities."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.core.timestamps import utc_now


class Product(BaseModel):
    """
    A stocked product.

    ``quantity`` is the live stock level. It is only ever changed by applying
    or reversing stock movements, never by catalog edits.
    """

    id: str | None = None
    name: str
    unit: str = "units"
    quantity: float = Field(default=0.0, ge=0)
    unit_price: float = Field(default=0.0, ge=0)
    category: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def total_value(self) -> float:
        """Stock value at the catalog unit price."""
        return self.quantity * self.unit_price

    @property
    def is_out_of_stock(self) -> bool:
        return self.quantity <= 0
