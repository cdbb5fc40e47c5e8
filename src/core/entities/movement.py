"""Stock movement domain entities.

A movement is a tagged variant over ``type``: a ``stock_in`` carries the
supplier, a ``distribution`` carries the receiving department. Persisted
movements are frozen; every line holds the stock snapshot taken when the
movement was applied.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from src.core.timestamps import normalize_timestamp, utc_now

# Quantities carry at most two decimals
STOCK_PRECISION = 2
_TOLERANCE = 0.5 * 10**-STOCK_PRECISION


class MovementType(str, Enum):
    """Types of stock movements."""

    STOCK_IN = "stock_in"
    DISTRIBUTION = "distribution"

    @property
    def sign(self) -> int:
        """+1 when the movement adds stock, -1 when it removes stock."""
        return 1 if self is MovementType.STOCK_IN else -1


class ProductLine(BaseModel):
    """One product inside a movement, with its before/after stock snapshot."""

    model_config = ConfigDict(frozen=True)

    product_id: str
    product_name: str  # snapshot at creation time
    quantity: float = Field(gt=0)
    unit: str
    unit_price: float | None = None  # stock_in only
    previous_stock: float
    new_stock: float

    @property
    def line_value(self) -> float:
        return self.quantity * (self.unit_price or 0.0)


class _MovementBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str | None = None
    timestamp: datetime = Field(default_factory=utc_now)
    stock_manager: str
    notes: str | None = None
    products: list[ProductLine] = Field(min_length=1)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _normalize_timestamp(cls, v: object) -> datetime:
        return normalize_timestamp(v)

    @property
    def movement_type(self) -> MovementType:
        return MovementType(self.type)  # type: ignore[attr-defined]

    @property
    def total_items(self) -> float:
        return round(sum(line.quantity for line in self.products), STOCK_PRECISION)

    @property
    def product_ids(self) -> list[str]:
        """Distinct product ids in line order."""
        return list(dict.fromkeys(line.product_id for line in self.products))

    def quantity_for(self, product_id: str) -> float:
        """Total quantity this movement moves for one product."""
        return round(
            sum(line.quantity for line in self.products if line.product_id == product_id),
            STOCK_PRECISION,
        )

    @model_validator(mode="after")
    def _check_ledger_invariant(self):
        """Every line must satisfy new = previous +/- quantity and stay >= 0."""
        sign = self.movement_type.sign
        for line in self.products:
            expected = line.previous_stock + sign * line.quantity
            if abs(line.new_stock - expected) > _TOLERANCE:
                raise ValueError(
                    f"Line for {line.product_id}: new_stock {line.new_stock} != "
                    f"previous_stock {line.previous_stock} {'+' if sign > 0 else '-'} "
                    f"{line.quantity}"
                )
            if line.new_stock < 0:
                raise ValueError(f"Line for {line.product_id}: new_stock below zero")
        return self


class StockInMovement(_MovementBase):
    """Stock received from a supplier."""

    type: Literal["stock_in"] = "stock_in"
    supplier: str = Field(min_length=1)

    @property
    def total_value(self) -> float:
        return round(sum(line.line_value for line in self.products), STOCK_PRECISION)

    @property
    def party(self) -> str:
        return self.supplier


class DistributionMovement(_MovementBase):
    """Stock handed out to a department."""

    type: Literal["distribution"] = "distribution"
    department: str = Field(min_length=1)  # department id

    @property
    def total_value(self) -> None:
        return None

    @property
    def party(self) -> str:
        return self.department


StockMovement = Annotated[
    StockInMovement | DistributionMovement,
    Field(discriminator="type"),
]

stock_movement_adapter: TypeAdapter[StockInMovement | DistributionMovement] = TypeAdapter(
    StockMovement
)


# --- Movement input ---


class DraftLine(BaseModel):
    """A product line as submitted; quantity is still raw input."""

    product_id: str | None = None
    product_name: str | None = None
    quantity: str | int | float | None = None
    unit: str | None = None
    unit_price: float | None = None


class MovementDraft(BaseModel):
    """A proposed movement before validation."""

    type: MovementType
    supplier: str | None = None
    department: str | None = None
    stock_manager: str
    notes: str | None = None
    timestamp: datetime | None = None
    products: list[DraftLine] = Field(default_factory=list)


class ValidatedLine(BaseModel):
    """A line that passed validation, with its quantity parsed."""

    product_id: str
    product_name: str
    quantity: float
    unit: str
    unit_price: float | None = None


class ValidatedMovement(BaseModel):
    """Output of the movement validator; input of the ledger applier."""

    type: MovementType
    supplier: str | None = None
    department: str | None = None
    stock_manager: str
    notes: str | None = None
    timestamp: datetime = Field(default_factory=utc_now)
    lines: list[ValidatedLine]

    def requested_by_product(self) -> dict[str, float]:
        """Summed quantity per product id, in first-seen order."""
        totals: dict[str, float] = {}
        for line in self.lines:
            totals[line.product_id] = round(
                totals.get(line.product_id, 0.0) + line.quantity, STOCK_PRECISION
            )
        return totals
