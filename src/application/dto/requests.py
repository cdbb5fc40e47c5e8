"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.

Bodies use camelCase keys; snake_case is accepted as well.
"""

from datetime import datetime
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)
from pydantic.alias_generators import to_camel

from src.core.entities.movement import DraftLine, MovementDraft, MovementType
from src.core.timestamps import normalize_timestamp


class CamelModel(BaseModel):
    """Base for DTOs exchanged as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MovementLineRequest(CamelModel):
    """One product line of a movement request.

    Quantity is passed through unparsed; the movement validator owns parsing.
    """

    product_id: str | None = Field(default=None, examples=["PROD000001"])
    product_name: str | None = Field(default=None, examples=["Flour"])
    # Strict so that JSON booleans are rejected rather than read as 1 or 0
    quantity: StrictStr | StrictInt | StrictFloat | None = Field(
        default=None,
        description="Quantity as entered; '2,5' and '2.5' are both accepted for kg-like units",
        examples=["25", "2.5"],
    )
    unit: str | None = Field(default=None, examples=["kg", "units"])
    unit_price: float | None = Field(
        default=None,
        ge=0,
        description="Purchase price per unit (stock in only); defaults to the catalog price",
    )

    def to_draft(self) -> DraftLine:
        return DraftLine(
            product_id=self.product_id,
            product_name=self.product_name,
            quantity=self.quantity,
            unit=self.unit,
            unit_price=self.unit_price,
        )


class CreateMovementRequest(CamelModel):
    """Request to record a stock movement."""

    type: MovementType = Field(..., description="stock_in or distribution")
    supplier: str | None = Field(default=None, description="Supplier (stock in)")
    department: str | None = Field(
        default=None,
        description="Department id (distribution); an {id, name} object is also accepted",
        examples=["pastry", "DEPT000001"],
    )
    stock_manager: str = Field(..., min_length=1, description="Who recorded the movement")
    notes: str | None = Field(default=None, max_length=1000)
    timestamp: datetime | None = Field(
        default=None,
        description="ISO-8601 or {_seconds, _nanoseconds}; defaults to now",
    )
    products: list[MovementLineRequest] = Field(default_factory=list)

    @field_validator("department", mode="before")
    @classmethod
    def normalize_department(cls, v: Any) -> Any:
        """Reduce an ``{id, name}`` department to its id."""
        if isinstance(v, dict):
            return v.get("id")
        return v

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_timestamp(cls, v: Any) -> datetime | None:
        if v is None or v == "":
            return None
        return normalize_timestamp(v)

    def to_draft(self) -> MovementDraft:
        return MovementDraft(
            type=self.type,
            supplier=self.supplier,
            department=self.department,
            stock_manager=self.stock_manager.strip(),
            notes=self.notes,
            timestamp=self.timestamp,
            products=[line.to_draft() for line in self.products],
        )


class CreateProductRequest(CamelModel):
    """Request to add a product to the catalog. Stock always starts at zero."""

    name: str = Field(..., min_length=1, max_length=200, examples=["Flour"])
    unit: str = Field(default="units", min_length=1, examples=["kg", "units"])
    unit_price: float = Field(default=0.0, ge=0)
    category: str | None = Field(default=None, examples=["Baking"])

    @field_validator("name", "unit")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class UpdateProductRequest(CamelModel):
    """Partial catalog update. Stock cannot be edited here."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    unit: str | None = Field(default=None, min_length=1)
    unit_price: float | None = Field(default=None, ge=0)
    category: str | None = None

    @field_validator("name", "unit")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class CreateDepartmentRequest(CamelModel):
    """Request to create a department."""

    id: str | None = Field(
        default=None,
        pattern=r"^[a-z0-9][a-z0-9_-]*$",
        description="Optional slug id; generated as DEPT000001 when omitted",
        examples=["pastry"],
    )
    name: str = Field(..., min_length=1, max_length=100, examples=["Pastry"])
    description: str = Field(default="", max_length=500)
    icon: str | None = None
    color: str | None = Field(default=None, examples=["#E91E63"])
