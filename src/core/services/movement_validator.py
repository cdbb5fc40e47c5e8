"""
Movement Validator.

Pure validation of a proposed stock movement against a snapshot of the
referenced products and departments. This is the single place where raw
quantity input is parsed into numbers.

Checks run category by category. The first category that fails stops the
validation, but every failure inside that category is reported, so a caller
can flag all offending product lines in one round trip.
"""

import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum

from src.config import get_settings
from src.core.entities.department import Department
from src.core.entities.movement import (
    STOCK_PRECISION,
    DraftLine,
    MovementDraft,
    MovementType,
    ValidatedLine,
    ValidatedMovement,
)
from src.core.entities.product import Product
from src.core.timestamps import utc_now

# optional minus, integer part, optional single decimal separator + fraction
_QUANTITY_PATTERN = re.compile(r"^(-)?(\d+)(?:[.,](\d+))?$")


class ReasonKind(str, Enum):
    """Machine-readable validation failure kinds."""

    EMPTY_PRODUCTS = "empty_products"
    MISSING_PRODUCT = "missing_product"
    UNKNOWN_PRODUCT = "unknown_product"
    MISSING_QUANTITY = "missing_quantity"
    MISSING_UNIT = "missing_unit"
    UNKNOWN_UNIT = "unknown_unit"
    UNIT_MISMATCH = "unit_mismatch"
    INVALID_QUANTITY_FORMAT = "invalid_quantity_format"
    FRACTIONAL_COUNT = "fractional_count"
    EXCESS_PRECISION = "excess_precision"
    NON_POSITIVE_QUANTITY = "non_positive_quantity"
    MISSING_SUPPLIER = "missing_supplier"
    MISSING_DEPARTMENT = "missing_department"
    UNKNOWN_DEPARTMENT = "unknown_department"
    CONFLICTING_PARTY = "conflicting_party"
    INSUFFICIENT_STOCK = "insufficient_stock"


class UnitClass(str, Enum):
    """Numeric class of a unit of measure."""

    COUNT = "count"
    CONTINUOUS = "continuous"


@dataclass(frozen=True)
class ValidationReason:
    """One validation failure, correlated to a product where possible."""

    product_name: str | None
    reason_kind: ReasonKind
    message: str


@dataclass
class ValidationResult:
    """Outcome of validating a movement draft."""

    ok: bool
    reasons: list[ValidationReason] = field(default_factory=list)
    movement: ValidatedMovement | None = None

    @classmethod
    def success(cls, movement: ValidatedMovement) -> "ValidationResult":
        return cls(ok=True, movement=movement)

    @classmethod
    def failure(cls, reasons: list[ValidationReason]) -> "ValidationResult":
        return cls(ok=False, reasons=reasons)


class QuantityFormatError(ValueError):
    """Raw quantity input could not be accepted."""

    def __init__(self, kind: ReasonKind, message: str):
        super().__init__(message)
        self.kind = kind


def format_quantity(value: float) -> str:
    """Render a quantity without trailing zeros (``50``, ``2.5``)."""
    return f"{value:.{STOCK_PRECISION}f}".rstrip("0").rstrip(".")


def insufficient_stock_reasons(
    requested: Mapping[str, float],
    products: Mapping[str, Product],
) -> list[ValidationReason]:
    """One reason per product whose stock cannot cover the requested total."""
    reasons = []
    for product_id, quantity in requested.items():
        product = products[product_id]
        if quantity > product.quantity:
            reasons.append(
                ValidationReason(
                    product_name=product.name,
                    reason_kind=ReasonKind.INSUFFICIENT_STOCK,
                    message=(
                        f"Insufficient stock for {product.name}: "
                        f"{format_quantity(product.quantity)} {product.unit} available, "
                        f"{format_quantity(quantity)} requested"
                    ),
                )
            )
    return reasons


class MovementValidator:
    """Validates movement drafts; performs no I/O."""

    def __init__(
        self,
        count_units: Iterable[str] | None = None,
        continuous_units: Iterable[str] | None = None,
    ):
        ledger = get_settings().ledger
        self._count_units = {
            u.strip().lower() for u in (count_units if count_units is not None else ledger.count_units)
        }
        self._continuous_units = {
            u.strip().lower()
            for u in (continuous_units if continuous_units is not None else ledger.continuous_units)
        }

    def unit_class(self, unit: str) -> UnitClass | None:
        """Classify a unit; ``None`` for units in neither class."""
        key = unit.strip().lower()
        if key in self._count_units:
            return UnitClass.COUNT
        if key in self._continuous_units:
            return UnitClass.CONTINUOUS
        return None

    def parse_quantity(self, raw: str | int | float, unit_class: UnitClass) -> float:
        """
        Parse raw quantity input for a unit class.

        Accepts ``.`` or ``,`` as the decimal separator (at most one). Count
        units must be whole numbers; continuous units allow up to two decimals.

        Raises:
            QuantityFormatError: with the matching reason kind.
        """
        if isinstance(raw, bool):
            raise QuantityFormatError(
                ReasonKind.INVALID_QUANTITY_FORMAT, f"'{raw}' is not a number"
            )
        if isinstance(raw, float):
            if not math.isfinite(raw):
                raise QuantityFormatError(
                    ReasonKind.INVALID_QUANTITY_FORMAT, f"'{raw}' is not a number"
                )
            text = str(int(raw)) if raw.is_integer() else repr(raw)
        elif isinstance(raw, int):
            text = str(raw)
        else:
            text = raw.strip()

        match = _QUANTITY_PATTERN.match(text)
        if match is None:
            raise QuantityFormatError(
                ReasonKind.INVALID_QUANTITY_FORMAT, f"'{raw}' is not a valid quantity"
            )

        sign, whole, fraction = match.groups()
        value = float(f"{whole}.{fraction}" if fraction else whole)
        if sign == "-":
            value = -value

        if value <= 0:
            raise QuantityFormatError(
                ReasonKind.NON_POSITIVE_QUANTITY, "quantity must be greater than zero"
            )
        if unit_class is UnitClass.COUNT:
            if not value.is_integer():
                raise QuantityFormatError(
                    ReasonKind.FRACTIONAL_COUNT, f"'{raw}' must be a whole number"
                )
        elif fraction and len(fraction.rstrip("0")) > STOCK_PRECISION:
            raise QuantityFormatError(
                ReasonKind.EXCESS_PRECISION,
                f"'{raw}' has more than {STOCK_PRECISION} decimal places",
            )
        return value

    def validate(
        self,
        draft: MovementDraft,
        products: Mapping[str, Product],
        departments: Mapping[str, Department],
    ) -> ValidationResult:
        """Validate a draft against product and department snapshots."""
        # 1. Non-empty
        if not draft.products:
            return ValidationResult.failure(
                [
                    ValidationReason(
                        product_name=None,
                        reason_kind=ReasonKind.EMPTY_PRODUCTS,
                        message="At least one product is required",
                    )
                ]
            )

        # 2. Completeness
        reasons = self._check_lines_complete(draft.products, products)
        if reasons:
            return ValidationResult.failure(reasons)

        # 3. Units and quantity format
        lines: list[ValidatedLine] = []
        for line in draft.products:
            product = products[line.product_id.strip()]  # type: ignore[union-attr]
            try:
                lines.append(self._parse_line(draft.type, line, product))
            except QuantityFormatError as e:
                reasons.append(
                    ValidationReason(
                        product_name=product.name,
                        reason_kind=e.kind,
                        message=f"{product.name}: {e}",
                    )
                )
        if reasons:
            return ValidationResult.failure(reasons)

        # 4. Header
        reasons = self._check_party(draft, departments)
        if reasons:
            return ValidationResult.failure(reasons)

        supplier = (draft.supplier or "").strip() or None
        department = (draft.department or "").strip() or None
        movement = ValidatedMovement(
            type=draft.type,
            supplier=supplier if draft.type is MovementType.STOCK_IN else None,
            department=department if draft.type is MovementType.DISTRIBUTION else None,
            stock_manager=draft.stock_manager,
            notes=draft.notes,
            timestamp=draft.timestamp or utc_now(),
            lines=lines,
        )

        # 5. Stock
        if draft.type is MovementType.DISTRIBUTION:
            reasons = insufficient_stock_reasons(movement.requested_by_product(), products)
            if reasons:
                return ValidationResult.failure(reasons)

        return ValidationResult.success(movement)

    def _check_lines_complete(
        self, lines: list[DraftLine], products: Mapping[str, Product]
    ) -> list[ValidationReason]:
        reasons = []
        for index, line in enumerate(lines, start=1):
            label = line.product_name or line.product_id or f"Line {index}"
            product_id = (line.product_id or "").strip()
            if not product_id:
                reasons.append(
                    ValidationReason(
                        product_name=line.product_name,
                        reason_kind=ReasonKind.MISSING_PRODUCT,
                        message=f"{label}: no product selected",
                    )
                )
            elif product_id not in products:
                reasons.append(
                    ValidationReason(
                        product_name=line.product_name,
                        reason_kind=ReasonKind.UNKNOWN_PRODUCT,
                        message=f"{label}: product {product_id} does not exist",
                    )
                )
            else:
                label = products[product_id].name

            if line.quantity is None or (isinstance(line.quantity, str) and not line.quantity.strip()):
                reasons.append(
                    ValidationReason(
                        product_name=label,
                        reason_kind=ReasonKind.MISSING_QUANTITY,
                        message=f"{label}: quantity is required",
                    )
                )
            if not (line.unit or "").strip():
                reasons.append(
                    ValidationReason(
                        product_name=label,
                        reason_kind=ReasonKind.MISSING_UNIT,
                        message=f"{label}: unit is required",
                    )
                )
        return reasons

    def _parse_line(
        self, movement_type: MovementType, line: DraftLine, product: Product
    ) -> ValidatedLine:
        unit = (line.unit or "").strip()
        unit_class = self.unit_class(unit)
        if unit_class is None:
            raise QuantityFormatError(ReasonKind.UNKNOWN_UNIT, f"unknown unit '{unit}'")
        if unit.lower() != product.unit.strip().lower():
            raise QuantityFormatError(
                ReasonKind.UNIT_MISMATCH,
                f"unit '{unit}' does not match the product unit '{product.unit}'",
            )

        quantity = self.parse_quantity(line.quantity, unit_class)  # type: ignore[arg-type]

        unit_price = None
        if movement_type is MovementType.STOCK_IN:
            unit_price = line.unit_price if line.unit_price is not None else product.unit_price

        return ValidatedLine(
            product_id=product.id,  # type: ignore[arg-type]
            product_name=product.name,
            quantity=quantity,
            unit=product.unit,
            unit_price=unit_price,
        )

    def _check_party(
        self, draft: MovementDraft, departments: Mapping[str, Department]
    ) -> list[ValidationReason]:
        supplier = (draft.supplier or "").strip()
        department = (draft.department or "").strip()
        reasons = []

        if draft.type is MovementType.STOCK_IN:
            if not supplier:
                reasons.append(
                    ValidationReason(
                        product_name=None,
                        reason_kind=ReasonKind.MISSING_SUPPLIER,
                        message="Supplier is required for stock in",
                    )
                )
            if department:
                reasons.append(
                    ValidationReason(
                        product_name=None,
                        reason_kind=ReasonKind.CONFLICTING_PARTY,
                        message="Stock in cannot name a department",
                    )
                )
        else:
            if not department:
                reasons.append(
                    ValidationReason(
                        product_name=None,
                        reason_kind=ReasonKind.MISSING_DEPARTMENT,
                        message="Department is required for distribution",
                    )
                )
            elif department not in departments:
                reasons.append(
                    ValidationReason(
                        product_name=None,
                        reason_kind=ReasonKind.UNKNOWN_DEPARTMENT,
                        message=f"Department {department} does not exist",
                    )
                )
            if supplier:
                reasons.append(
                    ValidationReason(
                        product_name=None,
                        reason_kind=ReasonKind.CONFLICTING_PARTY,
                        message="Distribution cannot name a supplier",
                    )
                )
        return reasons
