"""
Domain exceptions for the Bakestock application.

Provides specific exception types for different error scenarios.
"""

from typing import Any


class BakestockError(Exception):
    """Base exception for all Bakestock errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    @property
    def errors(self) -> list[str]:
        """Human-readable list of individual problems (one per offending item)."""
        return [self.message]

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "errors": self.errors,
            "details": self.details,
        }


# Storage Exceptions
class StorageError(BakestockError):
    """Base exception for storage operations."""

    pass


class NotFoundError(StorageError):
    """Referenced record does not exist."""

    pass


class ProductNotFoundError(NotFoundError):
    """Product not found in storage."""

    def __init__(self, product_id: str):
        super().__init__(
            f"Product not found: {product_id}",
            code="PRODUCT_NOT_FOUND",
            details={"product_id": product_id},
        )


class DepartmentNotFoundError(NotFoundError):
    """Department not found in storage."""

    def __init__(self, department_id: str):
        super().__init__(
            f"Department not found: {department_id}",
            code="DEPARTMENT_NOT_FOUND",
            details={"department_id": department_id},
        )


class MovementNotFoundError(NotFoundError):
    """Stock movement not found in storage."""

    def __init__(self, movement_id: str):
        super().__init__(
            f"Stock movement not found: {movement_id}",
            code="MOVEMENT_NOT_FOUND",
            details={"movement_id": movement_id},
        )


class DuplicateProductError(StorageError):
    """A product with the same name already exists."""

    def __init__(self, name: str, existing_id: str):
        super().__init__(
            f"Product name already in use: {name}",
            code="DUPLICATE_PRODUCT",
            details={"name": name, "existing_id": existing_id},
        )


class DuplicateDepartmentError(StorageError):
    """A department with the same id already exists."""

    def __init__(self, department_id: str):
        super().__init__(
            f"Department already exists: {department_id}",
            code="DUPLICATE_DEPARTMENT",
            details={"department_id": department_id},
        )


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


# Ledger Exceptions
class LedgerError(BakestockError):
    """Base exception for stock ledger operations."""

    pass


class ConcurrencyConflictError(LedgerError):
    """Product stock changed between read and write; the movement was not applied."""

    def __init__(self, product_ids: list[str]):
        super().__init__(
            "Stock changed while the movement was being applied; "
            f"resubmit the movement ({', '.join(product_ids)})",
            code="CONCURRENCY_CONFLICT",
            details={"product_ids": product_ids},
        )


class ReversalUnsafeError(LedgerError):
    """Deleting a movement would drive product stock below zero."""

    def __init__(self, movement_id: str, conflicts: list[dict[str, Any]]):
        super().__init__(
            f"Movement {movement_id} cannot be deleted: "
            f"{len(conflicts)} product(s) would go below zero",
            code="REVERSAL_UNSAFE",
            details={"movement_id": movement_id, "conflicts": conflicts},
        )
        self.conflicts = conflicts

    @property
    def errors(self) -> list[str]:
        return [c["message"] for c in self.conflicts]


# Validation Exceptions
class ValidationError(BakestockError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value else None,
            },
        )


class MovementValidationError(ValidationError):
    """A proposed stock movement failed validation.

    Carries every reason of the failing category so a caller can flag each
    offending product line in one round trip.
    """

    def __init__(self, reasons: list[Any]):
        super().__init__(field="products", message="Stock movement validation failed")
        self.message = "Stock movement validation failed"
        self.args = (self.message,)
        self.reasons = list(reasons)
        self.details = {
            "reasons": [
                {
                    "product_name": r.product_name,
                    "reason_kind": r.reason_kind.value,
                    "message": r.message,
                }
                for r in self.reasons
            ]
        }

    @property
    def errors(self) -> list[str]:
        return [r.message for r in self.reasons]


# Transport Exceptions
class TransportError(BakestockError):
    """Network failure or timeout talking to the service."""

    def __init__(self, operation: str, reason: str):
        super().__init__(
            f"Transport error during {operation}: {reason}",
            code="TRANSPORT_ERROR",
            details={"operation": operation, "reason": reason},
        )


class ServiceError(BakestockError):
    """The service answered with an error envelope."""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int,
        errors: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, details=details)
        self.status_code = status_code
        self._errors = list(errors or [])

    @property
    def errors(self) -> list[str]:
        return self._errors or [self.message]


class ConfigurationError(BakestockError):
    """Configuration error."""

    pass
