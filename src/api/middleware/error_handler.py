"""
Error handling middleware.

Standardizes all API error responses to the envelope:
- success: always false
- error_code: machine-readable identifier
- message: human-readable description
- errors: one entry per offending item
- hint: suggested recovery action
"""

import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from src.application.dto.responses import ErrorResponse
from src.config import get_logger
from src.core.exceptions import (
    BakestockError,
    ConcurrencyConflictError,
    ConfigurationError,
    DuplicateDepartmentError,
    DuplicateProductError,
    NotFoundError,
    ReversalUnsafeError,
    StorageError,
    ValidationError,
)

logger = get_logger(__name__)


# Map exceptions to HTTP status codes; first match wins, subclasses first
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    DuplicateProductError: status.HTTP_409_CONFLICT,
    DuplicateDepartmentError: status.HTTP_409_CONFLICT,
    ConcurrencyConflictError: status.HTTP_409_CONFLICT,
    ReversalUnsafeError: status.HTTP_409_CONFLICT,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ValueError: status.HTTP_400_BAD_REQUEST,
}

# Hint messages per error code / exception type
HINT_MAP: dict[str, str] = {
    "PRODUCT_NOT_FOUND": "Check the product ID and try GET /api/products to list products.",
    "DEPARTMENT_NOT_FOUND": "Check the department ID and try GET /api/departments to list departments.",
    "MOVEMENT_NOT_FOUND": "Check the movement ID and try GET /api/movements to list movements.",
    "DUPLICATE_PRODUCT": "A product with this name already exists. Use the existing product.",
    "DUPLICATE_DEPARTMENT": "A department with this ID already exists.",
    "VALIDATION_ERROR": "Fix every listed problem and resubmit.",
    "CONCURRENCY_CONFLICT": "Stock changed while saving. Reload current stock and resubmit.",
    "REVERSAL_UNSAFE": "Delete the listed later movements first, or record a correcting movement.",
    "DATABASE_ERROR": "The ledger database rejected the operation. See the server log.",
    "ValueError": "One of the parameters has an invalid value.",
}

# Fallbacks when the error code has no specific hint
STATUS_HINTS: dict[int, str] = {
    400: "Correct the request and send it again.",
    404: "No record with that ID exists.",
    405: "This endpoint does not support that HTTP method.",
    409: "Stock or catalog state changed. Reload it and retry.",
    422: "The request body or query string is malformed.",
    500: "The server failed to handle the request. See the server log.",
}

# Codes for framework-raised HTTP errors (unknown routes, wrong method)
HTTP_ERROR_CODES: dict[int, str] = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    422: "UNPROCESSABLE_ENTITY",
}


def _hint(error_code: str, status_code: int) -> str:
    return HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code, "")


def _status_for(exc: Exception) -> int:
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def build_error_response(request: Request, exc: Exception) -> JSONResponse:
    """Convert an exception to the standard error envelope."""
    status_code = _status_for(exc)

    if isinstance(exc, BakestockError):
        error_code = exc.code
        message = exc.message
        errors = exc.errors
        details = exc.details or None
    else:
        error_code = exc.__class__.__name__
        message = str(exc) if status_code < 500 else "Internal server error"
        errors = [message]
        details = None

    request_id = getattr(request.state, "request_id", None)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_error",
        request_id=request_id,
        path=request.url.path,
        status=status_code,
        error_code=error_code,
        error=str(exc),
        traceback=traceback.format_exc() if status_code >= 500 else None,
    )

    error_response = ErrorResponse(
        error_code=error_code,
        message=message,
        errors=errors,
        hint=_hint(error_code, status_code),
        details=details,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json"),
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Catches anything the registered exception handlers did not.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return build_error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Set up FastAPI exception handlers."""
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException

    @app.exception_handler(BakestockError)
    async def domain_exception_handler(request: Request, exc: BakestockError) -> JSONResponse:
        """Handle domain errors raised by use cases and stores."""
        return build_error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed JSON bodies and query strings, one entry per field."""
        errors = [f"{_field_path(e['loc'])}: {e['msg']}" for e in exc.errors()]
        logger.info("request_rejected", path=request.url.path, errors=len(errors))
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=ErrorResponse(
                error_code="VALIDATION_ERROR",
                message="Request validation failed",
                errors=errors,
                hint=STATUS_HINTS[422],
                path=request.url.path,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """Framework HTTP errors such as unknown routes, in the same envelope."""
        error_code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        message = str(exc.detail) if exc.detail else "HTTP error"
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error_code=error_code,
                message=message,
                errors=[message],
                hint=_hint(error_code, exc.status_code),
                path=request.url.path,
            ).model_dump(mode="json"),
            headers=getattr(exc, "headers", None),
        )


def _field_path(loc: tuple) -> str:
    """``('body', 'products', 0, 'quantity')`` becomes ``body.products[0].quantity``."""
    path = ""
    for part in loc:
        path += f"[{part}]" if isinstance(part, int) else (f".{part}" if path else str(part))
    return path
