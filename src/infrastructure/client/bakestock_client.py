"""
Async HTTP client for the Bakestock movement and analytics API.

Unwraps the ``{success, data}`` envelope into response DTOs. Error envelopes
raise ``ServiceError``; network failures and timeouts raise ``TransportError``.
Nothing is retried here.
"""

from datetime import datetime
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter

from src.application.dto.requests import CreateMovementRequest
from src.application.dto.responses import (
    CanDeleteResponse,
    CurrentMonthUsageResponse,
    DeleteMovementResponse,
    MovementListResponse,
    MovementResponse,
    UsageAnalyticsResponse,
    UsageStatsResponse,
)
from src.config import get_logger, get_settings
from src.core.entities.movement import MovementType
from src.core.exceptions import ServiceError, TransportError

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class BakestockClient:
    """
    Client for the stock movement endpoints.

    Usage:
        async with BakestockClient() as client:
            movement = await client.create_movement(request)
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings().client
        self.base_url = (base_url or settings.base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "BakestockClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send a request and return the decoded success envelope."""
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.TimeoutException as e:
            logger.warning("client_timeout", operation=operation, path=path)
            raise TransportError(operation, f"timed out after {self.timeout}s") from e
        except httpx.RequestError as e:
            logger.warning("client_request_failed", operation=operation, error=str(e))
            raise TransportError(operation, str(e) or e.__class__.__name__) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict):
            raise ServiceError(
                f"HTTP {response.status_code}: {response.text[:200]}",
                code="HTTP_ERROR",
                status_code=response.status_code,
            )

        if response.is_error or body.get("success") is False:
            logger.info(
                "client_error_envelope",
                operation=operation,
                status=response.status_code,
                error_code=body.get("error_code"),
            )
            raise ServiceError(
                body.get("message") or f"HTTP {response.status_code}",
                code=body.get("error_code") or "HTTP_ERROR",
                status_code=response.status_code,
                errors=body.get("errors"),
                details=body.get("details"),
            )

        return body

    @staticmethod
    def _data(body: dict[str, Any], model: type[ModelT]) -> ModelT:
        return TypeAdapter(model).validate_python(body.get("data"))

    async def create_movement(
        self, request: CreateMovementRequest | dict[str, Any]
    ) -> MovementResponse:
        """Record a movement; validation failures raise ``ServiceError``."""
        if isinstance(request, dict):
            request = CreateMovementRequest.model_validate(request)
        payload = request.model_dump(mode="json", by_alias=True, exclude_none=True)
        body = await self._request("create_movement", "POST", "/api/movements", json=payload)
        return self._data(body, MovementResponse)

    async def get_movement(self, movement_id: str) -> MovementResponse:
        body = await self._request("get_movement", "GET", f"/api/movements/{movement_id}")
        return self._data(body, MovementResponse)

    async def list_movements(
        self,
        movement_type: MovementType | None = None,
        department: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        product_id: str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> MovementListResponse:
        """One page of movements, newest first."""
        params = {
            "type": movement_type.value if movement_type else None,
            "department": department,
            "startDate": start_date.isoformat() if start_date else None,
            "endDate": end_date.isoformat() if end_date else None,
            "productId": product_id,
            "page": page,
            "limit": limit,
        }
        body = await self._request("list_movements", "GET", "/api/movements", params=params)
        return MovementListResponse.model_validate(body)

    async def can_delete(self, movement_id: str) -> CanDeleteResponse:
        body = await self._request(
            "can_delete", "GET", f"/api/movements/{movement_id}/can-delete"
        )
        return self._data(body, CanDeleteResponse)

    async def delete_movement(self, movement_id: str) -> DeleteMovementResponse:
        """Delete a movement; an unsafe reversal raises ``ServiceError``."""
        body = await self._request(
            "delete_movement", "DELETE", f"/api/movements/{movement_id}"
        )
        return self._data(body, DeleteMovementResponse)

    async def get_usage_stats(
        self,
        product_id: str,
        month: int | None = None,
        year: int | None = None,
    ) -> UsageStatsResponse:
        body = await self._request(
            "get_usage_stats",
            "GET",
            f"/api/products/{product_id}/usage-stats",
            params={"month": month, "year": year},
        )
        return self._data(body, UsageStatsResponse)

    async def get_usage_analytics(
        self, product_id: str, previous_months: int | None = None
    ) -> UsageAnalyticsResponse:
        body = await self._request(
            "get_usage_analytics",
            "GET",
            f"/api/products/{product_id}/usage-analytics",
            params={"previousMonths": previous_months},
        )
        return self._data(body, UsageAnalyticsResponse)

    async def get_current_month_usage(self, product_id: str) -> CurrentMonthUsageResponse:
        body = await self._request(
            "get_current_month_usage",
            "GET",
            f"/api/products/{product_id}/current-month-usage",
        )
        return self._data(body, CurrentMonthUsageResponse)
