"""
Health check endpoints.
"""

import time

from fastapi import APIRouter, Depends

from src.api.dependencies import get_app_settings
from src.application.dto.responses import ComponentHealthResponse, HealthResponse
from src.config import Settings

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


@router.get("", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """
    Basic health check.

    Returns service status and uptime.
    """
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        uptime_seconds=time.time() - _start_time,
    )


@router.get("/db", response_model=HealthResponse)
async def db_health(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """
    Database health check.

    Tests SQLite connectivity, response time and ledger size.
    """
    from src.infrastructure.storage.sqlite import get_connection

    try:
        start = time.time()
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT
                    (SELECT COUNT(*) FROM products) AS products,
                    (SELECT COUNT(*) FROM stock_movements) AS movements
                """
            )
            row = await cursor.fetchone()
        latency = (time.time() - start) * 1000

        db_status = ComponentHealthResponse(
            status="available",
            latency_ms=latency,
            details={"products": row["products"], "movements": row["movements"]},
        )

    except Exception as e:
        db_status = ComponentHealthResponse(status="unavailable", error=str(e))

    return HealthResponse(
        status="healthy" if db_status.status == "available" else "unhealthy",
        version=settings.app_version,
        uptime_seconds=time.time() - _start_time,
        database=db_status,
    )
