"""
FastAPI application factory.

Builds the Bakestock API: stock movements, the product and department
catalog, and per-product usage analytics.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from src.api.middleware.error_handler import setup_exception_handlers
from src.api.routes import (
    departments_router,
    health_router,
    movements_router,
    products_router,
)
from src.config import Settings, configure_logging, get_logger, get_settings
from src.core.exceptions import DatabaseError

logger = get_logger(__name__)


async def _open_database(settings: Settings) -> None:
    """Apply pending migrations, then open the connection pool."""
    from src.infrastructure.storage.sqlite import get_pool
    from src.infrastructure.storage.sqlite.migrations import initialize_database

    results = await initialize_database(settings.storage.db_path)
    failed = next((r for r in results if not r.success), None)
    if failed is not None:
        raise DatabaseError("migrate", f"v{failed.version}: {failed.error}")

    pool = await get_pool()
    logger.info(
        "database_ready",
        path=str(settings.storage.db_path),
        migrations_applied=len(results),
        pool_size=pool.pool_size,
    )


async def _close_database() -> None:
    from src.infrastructure.storage.sqlite import close_pool

    try:
        await close_pool()
    except Exception as e:
        logger.warning("connection_pool_close_failed", error=str(e))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the ledger database for the lifetime of the app."""
    settings = get_settings()
    configure_logging()
    logger.info(
        "application_starting",
        host=settings.api.host,
        port=settings.api.port,
        timezone=settings.ledger.timezone,
    )

    try:
        await _open_database(settings)
    except Exception as e:
        logger.error("database_init_failed", error=str(e))
        raise

    yield

    await _close_database()
    logger.info("application_stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Optional settings override (defaults to the cached settings)
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Bakestock Inventory API",
        description="Stock movements, department distribution and usage analytics",
        version=settings.app_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # Outermost last: errors are rendered after the request is logged
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_methods=["GET", "POST", "PATCH", "DELETE"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID"],
        )

    setup_exception_handlers(app)

    for router in (health_router, movements_router, products_router, departments_router):
        app.include_router(router)

    return app


app = create_app()


@app.get("/")
async def root() -> dict[str, str]:
    """Service name and version."""
    settings = get_settings()
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }


# Liveness probe for container orchestrators
@app.get("/health")
async def root_health() -> dict[str, str]:
    return {"status": "healthy", "version": get_settings().app_version}


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "src.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )
