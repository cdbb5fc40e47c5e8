"""
Request logging middleware.

Binds a request id (taken from ``X-Request-ID`` or generated) for the lifetime
of the request and logs one completion event per request.
"""

import time
import uuid
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.config import get_logger
from src.config.logging import bind_request_context, clear_request_context

logger = get_logger(__name__)

# Probes are logged at debug level only
QUIET_PATHS = frozenset({"/health", "/api/health"})


class LoggingMiddleware(BaseHTTPMiddleware):
    """Tag every event with the request id and log request outcomes."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        request.state.request_id = request_id
        bind_request_context(request_id=request_id, method=request.method)

        path = request.url.path
        started = time.perf_counter()
        logger.debug(
            "request_started",
            path=path,
            client=request.client.host if request.client else None,
        )
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                path=path,
                error=str(e),
                elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise
        finally:
            clear_request_context()

        elapsed_ms = (time.perf_counter() - started) * 1000
        if path in QUIET_PATHS:
            log = logger.debug
        elif response.status_code >= 500:
            log = logger.error
        elif response.status_code >= 400:
            log = logger.warning
        else:
            log = logger.info
        log(
            "request_completed",
            request_id=request_id,
            method=request.method,
            path=path,
            query=request.url.query or None,
            status=response.status_code,
            elapsed_ms=round(elapsed_ms, 2),
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms:.2f}ms"
        return response
