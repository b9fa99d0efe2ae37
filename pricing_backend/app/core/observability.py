"""
Observability Middleware.

Adds correlation IDs and one structured log line per request.
"""

import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("fare_engine")
request_logger = logging.getLogger("fare_engine.http")

CORRELATION_HEADER = "X-Correlation-ID"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root handler once for the process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with a correlation id (echoed from the caller or
    generated) and times it.

    The id is also stored on request.state so error handlers can log it.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 2)

        response.headers[CORRELATION_HEADER] = correlation_id
        response.headers["X-Process-Time"] = f"{duration_ms:.2f}"

        request_logger.log(
            _level_for(response.status_code),
            "%s %s -> %s", request.method, request.url.path, response.status_code,
            extra={
                "correlation_id": correlation_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "ip": request.client.host if request.client else "unknown",
            }
        )
        return response
