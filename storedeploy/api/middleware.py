"""Custom middleware for the API."""

import time
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from storedeploy.utils.logging import get_logger

logger = get_logger(__name__)

# Streaming endpoints stay open for minutes; only their start is logged
STREAMING_SUFFIXES = ("/events",)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request and bind its ID to the logging context."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:16]

        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            logger.info(
                "request.started",
                method=request.method,
                path=request.url.path,
            )

            response = await call_next(request)
            duration_ms = (time.perf_counter() - start_time) * 1000

            if not request.url.path.endswith(STREAMING_SUFFIXES):
                logger.info(
                    "request.completed",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=round(duration_ms, 2),
                )

            response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            structlog.contextvars.unbind_contextvars("request_id")
