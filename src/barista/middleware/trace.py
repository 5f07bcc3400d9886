"""
Request tracing middleware.

Assigns a trace ID to every request and measures response time. The trace
ID flows through the entire async call chain via contextvars, so every
log line of the request carries it.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from barista.core.context import set_request_id
from barista.core.metrics import barista_metrics

logger = logging.getLogger(__name__)


class TraceMiddleware(BaseHTTPMiddleware):
    """Middleware that handles request tracing.

    On every incoming request:
    - Extracts or generates a trace ID (X-Request-ID header).
    - Stores the trace ID in the ContextVar for the async call chain.
    - Tracks the number of in-flight requests.
    - Adds X-Request-ID and X-Response-Time to response headers.
    """

    async def dispatch(self, request: Request, call_next: ...) -> Response:
        """Process each request with tracing."""
        # Extract existing trace ID or generate a new one
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        set_request_id(request_id)

        barista_metrics.increment_active_requests()
        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            barista_metrics.decrement_active_requests()

        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms}ms"

        logger.info(
            "%s %s -> %d (%.2fms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )

        return response
