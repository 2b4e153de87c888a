"""
FastAPI middleware for request tracing and metrics.

The request ID echoes a caller-supplied X-Request-ID so analysis log records
can be joined with upstream traces. Latency is not recorded for /metrics scrapes.
"""

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from agency_analytics.infrastructure.observability.metrics import request_duration_histogram

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request ID to each request, reusing the caller's X-Request-ID when sent"""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """Record HTTP request latency per route"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()

        response = await call_next(request)

        duration = time.perf_counter() - start_time
        # /metrics scrapes would otherwise dominate the histogram
        if request.url.path != "/metrics":
            request_duration_histogram.labels(
                method=request.method,
                endpoint=request.url.path,
                status=response.status_code,
            ).observe(duration)

        return response
