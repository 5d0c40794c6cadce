"""FastAPI middleware for request tracing and metrics"""

import logging
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from stuvendor.infrastructure.observability.metrics import request_duration_histogram

REQUEST_ID_HEADER = "X-Request-ID"

logger = logging.getLogger("stuvendor.access")


def route_template(request: Request) -> str:
    """Matched route path (e.g. /v1/vendors/balance), falling back to the raw path"""
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Tag each request with an id, reusing the caller's X-Request-ID when given.

    Withdrawal logs carry the same id, so a payout can be traced from the
    access log to the provider reference.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.time()

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id

        logger.info(
            "Request handled",
            extra={
                "request_id": request_id,
                "method": request.method,
                "endpoint": route_template(request),
                "status": response.status_code,
                "duration_ms": round((time.time() - start_time) * 1000, 1),
            },
        )
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """Record HTTP request latency labelled by route template"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        request_duration_histogram.labels(
            method=request.method,
            endpoint=route_template(request),
            status=response.status_code,
        ).observe(time.time() - start_time)

        return response
