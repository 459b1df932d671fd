"""
FastAPI Middleware for Request Tracking and Logging

Features:
- Request trace IDs echoed back in response headers
- Request/response logging with duration
- Slow request warnings
- Prometheus metrics collection
"""

import time
import uuid
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.core.logging_config import get_logger, set_trace_id, clear_trace_id


logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assigns a trace ID to every request and logs its start and end.

    The trace ID is taken from ``X-Trace-ID`` or ``X-Correlation-ID`` when the
    caller sends one, otherwise a new UUID is generated.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        trace_id = (
            request.headers.get("X-Trace-ID") or
            request.headers.get("X-Correlation-ID") or
            str(uuid.uuid4())
        )
        set_trace_id(trace_id)

        start_time = time.time()
        method = request.method
        path = request.url.path

        logger.info(
            "request_started",
            method=method,
            path=path,
            client_host=request.client.host if request.client else "unknown",
            user_agent=request.headers.get("user-agent", "unknown"),
            content_length=request.headers.get("content-length"),
        )

        try:
            response = await call_next(request)

            logger.info(
                "request_completed",
                method=method,
                path=path,
                status_code=response.status_code,
                duration_ms=round((time.time() - start_time) * 1000, 2),
            )

            response.headers["X-Trace-ID"] = trace_id
            response.headers["X-Correlation-ID"] = trace_id
            return response

        except Exception as exc:
            logger.error(
                "request_failed",
                method=method,
                path=path,
                duration_ms=round((time.time() - start_time) * 1000, 2),
                error_type=type(exc).__name__,
                error_message=str(exc),
                exc_info=True,
            )
            raise

        finally:
            clear_trace_id()


class PerformanceLoggingMiddleware(BaseHTTPMiddleware):
    """Logs a warning for requests slower than the threshold."""

    def __init__(self, app: ASGIApp, slow_request_threshold_ms: float = 30000.0):
        super().__init__(app)
        self.slow_request_threshold_ms = slow_request_threshold_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        response = await call_next(request)

        duration_ms = (time.time() - start_time) * 1000
        if duration_ms > self.slow_request_threshold_ms:
            logger.warning(
                "slow_request_detected",
                method=request.method,
                path=request.url.path,
                duration_ms=round(duration_ms, 2),
                threshold_ms=self.slow_request_threshold_ms,
                status_code=response.status_code,
            )

        return response


UNMATCHED_ENDPOINT = "unmatched"
KNOWN_METHODS = {"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"}


def endpoint_label(request: Request) -> str:
    """Route template the request matched, or a fixed label for unrouted paths.

    Raw paths are never used as label values so scanners cannot create
    unbounded time series.
    """
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path if path else UNMATCHED_ENDPOINT


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Collects HTTP request count, duration, in-flight and error metrics.

    ``endpoint`` is the matched route template (``/api/v1/claid-proxy``),
    ``method`` is one of the standard HTTP verbs or ``OTHER``.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Import here to avoid circular imports
        from app.api.v1.metrics import (
            http_requests_total,
            http_request_duration_seconds,
            http_requests_in_progress,
            errors_total,
        )
        from app.core.config import settings

        if request.url.path == "/metrics":
            return await call_next(request)

        service = settings.SERVICE_NAME
        method = request.method if request.method in KNOWN_METHODS else "OTHER"

        http_requests_in_progress.labels(service=service, method=method).inc()

        start_time = time.time()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response

        except Exception as exc:
            errors_total.labels(
                service=service,
                error_type=type(exc).__name__,
                endpoint=endpoint_label(request)
            ).inc()
            raise

        finally:
            # The router fills scope["route"] during call_next
            endpoint = endpoint_label(request)
            http_requests_in_progress.labels(service=service, method=method).dec()
            http_requests_total.labels(
                service=service,
                method=method,
                endpoint=endpoint,
                status=status_code
            ).inc()
            http_request_duration_seconds.labels(
                service=service,
                method=method,
                endpoint=endpoint
            ).observe(time.time() - start_time)
