"""Prometheus metrics endpoint and metric definitions."""

from fastapi import APIRouter, Response
from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    Info,
    generate_latest,
    CONTENT_TYPE_LATEST,
    REGISTRY,
)

from app.core.config import settings


router = APIRouter(tags=["metrics"])


service_info = Info(
    'service',
    'Service information',
    registry=REGISTRY
)
service_info.info({
    'name': settings.SERVICE_NAME,
    'version': settings.VERSION,
    'environment': settings.ENVIRONMENT,
})


# HTTP Request Metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['service', 'method', 'endpoint', 'status'],
    registry=REGISTRY
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['service', 'method', 'endpoint'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
    registry=REGISTRY
)

http_requests_in_progress = Gauge(
    'http_requests_in_progress',
    'HTTP requests currently in progress',
    ['service', 'method'],
    registry=REGISTRY
)

errors_total = Counter(
    'errors_total',
    'Unhandled errors by type',
    ['service', 'error_type', 'endpoint'],
    registry=REGISTRY
)


# Relay Metrics
relay_requests_total = Counter(
    'relay_requests_total',
    'Relay calls by outcome (success, bad_request, upstream_error, internal_error)',
    ['outcome'],
    registry=REGISTRY
)

# Generative edits routinely take tens of seconds
upstream_request_duration_seconds = Histogram(
    'upstream_request_duration_seconds',
    'Duration of calls to the image-processing API',
    ['status_class'],
    buckets=(0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 45.0, 60.0, 90.0),
    registry=REGISTRY
)


@router.get("/metrics")
async def metrics():
    """Expose metrics in Prometheus text format."""
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
