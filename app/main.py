"""Main FastAPI application for the image relay."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager

from app.core.config import settings
from app.core.logging_config import setup_logging, get_logger
from app.models.relay import RelayResponse
from app.api.v1 import relay, health, metrics
from app.api.middleware import RequestLoggingMiddleware, PerformanceLoggingMiddleware, PrometheusMiddleware
from app.api.exception_handlers import (
    http_exception_handler,
    general_exception_handler,
)


# Initialize logging system (MUST be done before any logging calls)
setup_logging(debug=settings.is_debug_mode, json_logs=settings.use_json_logs)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup configuration (without the API key) and shutdown."""
    logger.info(
        "application_startup",
        service=settings.SERVICE_NAME,
        version=settings.VERSION,
        environment=settings.ENVIRONMENT,
        debug_mode=settings.is_debug_mode,
        log_level=settings.LOG_LEVEL,
        upstream_url=settings.CLAID_API_URL,
        upstream_timeout=settings.CLAID_API_TIMEOUT,
        upstream_configured=settings.is_upstream_configured,
    )
    if not settings.is_upstream_configured:
        logger.warning("upstream_api_key_missing", setting="CLAID_API_KEY")

    yield

    logger.info("application_shutdown", graceful=True)


app = FastAPI(
    title=settings.SERVICE_NAME,
    description="Server-side relay to the Claid.ai image-processing API",
    version=settings.VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# Middleware stack (order matters - first added is executed last!)
app.add_middleware(PrometheusMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(PerformanceLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(relay.router)
app.include_router(health.router)
app.include_router(metrics.router)

# Drop-in path for frontends still calling the serverless function
app.add_api_route(
    relay.NETLIFY_FUNCTION_PATH,
    relay.claid_proxy,
    methods=["POST"],
    response_model=RelayResponse,
    responses=relay.RELAY_RESPONSES,
    tags=["relay"],
)


@app.get("/")
async def root():
    """Root endpoint with service information."""
    return {
        "service": settings.SERVICE_NAME,
        "version": settings.VERSION,
        "description": "Image relay to the Claid.ai image-processing API",
        "documentation": "/docs",
        "health_check": "/api/v1/health",
        "relay": "/api/v1/claid-proxy",
    }
