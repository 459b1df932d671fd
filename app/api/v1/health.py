"""Health and monitoring API endpoints."""

from fastapi import APIRouter
from datetime import datetime, timezone

from app.core.config import settings


router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/")
async def health_check():
    """Basic health check endpoint.

    Use for load balancer health checks. ``upstream_configured`` is False
    when no API key is set; relay calls will then fail with 500.

    Returns:
        dict: Health status with service info and timestamp
    """
    return {
        "status": "healthy" if settings.is_upstream_configured else "degraded",
        "service": settings.SERVICE_NAME,
        "version": settings.VERSION,
        "upstream_configured": settings.is_upstream_configured,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
