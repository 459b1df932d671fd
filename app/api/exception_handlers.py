"""
Custom FastAPI exception handlers.

Every error leaves the service as ``{"error": <message>}``.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import INTERNAL_ERROR_MESSAGE, ServiceError
from app.core.logging_config import get_logger


logger = get_logger(__name__)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP exceptions (including ServiceError) as the error envelope.

    Args:
        request: FastAPI request object
        exc: HTTP exception

    Returns:
        JSON response ``{"error": detail}``
    """
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "http_exception",
        method=request.method,
        path=str(request.url.path),
        status_code=exc.status_code,
        error_code=exc.code.value if isinstance(exc, ServiceError) else None,
        error_details=exc.error_details if isinstance(exc, ServiceError) else None,
        detail=exc.detail,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions; the detail goes to the log only.

    Args:
        request: FastAPI request object
        exc: Unhandled exception

    Returns:
        JSON response with the generic internal error message
    """
    logger.error(
        "unhandled_exception",
        method=request.method,
        path=str(request.url.path),
        error_type=type(exc).__name__,
        error_message=str(exc),
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": INTERNAL_ERROR_MESSAGE},
    )
