"""
Error Handling for the relay

Standardized error codes and the exception raised by the service layer.
The exception handlers render every ServiceError as ``{"error": <message>}``.
"""
from enum import Enum
from typing import Any, Dict, Optional
from fastapi import HTTPException, status


class ErrorCode(str, Enum):
    """Standardized error codes for the relay."""

    # Request errors (REQ_xxx)
    REQ_INVALID_JSON = "REQ_001"
    REQ_MISSING_FIELDS = "REQ_002"
    REQ_INVALID_BASE64 = "REQ_003"

    # Upstream errors (UPSTREAM_xxx)
    UPSTREAM_FAILED = "UPSTREAM_001"
    UPSTREAM_UNREACHABLE = "UPSTREAM_002"

    # Configuration errors (CONFIG_xxx)
    CONFIG_MISSING_API_KEY = "CONFIG_001"

    INTERNAL_ERROR = "INTERNAL_001"


# Messages returned to the caller. These are part of the public contract.
MISSING_FIELDS_MESSAGE = "Missing imageBase64 or instructions in request body"
INVALID_JSON_MESSAGE = "Request body must be valid JSON"
INVALID_BASE64_MESSAGE = "Invalid Base64 data"
UPSTREAM_FAILED_PREFIX = "Claid.ai API failed: "
INTERNAL_ERROR_MESSAGE = "An internal error occurred in the proxy function."


class ServiceError(HTTPException):
    """
    Base class for relay errors.

    ``detail`` holds the caller-facing message; ``code`` and ``error_details``
    are only written to the log.
    """

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=message)
        self.code = code
        self.user_message = message
        self.error_details = details or {}


class UpstreamError(Exception):
    """Non-2xx response from the image-processing API."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"upstream returned {status_code}")
        self.status_code = status_code
        self.body = body


class UpstreamNotConfiguredError(RuntimeError):
    """Raised when no API key is available for the upstream call."""


def request_error(code: ErrorCode, message: str, details: Optional[Dict[str, Any]] = None) -> ServiceError:
    """Create a client-input error (400 Bad Request)."""
    return ServiceError(status.HTTP_400_BAD_REQUEST, code, message, details)


def upstream_error(exc: UpstreamError) -> ServiceError:
    """Pass the upstream status and body text through to the caller."""
    return ServiceError(
        exc.status_code,
        ErrorCode.UPSTREAM_FAILED,
        f"{UPSTREAM_FAILED_PREFIX}{exc.body}",
        {"upstream_status": exc.status_code},
    )


def internal_error(code: ErrorCode = ErrorCode.INTERNAL_ERROR, details: Optional[Dict[str, Any]] = None) -> ServiceError:
    """Create the generic 500; the real cause only goes to the log."""
    return ServiceError(status.HTTP_500_INTERNAL_SERVER_ERROR, code, INTERNAL_ERROR_MESSAGE, details)
