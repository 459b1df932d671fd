"""Relay Service - Business Logic Layer

Turns the caller's JSON envelope into one upstream call and the upstream
answer back into a JSON envelope. Every invocation is independent; nothing is
kept between requests.
"""

import json
from typing import Any

import httpx

from app.core.data_url import InvalidDataURLError, decode_data_url, encode_data_url
from app.core.errors import (
    ErrorCode,
    INVALID_BASE64_MESSAGE,
    INVALID_JSON_MESSAGE,
    MISSING_FIELDS_MESSAGE,
    ServiceError,
    UpstreamError,
    UpstreamNotConfiguredError,
    internal_error,
    request_error,
    upstream_error,
)
from app.core.logging_config import get_logger
from app.models.relay import RelayRequest, RelayResponse
from app.services.claid_client import ClaidClient


logger = get_logger(__name__)


def _is_missing(value: Any) -> bool:
    """Absent, null, empty string or ``false`` count as missing.

    Empty objects and lists are present: the instructions are opaque.
    """
    if value is None:
        return True
    if isinstance(value, (dict, list)):
        return False
    return not value


class RelayService:
    """Service for relaying image edits to the upstream API.

    Responsibilities:
    - Parse and presence-check the request envelope
    - Decode the Base64 data URL
    - Call the upstream API once
    - Re-encode the result as a data URL

    Raises ServiceError for every failure; the exception handlers render it
    as ``{"error": <message>}``.
    """

    def __init__(self, client: ClaidClient):
        self.client = client

    def parse_request(self, body: bytes) -> RelayRequest:
        """Parse the raw request body into a RelayRequest.

        An empty body is treated as ``{}``.
        """
        try:
            payload = json.loads(body or b"{}")
        except ValueError as e:
            _record_outcome("bad_request")
            logger.warning("relay_invalid_json", error=str(e), body_bytes=len(body))
            raise request_error(ErrorCode.REQ_INVALID_JSON, INVALID_JSON_MESSAGE)

        if not isinstance(payload, dict):
            payload = {}

        request = RelayRequest.model_validate(payload)

        if _is_missing(request.image_base64) or _is_missing(request.instructions):
            _record_outcome("bad_request")
            logger.warning(
                "relay_missing_fields",
                has_image=not _is_missing(request.image_base64),
                has_instructions=not _is_missing(request.instructions),
            )
            raise request_error(ErrorCode.REQ_MISSING_FIELDS, MISSING_FIELDS_MESSAGE)

        return request

    def decode_image(self, image_base64: Any) -> bytes:
        """Decode the data URL into raw bytes or raise a 400."""
        if not isinstance(image_base64, str):
            _record_outcome("bad_request")
            logger.warning("relay_invalid_base64", reason="not a string")
            raise request_error(ErrorCode.REQ_INVALID_BASE64, INVALID_BASE64_MESSAGE)

        try:
            return decode_data_url(image_base64)
        except InvalidDataURLError as e:
            _record_outcome("bad_request")
            logger.warning("relay_invalid_base64", reason=str(e))
            raise request_error(ErrorCode.REQ_INVALID_BASE64, INVALID_BASE64_MESSAGE)

    async def relay(self, body: bytes) -> RelayResponse:
        """Handle one relay call end to end.

        Args:
            body: Raw JSON request body

        Returns:
            RelayResponse: The processed image as a data URL

        Raises:
            ServiceError: 400 for bad input, upstream status for upstream
                failures, 500 for anything else
        """
        request = self.parse_request(body)
        image_bytes = self.decode_image(request.image_base64)

        try:
            result = await self.client.process_image(image_bytes, request.instructions)
            image_data = encode_data_url(result.content, result.mime_type)

        except UpstreamError as e:
            _record_outcome("upstream_error")
            logger.error(
                "relay_upstream_failed",
                upstream_status=e.status_code,
                upstream_body=e.body[:500],
            )
            raise upstream_error(e)

        except UpstreamNotConfiguredError as e:
            _record_outcome("internal_error")
            logger.error("relay_upstream_not_configured", error=str(e))
            raise internal_error(ErrorCode.CONFIG_MISSING_API_KEY)

        except httpx.HTTPError as e:
            _record_outcome("internal_error")
            logger.error(
                "relay_upstream_unreachable",
                error_type=type(e).__name__,
                error=str(e),
            )
            raise internal_error(ErrorCode.UPSTREAM_UNREACHABLE)

        except ServiceError:
            raise

        except Exception as e:
            _record_outcome("internal_error")
            logger.error(
                "relay_internal_error",
                error_type=type(e).__name__,
                error=str(e),
                exc_info=True,
            )
            raise internal_error()

        _record_outcome("success")
        logger.info(
            "relay_completed",
            mime_type=result.mime_type,
            source_bytes=len(image_bytes),
            result_bytes=len(result.content),
        )
        return RelayResponse(image_data=image_data)


def _record_outcome(outcome: str) -> None:
    from app.api.v1.metrics import relay_requests_total

    relay_requests_total.labels(outcome=outcome).inc()
