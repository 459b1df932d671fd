"""HTTP client for the Claid.ai image-processing API.

Sends one multipart POST per call:
- ``source_image``: raw image bytes (``upload.png``, ``image/png``)
- ``instructions``: the caller's instructions serialized as JSON text

The API key travels in ``Authorization: <scheme> <key>``.
"""

import json
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from app.core.config import Settings, settings as default_settings
from app.core.errors import UpstreamError, UpstreamNotConfiguredError
from app.core.logging_config import get_logger


logger = get_logger(__name__)


@dataclass
class UpstreamImage:
    """Processed image returned by the upstream API."""
    content: bytes
    mime_type: str


class ClaidClient:
    """Async client for the image-processing endpoint.

    Example:
        >>> client = ClaidClient()
        >>> result = await client.process_image(
        ...     png_bytes,
        ...     {"operation": "generative_filter", "prompt": "sepia"},
        ... )
        >>> result.mime_type
        'image/png'
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        config = config or default_settings
        self.api_key = config.CLAID_API_KEY
        self.url = config.CLAID_API_URL
        self.auth_scheme = config.CLAID_AUTH_SCHEME
        self.timeout = config.CLAID_API_TIMEOUT
        self.image_field = config.UPSTREAM_IMAGE_FIELD
        self.image_filename = config.UPSTREAM_IMAGE_FILENAME
        self.image_content_type = config.UPSTREAM_IMAGE_CONTENT_TYPE
        self.instructions_field = config.UPSTREAM_INSTRUCTIONS_FIELD
        self.default_mime_type = config.DEFAULT_RESULT_MIME_TYPE
        self._transport = transport

    def _headers(self) -> dict:
        # multipart boundary headers are added by httpx when it encodes the form
        return {"Authorization": f"{self.auth_scheme} {self.api_key}"}

    async def process_image(self, image_bytes: bytes, instructions: Any) -> UpstreamImage:
        """Send the image and instructions upstream and return the result.

        Args:
            image_bytes: Raw image buffer (treated as opaque binary)
            instructions: JSON-serializable instructions, forwarded verbatim

        Returns:
            UpstreamImage: Result bytes and their MIME type

        Raises:
            UpstreamNotConfiguredError: No API key configured
            UpstreamError: Upstream answered with a non-2xx status
            httpx.HTTPError: Network failure or timeout
        """
        if not self.api_key:
            raise UpstreamNotConfiguredError("CLAID_API_KEY is not set")

        files = {
            self.image_field: (self.image_filename, image_bytes, self.image_content_type),
        }
        data = {self.instructions_field: json.dumps(instructions)}

        start_time = time.time()
        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            logger.debug(
                "upstream_request",
                url=self.url,
                image_bytes=len(image_bytes),
            )
            response = await client.post(
                self.url,
                headers=self._headers(),
                files=files,
                data=data,
            )
            # Read inside the client context so the connection is released cleanly
            content = response.content

        duration = time.time() - start_time
        _observe_upstream(response.status_code, duration)

        if not response.is_success:
            raise UpstreamError(response.status_code, response.text)

        mime_type = response.headers.get("content-type") or self.default_mime_type

        logger.debug(
            "upstream_response",
            status_code=response.status_code,
            mime_type=mime_type,
            result_bytes=len(content),
            duration_ms=round(duration * 1000, 2),
        )
        return UpstreamImage(content=content, mime_type=mime_type)


def _observe_upstream(status_code: int, duration: float) -> None:
    from app.api.v1.metrics import upstream_request_duration_seconds

    upstream_request_duration_seconds.labels(
        status_class=f"{status_code // 100}xx"
    ).observe(duration)
