"""Client for calling the relay from another Python process.

Mirrors what the browser frontend does: encode the image as a data URL,
attach an instruction object and POST both to the relay. The API key never
leaves the relay.

Example:
    >>> client = RelayClient("http://localhost:8000")
    >>> data_url = await client.generate_filtered_image(png_bytes, "sepia")
"""

from typing import Any, Dict, Optional, Union

import httpx

from app.core.data_url import data_url_mime_type, encode_data_url
from app.core.logging_config import get_logger
from app.models.relay import (
    FocusPoint,
    GenerativeAdjustment,
    GenerativeEdit,
    GenerativeFilter,
)


logger = get_logger(__name__)

ImageInput = Union[bytes, str]


class RelayClientError(Exception):
    """The relay answered with an error or with something that is not an image."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RelayClient:
    """Async client for the relay endpoint."""

    def __init__(
        self,
        base_url: str,
        path: str = "/api/v1/claid-proxy",
        timeout: float = 90.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.path = path
        self.timeout = timeout
        self._transport = transport

    @staticmethod
    def to_data_url(image: ImageInput, mime_type: str = "image/png") -> str:
        """Accept raw bytes or an existing data URL."""
        if isinstance(image, bytes):
            return encode_data_url(image, mime_type)
        return image

    async def process(self, image: ImageInput, instructions: Any) -> str:
        """Send one image and instruction object to the relay.

        Args:
            image: Raw image bytes or a Base64 data URL
            instructions: Any JSON-serializable instruction object

        Returns:
            str: The processed image as a data URL

        Raises:
            RelayClientError: Non-2xx response or a response that is not an image
        """
        payload = {
            "imageBase64": self.to_data_url(image),
            "instructions": instructions,
        }

        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            response = await client.post(self.path, json=payload)

        if not response.is_success:
            message = _error_message(response)
            logger.error(
                "relay_client_error",
                status_code=response.status_code,
                error=message,
            )
            raise RelayClientError(
                f"The AI service returned an error. Details: {message}",
                status_code=response.status_code,
            )

        image_data = _image_data(response)
        if not data_url_mime_type(image_data).startswith("image/"):
            logger.error("relay_client_invalid_image", prefix=image_data[:40])
            raise RelayClientError(
                "The API did not return a valid image.",
                status_code=response.status_code,
            )

        return image_data

    async def generate_edited_image(
        self,
        image: ImageInput,
        prompt: str,
        hotspot: Dict[str, float],
    ) -> str:
        """Localized edit focused on the ``{x, y}`` hotspot."""
        instructions = GenerativeEdit(prompt=prompt, focus_point=FocusPoint(**hotspot))
        return await self.process(image, instructions.model_dump(mode="json"))

    async def generate_filtered_image(self, image: ImageInput, prompt: str) -> str:
        """Stylistic filter over the whole image."""
        instructions = GenerativeFilter(prompt=prompt)
        return await self.process(image, instructions.model_dump(mode="json"))

    async def generate_adjusted_image(self, image: ImageInput, prompt: str) -> str:
        """Global photo adjustment."""
        instructions = GenerativeAdjustment(prompt=prompt)
        return await self.process(image, instructions.model_dump(mode="json"))


def _image_data(response: httpx.Response) -> str:
    """``imageData`` from a success body, or '' when the body has none."""
    try:
        body = response.json()
    except ValueError:
        return ""
    if not isinstance(body, dict):
        return ""
    image_data = body.get("imageData")
    return image_data if isinstance(image_data, str) else ""


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.text
