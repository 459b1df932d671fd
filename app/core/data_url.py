"""Helpers for ``data:<mime>;base64,<payload>`` strings."""

import base64
import binascii

BASE64_MARKER = ";base64,"


class InvalidDataURLError(ValueError):
    """The value is not a decodable Base64 data URL."""


def decode_data_url(data_url: str) -> bytes:
    """Decode the payload of a Base64 data URL into raw bytes.

    The string is split at the last ``;base64,`` marker and the trailing
    segment is decoded as standard Base64. Whatever precedes the marker
    (normally ``data:<mime>``) is ignored.

    Decoding is strict: the payload must be correctly padded and contain only
    Base64 alphabet characters. Unpadded payloads and embedded whitespace or
    newlines are rejected rather than silently repaired.

    Raises:
        InvalidDataURLError: marker missing, payload empty or not Base64
    """
    if BASE64_MARKER not in data_url:
        raise InvalidDataURLError("missing ';base64,' marker")

    payload = data_url.rsplit(BASE64_MARKER, 1)[1].strip()
    if not payload:
        raise InvalidDataURLError("empty Base64 payload")

    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidDataURLError(str(e)) from e


def encode_data_url(content: bytes, mime_type: str) -> str:
    """Wrap raw bytes into ``data:<mime_type>;base64,<payload>``."""
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type}{BASE64_MARKER}{encoded}"


def data_url_mime_type(data_url: str) -> str:
    """Return the MIME type declared by a data URL, or '' if there is none."""
    if not data_url.startswith("data:") or BASE64_MARKER not in data_url:
        return ""
    return data_url[len("data:"):data_url.index(BASE64_MARKER)]
