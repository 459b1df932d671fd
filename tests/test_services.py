"""
Service layer tests for image-relay.

Tests RelayService and ClaidClient without going through HTTP routing.
"""

import json

import httpx
import pytest
from unittest.mock import AsyncMock

from app.core.config import Settings
from app.core.errors import ErrorCode, ServiceError, UpstreamError, UpstreamNotConfiguredError
from app.services.claid_client import ClaidClient, UpstreamImage
from app.services.relay_service import RelayService
from tests.conftest import parse_multipart


def encode(body: dict) -> bytes:
    return json.dumps(body).encode()


# ============================================================================
# RelayService tests
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
async def test_relay_success_with_mocked_client(filter_instructions: dict):
    client = AsyncMock()
    client.process_image.return_value = UpstreamImage(content=b"\xde\xad", mime_type="image/png")
    service = RelayService(client=client)

    result = await service.relay(encode({
        "imageBase64": "data:image/png;base64,AAAA",
        "instructions": filter_instructions,
    }))

    assert result.image_data == "data:image/png;base64,3q0="
    assert result.model_dump(by_alias=True) == {"imageData": "data:image/png;base64,3q0="}
    client.process_image.assert_awaited_once_with(b"\x00\x00\x00", filter_instructions)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_relay_passes_unknown_instruction_shapes_through():
    client = AsyncMock()
    client.process_image.return_value = UpstreamImage(content=b"x", mime_type="image/webp")
    service = RelayService(client=client)
    instructions = {"operations": {"resizing": {"width": 512}}, "output": {"format": "webp"}}

    await service.relay(encode({"imageBase64": "data:image/png;base64,AAAA", "instructions": instructions}))

    client.process_image.assert_awaited_once_with(b"\x00\x00\x00", instructions)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_relay_missing_fields_never_calls_upstream():
    client = AsyncMock()
    service = RelayService(client=client)

    with pytest.raises(ServiceError) as exc_info:
        await service.relay(encode({"imageBase64": "data:image/png;base64,AAAA"}))

    assert exc_info.value.status_code == 400
    assert exc_info.value.code == ErrorCode.REQ_MISSING_FIELDS
    client.process_image.assert_not_awaited()


@pytest.mark.unit
@pytest.mark.parametrize("body", [b"{not json", b"\xff\xfe", b"[1, 2"])
def test_parse_request_rejects_malformed_json(body: bytes):
    service = RelayService(client=AsyncMock())

    with pytest.raises(ServiceError) as exc_info:
        service.parse_request(body)

    assert exc_info.value.status_code == 400
    assert exc_info.value.code == ErrorCode.REQ_INVALID_JSON


@pytest.mark.unit
@pytest.mark.parametrize("body", [b"[]", b'"a string"', b"null", b"{}"])
def test_parse_request_non_object_is_missing_fields(body: bytes):
    service = RelayService(client=AsyncMock())

    with pytest.raises(ServiceError) as exc_info:
        service.parse_request(body)

    assert exc_info.value.code == ErrorCode.REQ_MISSING_FIELDS


@pytest.mark.unit
def test_decode_image_rejects_missing_marker():
    service = RelayService(client=AsyncMock())

    with pytest.raises(ServiceError) as exc_info:
        service.decode_image("iVBORw0KGgo=")

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "Invalid Base64 data"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_relay_maps_upstream_error_to_passthrough():
    client = AsyncMock()
    client.process_image.side_effect = UpstreamError(429, "slow down")
    service = RelayService(client=client)

    with pytest.raises(ServiceError) as exc_info:
        await service.relay(encode({"imageBase64": "data:image/png;base64,AAAA", "instructions": {"a": 1}}))

    assert exc_info.value.status_code == 429
    assert exc_info.value.detail == "Claid.ai API failed: slow down"
    assert exc_info.value.code == ErrorCode.UPSTREAM_FAILED


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize("exc, code", [
    (httpx.ConnectError("refused"), ErrorCode.UPSTREAM_UNREACHABLE),
    (UpstreamNotConfiguredError("no key"), ErrorCode.CONFIG_MISSING_API_KEY),
    (RuntimeError("boom"), ErrorCode.INTERNAL_ERROR),
])
async def test_relay_maps_other_failures_to_generic_500(exc: Exception, code: ErrorCode):
    client = AsyncMock()
    client.process_image.side_effect = exc
    service = RelayService(client=client)

    with pytest.raises(ServiceError) as exc_info:
        await service.relay(encode({"imageBase64": "data:image/png;base64,AAAA", "instructions": {"a": 1}}))

    assert exc_info.value.status_code == 500
    assert exc_info.value.detail == "An internal error occurred in the proxy function."
    assert exc_info.value.code == code


# ============================================================================
# ClaidClient tests
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
async def test_claid_client_uses_configured_endpoint_and_scheme():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"ok", headers={"content-type": "image/webp"})

    config = Settings(
        CLAID_API_KEY="secret",
        CLAID_API_URL="https://example.test/v2/edit",
        CLAID_AUTH_SCHEME="Bearer",
    )
    client = ClaidClient(config=config, transport=httpx.MockTransport(handler))

    result = await client.process_image(b"\x01\x02", {"operation": "generative_adjustment", "prompt": "warmer"})

    assert result == UpstreamImage(content=b"ok", mime_type="image/webp")
    assert str(seen[0].url) == "https://example.test/v2/edit"
    assert seen[0].headers["authorization"] == "Bearer secret"

    parts = parse_multipart(seen[0])
    assert parts["source_image"][1] == b"\x01\x02"
    assert json.loads(parts["instructions"][1]) == {"operation": "generative_adjustment", "prompt": "warmer"}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_claid_client_raises_upstream_error_on_non_2xx():
    transport = httpx.MockTransport(lambda request: httpx.Response(500, content=b"upstream exploded"))
    client = ClaidClient(config=Settings(CLAID_API_KEY="k"), transport=transport)

    with pytest.raises(UpstreamError) as exc_info:
        await client.process_image(b"img", {"prompt": "x"})

    assert exc_info.value.status_code == 500
    assert exc_info.value.body == "upstream exploded"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_claid_client_requires_api_key():
    calls = []
    transport = httpx.MockTransport(lambda request: calls.append(request) or httpx.Response(200))
    client = ClaidClient(config=Settings(CLAID_API_KEY=""), transport=transport)

    with pytest.raises(UpstreamNotConfiguredError):
        await client.process_image(b"img", {"prompt": "x"})

    assert calls == []
