"""
Pytest configuration and shared fixtures for image-relay tests.

This module provides:
- Test client fixtures with the upstream API stubbed out
- Stub upstream handlers built on httpx.MockTransport
- Multipart parsing helper for asserting on the upstream request
- Sample image data
"""

import os
import re
from typing import Callable, Dict, List, Tuple

# Configure before the app (and its global settings) is imported
os.environ.setdefault("CLAID_API_KEY", "test-api-key")
os.environ.setdefault("CLAID_API_URL", "https://upstream.test/v1/image-processing")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx
import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.api.dependencies import get_claid_client
from app.core.config import settings
from app.services.claid_client import ClaidClient


Handler = Callable[[httpx.Request], httpx.Response]


# ============================================================================
# Upstream stub fixtures
# ============================================================================

class StubUpstream:
    """Records every request sent upstream and answers with ``handler``."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.handler: Handler = lambda request: httpx.Response(
            200, content=b"\x89PNG", headers={"content-type": "image/png"}
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def respond(self, status_code: int = 200, content: bytes = b"", headers: Dict[str, str] = None):
        """Answer every subsequent request with a fixed response."""
        self.handler = lambda request: httpx.Response(
            status_code, content=content, headers=headers or {}
        )

    def echo_image(self, content_type: str = "image/png"):
        """Answer with the ``source_image`` bytes that were sent."""
        def handler(request: httpx.Request) -> httpx.Response:
            _, data = parse_multipart(request)["source_image"]
            return httpx.Response(200, content=data, headers={"content-type": content_type})
        self.handler = handler

    def fail_with(self, exc: Exception):
        """Raise a transport error instead of answering."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise exc
        self.handler = handler


@pytest.fixture
def upstream() -> StubUpstream:
    """Stub of the image-processing API."""
    return StubUpstream()


@pytest.fixture
def claid_client(upstream: StubUpstream) -> ClaidClient:
    """ClaidClient wired to the stub upstream."""
    return ClaidClient(config=settings, transport=httpx.MockTransport(upstream))


# ============================================================================
# API Client fixtures
# ============================================================================

@pytest.fixture
def client(claid_client: ClaidClient) -> TestClient:
    """Synchronous test client with the upstream client overridden."""
    app.dependency_overrides[get_claid_client] = lambda: claid_client

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


# ============================================================================
# Test data fixtures
# ============================================================================

@pytest.fixture
def sample_png_bytes() -> bytes:
    """Small PNG byte buffer (1x1 pixel)."""
    return bytes.fromhex(
        '89504e470d0a1a0a0000000d49484452000000010000000108060000001f15c4'
        '890000000d49444154789c6360000002000005000157ae3c9d0000000049454e'
        '44ae426082'
    )


@pytest.fixture
def filter_instructions() -> dict:
    return {"operation": "generative_filter", "prompt": "sepia"}


# ============================================================================
# Utility functions
# ============================================================================

def parse_multipart(request: httpx.Request) -> Dict[str, Tuple[str, bytes]]:
    """Split a multipart/form-data request into ``{name: (headers, data)}``."""
    content_type = request.headers["content-type"]
    boundary = content_type.split("boundary=", 1)[1].strip('"').encode()

    parts = {}
    for chunk in request.content.split(b"--" + boundary):
        if chunk.startswith(b"\r\n"):
            chunk = chunk[2:]
        if chunk.endswith(b"\r\n"):
            chunk = chunk[:-2]
        if not chunk or chunk == b"--":
            continue

        raw_headers, _, data = chunk.partition(b"\r\n\r\n")
        headers = raw_headers.decode("latin-1")
        match = re.search(r'name="([^"]+)"', headers)
        if match:
            parts[match.group(1)] = (headers, data)

    return parts
