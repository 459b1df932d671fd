"""
Relay API endpoint.

Router handles HTTP concerns (raw body, status codes, response model);
RelayService handles the decode → upstream → encode flow.
"""

from fastapi import APIRouter, Depends, Request

from app.api.dependencies import get_relay_service
from app.models.relay import ErrorResponse, RelayResponse
from app.services.relay_service import RelayService


router = APIRouter(prefix="/api/v1", tags=["relay"])

# Path the serverless function used to be served from
NETLIFY_FUNCTION_PATH = "/.netlify/functions/claid-proxy"

RELAY_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing fields or invalid Base64 data"},
    405: {"model": ErrorResponse, "description": "Only POST is allowed"},
    500: {"model": ErrorResponse, "description": "Internal error in the relay"},
}


@router.post(
    "/claid-proxy",
    response_model=RelayResponse,
    responses=RELAY_RESPONSES,
)
async def claid_proxy(
    request: Request,
    service: RelayService = Depends(get_relay_service),
):
    """Relay an image edit to the upstream image-processing API.

    Request body: ``{"imageBase64": "data:image/png;base64,...", "instructions": {...}}``

    Returns ``{"imageData": "data:<mime>;base64,..."}``. Upstream failures
    come back with the upstream status code and
    ``{"error": "Claid.ai API failed: <upstream body>"}``.

    The body is read raw so that missing fields and malformed JSON are
    reported as 400 in the relay's own error format.
    """
    body = await request.body()
    return await service.relay(body)
