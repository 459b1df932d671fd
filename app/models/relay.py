"""Pydantic models for the relay request/response envelopes and instructions."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class RelayRequest(BaseModel):
    """Inbound envelope.

    Both fields are optional at the model level so that presence is checked by
    the service (400) instead of FastAPI's validation layer (422).
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    image_base64: Optional[Any] = Field(None, alias="imageBase64", description="Image as a Base64 data URL")
    instructions: Optional[Any] = Field(None, description="Opaque instructions forwarded to the upstream API")


class RelayResponse(BaseModel):
    """Successful relay result."""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"imageData": "data:image/png;base64,3q0="}},
    )

    image_data: str = Field(..., alias="imageData", description="Processed image as a Base64 data URL")


class ErrorResponse(BaseModel):
    """Error envelope returned for every failure."""
    error: str = Field(..., description="Human-readable error message")


class Operation(str, Enum):
    """Instruction operations known to the frontend."""
    GENERATIVE_EDIT = "generative_edit"
    GENERATIVE_FILTER = "generative_filter"
    GENERATIVE_ADJUSTMENT = "generative_adjustment"


class FocusPoint(BaseModel):
    """Pixel coordinates the edit should focus on."""
    x: float
    y: float


class GenerativeEdit(BaseModel):
    """Localized edit around a hotspot."""
    operation: Operation = Operation.GENERATIVE_EDIT
    prompt: str
    focus_point: FocusPoint


class GenerativeFilter(BaseModel):
    """Stylistic filter applied to the whole image."""
    operation: Operation = Operation.GENERATIVE_FILTER
    prompt: str


class GenerativeAdjustment(BaseModel):
    """Global photo adjustment."""
    operation: Operation = Operation.GENERATIVE_ADJUSTMENT
    prompt: str
