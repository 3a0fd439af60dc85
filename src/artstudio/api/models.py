"""Pydantic request and response models for the Digital Art Studio API.

Models
------
ImageRequest
    Fields of ``POST /api/images`` -- parsed from either the JSON body or the
    multipart form.  Missing, ``null`` and empty values take the defaults.
ImageResponse
    Successful ``POST /api/images`` response carrying the base64 image.
ErrorResponse
    Error body shared by every failure status.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from artstudio.core.gallery import DEFAULT_ACTION, DEFAULT_MODEL, DEFAULT_SIZE


class ImageRequest(BaseModel):
    """Request fields for the ``POST /api/images`` endpoint.

    Attributes:
        action: ``"generate"``, ``"edit"`` or ``"variation"``.  Defaults to
            ``"generate"``.  Checked by the route, not here, so an unknown
            action produces the proxy's own error body.
        prompt: Text prompt (ignored for variations).
        size: Output resolution such as ``"1024x1024"``.
        model: Image model identifier.
    """

    model_config = ConfigDict(extra="ignore")

    action: str = Field(
        default=DEFAULT_ACTION,
        description="Operation: 'generate', 'edit' or 'variation'.",
    )
    prompt: str = Field(
        default="",
        description="Text prompt describing the image or the edit.",
    )
    size: str = Field(
        default=DEFAULT_SIZE,
        description="Output resolution (e.g. '512x512').",
    )
    model: str = Field(
        default=DEFAULT_MODEL,
        description="Image model identifier (e.g. 'gpt-image-1', 'dall-e-2').",
    )

    @field_validator("action", "size", "model", mode="before")
    @classmethod
    def _blank_to_default(cls, value: Any, info) -> Any:
        """Treat ``None`` and empty strings as "not supplied"."""
        if value is None or value == "":
            return cls.model_fields[info.field_name].default
        return value

    @field_validator("prompt", mode="before")
    @classmethod
    def _none_prompt(cls, value: Any) -> Any:
        return "" if value is None else value


class ImageResponse(BaseModel):
    """Successful response body: the first generated image as base64."""

    b64: str = Field(..., min_length=1, description="Base64-encoded image data.")


class ErrorResponse(BaseModel):
    """Error response body."""

    error: str = Field(..., description="Human-readable error message.")
