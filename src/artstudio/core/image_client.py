"""Hosted image API wrapper for the Digital Art Studio proxy.

This module provides :class:`ImageClient`, the single point of contact with
the OpenAI Images API.  It hides the differences between the two model
families the proxy supports:

- **DALL-E** models (name contains ``"dall-e"``) return URLs unless asked for
  ``response_format="b64_json"``, and take a single image file for edits.
- **GPT image** models (``gpt-image-1`` and friends) always return base64,
  reject ``response_format``, and take a list of images for edits.

Variations are only offered by the DALL-E family, so a variation request for
any other model is sent with the configured variation model instead.

Key Responsibilities
--------------------
- **Lazy client creation** -- the SDK client is built on first use, so a
  missing API key surfaces as a per-request :class:`ConfigurationError`
  instead of a startup failure.
- **Response normalisation** -- every call returns the first base64 image of
  the response, or raises :class:`UpstreamError`.
- **Error translation** -- SDK exceptions become :class:`UpstreamError`
  carrying the upstream message.

Usage
-----
::

    from artstudio.core.config import config
    from artstudio.core.image_client import ImageClient

    client = ImageClient(config)
    b64 = await client.generate(prompt="a red fox", size="512x512", model="gpt-image-1")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import openai
from openai import AsyncOpenAI

from artstudio.core.config import StudioConfig
from artstudio.core.errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

DALLE_MARKER = "dall-e"


def is_dalle_model(model: str) -> bool:
    """Return whether *model* belongs to the DALL-E family."""
    return DALLE_MARKER in str(model)


@dataclass(frozen=True)
class UploadedImage:
    """An image file received by the proxy, ready to forward upstream."""

    filename: str
    content: bytes
    content_type: str = "image/png"

    def as_file(self) -> tuple[str, bytes, str]:
        """Return the ``(name, bytes, mime)`` tuple accepted by the SDK."""
        return (self.filename or "image.png", self.content, self.content_type)


class ImageClient:
    """Thin async wrapper over the OpenAI Images API.

    Args:
        config: Studio configuration (API key, base URL, variation model).
        client: Optional pre-built SDK client.  Used by tests and by callers
            that share a client across applications.
    """

    def __init__(self, config: StudioConfig, client: AsyncOpenAI | None = None):
        self.config = config
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.config.openai_api_key:
                raise ConfigurationError("OPENAI_API_KEY is not set")
            self._client = AsyncOpenAI(
                api_key=self.config.openai_api_key,
                base_url=self.config.openai_base_url,
            )
            logger.info("OpenAI client initialised")
        return self._client

    async def generate(self, prompt: str, size: str, model: str) -> str:
        """Generate an image from a text prompt."""
        params: dict[str, Any] = {"model": model, "prompt": prompt, "size": size}
        if is_dalle_model(model):
            params["response_format"] = "b64_json"
        return await self._call("generate", params)

    async def edit(
        self,
        prompt: str,
        size: str,
        model: str,
        image: UploadedImage,
        mask: UploadedImage | None = None,
    ) -> str:
        """Edit *image* according to *prompt*, optionally restricted by *mask*.

        Transparent areas of the mask mark the region to edit.
        """
        params: dict[str, Any] = {"model": model, "prompt": prompt, "size": size}
        if is_dalle_model(model):
            params["image"] = image.as_file()
            params["response_format"] = "b64_json"
        else:
            params["image"] = [image.as_file()]
        if mask is not None:
            params["mask"] = mask.as_file()
        return await self._call("edit", params)

    async def create_variation(self, size: str, model: str, image: UploadedImage) -> str:
        """Create a variation of *image*."""
        variation_model = model if is_dalle_model(model) else self.config.variation_model
        if variation_model != model:
            logger.info(f"Model {model!r} cannot create variations; using {variation_model!r}")
        params: dict[str, Any] = {
            "model": variation_model,
            "image": image.as_file(),
            "size": size,
            "response_format": "b64_json",
        }
        return await self._call("create_variation", params)

    async def _call(self, operation: str, params: dict[str, Any]) -> str:
        client = self._get_client()
        method = getattr(client.images, operation)
        logger.debug(f"images.{operation}(model={params.get('model')!r}, size={params.get('size')!r})")

        try:
            response = await method(**params)
        except openai.OpenAIError as e:
            logger.error(f"images.{operation} failed: {e}")
            raise UpstreamError(str(e) or "Unknown error") from e

        return first_b64(response)


def first_b64(response: Any) -> str:
    """Extract the first base64 image from an Images API response.

    Raises:
        UpstreamError: If the response carries no base64 image.
    """
    data = getattr(response, "data", None) or []
    b64 = getattr(data[0], "b64_json", None) if data else None
    if not b64:
        raise UpstreamError("no image returned")
    return b64
