"""Validation utilities for studio form inputs."""

import logging

from artstudio.core.errors import ValidationError
from artstudio.core.gallery import ACTIONS

from .models import UPLOAD_ACTIONS

logger = logging.getLogger(__name__)

__all__ = ["ValidationError", "validate_submission", "validate_prompt_content"]


def validate_submission(action: str, image_path: str | None) -> None:
    """Check a form submission before it is sent to the proxy.

    Mirrors the proxy's own checks so the user gets the same message without
    a round trip.

    Args:
        action: Selected action
        image_path: Path of the uploaded image, if any

    Raises:
        ValidationError: If the action is unknown or needs an image that was
            not supplied
    """
    if action not in ACTIONS:
        raise ValidationError(f"Unsupported action: {action}", field="action")

    if action in UPLOAD_ACTIONS and not image_path:
        raise ValidationError(f"image file is required for {action}", field="image")


def validate_prompt_content(prompt: str, max_length: int = 32000) -> None:
    """Validate prompt text content.

    Args:
        prompt: Prompt text to validate
        max_length: Maximum allowed prompt length (the image API's own limit
            for GPT image models)

    Raises:
        ValidationError: If prompt is too long
    """
    if len(prompt) > max_length:
        raise ValidationError(
            f"Prompt is too long ({len(prompt)} characters). Maximum is {max_length} characters.",
            field="prompt",
        )
