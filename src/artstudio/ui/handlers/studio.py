"""Form and submission handlers for the studio tab."""

import logging

import gradio as gr

from artstudio.core.compositor import decode_image
from artstudio.core.config import config
from artstudio.core.errors import ExportError, StudioError
from artstudio.core.gallery import GalleryItem, parse_tags

from ..client import StudioClient
from ..models import UPLOAD_ACTIONS, StudioState
from ..state import initialize_studio_state
from ..validation import ValidationError, validate_prompt_content, validate_submission
from .gallery import gallery_view

logger = logging.getLogger(__name__)

_studio_client: StudioClient | None = None


def get_studio_client() -> StudioClient:
    """Return the shared proxy client, creating it on first use."""
    global _studio_client
    if _studio_client is None:
        _studio_client = StudioClient(config.proxy_url)
    return _studio_client


def set_studio_client(client: StudioClient | None) -> None:
    """Replace the shared proxy client (``None`` resets to the configured proxy)."""
    global _studio_client
    _studio_client = client


def error_markdown(title: str, message: str) -> str:
    return f"❌ **{title}**\n\n{message}"


def toggle_upload_inputs(action: str) -> tuple[dict, dict]:
    """Show the image upload for edit/variation and the mask upload for edit.

    Returns:
        Tuple of (image_input_update, mask_input_update)
    """
    return gr.update(visible=action in UPLOAD_ACTIONS), gr.update(visible=action == "edit")


def apply_preset(preset: str) -> str:
    return preset


def start_loading() -> dict:
    return gr.update(interactive=False, value="Creating...")


def finish_loading() -> dict:
    return gr.update(interactive=True, value="Create")


def submit_image(
    prompt: str,
    size: str,
    action: str,
    model: str,
    tags_text: str,
    image_path: str | None,
    mask_path: str | None,
    search_query: str,
    persisted: str | None,
    state: StudioState,
) -> tuple:
    """Send the form to the proxy and store a successful result in the gallery.

    Args:
        prompt: Prompt text
        size: Selected resolution
        action: Selected action (generate/edit/variation)
        model: Model identifier (blank uses the configured default)
        tags_text: Comma or newline separated tags
        image_path: Uploaded image, if any
        mask_path: Uploaded mask, if any
        search_query: Current gallery search, used to render the gallery
        persisted: Gallery value held by the browser (hydrates a fresh session)
        state: Studio state

    Returns:
        Tuple of (result_image, error_markdown, gallery_value,
        persisted_gallery, updated_state)
    """
    state = initialize_studio_state(state, persisted)

    if state.loading:
        logger.warning("Submission ignored: a request is already running")
        return (
            gr.update(),
            error_markdown("Busy", "A request is already running."),
            gr.update(),
            state.gallery.persisted_value(),
            state,
        )

    state.loading = True
    state.error = None
    state.last_image_b64 = None
    model = (model or "").strip() or config.default_model

    try:
        validate_submission(action, image_path)
        validate_prompt_content(prompt or "")

        b64 = get_studio_client().create_image(
            action=action,
            prompt=prompt or "",
            size=size,
            model=model,
            image_path=image_path if action in UPLOAD_ACTIONS else None,
            mask_path=mask_path if action == "edit" else None,
        )

        item = GalleryItem(
            prompt=prompt or "",
            action=action,
            size=size,
            model=model,
            b64=b64,
            tags=parse_tags(tags_text),
        )
        state.gallery.add(item)
        state.last_image_b64 = b64
        logger.info(f"Stored {action} result {item.id} ({len(state.gallery)} gallery items)")

        try:
            result = decode_image(b64)
        except ExportError as e:
            # The item is stored; only the preview failed
            logger.warning(f"Result preview failed: {e}")
            result = None

        return (
            result,
            "",
            gallery_view(state, search_query),
            state.gallery.persisted_value(),
            state,
        )

    except ValidationError as e:
        logger.warning(f"Validation error: {e}")
        state.error = str(e)
        message = error_markdown("Validation Error", str(e))
    except StudioError as e:
        logger.error(f"Image request failed: {e}")
        state.error = str(e) or "Request failed"
        message = error_markdown("Error", state.error)
    except Exception as e:
        logger.error(f"Unexpected error submitting image request: {e}", exc_info=True)
        state.error = str(e) or "Something went wrong"
        message = error_markdown("Error", state.error)
    finally:
        state.loading = False

    return None, message, gr.update(), state.gallery.persisted_value(), state
