"""Gallery view, search, import/export and export-image handlers."""

import logging
import tempfile
from pathlib import Path

import gradio as gr

from artstudio.core.compositor import decode_image, render_export
from artstudio.core.errors import ExportError, GalleryImportError
from artstudio.core.gallery import GalleryItem, export_filename

from ..models import EMPTY_GALLERY_TEXT, EXPORT_FORMATS, NO_SELECTION_TEXT, StudioState
from ..state import initialize_studio_state

logger = logging.getLogger(__name__)

CAPTION_PROMPT_CHARS = 80


def _caption(item: GalleryItem) -> str:
    prompt = item.prompt
    if len(prompt) > CAPTION_PROMPT_CHARS:
        prompt = prompt[: CAPTION_PROMPT_CHARS - 1] + "…"
    return f"{prompt}\n{item.action} • {item.size} • {item.model}"


def _error_markdown(title: str, message: str) -> str:
    return f"❌ **{title}**\n\n{message}"


def _write_download(filename: str, data: bytes) -> str:
    """Write *data* to a fresh temporary directory and return the file path."""
    path = Path(tempfile.mkdtemp(prefix="artstudio-")) / filename
    path.write_bytes(data)
    return str(path)


def gallery_view(state: StudioState, query: str | None = None) -> list:
    """Build the Gradio gallery value for the current search.

    Items whose image cannot be decoded are skipped.  ``state.visible_ids``
    records the ids in display order so selection indices map back to items.

    Args:
        state: Studio state (must be initialized)
        query: Search query; ``None`` keeps the state's current query

    Returns:
        List of (image, caption) tuples
    """
    if query is not None:
        state.search_query = query

    view = []
    state.visible_ids = []
    for item in state.gallery.search(state.search_query):
        try:
            image = decode_image(item.b64)
        except ExportError as e:
            logger.warning(f"Skipping gallery item {item.id}: {e}")
            continue
        view.append((image, _caption(item)))
        state.visible_ids.append(item.id)

    if state.selected_id not in state.visible_ids:
        state.selected_id = None
    return view


def describe_item(item: GalleryItem | None) -> str:
    """Markdown summary of the selected item."""
    if item is None:
        return NO_SELECTION_TEXT
    tags = ", ".join(f"`{tag}`" for tag in item.tags) or "*none*"
    return (
        f"**Prompt:** {item.prompt or '*(empty)*'}\n\n"
        f"**Action:** {item.action} • **Size:** {item.size} • **Model:** {item.model}\n\n"
        f"**Tags:** {tags}\n\n"
        f"**Created:** {item.created_at}"
    )


def hydrate_gallery(persisted: str | None, search_query: str, state: StudioState) -> tuple:
    """Load the gallery from browser storage when the page loads.

    Returns:
        Tuple of (gallery_value, status_markdown, updated_state)
    """
    state = initialize_studio_state(state, persisted)
    view = gallery_view(state, search_query)
    status = "" if len(state.gallery) else EMPTY_GALLERY_TEXT
    return view, status, state


def search_gallery(query: str, persisted: str | None, state: StudioState) -> tuple:
    """Filter the gallery view by *query*.

    Returns:
        Tuple of (gallery_value, selected_markdown, updated_state)
    """
    state = initialize_studio_state(state, persisted)
    view = gallery_view(state, query)
    return view, describe_item(state.gallery.get(state.selected_id)), state


def select_gallery_item(
    evt: gr.SelectData, persisted: str | None, state: StudioState
) -> tuple[str, StudioState]:
    """Remember which gallery item the user clicked.

    Returns:
        Tuple of (selected_markdown, updated_state)
    """
    state = initialize_studio_state(state, persisted)
    index = evt.index
    if isinstance(index, (list, tuple)):
        index = index[0]

    if index is None or not 0 <= index < len(state.visible_ids):
        state.selected_id = None
        return NO_SELECTION_TEXT, state

    state.selected_id = state.visible_ids[index]
    return describe_item(state.gallery.get(state.selected_id)), state


def use_prompt(persisted: str | None, state: StudioState) -> tuple:
    """Pre-fill the form from the selected gallery item.

    Returns:
        Tuple of (prompt, action, size, model, tags_text) updates
    """
    state = initialize_studio_state(state, persisted)
    item = state.gallery.get(state.selected_id)
    if item is None:
        return gr.update(), gr.update(), gr.update(), gr.update(), gr.update()
    return item.prompt, item.action, item.size, item.model, ", ".join(item.tags)


def delete_selected(persisted: str | None, state: StudioState) -> tuple:
    """Delete the selected gallery item.

    Returns:
        Tuple of (gallery_value, selected_markdown, status_markdown,
        persisted_gallery, updated_state)
    """
    state = initialize_studio_state(state, persisted)
    if state.selected_id is None:
        return gr.update(), NO_SELECTION_TEXT, "", state.gallery.persisted_value(), state

    state.gallery.delete(state.selected_id)
    logger.info(f"Deleted gallery item {state.selected_id}")
    state.selected_id = None
    view = gallery_view(state)
    status = "" if len(state.gallery) else EMPTY_GALLERY_TEXT
    return view, NO_SELECTION_TEXT, status, state.gallery.persisted_value(), state


def clear_gallery(persisted: str | None, state: StudioState) -> tuple:
    """Remove every gallery item.

    Returns:
        Tuple of (gallery_value, selected_markdown, status_markdown,
        persisted_gallery, updated_state)
    """
    state = initialize_studio_state(state, persisted)
    state.gallery.clear()
    state.selected_id = None
    logger.info("Gallery cleared")
    return gallery_view(state), NO_SELECTION_TEXT, EMPTY_GALLERY_TEXT, state.gallery.persisted_value(), state


def import_gallery(file_path: str | None, persisted: str | None, state: StudioState) -> tuple:
    """Merge a gallery JSON file into the gallery.

    Returns:
        Tuple of (gallery_value, status_markdown, persisted_gallery,
        updated_state)
    """
    state = initialize_studio_state(state, persisted)
    if not file_path:
        return gr.update(), "", state.gallery.persisted_value(), state

    try:
        text = Path(file_path).read_text(encoding="utf-8")
        added = state.gallery.import_json(text)
    except GalleryImportError as e:
        logger.warning(f"Import failed: {e}")
        return gr.update(), _error_markdown("Import Failed", str(e)), state.gallery.persisted_value(), state
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Could not read import file: {e}")
        return (
            gr.update(),
            _error_markdown("Import Failed", f"Could not read file: {e}"),
            state.gallery.persisted_value(),
            state,
        )

    status = f"✅ Imported {len(added)} item{'s' if len(added) != 1 else ''}"
    return gallery_view(state), status, state.gallery.persisted_value(), state


def export_gallery_json(persisted: str | None, state: StudioState) -> tuple:
    """Write the gallery to a downloadable JSON file.

    Returns:
        Tuple of (file_path_or_None, status_markdown)
    """
    state = initialize_studio_state(state, persisted)
    try:
        path = _write_download(export_filename(), state.gallery.export_json().encode("utf-8"))
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Gallery export failed: {e}", exc_info=True)
        return None, _error_markdown("Export Failed", str(e))

    logger.info(f"Exported {len(state.gallery)} gallery items to {path}")
    return path, ""


def export_selected_image(
    format_label: str, overlay: bool, persisted: str | None, state: StudioState
) -> tuple:
    """Render the selected item in the chosen format for download.

    Args:
        format_label: Button label (``PNG``, ``JPEG`` or ``WebP``)
        overlay: Whether to draw the caption overlay
        persisted: Gallery value held by the browser
        state: Studio state

    Returns:
        Tuple of (file_path_or_None, status_markdown)
    """
    state = initialize_studio_state(state, persisted)
    item = state.gallery.get(state.selected_id)
    if item is None:
        return None, _error_markdown("Export Failed", "Select an image in the gallery first.")

    try:
        data, filename = render_export(item, EXPORT_FORMATS.get(format_label, format_label), overlay)
        path = _write_download(filename, data)
    except ExportError as e:
        logger.warning(f"Image export failed: {e}")
        return None, _error_markdown("Export Failed", str(e))
    except OSError as e:
        logger.error(f"Could not write export: {e}")
        return None, _error_markdown("Export Failed", str(e))

    return path, ""
