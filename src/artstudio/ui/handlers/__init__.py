"""UI event handlers organized by feature area.

- studio: Create form, presets and image submission
- gallery: Gallery view, search, selection, import/export and image export
"""

from .gallery import (
    clear_gallery,
    delete_selected,
    describe_item,
    export_gallery_json,
    export_selected_image,
    gallery_view,
    hydrate_gallery,
    import_gallery,
    search_gallery,
    select_gallery_item,
    use_prompt,
)
from .studio import (
    apply_preset,
    finish_loading,
    get_studio_client,
    set_studio_client,
    start_loading,
    submit_image,
    toggle_upload_inputs,
)

__all__ = [
    # Studio handlers
    "apply_preset",
    "finish_loading",
    "get_studio_client",
    "set_studio_client",
    "start_loading",
    "submit_image",
    "toggle_upload_inputs",
    # Gallery handlers
    "clear_gallery",
    "delete_selected",
    "describe_item",
    "export_gallery_json",
    "export_selected_image",
    "gallery_view",
    "hydrate_gallery",
    "import_gallery",
    "search_gallery",
    "select_gallery_item",
    "use_prompt",
]
