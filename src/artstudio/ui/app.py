"""Gradio UI for Digital Art Studio."""

import logging
from functools import partial

import gradio as gr

from artstudio.core.config import config
from artstudio.core.gallery import SIZES

from .handlers import (
    apply_preset,
    clear_gallery,
    delete_selected,
    export_gallery_json,
    export_selected_image,
    finish_loading,
    hydrate_gallery,
    import_gallery,
    search_gallery,
    select_gallery_item,
    start_loading,
    submit_image,
    toggle_upload_inputs,
    use_prompt,
)
from .models import (
    ACTION_CHOICES,
    EMPTY_GALLERY_TEXT,
    EXPORT_FORMATS,
    NO_SELECTION_TEXT,
    PROMPT_PRESETS,
    StudioState,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_ui() -> gr.Blocks:
    """Create the studio UI.

    Returns:
        Gradio Blocks app (mounted at ``/studio`` by the API server)
    """
    app = gr.Blocks(title="Digital Art Studio")

    with app:
        # Session state - one instance per user
        studio_state = gr.State(StudioState())

        # Raw serialized gallery, kept in the browser's local storage
        gallery_storage = gr.BrowserState(
            None,
            storage_key=config.gallery_storage_key,
            secret=config.browser_state_secret,
        )

        gr.Markdown(
            """
            # Digital Art Studio
            ### Generate, edit and remix images, then keep the best ones in your gallery
            """
        )

        form = create_studio_section()
        gallery_components = create_gallery_section(studio_state, gallery_storage, form)

        # Hydrate the gallery from browser storage on page load
        app.load(
            fn=hydrate_gallery,
            inputs=[gallery_storage, gallery_components["search"], studio_state],
            outputs=[
                gallery_components["gallery"],
                gallery_components["status"],
                studio_state,
            ],
        )

    return app


def create_studio_section() -> dict:
    """Create the form and result area.

    Returns:
        Dictionary of components other sections wire events to
    """
    with gr.Row():
        with gr.Column(scale=1):
            gr.Markdown("### Create")

            with gr.Row():
                preset_buttons = [
                    gr.Button(preset, size="sm", variant="secondary") for preset in PROMPT_PRESETS
                ]

            prompt_input = gr.Textbox(
                label="Prompt",
                placeholder="Describe the image you want to create...",
                lines=4,
            )

            with gr.Row():
                action_input = gr.Radio(
                    label="Action",
                    choices=ACTION_CHOICES,
                    value="generate",
                )
                size_input = gr.Dropdown(
                    label="Size",
                    choices=list(SIZES),
                    value=config.default_size,
                )

            with gr.Row():
                model_input = gr.Textbox(
                    label="Model",
                    value=config.default_model,
                    info="Leave blank to use the server default",
                )
                tags_input = gr.Textbox(
                    label="Tags",
                    placeholder="landscape, neon, draft",
                    info="Comma or newline separated",
                )

            with gr.Row():
                image_input = gr.Image(
                    label="Image",
                    type="filepath",
                    sources=["upload", "clipboard"],
                    height=220,
                    visible=False,
                )
                mask_input = gr.Image(
                    label="Mask (optional)",
                    type="filepath",
                    sources=["upload"],
                    height=220,
                    visible=False,
                )

            create_btn = gr.Button("Create", variant="primary")

        with gr.Column(scale=1):
            gr.Markdown("### Result")
            result_image = gr.Image(
                label="Latest result",
                type="pil",
                interactive=False,
                height=480,
            )
            error_output = gr.Markdown(value="")

    # Event handlers

    for button, preset in zip(preset_buttons, PROMPT_PRESETS):
        button.click(fn=partial(apply_preset, preset), outputs=[prompt_input])

    action_input.change(
        fn=toggle_upload_inputs,
        inputs=[action_input],
        outputs=[image_input, mask_input],
    )

    return {
        "prompt": prompt_input,
        "action": action_input,
        "size": size_input,
        "model": model_input,
        "tags": tags_input,
        "image": image_input,
        "mask": mask_input,
        "create_btn": create_btn,
        "result": result_image,
        "error": error_output,
    }


def create_gallery_section(studio_state, gallery_storage, form: dict) -> dict:
    """Create the gallery browser and wire it to the form.

    Args:
        studio_state: Session state component
        gallery_storage: BrowserState holding the serialized gallery
        form: Components returned by :func:`create_studio_section`

    Returns:
        Dictionary of components used by the page-load event
    """
    gr.Markdown("### Gallery")

    with gr.Row():
        search_input = gr.Textbox(
            label="Search",
            placeholder="Search prompt, model, action, size or tags",
            scale=3,
        )
        overlay_checkbox = gr.Checkbox(label="Overlay caption on export", value=False, scale=1)

    with gr.Row():
        export_json_btn = gr.Button("Export JSON", size="sm")
        import_btn = gr.UploadButton(
            "Import JSON",
            file_types=[".json"],
            type="filepath",
            size="sm",
        )
        clear_btn = gr.Button("Clear gallery", size="sm", variant="stop")

    gallery_status = gr.Markdown(value=EMPTY_GALLERY_TEXT)

    with gr.Row():
        with gr.Column(scale=3):
            gallery = gr.Gallery(
                label="Saved images",
                columns=4,
                height=520,
                object_fit="cover",
                allow_preview=False,
            )

        with gr.Column(scale=2):
            selected_info = gr.Markdown(value=NO_SELECTION_TEXT)
            use_prompt_btn = gr.Button("Use prompt", size="sm")
            with gr.Row():
                export_buttons = [gr.Button(label, size="sm") for label in EXPORT_FORMATS]
            delete_btn = gr.Button("Delete", size="sm", variant="stop")
            download_file = gr.File(label="Download", interactive=False)

    # Event handlers

    form["create_btn"].click(
        fn=start_loading,
        outputs=[form["create_btn"]],
    ).then(
        fn=submit_image,
        inputs=[
            form["prompt"],
            form["size"],
            form["action"],
            form["model"],
            form["tags"],
            form["image"],
            form["mask"],
            search_input,
            gallery_storage,
            studio_state,
        ],
        outputs=[form["result"], form["error"], gallery, gallery_storage, studio_state],
    ).then(
        fn=finish_loading,
        outputs=[form["create_btn"]],
    )

    search_input.change(
        fn=search_gallery,
        inputs=[search_input, gallery_storage, studio_state],
        outputs=[gallery, selected_info, studio_state],
    )

    # Image selection - uses gr.SelectData for event
    gallery.select(
        fn=select_gallery_item,
        inputs=[gallery_storage, studio_state],
        outputs=[selected_info, studio_state],
    )

    use_prompt_btn.click(
        fn=use_prompt,
        inputs=[gallery_storage, studio_state],
        outputs=[form["prompt"], form["action"], form["size"], form["model"], form["tags"]],
    ).then(
        fn=toggle_upload_inputs,
        inputs=[form["action"]],
        outputs=[form["image"], form["mask"]],
    )

    for button in export_buttons:
        # A button passed as an input contributes its label
        button.click(
            fn=export_selected_image,
            inputs=[button, overlay_checkbox, gallery_storage, studio_state],
            outputs=[download_file, gallery_status],
        )

    delete_btn.click(
        fn=delete_selected,
        inputs=[gallery_storage, studio_state],
        outputs=[gallery, selected_info, gallery_status, gallery_storage, studio_state],
    )

    clear_btn.click(
        fn=clear_gallery,
        inputs=[gallery_storage, studio_state],
        outputs=[gallery, selected_info, gallery_status, gallery_storage, studio_state],
    )

    import_btn.upload(
        fn=import_gallery,
        inputs=[import_btn, gallery_storage, studio_state],
        outputs=[gallery, gallery_status, gallery_storage, studio_state],
    )

    export_json_btn.click(
        fn=export_gallery_json,
        inputs=[gallery_storage, studio_state],
        outputs=[download_file, gallery_status],
    )

    return {
        "gallery": gallery,
        "search": search_input,
        "status": gallery_status,
    }
