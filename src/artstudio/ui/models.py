"""Data models for the studio UI state."""

import logging
from dataclasses import dataclass, field

from artstudio.core.gallery import GalleryStore

logger = logging.getLogger(__name__)


@dataclass
class StudioState:
    """Session state for the Gradio studio.

    Each browser session gets its own copy.  Form values (prompt, size,
    action, model, tags, uploads, search query, overlay toggle) live in the
    Gradio components and are passed to handlers as inputs; this object holds
    what must survive between events.

    Attributes
    ----------
    gallery : GalleryStore | None
        Gallery for this session, hydrated from browser storage on page load
    last_image_b64 : str | None
        Most recent successful result
    loading : bool
        True while a request to the proxy is in flight
    error : str | None
        Last error message shown to the user
    search_query : str
        Query the gallery view is currently filtered by
    visible_ids : list[str]
        Ids of the gallery items in display order (maps selection indices)
    selected_id : str | None
        Id of the selected gallery item
    hydrated : bool
        True once the gallery has been loaded from a value the browser sent
    """

    gallery: GalleryStore | None = None
    last_image_b64: str | None = None
    loading: bool = False
    error: str | None = None
    search_query: str = ""
    visible_ids: list[str] = field(default_factory=list)
    selected_id: str | None = None
    hydrated: bool = False

    def is_initialized(self) -> bool:
        return self.gallery is not None

    def __repr__(self) -> str:
        items = len(self.gallery) if self.gallery is not None else 0
        return f"StudioState(gallery={items} items, loading={self.loading}, selected={self.selected_id})"


# Actions that send an image to the proxy
UPLOAD_ACTIONS = ("edit", "variation")

ACTION_CHOICES = [
    ("Generate", "generate"),
    ("Edit", "edit"),
    ("Variation", "variation"),
]

EXPORT_FORMATS = {
    "PNG": "png",
    "JPEG": "jpeg",
    "WebP": "webp",
}

PROMPT_PRESETS = (
    "A neon-lit cyberpunk alley, rain-soaked, cinematic lighting, ultra-detailed",
    "Surreal floating islands above a pastel ocean, Studio Ghibli style",
    "Art deco poster of a futuristic city skyline at dusk",
    "Minimalist isometric room with plants and warm sunlight",
    "Astronaut discovering bioluminescent forest on an alien planet",
    "High-contrast black and white portrait, dramatic rim light, 35mm film",
)

EMPTY_GALLERY_TEXT = "*No saved images yet. Create something to see it here.*"
NO_SELECTION_TEXT = "*Select an image in the gallery*"
