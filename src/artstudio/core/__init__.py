"""Core functionality for Digital Art Studio.

- **StudioConfig / config**: environment-based settings (ARTSTUDIO_ prefix)
- **ImageClient**: OpenAI Images API wrapper used by the request proxy
- **GalleryItem / GalleryStore**: browser-local gallery model and bookkeeping
- **LocalStorage**: quota-limited string store backing the gallery
- **compositor**: image export with the optional caption overlay
"""

from artstudio.core.config import StudioConfig, config
from artstudio.core.gallery import GalleryItem, GalleryStore
from artstudio.core.image_client import ImageClient, UploadedImage
from artstudio.core.local_storage import LocalStorage

__all__ = [
    "GalleryItem",
    "GalleryStore",
    "ImageClient",
    "LocalStorage",
    "StudioConfig",
    "UploadedImage",
    "config",
]
