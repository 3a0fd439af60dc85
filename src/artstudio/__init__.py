"""Digital Art Studio - generate, edit and vary AI images with a browser-local gallery."""

__version__ = "0.1.0"

from artstudio.core.config import StudioConfig, config
from artstudio.core.gallery import GalleryItem, GalleryStore
from artstudio.core.image_client import ImageClient

__all__ = [
    "GalleryItem",
    "GalleryStore",
    "ImageClient",
    "StudioConfig",
    "config",
]
