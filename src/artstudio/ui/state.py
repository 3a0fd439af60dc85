"""State management utilities for the studio UI.

This module handles the initialization of per-session state, in particular
hydrating the gallery from the value the browser keeps in local storage.
"""

import logging

from artstudio.core.config import config
from artstudio.core.gallery import GalleryStore, merge_imported
from artstudio.core.local_storage import LocalStorage

from .models import StudioState

logger = logging.getLogger(__name__)


def create_gallery_store(persisted: str | None = None) -> GalleryStore:
    """Build a gallery store seeded with the browser's persisted value.

    Args:
        persisted: Raw serialized gallery held by the browser, if any

    Returns:
        Loaded GalleryStore
    """
    initial = {config.gallery_storage_key: persisted} if isinstance(persisted, str) else None
    storage = LocalStorage(quota_bytes=config.gallery_quota_bytes, initial=initial)
    store = GalleryStore(
        storage,
        key=config.gallery_storage_key,
        max_items=config.gallery_max_items,
    )
    store.load()
    return store


def _adopt_persisted(state: StudioState, persisted: str) -> None:
    """Switch a session that started without browser data over to *persisted*.

    Items created earlier in the session are kept in front of the stored ones.
    """
    store = create_gallery_store(persisted)
    pending = state.gallery.items
    if pending:
        store.items, _ = merge_imported(store.items, pending, store.max_items)
        store.save()
    logger.info(f"Adopted browser gallery ({len(store)} items, {len(pending)} from this session)")
    state.gallery = store
    state.hydrated = True


def initialize_studio_state(
    state: StudioState | None = None, persisted: str | None = None
) -> StudioState:
    """Initialize or ensure studio state is ready.

    If state is None or has no gallery yet, the gallery is loaded from
    *persisted*.  A session is only marked hydrated once the browser has
    actually sent a stored value; until then a later call that does carry
    one replaces the session gallery with it instead of being ignored.

    Args:
        state: Existing StudioState or None
        persisted: Raw serialized gallery held by the browser, if any

    Returns:
        Initialized StudioState instance
    """
    if state is None:
        logger.info("Creating new StudioState")
        state = StudioState()

    if not state.is_initialized():
        state.gallery = create_gallery_store(persisted)
        state.hydrated = isinstance(persisted, str)
        logger.info(f"StudioState initialized: {state}")
        return state

    if not state.hydrated and isinstance(persisted, str):
        _adopt_persisted(state, persisted)

    return state
