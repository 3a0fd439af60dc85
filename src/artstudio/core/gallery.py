"""Gallery model and storage helpers for Digital Art Studio.

The gallery is intentionally simple:

- every result is a :class:`GalleryItem` carrying its own base64 image data
- the whole gallery is serialized as one JSON array under a single storage key
- list order is reverse-chronological (newest first)
- the list is capped; adding past the cap evicts the oldest items

The persisted value lives in the user's browser and may have been written by an
older version of the app or edited by hand, so loading and importing both run
every entry through :func:`coerce_item`.  Entries that cannot carry an image
are dropped; everything else is repaired with defaults.

Storage failures (quota exceeded, unserializable data) never propagate out of
:class:`GalleryStore`.  The in-memory list stays authoritative for the session
and the failure is logged.
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from artstudio.core.errors import GalleryImportError, StorageError
from artstudio.core.local_storage import LocalStorage

logger = logging.getLogger(__name__)

Action = Literal["generate", "edit", "variation"]

ACTIONS: tuple[str, ...] = ("generate", "edit", "variation")
SIZES: tuple[str, ...] = ("256x256", "512x512", "1024x1024", "2048x2048")

DEFAULT_ACTION = "generate"
DEFAULT_SIZE = "1024x1024"
DEFAULT_MODEL = "gpt-image-1"
DEFAULT_STORAGE_KEY = "studio-gallery"
MAX_ITEMS = 100
MAX_TAGS = 20

_TAG_SPLIT = re.compile(r"[,\n]")


def generate_id() -> str:
    """Return a new unique gallery item id."""
    return str(uuid.uuid4())


def utc_timestamp() -> str:
    """Return the current time as an ISO-8601 UTC string (``2024-01-31T12:00:00.000Z``)."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class GalleryItem(BaseModel):
    """A single stored result.

    Serialized with the camelCase ``createdAt`` key so exported files stay
    interchangeable with galleries written by the browser app.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=generate_id, min_length=1)
    created_at: str = Field(default_factory=utc_timestamp, alias="createdAt")
    prompt: str = ""
    action: Action = DEFAULT_ACTION
    size: str = DEFAULT_SIZE
    model: str = DEFAULT_MODEL
    b64: str = Field(..., min_length=1)
    tags: list[str] = Field(default_factory=list, max_length=MAX_TAGS)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready representation (camelCase keys)."""
        return self.model_dump(by_alias=True)

    @property
    def search_text(self) -> str:
        return f"{self.prompt} {self.model} {self.action} {self.size}".lower()

    @property
    def meta_line(self) -> str:
        """``action • size • model • tags`` summary used in captions and overlays."""
        return f"{self.action} • {self.size} • {self.model} • {', '.join(self.tags)}"


# ---------------------------------------------------------------------------
# Pure helpers.
# ---------------------------------------------------------------------------


def parse_tags(text: str | None) -> list[str]:
    """Split free-text tag input on commas and newlines.

    Tags are trimmed, empty tags dropped, and only the first twenty kept.
    """
    if not text:
        return []
    tags = [tag.strip() for tag in _TAG_SPLIT.split(text)]
    return [tag for tag in tags if tag][:MAX_TAGS]


def _text(value: Any, default: str) -> str:
    """Stringify *value*, falling back to *default* for falsy values."""
    if value is None or value == "" or value is False or value == 0:
        return default
    return str(value)


def coerce_item(raw: Any) -> GalleryItem | None:
    """Build a :class:`GalleryItem` from an arbitrary JSON value.

    Missing fields take their defaults (fresh id, current timestamp, empty
    prompt, ``generate``, ``1024x1024``, ``gpt-image-1``, no tags).  Unknown
    actions and sizes are replaced with the defaults and tag lists are
    stringified and truncated.

    Returns:
        The coerced item, or ``None`` when *raw* is not an object or carries
        no image data.
    """
    if not isinstance(raw, dict):
        return None

    b64 = _text(raw.get("b64"), "")
    if not b64:
        return None

    action = raw.get("action")
    size = raw.get("size")
    tags = raw.get("tags")

    return GalleryItem(
        id=_text(raw.get("id"), "") or generate_id(),
        created_at=_text(raw.get("createdAt"), "") or utc_timestamp(),
        prompt=_text(raw.get("prompt"), ""),
        action=action if action in ACTIONS else DEFAULT_ACTION,
        size=size if size in SIZES else DEFAULT_SIZE,
        model=_text(raw.get("model"), DEFAULT_MODEL),
        b64=b64,
        tags=[str(tag) for tag in tags][:MAX_TAGS] if isinstance(tags, list) else [],
    )


def parse_gallery(raw: str | None) -> list[GalleryItem]:
    """Parse a persisted gallery value.

    The rule is intentionally forgiving:

    - a missing, empty or invalid JSON value gives an empty gallery
    - a JSON value that is not an array gives an empty gallery
    - entries that cannot be coerced are dropped
    - later duplicates of an id are dropped
    """
    if not raw:
        return []

    try:
        entries = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Persisted gallery is not valid JSON; starting empty")
        return []

    if not isinstance(entries, list):
        logger.warning("Persisted gallery is not a JSON array; starting empty")
        return []

    items: list[GalleryItem] = []
    seen: set[str] = set()
    for entry in entries:
        item = coerce_item(entry)
        if item is None or item.id in seen:
            continue
        seen.add(item.id)
        items.append(item)
    return items


def serialize_gallery(items: list[GalleryItem], *, indent: int | None = None) -> str:
    """Serialize gallery items to a JSON array string."""
    return json.dumps([item.to_dict() for item in items], indent=indent, ensure_ascii=False)


def matches_query(item: GalleryItem, query: str) -> bool:
    """Case-insensitive substring match over prompt, model, action, size and tags."""
    needle = query.strip().lower()
    if not needle:
        return True
    return needle in item.search_text or needle in " ".join(item.tags).lower()


def filter_gallery(items: list[GalleryItem], query: str | None) -> list[GalleryItem]:
    """Apply the search query to gallery items, keeping their order."""
    if not query or not query.strip():
        return list(items)
    return [item for item in items if matches_query(item, query)]


def merge_imported(
    existing: list[GalleryItem], incoming: list[GalleryItem], max_items: int = MAX_ITEMS
) -> tuple[list[GalleryItem], list[GalleryItem]]:
    """Merge imported items in front of the existing gallery.

    Items whose id is already present (in the gallery or earlier in the
    import) are skipped.  Existing items keep their relative order.

    Returns:
        Tuple of ``(merged, added)`` where *merged* is truncated to
        *max_items*.
    """
    seen = {item.id for item in existing}
    added: list[GalleryItem] = []
    for item in incoming:
        if item.id in seen:
            continue
        seen.add(item.id)
        added.append(item)
    return (added + list(existing))[:max_items], added


def export_filename(now: datetime | None = None) -> str:
    """Download filename for a gallery export (``studio-gallery-2024-01-31T12-00-00.json``)."""
    now = now or datetime.now(timezone.utc)
    return f"studio-gallery-{now.strftime('%Y-%m-%dT%H-%M-%S')}.json"


# ---------------------------------------------------------------------------
# Store.
# ---------------------------------------------------------------------------


class GalleryStore:
    """Ordered, capped gallery persisted to a :class:`LocalStorage` key.

    Args:
        storage: Backing string store.
        key: Storage key holding the serialized gallery.
        max_items: Maximum number of items kept.
    """

    def __init__(
        self,
        storage: LocalStorage | None = None,
        key: str = DEFAULT_STORAGE_KEY,
        max_items: int = MAX_ITEMS,
    ):
        self.storage = storage if storage is not None else LocalStorage()
        self.key = key
        self.max_items = max_items
        self.items: list[GalleryItem] = []

    def load(self) -> list[GalleryItem]:
        """Replace the in-memory list with the persisted gallery."""
        self.items = parse_gallery(self.storage.get_item(self.key))[: self.max_items]
        logger.debug(f"Loaded {len(self.items)} gallery items from {self.key!r}")
        return self.items

    def save(self) -> bool:
        """Persist the full list.

        Returns:
            ``True`` when the write succeeded.  Failures are logged and the
            in-memory list is left untouched.
        """
        try:
            self.storage.set_item(self.key, serialize_gallery(self.items))
        except (StorageError, TypeError, ValueError) as e:
            logger.warning(f"Gallery not persisted ({len(self.items)} items in memory only): {e}")
            return False
        return True

    def persisted_value(self) -> str | None:
        """Raw value currently held by storage for the gallery key."""
        return self.storage.get_item(self.key)

    def add(self, item: GalleryItem) -> GalleryItem:
        """Prepend *item*, evict the oldest items past the cap, and persist."""
        self.items = [item, *[i for i in self.items if i.id != item.id]][: self.max_items]
        self.save()
        return item

    def get(self, item_id: str | None) -> GalleryItem | None:
        if not item_id:
            return None
        return next((item for item in self.items if item.id == item_id), None)

    def delete(self, item_id: str) -> bool:
        """Remove the item with *item_id* and persist.  Returns whether it existed."""
        remaining = [item for item in self.items if item.id != item_id]
        removed = len(remaining) != len(self.items)
        self.items = remaining
        self.save()
        return removed

    def clear(self) -> None:
        self.items = []
        self.save()

    def search(self, query: str | None) -> list[GalleryItem]:
        return filter_gallery(self.items, query)

    def import_json(self, text: str | bytes) -> list[GalleryItem]:
        """Merge a JSON array of gallery entries into the gallery.

        Returns:
            The newly added items, in gallery order.

        Raises:
            GalleryImportError: If *text* is not valid JSON or not an array.
        """
        try:
            entries = json.loads(text)
        except (TypeError, ValueError) as e:
            raise GalleryImportError(f"Invalid JSON: {e}") from e

        if not isinstance(entries, list):
            raise GalleryImportError("Invalid JSON: expected an array of gallery items")

        incoming = [item for item in (coerce_item(entry) for entry in entries) if item is not None]
        self.items, added = merge_imported(self.items, incoming, self.max_items)
        self.save()

        logger.info(
            f"Imported {len(added)} of {len(entries)} gallery entries "
            f"({len(entries) - len(incoming)} without image data)"
        )
        return added

    def export_json(self) -> str:
        """Serialize the current gallery as a pretty-printed JSON array."""
        return serialize_gallery(self.items, indent=2)

    def __len__(self) -> int:
        return len(self.items)

    def __repr__(self) -> str:
        return f"GalleryStore(key={self.key!r}, items={len(self.items)}, max_items={self.max_items})"
