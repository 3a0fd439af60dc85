"""String key/value storage with a byte quota.

:class:`LocalStorage` mirrors the browser ``localStorage`` contract the gallery
was designed against: string keys, string values, and a quota that rejects a
write instead of truncating it.  The studio seeds one instance per session from
the value the browser holds (``gr.BrowserState``) and hands the stored string
back to the browser after every mutation, so a rejected write simply leaves the
browser copy at its previous value.
"""

from __future__ import annotations

from artstudio.core.errors import StorageError, StorageQuotaError


class LocalStorage:
    """In-memory string store with localStorage semantics.

    Args:
        quota_bytes: Maximum total UTF-8 size of keys and values.  ``None``
            disables the quota.
        initial: Optional initial contents.
    """

    def __init__(self, quota_bytes: int | None = None, initial: dict[str, str] | None = None):
        self.quota_bytes = quota_bytes
        self._items: dict[str, str] = {}
        for key, value in (initial or {}).items():
            if value is not None:
                self._items[str(key)] = str(value)

    def get_item(self, key: str) -> str | None:
        """Return the stored value for *key*, or ``None`` when absent."""
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        """Store *value* under *key*.

        Raises:
            StorageError: If *value* is not a string.
            StorageQuotaError: If the write would exceed the quota.  The
                previous value is kept.
        """
        if not isinstance(value, str):
            raise StorageError(f"Storage values must be strings, got {type(value).__name__}")

        if self.quota_bytes is not None:
            projected = self.used_bytes() - self._entry_size(key) + _size(key) + _size(value)
            if projected > self.quota_bytes:
                raise StorageQuotaError(
                    f"Storing {key!r} needs {projected} bytes, quota is {self.quota_bytes}"
                )

        self._items[key] = value

    def used_bytes(self) -> int:
        """Total UTF-8 size of all stored keys and values."""
        return sum(_size(k) + _size(v) for k, v in self._items.items())

    def _entry_size(self, key: str) -> int:
        if key not in self._items:
            return 0
        return _size(key) + _size(self._items[key])

    def __repr__(self) -> str:
        return f"LocalStorage(keys={len(self._items)}, used={self.used_bytes()}, quota={self.quota_bytes})"


def _size(text: str) -> int:
    return len(text.encode("utf-8"))
