"""Exceptions used throughout Digital Art Studio.

Every error that crosses the proxy boundary carries the HTTP status the proxy
answers with.  Messages are intended to be shown to the user as-is.
"""


class StudioError(Exception):
    """Base exception for all studio errors."""

    status_code = 500


class ConfigurationError(StudioError):
    """Raised when required configuration (such as the API key) is missing."""


class ValidationError(StudioError):
    """Raised when a request or form submission is invalid."""

    status_code = 400

    def __init__(self, message: str, field: str = "") -> None:
        self.field = field
        super().__init__(message)


class UpstreamError(StudioError):
    """Raised when the image API call fails or returns no image."""


class StorageError(StudioError):
    """Raised when the gallery cannot be written to local storage."""


class StorageQuotaError(StorageError):
    """Raised when a write would exceed the local storage quota."""


class GalleryImportError(StudioError):
    """Raised when an imported gallery file is not a JSON array."""

    status_code = 400


class ExportError(StudioError):
    """Raised when a gallery image cannot be decoded, drawn or encoded."""


class RequestFailedError(StudioError):
    """Raised by the studio client when the proxy answers with an error."""

    def __init__(self, message: str, status_code: int = 0) -> None:
        self.status_code = status_code
        super().__init__(message)
