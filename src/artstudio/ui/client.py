"""HTTP client the studio uses to reach the request proxy.

Actions that carry an image (edit, variation) are sent as multipart form
data; plain generation is sent as JSON.  Requests have no timeout: image
generation routinely takes longer than any sensible default, and the UI's
loading flag already prevents overlapping submissions.
"""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path

import httpx

from artstudio.core.errors import RequestFailedError

from .models import UPLOAD_ACTIONS

logger = logging.getLogger(__name__)

IMAGES_PATH = "/api/images"


def _file_part(path: str) -> tuple[str, bytes, str]:
    file_path = Path(path)
    content_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
    return (file_path.name, file_path.read_bytes(), content_type)


class StudioClient:
    """Client for ``POST /api/images``.

    Args:
        base_url: Proxy base URL (``http://host:port``).
        http: Optional ``httpx.Client``.  Tests pass a FastAPI ``TestClient``
            or a client with a mock transport.
    """

    def __init__(self, base_url: str, http: httpx.Client | None = None):
        self.base_url = base_url.rstrip("/")
        self._http = http

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}{IMAGES_PATH}"

    def _client(self) -> httpx.Client:
        if self._http is None:
            self._http = httpx.Client(timeout=None)
        return self._http

    def create_image(
        self,
        *,
        action: str,
        prompt: str,
        size: str,
        model: str,
        image_path: str | None = None,
        mask_path: str | None = None,
    ) -> str:
        """Send one image request and return the resulting base64 image.

        Raises:
            RequestFailedError: If the proxy cannot be reached or answers with
                an error.
        """
        fields = {"action": action, "prompt": prompt, "size": size, "model": model}

        try:
            if action in UPLOAD_ACTIONS:
                files: dict[str, tuple[str, bytes, str]] = {}
                if image_path:
                    files["image"] = _file_part(image_path)
                if mask_path:
                    files["mask"] = _file_part(mask_path)
                logger.debug(f"POST {self.endpoint} (multipart, files={sorted(files)})")
                response = self._client().post(self.endpoint, data=fields, files=files or None)
            else:
                logger.debug(f"POST {self.endpoint} (json)")
                response = self._client().post(self.endpoint, json=fields)
        except httpx.HTTPError as e:
            raise RequestFailedError(f"Could not reach the image service: {e}") from e
        except OSError as e:
            raise RequestFailedError(f"Could not read upload: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.is_error:
            raise RequestFailedError(data.get("error") or "Request failed", response.status_code)

        b64 = data.get("b64")
        if not b64:
            raise RequestFailedError("Request failed: no image in response", response.status_code)
        return b64

    def close(self) -> None:
        if self._http is not None:
            self._http.close()
