"""Shared pytest fixtures for Digital Art Studio tests."""

import base64
import io
import shutil
import tempfile
from pathlib import Path
from types import SimpleNamespace
from typing import Callable, Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from artstudio.core.config import StudioConfig
from artstudio.core.gallery import GalleryItem, GalleryStore
from artstudio.core.local_storage import LocalStorage
from artstudio.ui.models import StudioState


def make_png(size: tuple[int, int] = (64, 64), color: tuple[int, int, int] = (200, 40, 40)) -> bytes:
    """Encode a solid-colour PNG with Pillow."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> StudioConfig:
    """Create a test configuration that ignores the environment's .env file.

    Args:
        temp_dir: Temporary directory from fixture

    Returns:
        StudioConfig instance for testing
    """
    return StudioConfig(
        _env_file=None,
        openai_api_key="sk-test",
        default_model="gpt-image-1",
        default_size="1024x1024",
        variation_model="dall-e-2",
        gallery_max_items=100,
    )


@pytest.fixture
def sample_png() -> bytes:
    """A small PNG image."""
    return make_png()


@pytest.fixture
def sample_b64(sample_png: bytes) -> str:
    """Base64 of a small PNG image."""
    return base64.b64encode(sample_png).decode("ascii")


@pytest.fixture
def png_file(temp_dir: Path, sample_png: bytes) -> Path:
    """A PNG file on disk, as Gradio hands uploads to handlers."""
    path = temp_dir / "upload.png"
    path.write_bytes(sample_png)
    return path


@pytest.fixture
def make_item(sample_b64: str) -> Callable[..., GalleryItem]:
    """Factory for gallery items with sensible defaults."""

    def _make(**overrides) -> GalleryItem:
        fields = {
            "prompt": "a red fox in the snow",
            "action": "generate",
            "size": "512x512",
            "model": "gpt-image-1",
            "b64": sample_b64,
            "tags": [],
        }
        fields.update(overrides)
        return GalleryItem(**fields)

    return _make


@pytest.fixture
def gallery_store() -> GalleryStore:
    """An empty gallery backed by unlimited in-memory storage."""
    return GalleryStore(LocalStorage())


@pytest.fixture
def studio_state(gallery_store: GalleryStore) -> StudioState:
    """An initialized studio state with an empty gallery."""
    return StudioState(gallery=gallery_store)


@pytest.fixture
def fake_openai(sample_b64: str) -> MagicMock:
    """Stand-in for ``AsyncOpenAI`` whose image calls return *sample_b64*."""
    response = SimpleNamespace(data=[SimpleNamespace(b64_json=sample_b64, url=None)])
    client = MagicMock()
    client.images.generate = AsyncMock(return_value=response)
    client.images.edit = AsyncMock(return_value=response)
    client.images.create_variation = AsyncMock(return_value=response)
    return client


@pytest.fixture
def test_client(test_config: StudioConfig, fake_openai: MagicMock):
    """FastAPI TestClient whose image client talks to *fake_openai*.

    Yields:
        ``fastapi.testclient.TestClient`` bound to the proxy app
    """
    from fastapi.testclient import TestClient

    from artstudio.api.main import app, get_image_client
    from artstudio.core.image_client import ImageClient

    image_client = ImageClient(test_config, client=fake_openai)
    app.dependency_overrides[get_image_client] = lambda: image_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_image_client, None)


@pytest.fixture
def make_b64() -> Callable[..., str]:
    """Factory for base64 PNGs of a given size and colour."""

    def _make(size: tuple[int, int] = (64, 64), color: tuple[int, int, int] = (200, 40, 40)) -> str:
        return base64.b64encode(make_png(size, color)).decode("ascii")

    return _make
