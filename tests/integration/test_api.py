"""Integration tests for artstudio.api.main: FastAPI REST API endpoints.

All tests use the FastAPI TestClient with a mocked OpenAI SDK client so that
no network access occurs.  Tests cover every endpoint:

- ``GET /``: HTML page serving.
- ``GET /api/config``: Configuration delivery.
- ``POST /api/images``: Generation, edits and variations, JSON and multipart.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import openai

from artstudio.api.main import app, get_image_client
from artstudio.core.image_client import ImageClient

# ---------------------------------------------------------------------------
# Index page tests.
# ---------------------------------------------------------------------------


class TestIndexPage:
    """Test GET /: main HTML page."""

    def test_index_returns_html(self, test_client):
        """GET / should return 200 with HTML content."""
        resp = test_client.get("/")
        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]
        assert "Digital Art Studio" in resp.text


# ---------------------------------------------------------------------------
# Configuration endpoint tests.
# ---------------------------------------------------------------------------


class TestGetConfig:
    """Test GET /api/config: studio options."""

    def test_config_contents(self, test_client):
        resp = test_client.get("/api/config")
        assert resp.status_code == 200
        data = resp.json()
        assert data["actions"] == ["generate", "edit", "variation"]
        assert "1024x1024" in data["sizes"]
        assert data["default_size"] in data["sizes"]
        assert data["default_model"]
        assert len(data["prompt_presets"]) == 6
        assert "version" in data


# ---------------------------------------------------------------------------
# Image endpoint tests.
# ---------------------------------------------------------------------------


class TestCreateImage:
    """Test POST /api/images."""

    def test_generate_json(self, test_client, fake_openai, sample_b64):
        """A JSON generate request returns the first base64 image."""
        resp = test_client.post(
            "/api/images",
            json={"action": "generate", "prompt": "a red fox", "size": "512x512", "model": "gpt-image-1"},
        )
        assert resp.status_code == 200
        assert resp.json() == {"b64": sample_b64}
        fake_openai.images.generate.assert_awaited_once_with(
            model="gpt-image-1", prompt="a red fox", size="512x512"
        )

    def test_empty_body_uses_defaults(self, test_client, fake_openai):
        resp = test_client.post("/api/images", json={})
        assert resp.status_code == 200
        kwargs = fake_openai.images.generate.await_args.kwargs
        assert kwargs == {"model": "gpt-image-1", "prompt": "", "size": "1024x1024"}

    def test_dalle_generate_requests_base64(self, test_client, fake_openai):
        resp = test_client.post("/api/images", json={"prompt": "x", "model": "dall-e-3"})
        assert resp.status_code == 200
        assert fake_openai.images.generate.await_args.kwargs["response_format"] == "b64_json"

    def test_edit_multipart(self, test_client, fake_openai, sample_png, sample_b64):
        resp = test_client.post(
            "/api/images",
            data={"action": "edit", "prompt": "add a hat", "size": "512x512", "model": "gpt-image-1"},
            files={
                "image": ("fox.png", sample_png, "image/png"),
                "mask": ("mask.png", sample_png, "image/png"),
            },
        )
        assert resp.status_code == 200
        assert resp.json()["b64"] == sample_b64
        kwargs = fake_openai.images.edit.await_args.kwargs
        assert kwargs["image"] == [("fox.png", sample_png, "image/png")]
        assert kwargs["mask"] == ("mask.png", sample_png, "image/png")

    def test_variation_multipart_uses_variation_model(self, test_client, fake_openai, sample_png):
        resp = test_client.post(
            "/api/images",
            data={"action": "variation", "size": "256x256", "model": "gpt-image-1"},
            files={"image": ("fox.png", sample_png, "image/png")},
        )
        assert resp.status_code == 200
        kwargs = fake_openai.images.create_variation.await_args.kwargs
        assert kwargs["model"] == "dall-e-2"
        assert kwargs["size"] == "256x256"

    def test_edit_without_image(self, test_client, fake_openai):
        resp = test_client.post("/api/images", json={"action": "edit", "prompt": "add a hat"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "image file is required for edit"}
        fake_openai.images.edit.assert_not_awaited()

    def test_variation_form_without_image(self, test_client):
        resp = test_client.post("/api/images", data={"action": "variation"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "image file is required for variation"}

    def test_unsupported_action(self, test_client):
        resp = test_client.post("/api/images", json={"action": "paint"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Unsupported action: paint"}

    def test_malformed_json(self, test_client):
        resp = test_client.post(
            "/api/images", content=b"{not json", headers={"content-type": "application/json"}
        )
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_json_array_body(self, test_client):
        resp = test_client.post("/api/images", json=["generate"])
        assert resp.status_code == 400
        assert resp.json() == {"error": "JSON body must be an object"}

    def test_missing_api_key(self, test_client, test_config):
        app.dependency_overrides[get_image_client] = lambda: ImageClient(
            test_config.model_copy(update={"openai_api_key": None})
        )
        resp = test_client.post("/api/images", json={"prompt": "x"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "OPENAI_API_KEY is not set"}

    def test_upstream_failure(self, test_client, fake_openai):
        request = httpx.Request("POST", "https://api.openai.com/v1/images/generations")
        fake_openai.images.generate = AsyncMock(
            side_effect=openai.APIConnectionError(message="upstream down", request=request)
        )
        resp = test_client.post("/api/images", json={"prompt": "x"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "upstream down"}

    def test_upstream_returns_no_image(self, test_client, fake_openai):
        fake_openai.images.generate = AsyncMock(return_value=SimpleNamespace(data=[]))
        resp = test_client.post("/api/images", json={"prompt": "x"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "no image returned"}
