"""Digital Art Studio: FastAPI Application.

This module is the single entry point for the web application.  It defines
the FastAPI ``app`` instance, the REST API routes, and the ``main()`` CLI
function that mounts the Gradio studio and launches the uvicorn server.

Architecture
------------
The application follows a stateless proxy pattern:

- **Configuration** is loaded from the environment by
  :mod:`artstudio.core.config` and summarised for clients via
  ``GET /api/config``.
- **Image requests** are forwarded to the hosted image API by
  :class:`~artstudio.core.image_client.ImageClient`, which normalises every
  response to a single base64 image.
- **Gallery persistence** is not the server's concern: the studio keeps the
  gallery in the user's browser.
- **The HTML home page** is served as a raw ``HTMLResponse``; the studio
  itself is a Gradio app mounted at ``/studio`` by :func:`main`.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
GET       ``/``                         Serve the home page
GET       ``/api/config``               Actions, sizes, defaults, presets
POST      ``/api/images``               Generate, edit or vary an image
========  ============================  ====================================

``POST /api/images`` accepts a JSON body ``{action, prompt, size, model}`` or a
multipart form with the same fields plus ``image`` and ``mask`` files.  It
answers ``200 {"b64": ...}`` or an error status with ``{"error": ...}``.

Usage
-----
CLI (installed entry point)::

    artstudio

Direct invocation::

    python -m artstudio.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile

from artstudio import __version__
from artstudio.api.models import ErrorResponse, ImageRequest, ImageResponse
from artstudio.core.config import config
from artstudio.core.errors import StudioError, ValidationError
from artstudio.core.gallery import ACTIONS, SIZES
from artstudio.core.image_client import ImageClient, UploadedImage
from artstudio.ui.models import PROMPT_PRESETS

logger = logging.getLogger(__name__)

FORM_FIELDS = ("action", "prompt", "size", "model")
FILE_FIELDS = ("image", "mask")
FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")

# ---------------------------------------------------------------------------
# Application lifecycle: image client setup.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown lifecycle.

    On startup:
        Creates an :class:`ImageClient` and stores it on ``app.state``.  The
        underlying SDK client is built lazily on the first request, so a
        missing API key does not prevent the server from starting.

    On shutdown:
        Nothing to release; the SDK client is garbage-collected.
    """
    app.state.image_client = ImageClient(config)
    logger.info("ImageClient initialised (SDK client created on first request).")

    yield


app = FastAPI(
    title="Digital Art Studio",
    description="Proxy for AI image generation, editing and variations.",
    version=__version__,
    lifespan=lifespan,
)

# Allow cross-origin requests so the studio can be served from a different
# port during development.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_image_client(request: Request) -> ImageClient:
    """Return the application's :class:`ImageClient`, creating it if needed."""
    client = getattr(request.app.state, "image_client", None)
    if client is None:
        client = ImageClient(config)
        request.app.state.image_client = client
    return client


# ---------------------------------------------------------------------------
# Request parsing helpers.
# ---------------------------------------------------------------------------


def _error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        ErrorResponse(error=message or "Unknown error").model_dump(),
        status_code=status_code,
    )


async def _parse_image_request(request: Request) -> tuple[ImageRequest, dict[str, UploadedImage]]:
    """Read an image request from a JSON body or a multipart form.

    Args:
        request: The incoming request.

    Returns:
        Tuple of ``(image_request, files)`` where *files* maps ``"image"`` and
        ``"mask"`` to the uploaded files that were actually supplied.

    Raises:
        ValidationError: If the body is neither a JSON object nor a form, or
            a field has the wrong type.
    """
    content_type = request.headers.get("content-type", "")
    files: dict[str, UploadedImage] = {}

    if any(kind in content_type for kind in FORM_CONTENT_TYPES):
        form = await request.form()
        fields = {name: form.get(name) for name in FORM_FIELDS if isinstance(form.get(name), str)}

        for name in FILE_FIELDS:
            upload = form.get(name)
            # Browsers submit an empty, unnamed part for an unused file input.
            if isinstance(upload, UploadFile) and upload.filename:
                files[name] = UploadedImage(
                    filename=upload.filename,
                    content=await upload.read(),
                    content_type=upload.content_type or "image/png",
                )
    else:
        try:
            fields = await request.json()
        except ValueError as e:
            raise ValidationError("Request body must be JSON or multipart form data") from e
        if not isinstance(fields, dict):
            raise ValidationError("JSON body must be an object")

    try:
        image_request = ImageRequest.model_validate(fields)
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(f"Invalid {location}: {first.get('msg')}", field=location) from e

    return image_request, files


def _require_image(files: dict[str, UploadedImage], action: str) -> UploadedImage:
    image = files.get("image")
    if image is None:
        raise ValidationError(f"image file is required for {action}", field="image")
    return image


async def _dispatch(
    req: ImageRequest, files: dict[str, UploadedImage], image_client: ImageClient
) -> str:
    """Validate the request for its action and forward it upstream."""
    if req.action not in ACTIONS:
        raise ValidationError(f"Unsupported action: {req.action}", field="action")

    if req.action == "edit":
        image = _require_image(files, "edit")
        return await image_client.edit(
            prompt=req.prompt,
            size=req.size,
            model=req.model,
            image=image,
            mask=files.get("mask"),
        )

    if req.action == "variation":
        image = _require_image(files, "variation")
        return await image_client.create_variation(size=req.size, model=req.model, image=image)

    return await image_client.generate(prompt=req.prompt, size=req.size, model=req.model)


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.get("/", response_class=HTMLResponse)
async def index() -> HTMLResponse:
    """Serve the home page.

    Raises:
        HTTPException: 404 if ``index.html`` is not found.
    """
    index_path = config.templates_dir / "index.html"
    if index_path.exists():
        return HTMLResponse(content=index_path.read_text(encoding="utf-8"))
    raise HTTPException(status_code=404, detail="index.html not found")


@app.get("/api/config")
async def get_config() -> dict:
    """Return the options the studio offers.

    Returns:
        Dictionary with keys ``version``, ``actions``, ``sizes``,
        ``default_model``, ``default_size`` and ``prompt_presets``.
    """
    return {
        "version": __version__,
        "actions": list(ACTIONS),
        "sizes": list(SIZES),
        "default_model": config.default_model,
        "default_size": config.default_size,
        "prompt_presets": list(PROMPT_PRESETS),
    }


@app.post(
    "/api/images",
    response_model=ImageResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_image(
    request: Request, image_client: ImageClient = Depends(get_image_client)
) -> JSONResponse:
    """Generate, edit or vary an image through the hosted image API.

    This endpoint:

    1. Parses the JSON body or multipart form (defaults fill blanks).
    2. Validates the action and, for edit/variation, the image upload.
    3. Forwards the request to the image API.
    4. Returns the first base64 image of the response.

    Returns:
        ``200 {"b64": ...}`` on success, ``400 {"error": ...}`` for invalid
        requests, ``500 {"error": ...}`` for a missing API key, an upstream
        failure, or an empty upstream response.
    """
    try:
        req, files = await _parse_image_request(request)
        logger.info(
            f"Image request: action={req.action} model={req.model} size={req.size} "
            f"files={sorted(files)}"
        )
        b64 = await _dispatch(req, files, image_client)
    except StudioError as e:
        logger.warning(f"Image request failed ({e.status_code}): {e}")
        return _error_response(str(e), e.status_code)
    except Exception as e:
        logger.error(f"Unexpected error handling image request: {e}", exc_info=True)
        return _error_response(str(e), 500)

    return JSONResponse(ImageResponse(b64=b64).model_dump())


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Mount the studio and launch the uvicorn ASGI server.

    Reads host and port from :data:`~artstudio.core.config.config` (which
    loads from ``ARTSTUDIO_SERVER_HOST`` and ``ARTSTUDIO_SERVER_PORT``
    environment variables).  Defaults to ``0.0.0.0:7860``.

    This function is registered as the ``artstudio`` console script in
    ``pyproject.toml``.
    """
    import gradio as gr
    import uvicorn

    from artstudio.ui.app import create_ui

    studio = create_ui()
    server = gr.mount_gradio_app(app, studio, path="/studio")

    logger.info(f"Studio available at http://{config.server_host}:{config.server_port}/studio")
    uvicorn.run(
        server,
        host=config.server_host,
        port=config.server_port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
