"""Export compositor: re-encode gallery images with an optional caption overlay.

The overlay is a semi-transparent band across the bottom of the image holding
up to two word-wrapped lines of the prompt and one metadata line
(``action • size • model • tags``).  All measurements scale with the image so
the band reads the same on a 256px thumbnail and a 2048px render:

=================  ==============================
Quantity           Value
=================  ==============================
padding            ``max(16, floor(w * 0.02))``
band height        ``max(72, floor(h * 0.16))``
heading font       ``max(16, floor(w * 0.018))``
metadata font      ``max(12, floor(w * 0.014))``
band colour        black at 55 % opacity
=================  ==============================

Text is positioned by its baseline, and wrapping measures each candidate line
against the band width, so a long prompt never runs off the edge.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
import math
from dataclasses import dataclass

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from artstudio.core.errors import ExportError
from artstudio.core.gallery import GalleryItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportFormat:
    """An output raster format."""

    mime_type: str
    extension: str
    pil_format: str
    quality: int | None = None


EXPORT_FORMATS: dict[str, ExportFormat] = {
    "png": ExportFormat("image/png", "png", "PNG"),
    "jpeg": ExportFormat("image/jpeg", "jpg", "JPEG", quality=92),
    "webp": ExportFormat("image/webp", "webp", "WEBP", quality=98),
}

BAND_COLOR = (0, 0, 0, round(255 * 0.55))
TEXT_COLOR = (255, 255, 255, 255)
LINE_GAP = 4
MAX_PROMPT_LINES = 2

# Try common font paths across Linux and macOS, fall back to Pillow's bundled font
_REGULAR_FONTS = (
    "DejaVuSans.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/System/Library/Fonts/Helvetica.ttc",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
)
_BOLD_FONTS = (
    "DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
)


def get_export_format(name: str) -> ExportFormat:
    """Resolve a format by short name (``png``/``jpeg``/``webp``) or MIME type."""
    key = name.lower().strip()
    if key == "jpg":
        key = "jpeg"
    for short_name, fmt in EXPORT_FORMATS.items():
        if key in (short_name, fmt.mime_type):
            return fmt
    raise ExportError(f"Unsupported export format: {name}")


def load_font(size: int, bold: bool = False) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load a sans-serif font at *size* pixels."""
    for path in _BOLD_FONTS if bold else _REGULAR_FONTS:
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def decode_image(b64: str) -> Image.Image:
    """Decode base64 image data into a loaded PIL image.

    Raises:
        ExportError: If the data is not base64 or not a readable image.
    """
    try:
        raw = base64.b64decode("".join(b64.split()), validate=True)
        image = Image.open(io.BytesIO(raw))
        image.load()
    except (binascii.Error, ValueError, UnidentifiedImageError, OSError) as e:
        raise ExportError(f"Could not decode image: {e}") from e
    return image


def wrap_text(
    draw: ImageDraw.ImageDraw,
    text: str,
    font: ImageFont.FreeTypeFont | ImageFont.ImageFont,
    max_width: float,
    max_lines: int = MAX_PROMPT_LINES,
) -> list[str]:
    """Greedy word wrap by measured width.

    Words are appended to the current line while the line stays narrower than
    *max_width*.  Once *max_lines* lines are complete the rest of the text is
    dropped.  A single word wider than *max_width* still gets its own line.
    """
    lines: list[str] = []
    line = ""
    for word in text.split():
        candidate = f"{line} {word}" if line else word
        if draw.textlength(candidate, font=font) < max_width:
            line = candidate
        else:
            if line:
                lines.append(line)
            line = word
        if len(lines) == max_lines:
            break
    if line and len(lines) < max_lines:
        lines.append(line)
    return lines


def draw_overlay(image: Image.Image, item: GalleryItem) -> Image.Image:
    """Return an RGBA copy of *image* with the caption band drawn over the bottom."""
    base = image.convert("RGBA")
    width, height = base.size

    pad = max(16, math.floor(width * 0.02))
    band_height = max(72, math.floor(height * 0.16))
    heading_size = max(16, math.floor(width * 0.018))
    meta_size = max(12, math.floor(width * 0.014))

    band = Image.new("RGBA", base.size, (0, 0, 0, 0))
    ImageDraw.Draw(band).rectangle(
        [(0, height - band_height), (width, height)],
        fill=BAND_COLOR,
    )
    composed = Image.alpha_composite(base, band)
    draw = ImageDraw.Draw(composed)

    heading_font = load_font(heading_size, bold=True)
    lines = wrap_text(draw, item.prompt, heading_font, width - pad * 2)
    prompt_y = height - band_height + pad + heading_size
    for i, text in enumerate(lines):
        draw.text(
            (pad, prompt_y + i * (heading_size + LINE_GAP)),
            text,
            font=heading_font,
            fill=TEXT_COLOR,
            anchor="ls",
        )

    meta_font = load_font(meta_size)
    draw.text((pad, height - pad), item.meta_line, font=meta_font, fill=TEXT_COLOR, anchor="ls")
    return composed


def encode_image(image: Image.Image, fmt: ExportFormat) -> bytes:
    """Encode *image* in *fmt*.

    JPEG is always written as RGB.  PNG and WebP keep RGB or RGBA data and
    convert any other mode (CMYK, palette, 16-bit) to one of the two.
    """
    if fmt.pil_format == "JPEG":
        if image.mode != "RGB":
            image = image.convert("RGB")
    elif image.mode not in ("RGB", "RGBA"):
        image = image.convert("RGBA" if image.has_transparency_data else "RGB")

    params: dict = {}
    if fmt.quality is not None:
        params["quality"] = fmt.quality

    buffer = io.BytesIO()
    image.save(buffer, format=fmt.pil_format, **params)
    return buffer.getvalue()


def export_filename(item: GalleryItem, fmt: ExportFormat) -> str:
    """Download filename for an exported image (``art-<id>.<ext>``)."""
    return f"art-{item.id}.{fmt.extension}"


def render_export(item: GalleryItem, format_name: str, overlay: bool = False) -> tuple[bytes, str]:
    """Render a gallery item for download.

    Args:
        item: Gallery item to export.
        format_name: ``png``, ``jpeg`` or ``webp`` (MIME types also accepted).
        overlay: Whether to draw the caption band.

    Returns:
        Tuple of ``(encoded_bytes, filename)``.

    Raises:
        ExportError: If the image cannot be decoded, drawn or encoded.
    """
    fmt = get_export_format(format_name)
    image = decode_image(item.b64)

    try:
        if overlay:
            image = draw_overlay(image, item)
        data = encode_image(image, fmt)
    except (OSError, ValueError) as e:
        raise ExportError(f"Export failed: {e}") from e

    logger.info(f"Exported {item.id} as {fmt.extension} ({len(data)} bytes, overlay={overlay})")
    return data, export_filename(item, fmt)
