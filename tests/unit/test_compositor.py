"""Tests for artstudio.core.compositor: image export and caption overlay."""

from __future__ import annotations

import base64
import io

import pytest
from PIL import Image, ImageDraw

from artstudio.core.compositor import (
    BAND_COLOR,
    decode_image,
    draw_overlay,
    get_export_format,
    load_font,
    render_export,
    wrap_text,
)
from artstudio.core.errors import ExportError


class TestGetExportFormat:
    """Formats resolve by short name or MIME type."""

    @pytest.mark.parametrize(
        "name, extension",
        [
            ("png", "png"),
            ("jpeg", "jpg"),
            ("jpg", "jpg"),
            ("image/jpeg", "jpg"),
            ("WEBP", "webp"),
            ("image/webp", "webp"),
        ],
    )
    def test_known_formats(self, name, extension):
        assert get_export_format(name).extension == extension

    def test_quality_settings(self):
        assert get_export_format("png").quality is None
        assert get_export_format("jpeg").quality == 92
        assert get_export_format("webp").quality == 98

    def test_mime_type_lookup(self):
        fmt = get_export_format("image/png")
        assert fmt.mime_type == "image/png"
        assert fmt.pil_format == "PNG"

    def test_unknown_format(self):
        with pytest.raises(ExportError, match="Unsupported export format"):
            get_export_format("gif")


class TestDecodeImage:
    def test_decodes_png(self, sample_b64):
        image = decode_image(sample_b64)
        assert image.size == (64, 64)

    def test_rejects_garbage(self):
        with pytest.raises(ExportError):
            decode_image("not base64!!")

    def test_accepts_line_wrapped_base64(self, sample_b64):
        """Base64 wrapped at 76 columns, as MIME encoders write it, still decodes."""
        wrapped = "\n".join(sample_b64[i : i + 76] for i in range(0, len(sample_b64), 76))
        assert "\n" in wrapped
        assert decode_image(wrapped + "\n").size == (64, 64)

    def test_rejects_non_image(self):
        with pytest.raises(ExportError):
            decode_image(base64.b64encode(b"plain text").decode("ascii"))


class TestWrapText:
    """Greedy wrap by measured width, at most two lines."""

    def setup_method(self):
        self.draw = ImageDraw.Draw(Image.new("RGB", (10, 10)))
        self.font = load_font(16)

    def test_short_text_single_line(self):
        assert wrap_text(self.draw, "a red fox", self.font, 1000) == ["a red fox"]

    def test_long_text_limited_to_two_lines(self):
        text = " ".join(["word"] * 200)
        lines = wrap_text(self.draw, text, self.font, 200)
        assert len(lines) == 2
        for line in lines:
            assert self.draw.textlength(line, font=self.font) < 200

    def test_empty_text(self):
        assert wrap_text(self.draw, "", self.font, 200) == []

    def test_oversized_word_gets_own_line(self):
        lines = wrap_text(self.draw, "a " + "x" * 80, self.font, 100)
        assert lines == ["a", "x" * 80]


class TestDrawOverlay:
    def test_band_darkens_bottom_only(self, make_item):
        image = Image.new("RGB", (400, 400), (255, 255, 255))
        item = make_item(prompt="")
        composed = draw_overlay(image, item)

        assert composed.mode == "RGBA"
        assert composed.size == (400, 400)
        # Top of the image is untouched
        assert composed.getpixel((200, 10)) == (255, 255, 255, 255)
        # Band starts at h - max(72, floor(h * 0.16)) = 328; sample its right edge
        r, g, b, _ = composed.getpixel((399, 330))
        expected = round(255 * (1 - BAND_COLOR[3] / 255))
        assert abs(r - expected) <= 2
        assert r == g == b

    def test_band_minimum_height_on_small_image(self, make_item):
        image = Image.new("RGB", (200, 200), (255, 255, 255))
        composed = draw_overlay(image, make_item(prompt=""))
        # 200 * 0.16 = 32 < 72, so the band is 72px tall
        assert composed.getpixel((199, 200 - 72 - 2))[:3] == (255, 255, 255)
        assert composed.getpixel((199, 200 - 72 + 2))[:3] != (255, 255, 255)


class TestRenderExport:
    """Rendering returns encoded bytes and an art-<id>.<ext> filename."""

    def test_png_without_overlay(self, make_item, make_b64):
        item = make_item(id="abc", b64=make_b64((32, 32)))
        data, filename = render_export(item, "png")
        assert filename == "art-abc.png"
        assert Image.open(io.BytesIO(data)).format == "PNG"

    def test_jpeg_flattens_alpha(self, make_item):
        item = make_item(id="abc")
        data, filename = render_export(item, "jpeg", overlay=True)
        assert filename == "art-abc.jpg"
        image = Image.open(io.BytesIO(data))
        assert image.format == "JPEG"
        assert image.mode == "RGB"

    def test_webp_with_overlay(self, make_item):
        item = make_item(id="abc", prompt="a red fox " * 20, tags=["fox", "snow"])
        data, filename = render_export(item, "image/webp", overlay=True)
        assert filename == "art-abc.webp"
        image = Image.open(io.BytesIO(data))
        assert image.format == "WEBP"
        assert image.size == (64, 64)

    def test_overlay_changes_pixels(self, make_item, make_b64):
        item = make_item(b64=make_b64((300, 300), (255, 255, 255)))
        plain, _ = render_export(item, "png")
        captioned, _ = render_export(item, "png", overlay=True)
        assert plain != captioned

    def test_undecodable_item(self, make_item):
        item = make_item(b64="bm90IGFuIGltYWdl")
        with pytest.raises(ExportError):
            render_export(item, "png")


class TestEncodeModes:
    """Sources in modes a format cannot store are converted before encoding."""

    def _encoded(self, image: Image.Image, pil_format: str) -> str:
        buffer = io.BytesIO()
        image.save(buffer, format=pil_format)
        return base64.b64encode(buffer.getvalue()).decode("ascii")

    @pytest.mark.parametrize("format_name, pil_format", [("png", "PNG"), ("webp", "WEBP")])
    def test_cmyk_source(self, make_item, format_name, pil_format):
        cmyk = Image.new("CMYK", (40, 40), (0, 255, 255, 0))
        item = make_item(b64=self._encoded(cmyk, "JPEG"))
        data, _ = render_export(item, format_name)
        image = Image.open(io.BytesIO(data))
        assert image.format == pil_format
        assert image.mode == "RGB"

    def test_transparent_palette_source_keeps_alpha(self, make_item):
        palette = Image.new("P", (40, 40), 0)
        palette.info["transparency"] = 0
        item = make_item(b64=self._encoded(palette, "PNG"))
        data, _ = render_export(item, "png")
        assert Image.open(io.BytesIO(data)).mode == "RGBA"
