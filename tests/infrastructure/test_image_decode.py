"""Image Decode — verifies Pillow decoding into RawImage and failure mapping."""

import io

import pytest
from PIL import Image

from pokedex_tui.core.errors import MalformedError
from pokedex_tui.infrastructure.image_decode import decode_image


def test_png_decodes_to_rgba(png):
    image = decode_image(png(3, 2, (10, 20, 30, 255)), "25")
    assert (image.width, image.height) == (3, 2)
    assert len(image.pixels) == 3 * 2 * 4
    assert image.pixels[:4] == bytes([10, 20, 30, 255])
    assert image.source_id == "25"


def test_palette_image_converted_to_rgba():
    buf = io.BytesIO()
    Image.new("P", (2, 2), 0).save(buf, format="GIF")
    image = decode_image(buf.getvalue())
    assert len(image.pixels) == 16


@pytest.mark.parametrize("data", [b"", b"not an image", b"\x89PNG\r\n\x1a\n\x00\x00"])
def test_undecodable_bytes_are_malformed(data):
    with pytest.raises(MalformedError):
        decode_image(data, "25")


def test_truncated_png_is_malformed(png):
    data = png(16, 16)
    with pytest.raises(MalformedError):
        decode_image(data[: len(data) // 2])
