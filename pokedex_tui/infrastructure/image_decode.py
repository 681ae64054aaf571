"""Image Decode — Pillow boundary turning raster image bytes into a RawImage.

Invariants:
    - Output is always RGBA, row-major, width * height * 4 bytes
    - Any decode failure (unknown format, truncated data, decompression bomb) -> MalformedError
    - Pillow signals broken PNG chunks with SyntaxError; it is mapped like the rest
"""

import io
import warnings

from PIL import Image, UnidentifiedImageError

from pokedex_tui.core.errors import ErrorContext, MalformedError
from pokedex_tui.core.sprite_raster import RawImage


def decode_image(data: bytes, source_id: str = "") -> RawImage:
    """Decode PNG/GIF/any Pillow-readable bytes into a RawImage."""
    if not data:
        raise MalformedError("empty image payload", ErrorContext(species_id=source_id))
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("error", Image.DecompressionBombWarning)
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                rgba = img.convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError, EOFError,
            Image.DecompressionBombError, Image.DecompressionBombWarning) as e:
        raise MalformedError(
            f"undecodable image: {e}", ErrorContext(species_id=source_id),
        ) from e
    return RawImage(
        width=rgba.width,
        height=rgba.height,
        pixels=rgba.tobytes(),
        source_id=source_id,
    )
