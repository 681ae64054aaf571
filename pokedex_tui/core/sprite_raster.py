"""Sprite Rasterizer — deterministic RGBA bitmap to half-block colour-cell grid.

Invariants:
    - Output is exactly rows x cols cells, whatever the source size
    - Each cell stacks two sub-pixels of a (rows*2, cols) sampling grid:
      top -> fg, bottom -> bg of an upper-half-block glyph
    - Same (RawImage, rows, cols, background, threshold) -> identical RenderedSprite
    - A cell is BLANK only when both sub-pixels are below ALPHA_THRESHOLD
    - No IO; callers decode image bytes before calling rasterize()

Design Decisions:
    - Separable resampling: per axis, exact box-filter area averaging when shrinking,
      nearest-neighbour when growing; same weight matrices give same output
    - Averaging on alpha-premultiplied colour, so transparent pixels do not bleed black
    - Partial alpha composited over DEFAULT_BACKGROUND: premult + bg * (1 - alpha)
"""

import math
from dataclasses import dataclass

import numpy as np

from pokedex_tui.core.domain_types import RGB, Glyph
from pokedex_tui.core.errors import InvalidInputError

ALPHA_THRESHOLD = 16          # of 255; below this a sub-pixel counts as transparent
DEFAULT_BACKGROUND: RGB = (0, 0, 0)


@dataclass(frozen=True)
class RawImage:
    """Decoded bitmap: row-major RGBA bytes, width * height * 4 long."""
    width: int
    height: int
    pixels: bytes
    source_id: str = ""

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise InvalidInputError(
                f"Image must be at least 1x1, got {self.width}x{self.height}", "image",
            )
        expected = self.width * self.height * 4
        if len(self.pixels) != expected:
            raise InvalidInputError(
                f"RGBA buffer is {len(self.pixels)} bytes, expected {expected}", "pixels",
            )

    def as_array(self) -> np.ndarray:
        """(height, width, 4) uint8 view of the pixel buffer."""
        return np.frombuffer(self.pixels, dtype=np.uint8).reshape(
            self.height, self.width, 4,
        )


@dataclass(frozen=True)
class SpriteCell:
    glyph: Glyph
    fg: RGB
    bg: RGB


@dataclass(frozen=True)
class RenderedSprite:
    rows: int
    cols: int
    cells: tuple[tuple[SpriteCell, ...], ...]

    @property
    def is_blank(self) -> bool:
        return all(cell.glyph is Glyph.BLANK for row in self.cells for cell in row)


def check_target(rows: int, cols: int) -> None:
    if rows < 1 or cols < 1:
        raise InvalidInputError(
            f"Target grid must be at least 1x1, got {rows}x{cols}", "target",
        )


def axis_weights(src: int, dst: int) -> np.ndarray:
    """(dst, src) resampling matrix; each row sums to 1."""
    weights = np.zeros((dst, src), dtype=np.float64)
    if dst <= src:
        scale = src / dst
        for i in range(dst):
            start, end = i * scale, (i + 1) * scale
            for j in range(int(math.floor(start)), min(int(math.ceil(end)), src)):
                overlap = min(end, j + 1) - max(start, j)
                if overlap > 0:
                    weights[i, j] = overlap
            weights[i] /= weights[i].sum()
    else:
        centers = (np.arange(dst) + 0.5) * src / dst
        nearest = np.minimum(centers.astype(np.int64), src - 1)
        weights[np.arange(dst), nearest] = 1.0
    return weights


def resample(image: RawImage, height: int, width: int) -> tuple[np.ndarray, np.ndarray]:
    """Premultiplied RGB (height, width, 3) and alpha (height, width) in [0, 1]."""
    pixels = image.as_array().astype(np.float64)
    alpha = pixels[..., 3] / 255.0
    stack = np.concatenate(
        [pixels[..., :3] * alpha[..., None], alpha[..., None]], axis=2,
    )
    wy = axis_weights(image.height, height)
    wx = axis_weights(image.width, width)
    rows_done = np.tensordot(wy, stack, axes=(1, 0))           # (height, w, 4)
    out = np.tensordot(rows_done, wx, axes=(1, 1))             # (height, 4, width)
    out = np.transpose(out, (0, 2, 1))                         # (height, width, 4)
    return out[..., :3], out[..., 3]


def rasterize(
    image: RawImage,
    rows: int,
    cols: int,
    *,
    background: RGB = DEFAULT_BACKGROUND,
    alpha_threshold: int = ALPHA_THRESHOLD,
) -> RenderedSprite:
    """Convert a bitmap into a rows x cols half-block sprite."""
    check_target(rows, cols)
    premult, alpha = resample(image, rows * 2, cols)

    bg = np.asarray(background, dtype=np.float64)
    composited = premult + bg * (1.0 - alpha[..., None])
    rgb = np.clip(np.rint(composited), 0, 255).astype(np.uint8)
    visible = np.rint(alpha * 255.0) >= alpha_threshold

    cells = []
    for r in range(rows):
        top, bottom = 2 * r, 2 * r + 1
        line = []
        for c in range(cols):
            if not visible[top, c] and not visible[bottom, c]:
                line.append(SpriteCell(Glyph.BLANK, background, background))
                continue
            fg = tuple(int(v) for v in rgb[top, c])
            lower = tuple(int(v) for v in rgb[bottom, c])
            if fg == lower:
                line.append(SpriteCell(Glyph.SOLID, fg, lower))
            else:
                line.append(SpriteCell(Glyph.UPPER_HALF, fg, lower))
        cells.append(tuple(line))
    return RenderedSprite(rows=rows, cols=cols, cells=tuple(cells))


def blank_sprite(
    rows: int, cols: int, background: RGB = DEFAULT_BACKGROUND,
) -> RenderedSprite:
    """Placeholder grid used when artwork is missing or undecodable."""
    check_target(rows, cols)
    cell = SpriteCell(Glyph.BLANK, background, background)
    return RenderedSprite(
        rows=rows, cols=cols, cells=tuple(tuple([cell] * cols) for _ in range(rows)),
    )


def fit_within(width: int, height: int, max_rows: int, max_cols: int) -> tuple[int, int]:
    """Largest aspect-preserving (rows, cols) for a width x height image.

    One cell is one pixel wide and two pixels tall; images are never enlarged
    beyond their own size.
    """
    check_target(max_rows, max_cols)
    if width < 1 or height < 1:
        raise InvalidInputError(f"Image must be at least 1x1, got {width}x{height}", "image")
    scale = max(width / max_cols, height / (max_rows * 2), 1.0)
    out_w = math.ceil(width / scale)
    out_h = math.ceil(height / scale)
    rows = min(max(math.ceil(out_h / 2), 1), max_rows)
    cols = min(max(out_w, 1), max_cols)
    return rows, cols
