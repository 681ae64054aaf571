"""Sprite Rasterizer — verifies half-block sampling, compositing, and sizing.

Tests:
    - Exact output dimensions when shrinking and when enlarging
    - Fully transparent input -> every cell BLANK
    - Top/bottom sub-pixels map to fg/bg of UPPER_HALF; equal halves -> SOLID
    - Partial alpha composited against black; near-zero alpha counts as transparent
    - Box-filter averaging when shrinking
    - Determinism, invalid targets, buffer validation, fit_within
"""

import numpy as np
import pytest

from pokedex_tui.core.domain_types import Glyph
from pokedex_tui.core.errors import InvalidInputError
from pokedex_tui.core.sprite_raster import (
    ALPHA_THRESHOLD,
    RawImage,
    axis_weights,
    blank_sprite,
    fit_within,
    rasterize,
)

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)
CLEAR = (0, 0, 0, 0)


def _image(rows: list[list[tuple[int, int, int, int]]]) -> RawImage:
    height, width = len(rows), len(rows[0])
    pixels = bytes(channel for row in rows for px in row for channel in px)
    return RawImage(width, height, pixels)


def _solid(width: int, height: int, px) -> RawImage:
    return _image([[px] * width for _ in range(height)])


# ==============================================================================
# Dimensions
# ==============================================================================


@pytest.mark.parametrize("rows,cols", [(1, 1), (2, 3), (5, 7), (20, 40)])
def test_output_has_exact_dimensions(rows, cols):
    sprite = rasterize(_solid(8, 8, RED), rows, cols)
    assert (sprite.rows, sprite.cols) == (rows, cols)
    assert len(sprite.cells) == rows
    assert all(len(line) == cols for line in sprite.cells)


def test_enlarging_uses_nearest_neighbour():
    sprite = rasterize(_image([[RED, BLUE]]), 1, 4)
    fgs = [cell.fg for cell in sprite.cells[0]]
    assert fgs == [(255, 0, 0), (255, 0, 0), (0, 0, 255), (0, 0, 255)]


# ==============================================================================
# Glyph selection
# ==============================================================================


def test_fully_transparent_image_is_blank():
    sprite = rasterize(_solid(16, 16, CLEAR), 4, 8)
    assert sprite.is_blank


def test_top_and_bottom_become_fg_and_bg():
    sprite = rasterize(_image([[RED], [BLUE]]), 1, 1)
    cell = sprite.cells[0][0]
    assert cell.glyph is Glyph.UPPER_HALF
    assert cell.fg == (255, 0, 0)
    assert cell.bg == (0, 0, 255)


def test_equal_halves_are_solid():
    sprite = rasterize(_solid(4, 4, RED), 2, 4)
    assert all(cell.glyph is Glyph.SOLID for line in sprite.cells for cell in line)
    assert sprite.cells[0][0].fg == (255, 0, 0)


def test_one_visible_half_composites_other_on_black():
    sprite = rasterize(_image([[CLEAR], [RED]]), 1, 1)
    cell = sprite.cells[0][0]
    assert cell.glyph is Glyph.UPPER_HALF
    assert cell.fg == (0, 0, 0)
    assert cell.bg == (255, 0, 0)


def test_partial_alpha_composited_against_black():
    sprite = rasterize(_solid(1, 2, (255, 255, 255, 128)), 1, 1)
    cell = sprite.cells[0][0]
    assert cell.glyph is Glyph.SOLID
    assert cell.fg == (128, 128, 128)


def test_alpha_below_threshold_is_transparent():
    faint = (255, 255, 255, ALPHA_THRESHOLD - 1)
    assert rasterize(_solid(2, 2, faint), 1, 2).is_blank
    visible = (255, 255, 255, ALPHA_THRESHOLD)
    assert not rasterize(_solid(2, 2, visible), 1, 2).is_blank


# ==============================================================================
# Sampling
# ==============================================================================


def test_shrinking_averages_covered_pixels():
    sprite = rasterize(_image([[RED, BLUE], [RED, BLUE]]), 1, 1)
    assert sprite.cells[0][0].fg == (128, 0, 128)


def test_averaging_is_premultiplied():
    # colour of a fully transparent neighbour must not bleed in
    clear_white = (255, 255, 255, 0)
    sprite = rasterize(_image([[RED, clear_white], [RED, clear_white]]), 1, 1)
    assert sprite.cells[0][0].fg == (128, 0, 0)


def test_axis_weights_rows_sum_to_one():
    for src, dst in [(3, 2), (96, 40), (5, 5), (2, 9)]:
        weights = axis_weights(src, dst)
        assert weights.shape == (dst, src)
        assert np.allclose(weights.sum(axis=1), 1.0)


def test_rasterize_is_deterministic():
    rng = np.random.default_rng(42)
    pixels = rng.integers(0, 256, size=(13, 17, 4), dtype=np.uint8).tobytes()
    image = RawImage(17, 13, pixels)
    assert rasterize(image, 5, 9) == rasterize(image, 5, 9)


# ==============================================================================
# Validation and helpers
# ==============================================================================


@pytest.mark.parametrize("rows,cols", [(0, 1), (1, 0), (-2, 4)])
def test_invalid_target_rejected(rows, cols):
    with pytest.raises(InvalidInputError):
        rasterize(_solid(2, 2, RED), rows, cols)


def test_raw_image_validates_buffer_length():
    with pytest.raises(InvalidInputError):
        RawImage(2, 2, b"\x00" * 15)
    with pytest.raises(InvalidInputError):
        RawImage(0, 2, b"")


def test_blank_sprite_shape():
    sprite = blank_sprite(3, 5)
    assert sprite.is_blank
    assert (sprite.rows, sprite.cols) == (3, 5)


def test_fit_within_shrinks_preserving_aspect():
    assert fit_within(96, 96, 20, 40) == (20, 40)
    assert fit_within(80, 40, 20, 40) == (10, 40)


def test_fit_within_never_enlarges():
    assert fit_within(10, 10, 20, 40) == (5, 10)
