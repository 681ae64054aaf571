"""Sprite Codec — compact binary payload for cached sprites, plus ANSI truecolor output.

Invariants:
    - encode_sprite() is a pure function of the RenderedSprite (byte-identical for equal sprites)
    - decode_sprite(encode_sprite(s)) == s
    - Any header/length mismatch raises MalformedError; no partial sprite is returned

Design Decisions:
    - Fixed 7-byte cells (glyph, fg rgb, bg rgb) after a 9-byte header: no parser state
    - SPRITE_FORMAT_VERSION is also the cache format_version for rendered entries
"""

import struct

from pokedex_tui.core.domain_types import Glyph
from pokedex_tui.core.errors import MalformedError
from pokedex_tui.core.sprite_raster import RenderedSprite, SpriteCell

SPRITE_MAGIC = b"DXSP"
SPRITE_FORMAT_VERSION = 1

_HEADER = struct.Struct(">4sBHH")
_CELL = struct.Struct(">B3B3B")

ANSI_RESET = "\x1b[0m"


def encode_sprite(sprite: RenderedSprite) -> bytes:
    parts = [_HEADER.pack(SPRITE_MAGIC, SPRITE_FORMAT_VERSION, sprite.rows, sprite.cols)]
    for row in sprite.cells:
        for cell in row:
            parts.append(_CELL.pack(cell.glyph.code, *cell.fg, *cell.bg))
    return b"".join(parts)


def decode_sprite(payload: bytes) -> RenderedSprite:
    if len(payload) < _HEADER.size:
        raise MalformedError("sprite payload shorter than header")
    magic, version, rows, cols = _HEADER.unpack_from(payload, 0)
    if magic != SPRITE_MAGIC:
        raise MalformedError("sprite payload has wrong magic")
    if version != SPRITE_FORMAT_VERSION:
        raise MalformedError(f"unsupported sprite format version {version}")
    expected = _HEADER.size + rows * cols * _CELL.size
    if len(payload) != expected:
        raise MalformedError(f"sprite payload is {len(payload)} bytes, expected {expected}")

    cells = []
    offset = _HEADER.size
    for _ in range(rows):
        line = []
        for _ in range(cols):
            code, fr, fg, fb, br, bgg, bb = _CELL.unpack_from(payload, offset)
            offset += _CELL.size
            try:
                glyph = Glyph.from_code(code)
            except KeyError:
                raise MalformedError(f"unknown glyph code {code}") from None
            line.append(SpriteCell(glyph, (fr, fg, fb), (br, bgg, bb)))
        cells.append(tuple(line))
    return RenderedSprite(rows=rows, cols=cols, cells=tuple(cells))


def to_ansi_lines(sprite: RenderedSprite) -> list[str]:
    """One escape-coded string per row; blank cells emit a reset space."""
    lines = []
    for row in sprite.cells:
        out = []
        for cell in row:
            if cell.glyph is Glyph.BLANK:
                out.append(f"{ANSI_RESET} ")
                continue
            fg = "\x1b[38;2;{};{};{}m".format(*cell.fg)
            bg = "\x1b[48;2;{};{};{}m".format(*cell.bg)
            out.append(f"{fg}{bg}{cell.glyph.value}")
        out.append(ANSI_RESET)
        lines.append("".join(out))
    return lines
