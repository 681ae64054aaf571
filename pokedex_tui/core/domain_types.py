"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - PokemonType has exactly 18 members, in canonical chart order
    - Multipliers are always members of MULTIPLIER_SET
    - All valid states encoded as Enums, no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: the value is the PokeAPI resource name, so parsing is a lookup
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

SpeciesKey = NewType("SpeciesKey", str)     # normalised id or name, e.g. "25" / "pikachu"
Fingerprint = NewType("Fingerprint", str)   # sha256 hex digest of a payload

Multiplier = float
RGB = tuple[int, int, int]


# ─── Constants ───────────────────────────────────────────────────

MULTIPLIER_SET: frozenset[float] = frozenset({0.0, 0.25, 0.5, 1.0, 2.0, 4.0})
MAX_TEAM_SIZE = 6
MAX_DEFENDER_TYPES = 2
SUPER_EFFECTIVE = 2.0


# ─── Enums ───────────────────────────────────────────────────────

class PokemonType(str, Enum):
    """The 18 elemental types, in type-chart order."""
    NORMAL = "normal"
    FIRE = "fire"
    WATER = "water"
    ELECTRIC = "electric"
    GRASS = "grass"
    ICE = "ice"
    FIGHTING = "fighting"
    POISON = "poison"
    GROUND = "ground"
    FLYING = "flying"
    PSYCHIC = "psychic"
    BUG = "bug"
    ROCK = "rock"
    GHOST = "ghost"
    DRAGON = "dragon"
    DARK = "dark"
    STEEL = "steel"
    FAIRY = "fairy"

    @property
    def chart_index(self) -> int:
        return _TYPE_INDEX[self]


_TYPE_INDEX = {t: i for i, t in enumerate(PokemonType)}
ALL_TYPES: tuple[PokemonType, ...] = tuple(PokemonType)


class Glyph(str, Enum):
    """Cell glyph selector for half-block sprite rendering."""
    BLANK = " "
    UPPER_HALF = "▀"   # ▀ fg on top, bg below
    SOLID = "█"        # █ both halves fg

    @property
    def code(self) -> int:
        return _GLYPH_CODES[self]

    @classmethod
    def from_code(cls, code: int) -> "Glyph":
        return _GLYPHS_BY_CODE[code]


_GLYPH_CODES = {Glyph.BLANK: 0, Glyph.UPPER_HALF: 1, Glyph.SOLID: 2}
_GLYPHS_BY_CODE = {v: k for k, v in _GLYPH_CODES.items()}


class CacheKind(str, Enum):
    """Payload kinds held in the local cache."""
    SPECIES = "species"
    SPECIES_LIST = "species_list"
    MOVE = "move"
    SPRITE = "sprite"
    RENDERED = "rendered"
