"""Type Chart — static attacking/defending multiplier data and the 18x18 matrix built from it.

Invariants:
    - Every name in TYPE_RELATIONS resolves to a PokemonType, or loading fails
    - Matrix values are drawn from {0, 0.5, 1, 2}; everything unlisted is 1
    - load_type_matrix() builds once per process; the result is an immutable tuple of tuples

Design Decisions:
    - Sparse "double/half/zero" data over a literal 18x18 grid: reviewable against the games' charts
    - Unknown names raise TypeChartConfigError at load time, never per lookup
"""

from functools import lru_cache
from typing import Mapping

from pokedex_tui.core.domain_types import PokemonType, ALL_TYPES
from pokedex_tui.core.errors import TypeChartConfigError

TypeMatrix = tuple[tuple[float, ...], ...]

TYPE_RELATIONS: dict[str, dict[str, tuple[str, ...]]] = {
    "normal": {"double": (), "half": ("rock", "steel"), "zero": ("ghost",)},
    "fire": {
        "double": ("grass", "ice", "bug", "steel"),
        "half": ("fire", "water", "rock", "dragon"),
        "zero": (),
    },
    "water": {
        "double": ("fire", "ground", "rock"),
        "half": ("water", "grass", "dragon"),
        "zero": (),
    },
    "electric": {
        "double": ("water", "flying"),
        "half": ("electric", "grass", "dragon"),
        "zero": ("ground",),
    },
    "grass": {
        "double": ("water", "ground", "rock"),
        "half": ("fire", "grass", "poison", "flying", "bug", "dragon", "steel"),
        "zero": (),
    },
    "ice": {
        "double": ("grass", "ground", "flying", "dragon"),
        "half": ("fire", "water", "ice", "steel"),
        "zero": (),
    },
    "fighting": {
        "double": ("normal", "ice", "rock", "dark", "steel"),
        "half": ("poison", "flying", "psychic", "bug", "fairy"),
        "zero": ("ghost",),
    },
    "poison": {
        "double": ("grass", "fairy"),
        "half": ("poison", "ground", "rock", "ghost"),
        "zero": ("steel",),
    },
    "ground": {
        "double": ("fire", "electric", "poison", "rock", "steel"),
        "half": ("grass", "bug"),
        "zero": ("flying",),
    },
    "flying": {
        "double": ("grass", "fighting", "bug"),
        "half": ("electric", "rock", "steel"),
        "zero": (),
    },
    "psychic": {
        "double": ("fighting", "poison"),
        "half": ("psychic", "steel"),
        "zero": ("dark",),
    },
    "bug": {
        "double": ("grass", "psychic", "dark"),
        "half": ("fire", "fighting", "poison", "flying", "ghost", "steel", "fairy"),
        "zero": (),
    },
    "rock": {
        "double": ("fire", "ice", "flying", "bug"),
        "half": ("fighting", "ground", "steel"),
        "zero": (),
    },
    "ghost": {
        "double": ("psychic", "ghost"),
        "half": ("dark",),
        "zero": ("normal",),
    },
    "dragon": {
        "double": ("dragon",),
        "half": ("steel",),
        "zero": ("fairy",),
    },
    "dark": {
        "double": ("psychic", "ghost"),
        "half": ("fighting", "dark", "fairy"),
        "zero": (),
    },
    "steel": {
        "double": ("ice", "rock", "fairy"),
        "half": ("fire", "water", "electric", "steel"),
        "zero": (),
    },
    "fairy": {
        "double": ("fighting", "dragon", "dark"),
        "half": ("fire", "poison", "steel"),
        "zero": (),
    },
}

_RELATION_VALUES = {"double": 2.0, "half": 0.5, "zero": 0.0}


def _resolve(name: str, where: str) -> PokemonType:
    try:
        return PokemonType(name)
    except ValueError:
        raise TypeChartConfigError(
            f"Unknown type '{name}' in type chart ({where})",
        ) from None


def build_type_matrix(
    relations: Mapping[str, Mapping[str, tuple[str, ...]]],
) -> TypeMatrix:
    """Build matrix[attacker][defender] from sparse relations. Raises TypeChartConfigError."""
    size = len(ALL_TYPES)
    rows = [[1.0] * size for _ in range(size)]
    seen: set[PokemonType] = set()

    for attacker_name, groups in relations.items():
        attacker = _resolve(attacker_name, "attacker")
        seen.add(attacker)
        for group, defenders in groups.items():
            if group not in _RELATION_VALUES:
                raise TypeChartConfigError(
                    f"Unknown relation '{group}' for attacker '{attacker_name}'",
                )
            for defender_name in defenders:
                defender = _resolve(defender_name, f"{attacker_name}.{group}")
                rows[attacker.chart_index][defender.chart_index] = _RELATION_VALUES[group]

    missing = [t.value for t in ALL_TYPES if t not in seen]
    if missing:
        raise TypeChartConfigError(
            f"Type chart missing attacking rows: {', '.join(missing)}",
        )
    return tuple(tuple(row) for row in rows)


@lru_cache(maxsize=1)
def load_type_matrix() -> TypeMatrix:
    """The process-wide type matrix. Built on first use, never mutated."""
    return build_type_matrix(TYPE_RELATIONS)
