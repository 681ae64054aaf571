"""Type Effectiveness — pure combination and team aggregation over the static type matrix.

Invariants:
    - effectiveness() is total over all 18 attackers x 324 ordered defender pairs
    - Dual-type result is the product of the two single lookups and is asserted to be
      in MULTIPLIER_SET (never clamped)
    - Team aggregates reject empty input with InvalidInputError (programming error)
    - No IO, no async, no mutable module state

Design Decisions:
    - Offensive coverage reported as a boolean per defending combination (171 keys:
      18 singles + 153 unordered duals); no single numeric score is derived
    - Inputs accept PokemonType or its string value; unknown names are InvalidInputError
"""

from itertools import combinations
from typing import Iterable, Sequence

from pokedex_tui.core.domain_types import (
    ALL_TYPES,
    MAX_DEFENDER_TYPES,
    MAX_TEAM_SIZE,
    MULTIPLIER_SET,
    SUPER_EFFECTIVE,
    Multiplier,
    PokemonType,
)
from pokedex_tui.core.errors import InvalidInputError
from pokedex_tui.core.type_chart import load_type_matrix

TypeLike = PokemonType | str
DefenderKey = tuple[PokemonType, ...]


def parse_type(name: TypeLike) -> PokemonType:
    """Resolve a type name (case-insensitive) to PokemonType."""
    if isinstance(name, PokemonType):
        return name
    try:
        return PokemonType(str(name).strip().lower())
    except ValueError:
        raise InvalidInputError(f"Unknown type '{name}'", "type") from None


def single_effectiveness(attacking_type: TypeLike, defending_type: TypeLike) -> Multiplier:
    """Table lookup for one attacker against one defending type."""
    matrix = load_type_matrix()
    atk = parse_type(attacking_type)
    dfn = parse_type(defending_type)
    return matrix[atk.chart_index][dfn.chart_index]


def effectiveness(
    attacking_type: TypeLike, defending_types: Sequence[TypeLike],
) -> Multiplier:
    """Product of per-type multipliers for a one- or two-type defender."""
    if not 1 <= len(defending_types) <= MAX_DEFENDER_TYPES:
        raise InvalidInputError(
            f"Defender must have 1-{MAX_DEFENDER_TYPES} types, got {len(defending_types)}",
            "defending_types",
        )
    result = 1.0
    for defending_type in defending_types:
        result *= single_effectiveness(attacking_type, defending_type)
    assert result in MULTIPLIER_SET, (
        f"{attacking_type} vs {defending_types} produced {result}"
    )
    return result


def _check_team(team: Sequence[Sequence[TypeLike]]) -> None:
    if not team:
        raise InvalidInputError("Team must have at least one member", "team")
    if len(team) > MAX_TEAM_SIZE:
        raise InvalidInputError(
            f"Team has {len(team)} members (max {MAX_TEAM_SIZE})", "team",
        )


def team_defensive_coverage(
    team: Sequence[Sequence[TypeLike]],
) -> dict[PokemonType, Multiplier]:
    """Best (lowest) multiplier any member takes from each attacking type.

    team is a sequence of member type lists, e.g. [["fire"], ["water", "ground"]].
    """
    _check_team(team)
    return {
        attacker: min(effectiveness(attacker, member) for member in team)
        for attacker in ALL_TYPES
    }


def defending_combinations() -> list[DefenderKey]:
    """All 171 defending type combinations: 18 singles then 153 unordered duals."""
    singles = [(t,) for t in ALL_TYPES]
    duals = list(combinations(ALL_TYPES, 2))
    return singles + duals


def _unique_move_types(team_move_types: Iterable[TypeLike]) -> list[PokemonType]:
    unique: list[PokemonType] = []
    for move_type in team_move_types:
        parsed = parse_type(move_type)
        if parsed not in unique:
            unique.append(parsed)
    if not unique:
        raise InvalidInputError("At least one move type is required", "team_move_types")
    return unique


def team_offensive_coverage(
    team_move_types: Iterable[TypeLike],
) -> dict[DefenderKey, bool]:
    """Whether any move type hits each defending combination for >= 2x."""
    move_types = _unique_move_types(team_move_types)
    return {
        defender: any(
            effectiveness(move_type, defender) >= SUPER_EFFECTIVE
            for move_type in move_types
        )
        for defender in defending_combinations()
    }


def uncovered_types(team_move_types: Iterable[TypeLike]) -> list[PokemonType]:
    """Single types that no move type hits super-effectively, in chart order."""
    coverage = team_offensive_coverage(team_move_types)
    return [t for t in ALL_TYPES if not coverage[(t,)]]


def defensive_profile(types: Sequence[TypeLike]) -> dict[str, list[tuple[PokemonType, Multiplier]]]:
    """Group attacking types by how they hit a defender (detail screen view).

    Keys: "weak" (>1), "resist" (0<x<1), "immune" (0). Neutral hits are omitted.
    Each list is sorted by multiplier (strongest first for weak, weakest first otherwise),
    then chart order.
    """
    profile: dict[str, list[tuple[PokemonType, Multiplier]]] = {
        "weak": [], "resist": [], "immune": [],
    }
    for attacker in ALL_TYPES:
        mult = effectiveness(attacker, types)
        if mult == 0.0:
            profile["immune"].append((attacker, mult))
        elif mult > 1.0:
            profile["weak"].append((attacker, mult))
        elif mult < 1.0:
            profile["resist"].append((attacker, mult))
    profile["weak"].sort(key=lambda item: -item[1])
    profile["resist"].sort(key=lambda item: item[1])
    return profile


def type_chart_rows() -> list[tuple[PokemonType, tuple[Multiplier, ...]]]:
    """Attacker rows of the full chart, for the type chart screen."""
    matrix = load_type_matrix()
    return [(attacker, matrix[attacker.chart_index]) for attacker in ALL_TYPES]


def effectiveness_message(multiplier: Multiplier) -> str | None:
    """Battle text for a multiplier; None for neutral hits."""
    if multiplier >= SUPER_EFFECTIVE:
        return "It's super effective!"
    if multiplier == 0.0:
        return "It doesn't affect the opponent..."
    if multiplier < 1.0:
        return "It's not very effective..."
    return None
