"""Team Composition — up to six members and the coverage report derived from them.

Invariants:
    - A Team never holds more than MAX_TEAM_SIZE members
    - Every member has 1-2 types (validated on construction)
    - CoverageReport is recomputed on demand and never persisted here

Design Decisions:
    - Frozen dataclasses with tuple fields: members can be shared without defensive copies
    - Team mutators return a new Team rather than editing in place
"""

from dataclasses import dataclass, field, replace

from pokedex_tui.core.domain_types import (
    MAX_DEFENDER_TYPES,
    MAX_TEAM_SIZE,
    Multiplier,
    PokemonType,
)
from pokedex_tui.core.errors import InvalidInputError
from pokedex_tui.core.type_effectiveness import (
    DefenderKey,
    parse_type,
    team_defensive_coverage,
    team_offensive_coverage,
    uncovered_types,
)


@dataclass(frozen=True)
class TeamMember:
    species_id: int
    name: str
    types: tuple[PokemonType, ...]
    move_types: tuple[PokemonType, ...] = ()

    def __post_init__(self):
        if not 1 <= len(self.types) <= MAX_DEFENDER_TYPES:
            raise InvalidInputError(
                f"{self.name} must have 1-{MAX_DEFENDER_TYPES} types", "types",
            )
        object.__setattr__(self, "types", tuple(parse_type(t) for t in self.types))
        object.__setattr__(
            self, "move_types", tuple(parse_type(t) for t in self.move_types),
        )


@dataclass(frozen=True)
class Team:
    name: str = "Team 1"
    members: tuple[TeamMember, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if len(self.members) > MAX_TEAM_SIZE:
            raise InvalidInputError(
                f"Team has {len(self.members)} members (max {MAX_TEAM_SIZE})", "members",
            )

    @property
    def is_full(self) -> bool:
        return len(self.members) >= MAX_TEAM_SIZE

    def add_member(self, member: TeamMember) -> "Team":
        if self.is_full:
            raise InvalidInputError(f"Team '{self.name}' is full", "members")
        return replace(self, members=self.members + (member,))

    def remove_member(self, index: int) -> "Team":
        if not 0 <= index < len(self.members):
            raise InvalidInputError(f"No team slot {index}", "index")
        return replace(
            self, members=self.members[:index] + self.members[index + 1:],
        )

    def member_types(self) -> list[tuple[PokemonType, ...]]:
        return [m.types for m in self.members]

    def move_types(self) -> list[PokemonType]:
        """Unique move types across the team, in first-seen order."""
        seen: list[PokemonType] = []
        for member in self.members:
            for move_type in member.move_types:
                if move_type not in seen:
                    seen.append(move_type)
        return seen

    def unique_types(self) -> list[PokemonType]:
        """Unique member types, sorted by name (team screen badge row)."""
        return sorted({t for m in self.members for t in m.types}, key=lambda t: t.value)


@dataclass(frozen=True)
class CoverageReport:
    team_types: list[PokemonType]
    defensive: dict[PokemonType, Multiplier]
    offensive: dict[DefenderKey, bool] | None
    uncovered: list[PokemonType]

    @property
    def weaknesses(self) -> list[PokemonType]:
        """Attacking types no member resists or neutralises."""
        return [t for t, mult in self.defensive.items() if mult > 1.0]


def build_coverage_report(team: Team) -> CoverageReport:
    """Derive team coverage. Raises InvalidInputError for an empty team."""
    defensive = team_defensive_coverage(team.member_types())
    move_types = team.move_types()
    if move_types:
        offensive = team_offensive_coverage(move_types)
        uncovered = uncovered_types(move_types)
    else:
        offensive = None
        uncovered = []
    return CoverageReport(
        team_types=team.unique_types(),
        defensive=defensive,
        offensive=offensive,
        uncovered=uncovered,
    )
