"""Team Composition — verifies team limits and coverage reports.

Tests:
    - TeamMember validates and coerces its types
    - Team caps at six members; add/remove return new teams
    - move_types / unique_types ordering
    - build_coverage_report with and without moves; empty team rejected
"""

import pytest

from pokedex_tui.core.domain_types import PokemonType
from pokedex_tui.core.errors import InvalidInputError
from pokedex_tui.core.team import Team, TeamMember, build_coverage_report

T = PokemonType


def _member(species_id=1, name="bulbasaur", types=("grass", "poison"), moves=()):
    return TeamMember(species_id, name, types, moves)


def test_member_coerces_type_names():
    member = _member(types=("Grass", "poison"), moves=("FIRE",))
    assert member.types == (T.GRASS, T.POISON)
    assert member.move_types == (T.FIRE,)


@pytest.mark.parametrize("types", [(), ("fire", "water", "grass")])
def test_member_rejects_wrong_type_count(types):
    with pytest.raises(InvalidInputError):
        _member(types=types)


def test_add_member_returns_new_team():
    team = Team()
    grown = team.add_member(_member())
    assert team.members == ()
    assert len(grown.members) == 1


def test_team_is_capped_at_six():
    team = Team(members=tuple(_member(i) for i in range(6)))
    assert team.is_full
    with pytest.raises(InvalidInputError):
        team.add_member(_member(7))
    with pytest.raises(InvalidInputError):
        Team(members=tuple(_member(i) for i in range(7)))


def test_remove_member_by_index():
    team = Team(members=(_member(1, "a"), _member(2, "b"), _member(3, "c")))
    assert [m.name for m in team.remove_member(1).members] == ["a", "c"]
    with pytest.raises(InvalidInputError):
        team.remove_member(3)


def test_move_types_are_unique_in_first_seen_order():
    team = Team(members=(
        _member(1, moves=("ice", "water")),
        _member(2, moves=("water", "ground")),
    ))
    assert team.move_types() == [T.ICE, T.WATER, T.GROUND]


def test_unique_types_sorted_by_name():
    team = Team(members=(_member(1, types=("water",)), _member(2, types=("grass", "poison"))))
    assert team.unique_types() == [T.GRASS, T.POISON, T.WATER]


def test_coverage_report_without_moves():
    report = build_coverage_report(Team(members=(_member(types=("fire",)),)))
    assert report.offensive is None
    assert report.uncovered == []
    assert set(report.weaknesses) == {T.WATER, T.GROUND, T.ROCK}


def test_coverage_report_with_moves():
    team = Team(members=(_member(types=("water",), moves=("water", "ice")),))
    report = build_coverage_report(team)
    assert report.offensive is not None
    assert len(report.offensive) == 171
    assert T.DRAGON not in report.uncovered
    assert T.NORMAL in report.uncovered


def test_coverage_report_rejects_empty_team():
    with pytest.raises(InvalidInputError):
        build_coverage_report(Team())
