"""Battle Math — pure damage, move choice, and turn order for the battle simulator screen.

Invariants:
    - Randomness only through an injected random.Random (deterministic under a seed)
    - Zero-power moves deal 0 damage at neutral effectiveness
    - Non-immune hits deal at least 1 HP; immune defenders take 0

Design Decisions:
    - Gen 1 physical/special split by move type (is_special_type)
    - Formula: ((2L/5+2) * P * A/D / 50 + 2) * STAB * type * roll, roll in [0.85, 1.0]
"""

import random
from dataclasses import dataclass, field

from pokedex_tui.core.domain_types import Multiplier, PokemonType
from pokedex_tui.core.type_effectiveness import effectiveness, parse_type

STAB_BONUS = 1.5
RANDOM_MOVE_CHANCE = 0.3
DEFAULT_LEVEL = 50

_SPECIAL_TYPES = frozenset({
    PokemonType.WATER, PokemonType.FIRE, PokemonType.GRASS, PokemonType.ELECTRIC,
    PokemonType.ICE, PokemonType.PSYCHIC, PokemonType.DRAGON,
})

_STAB_MOVES: dict[PokemonType, tuple[str, int]] = {
    PokemonType.NORMAL: ("Tackle", 40),
    PokemonType.FIRE: ("Flamethrower", 90),
    PokemonType.WATER: ("Surf", 90),
    PokemonType.ELECTRIC: ("Thunderbolt", 90),
    PokemonType.GRASS: ("Razor Leaf", 55),
    PokemonType.ICE: ("Ice Beam", 90),
    PokemonType.FIGHTING: ("Karate Chop", 50),
    PokemonType.POISON: ("Sludge Bomb", 90),
    PokemonType.GROUND: ("Earthquake", 100),
    PokemonType.FLYING: ("Aerial Ace", 60),
    PokemonType.PSYCHIC: ("Psychic", 90),
    PokemonType.BUG: ("Bug Buzz", 90),
    PokemonType.ROCK: ("Rock Slide", 75),
    PokemonType.GHOST: ("Shadow Ball", 80),
    PokemonType.DRAGON: ("Dragon Pulse", 85),
    PokemonType.DARK: ("Dark Pulse", 80),
    PokemonType.STEEL: ("Iron Tail", 100),
    PokemonType.FAIRY: ("Moonblast", 95),
}


def is_special_type(move_type: PokemonType | str) -> bool:
    return parse_type(move_type) in _SPECIAL_TYPES


@dataclass(frozen=True)
class BattleMove:
    name: str
    move_type: PokemonType
    power: int
    accuracy: int = 100

    @property
    def is_special(self) -> bool:
        return is_special_type(self.move_type)


@dataclass
class BattlePokemon:
    name: str
    types: tuple[PokemonType, ...]
    max_hp: int
    attack: int
    defense: int
    special: int
    speed: int
    level: int = DEFAULT_LEVEL
    moves: list[BattleMove] = field(default_factory=list)
    current_hp: int = -1

    def __post_init__(self):
        if self.current_hp < 0:
            self.current_hp = self.max_hp

    @property
    def fainted(self) -> bool:
        return self.current_hp <= 0


def calculate_damage(
    attacker: BattlePokemon,
    defender: BattlePokemon,
    move: BattleMove,
    rng: random.Random,
) -> tuple[int, Multiplier]:
    """Damage dealt and the type multiplier applied."""
    if move.power == 0:
        return 0, 1.0

    if move.is_special:
        atk_stat, def_stat = attacker.special, defender.special
    else:
        atk_stat, def_stat = attacker.attack, defender.defense
    def_stat = max(def_stat, 1)

    stab = STAB_BONUS if move.move_type in attacker.types else 1.0
    type_mult = effectiveness(move.move_type, defender.types)
    if type_mult == 0.0:
        return 0, type_mult

    roll = rng.uniform(0.85, 1.0)
    base = ((2 * attacker.level / 5 + 2) * move.power * atk_stat / def_stat) / 50 + 2
    damage = int(base * stab * type_mult * roll)
    return max(damage, 1), type_mult


def ai_pick_move(
    attacker: BattlePokemon, defender: BattlePokemon, rng: random.Random,
) -> int:
    """Index of the move with the best expected damage; 30% of the time a random one."""
    if not attacker.moves:
        return 0
    best_idx, best_score = 0, 0.0
    for i, move in enumerate(attacker.moves):
        stab = STAB_BONUS if move.move_type in attacker.types else 1.0
        score = move.power * effectiveness(move.move_type, defender.types) * stab
        if score > best_score:
            best_idx, best_score = i, score
    if rng.random() < RANDOM_MOVE_CHANCE:
        return rng.randrange(len(attacker.moves))
    return best_idx


def first_attacker(side1: BattlePokemon, side2: BattlePokemon) -> int:
    """1 or 2. Speed ties go to side 1."""
    return 1 if side1.speed >= side2.speed else 2


def default_moves_for_types(types: tuple[PokemonType, ...]) -> list[BattleMove]:
    """Fallback moveset: one STAB move per type, then Body Slam / Hyper Beam, max 4."""
    moves = []
    for move_type in types[:2]:
        name, power = _STAB_MOVES[move_type]
        moves.append(BattleMove(name, move_type, power))
    fillers = [
        BattleMove("Body Slam", PokemonType.NORMAL, 85),
        BattleMove("Hyper Beam", PokemonType.NORMAL, 150, accuracy=90),
    ]
    for filler in fillers:
        if len(moves) < 4:
            moves.append(filler)
    return moves[:4]


def battle_pokemon_from_stats(
    name: str,
    types: tuple[PokemonType, ...],
    stats: dict[str, int],
    level: int = DEFAULT_LEVEL,
    moves: list[BattleMove] | None = None,
) -> BattlePokemon:
    """Build a battler from a base stat block keyed by PokeAPI stat names.

    Gen 1 has one Special stat; special-attack stands in for it. HP uses the
    level-scaled formula without IVs/EVs.
    """
    base_hp = stats.get("hp", 1)
    return BattlePokemon(
        name=name,
        types=types,
        max_hp=(2 * base_hp * level) // 100 + level + 10,
        attack=stats.get("attack", 1),
        defense=stats.get("defense", 1),
        special=stats.get("special-attack", 1),
        speed=stats.get("speed", 1),
        level=level,
        moves=moves if moves is not None else default_moves_for_types(types),
    )
