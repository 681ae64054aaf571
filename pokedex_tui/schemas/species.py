"""Species Schemas — Pydantic models for PokeAPI responses and the cached records built from them.

Invariants:
    - Required response fields: pokemon {id, name, types, stats}; move {id, name, type};
      listing {results}. Anything missing or mistyped -> MalformedError
    - Optional fields carry stated defaults (height/weight 0, abilities/moves empty,
      sprite_url None, move power/accuracy/pp None)
    - SpeciesRecord has 1-2 types, ordered by slot, each a known PokemonType
    - Records are frozen: immutable once fetched

Design Decisions:
    - Two layers: *Response models mirror the wire shape; *Record models are what we cache
    - Unknown extra fields are ignored (PokeAPI payloads are large; we keep what we use)
"""

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from pokedex_tui.core.domain_types import MAX_DEFENDER_TYPES, PokemonType
from pokedex_tui.core.errors import ErrorContext, MalformedError

GENERATION_BOUNDS = (151, 251, 386, 493, 649, 721, 809, 905, 1025)


# --- Wire shapes --------------------------------------------------------------

class NamedResource(BaseModel):
    name: str
    url: str = ""


class TypeSlot(BaseModel):
    slot: int
    type: NamedResource


class StatEntry(BaseModel):
    base_stat: int = Field(ge=0)
    stat: NamedResource


class AbilitySlot(BaseModel):
    ability: NamedResource
    is_hidden: bool = False


class MoveEntry(BaseModel):
    move: NamedResource


class Sprites(BaseModel):
    front_default: str | None = None


class PokemonResponse(BaseModel):
    """GET /pokemon/{id}."""
    id: int = Field(ge=1)
    name: str = Field(min_length=1)
    types: list[TypeSlot] = Field(min_length=1, max_length=MAX_DEFENDER_TYPES)
    stats: list[StatEntry] = Field(min_length=1)
    height: int = 0
    weight: int = 0
    abilities: list[AbilitySlot] = Field(default_factory=list)
    moves: list[MoveEntry] = Field(default_factory=list)
    sprites: Sprites = Field(default_factory=Sprites)


class MoveResponse(BaseModel):
    """GET /move/{name}."""
    id: int
    name: str
    type: NamedResource
    power: int | None = None
    accuracy: int | None = None
    pp: int | None = None
    damage_class: NamedResource | None = None


class SpeciesListResponse(BaseModel):
    """GET /pokemon?limit=N."""
    results: list[NamedResource]


# --- Cached records -----------------------------------------------------------

class Ability(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    is_hidden: bool = False


class SpeciesRecord(BaseModel):
    """Species metadata the core needs; everything else in the response is dropped."""
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    types: tuple[PokemonType, ...]
    stats: dict[str, int]
    height: int = 0
    weight: int = 0
    abilities: tuple[Ability, ...] = ()
    move_names: tuple[str, ...] = ()
    sprite_url: str | None = None

    @field_validator("types")
    @classmethod
    def one_or_two_types(cls, v: tuple[PokemonType, ...]) -> tuple[PokemonType, ...]:
        if not 1 <= len(v) <= MAX_DEFENDER_TYPES:
            raise ValueError(f"species must have 1-{MAX_DEFENDER_TYPES} types")
        return v

    @property
    def display_name(self) -> str:
        return "-".join(part.capitalize() for part in self.name.split("-"))

    @property
    def stat_total(self) -> int:
        return sum(self.stats.values())

    @property
    def generation(self) -> int:
        for gen, upper in enumerate(GENERATION_BOUNDS, start=1):
            if self.id <= upper:
                return gen
        return len(GENERATION_BOUNDS)


class MoveRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    type: PokemonType
    power: int | None = None
    accuracy: int | None = None
    pp: int | None = None
    damage_class: str | None = None


class SpeciesListEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str


# --- Parsing ------------------------------------------------------------------

def _validation_summary(e: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
    )


def parse_species(raw: bytes | str, context: ErrorContext | None = None) -> SpeciesRecord:
    """Parse a /pokemon/{id} body into a SpeciesRecord. Raises MalformedError."""
    try:
        resp = PokemonResponse.model_validate_json(raw)
        return SpeciesRecord(
            id=resp.id,
            name=resp.name,
            types=tuple(
                PokemonType(slot.type.name)
                for slot in sorted(resp.types, key=lambda s: s.slot)
            ),
            stats={s.stat.name: s.base_stat for s in resp.stats},
            height=resp.height,
            weight=resp.weight,
            abilities=tuple(
                Ability(name=a.ability.name, is_hidden=a.is_hidden) for a in resp.abilities
            ),
            move_names=tuple(m.move.name for m in resp.moves),
            sprite_url=resp.sprites.front_default,
        )
    except ValidationError as e:
        raise MalformedError(f"species: {_validation_summary(e)}", context) from e
    except ValueError as e:
        raise MalformedError(f"species: {e}", context) from e


def parse_move(raw: bytes | str, context: ErrorContext | None = None) -> MoveRecord:
    """Parse a /move/{name} body into a MoveRecord. Raises MalformedError."""
    try:
        resp = MoveResponse.model_validate_json(raw)
        return MoveRecord(
            id=resp.id,
            name=resp.name,
            type=PokemonType(resp.type.name),
            power=resp.power,
            accuracy=resp.accuracy,
            pp=resp.pp,
            damage_class=resp.damage_class.name if resp.damage_class else None,
        )
    except ValidationError as e:
        raise MalformedError(f"move: {_validation_summary(e)}", context) from e
    except ValueError as e:
        raise MalformedError(f"move: {e}", context) from e


def extract_id_from_url(url: str) -> int | None:
    """".../pokemon/25/" -> 25; None when the last path segment is not an integer."""
    tail = url.rstrip("/").rsplit("/", 1)[-1]
    return int(tail) if tail.isdigit() else None


def parse_species_list(
    raw: bytes | str, context: ErrorContext | None = None,
) -> list[SpeciesListEntry]:
    """Parse the catalog listing; entries without a numeric id in their URL are skipped."""
    try:
        resp = SpeciesListResponse.model_validate_json(raw)
    except ValidationError as e:
        raise MalformedError(f"species list: {_validation_summary(e)}", context) from e
    entries = []
    for item in resp.results:
        species_id = extract_id_from_url(item.url)
        if species_id is not None:
            entries.append(SpeciesListEntry(id=species_id, name=item.name))
    return entries
