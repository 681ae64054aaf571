"""Browser Events — messages delivered to the presentation layer's queue.

Every event carries the ticket id of the request that produced it, so the
presentation layer can ignore results for screens it has already left.
"""

from dataclasses import dataclass, field
from typing import Any

from pokedex_tui.core.errors import DexError, ErrorCategory
from pokedex_tui.core.sprite_raster import RenderedSprite
from pokedex_tui.schemas.species import MoveRecord, SpeciesListEntry, SpeciesRecord
from pokedex_tui.services.cancellation import CancelToken


@dataclass(frozen=True)
class Ticket:
    id: int
    kind: str
    identifier: str
    token: CancelToken = field(default_factory=CancelToken, compare=False, repr=False)

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled


@dataclass(frozen=True)
class SpeciesLoaded:
    ticket_id: int
    species: SpeciesRecord


@dataclass(frozen=True)
class SpriteReady:
    ticket_id: int
    identifier: str
    sprite: RenderedSprite


@dataclass(frozen=True)
class SpeciesListLoaded:
    ticket_id: int
    entries: list[SpeciesListEntry]


@dataclass(frozen=True)
class MovesLoaded:
    ticket_id: int
    identifier: str
    moves: list[MoveRecord]


@dataclass(frozen=True)
class LoadFailed:
    ticket_id: int
    identifier: str
    error: dict[str, Any]

    @property
    def code(self) -> str:
        return self.error["code"]


BrowserEvent = SpeciesLoaded | SpriteReady | SpeciesListLoaded | MovesLoaded | LoadFailed


def load_failed(ticket: Ticket, error: DexError) -> LoadFailed:
    return LoadFailed(ticket.id, ticket.identifier, error.to_event())


def unexpected_failure(ticket: Ticket) -> LoadFailed:
    """Event for a bug inside a background load; details stay in the log."""
    return LoadFailed(ticket.id, ticket.identifier, {
        "code": "INTERNAL_ERROR",
        "message": "Unexpected error while loading",
        "category": ErrorCategory.INTERNAL.value,
        "severity": "error",
        "retryable": False,
        "timestamp": None,
        "species_id": ticket.identifier,
    })
