"""Browser Core — the one object the presentation layer talks to.

Invariants:
    - request_* never block: they schedule a task and return a Ticket immediately
    - Exactly one event per uncancelled ticket (a result or LoadFailed); none after cancel
    - A cancelled ticket's late result touches neither the cache nor the queue
    - Unexpected exceptions in a load are logged with traceback and reported as
      INTERNAL_ERROR; they never kill the loop
    - Type math is re-exported as plain functions: no IO, safe to call anywhere

Design Decisions:
    - asyncio.Queue as the event channel: the presentation layer awaits it from its own
      loop without polling
    - cancel() only flips the token; shutdown() also cancels the tasks
"""

import asyncio
import itertools
import logging
from typing import Awaitable, Callable

from pokedex_tui.core.cache_keys import normalize_identifier
from pokedex_tui.core.errors import DexError
from pokedex_tui.core.sprite_raster import RenderedSprite
from pokedex_tui.core.team import CoverageReport, Team, build_coverage_report
from pokedex_tui.core.type_effectiveness import (
    defensive_profile, effectiveness, team_defensive_coverage, team_offensive_coverage,
)
from pokedex_tui.schemas.species import MoveRecord, SpeciesRecord
from pokedex_tui.services.browser_events import (
    BrowserEvent, MovesLoaded, SpeciesListLoaded, SpeciesLoaded, SpriteReady, Ticket,
    load_failed, unexpected_failure,
)
from pokedex_tui.services.cancellation import AbandonedError, CancelToken, ensure_live
from pokedex_tui.services.data_fetcher import DataFetcher
from pokedex_tui.services.sprite_service import SpriteService

logger = logging.getLogger(__name__)

MOVES_PER_SPECIES = 50


class BrowserCore:
    """Async facade over fetching, caching, sprites, and type math."""

    effectiveness = staticmethod(effectiveness)
    team_defensive_coverage = staticmethod(team_defensive_coverage)
    team_offensive_coverage = staticmethod(team_offensive_coverage)
    defensive_profile = staticmethod(defensive_profile)

    def __init__(
        self,
        fetcher: DataFetcher,
        sprites: SpriteService,
        events: asyncio.Queue | None = None,
    ):
        self.fetcher = fetcher
        self.sprites = sprites
        self.events: asyncio.Queue[BrowserEvent] = events if events is not None else asyncio.Queue()
        self._ids = itertools.count(1)
        self._tasks: dict[int, tuple[Ticket, asyncio.Task]] = {}

    # --- Awaitable API --------------------------------------------------------

    async def get_or_fetch_species(
        self, identifier: int | str, token: CancelToken | None = None,
    ) -> SpeciesRecord:
        return await self.fetcher.get_or_fetch_species(identifier, token)

    async def get_or_fetch_rendered_sprite(
        self, identifier: int | str, rows: int, cols: int, token: CancelToken | None = None,
    ) -> RenderedSprite:
        return await self.sprites.get_or_fetch_rendered_sprite(identifier, rows, cols, token)

    async def get_or_fetch_moves(
        self, identifier: int | str, token: CancelToken | None = None,
        limit: int = MOVES_PER_SPECIES,
    ) -> list[MoveRecord]:
        """Details for the species' first `limit` moves, strongest first.

        Moves that fail to load are skipped; the species lookup itself is not.
        """
        species = await self.fetcher.get_or_fetch_species(identifier, token)
        results = await asyncio.gather(
            *(self.fetcher.get_or_fetch_move(name, token)
              for name in species.move_names[:limit]),
            return_exceptions=True,
        )
        moves = []
        for name, result in zip(species.move_names, results):
            if isinstance(result, MoveRecord):
                moves.append(result)
            elif isinstance(result, DexError):
                logger.warning(f"Move '{name}' skipped: {result.message}",
                    extra={"species_id": str(species.id), "error_code": result.code})
            else:
                raise result
        ensure_live(token)
        return sorted(moves, key=lambda m: (-(m.power or 0), m.name))

    def coverage_report(self, team: Team) -> CoverageReport:
        return build_coverage_report(team)

    # --- Non-blocking API -----------------------------------------------------

    def request_species(self, identifier: int | str) -> Ticket:
        return self._spawn(
            "species", identifier,
            lambda t: self.get_or_fetch_species(identifier, t.token),
            lambda t, record: SpeciesLoaded(t.id, record),
        )

    def request_sprite(self, identifier: int | str, rows: int, cols: int) -> Ticket:
        return self._spawn(
            "sprite", identifier,
            lambda t: self.get_or_fetch_rendered_sprite(identifier, rows, cols, t.token),
            lambda t, sprite: SpriteReady(t.id, t.identifier, sprite),
        )

    def request_species_list(self, limit: int | None = None) -> Ticket:
        return self._spawn(
            "species_list", "all",
            lambda t: self.fetcher.get_or_fetch_species_list(limit, t.token),
            lambda t, entries: SpeciesListLoaded(t.id, entries),
        )

    def request_moves(self, identifier: int | str) -> Ticket:
        return self._spawn(
            "moves", identifier,
            lambda t: self.get_or_fetch_moves(identifier, t.token),
            lambda t, moves: MovesLoaded(t.id, t.identifier, moves),
        )

    def cancel(self, ticket: Ticket) -> None:
        ticket.token.cancel()
        logger.debug(f"Ticket {ticket.id} cancelled", extra={"species_id": ticket.identifier})

    def cancel_all(self) -> None:
        for ticket, _ in list(self._tasks.values()):
            ticket.token.cancel()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def shutdown(self) -> None:
        """Cancel every outstanding load and wait for the tasks to unwind."""
        self.cancel_all()
        tasks = [task for _, task in self._tasks.values()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    # --- Internals ------------------------------------------------------------

    def _spawn(
        self,
        kind: str,
        identifier: int | str,
        load: Callable[[Ticket], Awaitable],
        to_event: Callable[[Ticket, object], BrowserEvent],
    ) -> Ticket:
        ticket = Ticket(next(self._ids), kind, normalize_identifier(identifier))
        task = asyncio.create_task(self._run(ticket, load, to_event))
        self._tasks[ticket.id] = (ticket, task)
        task.add_done_callback(lambda _: self._tasks.pop(ticket.id, None))
        return ticket

    async def _run(self, ticket: Ticket, load, to_event) -> None:
        try:
            result = await load(ticket)
        except AbandonedError:
            logger.debug(f"Ticket {ticket.id} result discarded after cancel")
            return
        except DexError as e:
            if ticket.cancelled:
                return
            logger.warning(
                f"{ticket.kind} load failed: {e.message}",
                extra={"species_id": ticket.identifier, "error_code": e.code},
            )
            self.events.put_nowait(load_failed(ticket, e))
            return
        except asyncio.CancelledError:
            logger.info(f"Ticket {ticket.id} task cancelled")
            raise
        except Exception as e:
            logger.error(f"Unexpected error in {ticket.kind} load: {e}",
                extra={"species_id": ticket.identifier}, exc_info=True)
            if not ticket.cancelled:
                self.events.put_nowait(unexpected_failure(ticket))
            return

        if ticket.cancelled:
            return
        self.events.put_nowait(to_event(ticket, result))
