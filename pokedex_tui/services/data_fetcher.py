"""Data Fetcher — remote species, sprite, move, and listing retrieval through the cache.

Invariants:
    - Integer ids outside 1..catalog_size raise NotFoundError without a request
    - A successful fetch is written to the cache before it is returned
    - A cancelled call never writes to the cache (AbandonedError instead)
    - get_or_fetch_* read the cache first; a cached payload that no longer parses
      is logged and refetched
    - Sprite bytes come from the species record's sprite_url; no URL -> NotFoundError

Design Decisions:
    - Records are cached as their pydantic JSON dump, not the raw API body (~5% of the size)
    - A species fetched by name is also cached under its numeric id
"""

import logging

from pydantic import TypeAdapter, ValidationError

from pokedex_tui.core.cache_keys import (
    CacheKey, move_key, normalize_identifier, species_key, species_list_key, sprite_key,
)
from pokedex_tui.core.errors import ErrorContext, MalformedError, NotFoundError
from pokedex_tui.infrastructure.cache_store import CacheStore
from pokedex_tui.infrastructure.pokeapi_client import ResilientPokeApiClient
from pokedex_tui.schemas.species import (
    MoveRecord, SpeciesListEntry, SpeciesRecord,
    parse_move, parse_species, parse_species_list,
)
from pokedex_tui.services.cancellation import CancelToken, ensure_live

logger = logging.getLogger(__name__)

RECORD_FORMAT_VERSION = 1
SPRITE_BYTES_FORMAT_VERSION = 1
DEFAULT_CATALOG_SIZE = 1025

_species_list_adapter = TypeAdapter(list[SpeciesListEntry])


class DataFetcher:
    """Cache-aware access to PokeAPI resources."""

    def __init__(
        self,
        client: ResilientPokeApiClient,
        cache: CacheStore,
        catalog_size: int = DEFAULT_CATALOG_SIZE,
    ):
        self.client = client
        self.cache = cache
        self.catalog_size = catalog_size

    # --- Species --------------------------------------------------------------

    async def fetch_species(
        self, identifier: int | str, token: CancelToken | None = None,
    ) -> SpeciesRecord:
        """Fetch from the network, cache, return."""
        ident = self._check_catalog(identifier)
        url = self.client.species_url(ident)
        ctx = ErrorContext(species_id=ident, url=url)
        raw = await self.client.get_bytes(url, "species", ident, ctx)
        record = parse_species(raw, ctx)
        ensure_live(token)

        payload = record.model_dump_json().encode()
        await self.cache.put(species_key(ident), payload, RECORD_FORMAT_VERSION)
        if ident != str(record.id) and 1 <= record.id <= self.catalog_size:
            await self.cache.put(species_key(record.id), payload, RECORD_FORMAT_VERSION)
        logger.info("Species fetched", extra={"species_id": str(record.id)})
        return record

    async def cached_species(self, identifier: int | str) -> SpeciesRecord | None:
        key = species_key(identifier)
        return await self._cached_model(key, SpeciesRecord)

    async def get_or_fetch_species(
        self, identifier: int | str, token: CancelToken | None = None,
    ) -> SpeciesRecord:
        record = await self.cached_species(identifier)
        if record is not None:
            return record
        return await self.fetch_species(identifier, token)

    # --- Sprites --------------------------------------------------------------

    async def fetch_sprite(
        self, identifier: int | str, token: CancelToken | None = None,
    ) -> bytes:
        """Raw image bytes for the species' default front sprite."""
        species = await self.get_or_fetch_species(identifier, token)
        ident = normalize_identifier(identifier)
        if not species.sprite_url:
            raise NotFoundError("sprite", ident, ErrorContext(species_id=ident))
        ctx = ErrorContext(species_id=ident, url=species.sprite_url)
        data = await self.client.get_bytes(species.sprite_url, "sprite", ident, ctx)
        if not data:
            raise MalformedError("empty sprite image", ctx)
        ensure_live(token)

        await self.cache.put(sprite_key(ident), data, SPRITE_BYTES_FORMAT_VERSION)
        logger.info("Sprite fetched", extra={"species_id": ident, "url": species.sprite_url})
        return data

    async def get_or_fetch_sprite(
        self, identifier: int | str, token: CancelToken | None = None,
    ) -> bytes:
        cached = await self.cache.get(sprite_key(identifier), SPRITE_BYTES_FORMAT_VERSION)
        if cached:
            return cached
        return await self.fetch_sprite(identifier, token)

    # --- Moves and listing ----------------------------------------------------

    async def fetch_move(self, name: str, token: CancelToken | None = None) -> MoveRecord:
        ident = normalize_identifier(name)
        url = self.client.move_url(ident)
        ctx = ErrorContext(url=url, debug_info={"move": ident})
        record = parse_move(await self.client.get_bytes(url, "move", ident, ctx), ctx)
        ensure_live(token)
        await self.cache.put(
            move_key(ident), record.model_dump_json().encode(), RECORD_FORMAT_VERSION,
        )
        return record

    async def get_or_fetch_move(
        self, name: str, token: CancelToken | None = None,
    ) -> MoveRecord:
        record = await self._cached_model(move_key(name), MoveRecord)
        if record is not None:
            return record
        return await self.fetch_move(name, token)

    async def fetch_species_list(
        self, limit: int | None = None, token: CancelToken | None = None,
    ) -> list[SpeciesListEntry]:
        """Catalog listing, trimmed to ids inside the catalog, sorted by id."""
        limit = limit or self.catalog_size
        url = self.client.species_list_url(limit)
        ctx = ErrorContext(url=url)
        entries = parse_species_list(
            await self.client.get_bytes(url, "species list", str(limit), ctx), ctx,
        )
        entries = sorted(
            (e for e in entries if 1 <= e.id <= self.catalog_size), key=lambda e: e.id,
        )
        ensure_live(token)
        await self.cache.put(
            species_list_key(limit),
            _species_list_adapter.dump_json(entries),
            RECORD_FORMAT_VERSION,
        )
        logger.info(f"Species list fetched: {len(entries)} entries")
        return entries

    async def get_or_fetch_species_list(
        self, limit: int | None = None, token: CancelToken | None = None,
    ) -> list[SpeciesListEntry]:
        key = species_list_key(limit or self.catalog_size)
        cached = await self.cache.get(key, RECORD_FORMAT_VERSION)
        if cached is not None:
            try:
                return _species_list_adapter.validate_json(cached)
            except ValidationError as e:
                logger.warning(
                    f"Cached species list unreadable, refetching: {e.error_count()} errors",
                    extra={"cache_key": str(key)},
                )
        return await self.fetch_species_list(limit, token)

    # --- Helpers --------------------------------------------------------------

    def _check_catalog(self, identifier: int | str) -> str:
        """Normalised identifier; out-of-catalog numeric ids fail locally."""
        ident = normalize_identifier(identifier)
        if not ident:
            raise NotFoundError("species", ident)
        if ident.lstrip("-").isdigit():
            number = int(ident)
            if not 1 <= number <= self.catalog_size:
                raise NotFoundError("species", ident, ErrorContext(species_id=ident))
        return ident

    async def _cached_model(self, key: CacheKey, model):
        cached = await self.cache.get(key, RECORD_FORMAT_VERSION)
        if cached is None:
            return None
        try:
            return model.model_validate_json(cached)
        except ValidationError as e:
            logger.warning(
                f"Cached {key.kind.value} unreadable, refetching: {e.error_count()} errors",
                extra={"cache_key": str(key)},
            )
            return None
