"""Sprite Service — fetch, rasterize, and cache terminal renderings of species artwork.

Invariants:
    - Rendered grids are keyed by (species, rows x cols, sha256 of the source bytes),
      so new artwork or a new terminal size never reuses a stale grid
    - Decode and rasterize run in a worker thread, never on the event loop
    - Undecodable artwork yields a blank placeholder of the requested size; placeholders
      are not cached
    - A cached grid that fails to decode is treated as a miss and rebuilt

Design Decisions:
    - Network and NotFound failures for the artwork propagate; only image-level
      failures degrade to the placeholder
"""

import asyncio
import logging

from pokedex_tui.core.cache_keys import fingerprint, normalize_identifier, rendered_key
from pokedex_tui.core.domain_types import RGB
from pokedex_tui.core.errors import MalformedError
from pokedex_tui.core.sprite_codec import SPRITE_FORMAT_VERSION, decode_sprite, encode_sprite
from pokedex_tui.core.sprite_raster import (
    DEFAULT_BACKGROUND, RenderedSprite, check_target, blank_sprite, rasterize,
)
from pokedex_tui.infrastructure.cache_store import CacheStore
from pokedex_tui.infrastructure.image_decode import decode_image
from pokedex_tui.services.cancellation import CancelToken, ensure_live
from pokedex_tui.services.data_fetcher import DataFetcher

logger = logging.getLogger(__name__)


def render_image_bytes(
    data: bytes, rows: int, cols: int, source_id: str = "",
    background: RGB = DEFAULT_BACKGROUND,
) -> RenderedSprite:
    """Decode then rasterize. Blocking; run via asyncio.to_thread."""
    return rasterize(decode_image(data, source_id), rows, cols, background=background)


class SpriteService:
    def __init__(
        self,
        fetcher: DataFetcher,
        cache: CacheStore,
        background: RGB = DEFAULT_BACKGROUND,
    ):
        self.fetcher = fetcher
        self.cache = cache
        self.background = background

    async def get_or_fetch_rendered_sprite(
        self,
        identifier: int | str,
        rows: int,
        cols: int,
        token: CancelToken | None = None,
    ) -> RenderedSprite:
        check_target(rows, cols)
        ident = normalize_identifier(identifier)
        source = await self.fetcher.get_or_fetch_sprite(ident, token)
        key = rendered_key(ident, rows, cols, fingerprint(source))

        cached = await self.cache.get(key, SPRITE_FORMAT_VERSION)
        if cached is not None:
            try:
                sprite = decode_sprite(cached)
                if (sprite.rows, sprite.cols) == (rows, cols):
                    return sprite
                logger.warning("Cached sprite has wrong size, re-rendering",
                    extra={"cache_key": str(key)})
            except MalformedError as e:
                logger.warning(f"Cached sprite unreadable, re-rendering: {e.message}",
                    extra={"cache_key": str(key), "error_code": e.code})

        try:
            sprite = await asyncio.to_thread(
                render_image_bytes, source, rows, cols, ident, self.background,
            )
        except MalformedError as e:
            logger.warning(f"Sprite artwork undecodable, using placeholder: {e.message}",
                extra={"species_id": ident, "error_code": e.code})
            ensure_live(token)
            return blank_sprite(rows, cols, self.background)

        ensure_live(token)
        await self.cache.put(key, encode_sprite(sprite), SPRITE_FORMAT_VERSION)
        logger.debug("Sprite rendered",
            extra={"species_id": ident, "rows": rows, "cols": cols})
        return sprite
