"""Browser Core Wiring — builds the full object graph from Settings.

Invariants:
    - Logging is configured once per open_browser_core() and removed on exit
    - On exit: outstanding loads cancelled, HTTP client closed, cache engine disposed

Design Decisions:
    - Async context manager over module globals: the presentation layer owns the
      lifetime, tests open as many independent cores as they need
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

from pokedex_tui.config import Settings, get_settings
from pokedex_tui.core.type_chart import load_type_matrix
from pokedex_tui.infrastructure.cache_store import CacheStore
from pokedex_tui.infrastructure.observability import setup_logging
from pokedex_tui.infrastructure.pokeapi_client import ResilientPokeApiClient
from pokedex_tui.services.browser_core import BrowserCore
from pokedex_tui.services.data_fetcher import DataFetcher
from pokedex_tui.services.sprite_service import SpriteService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def open_browser_core(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[BrowserCore]:
    """Yield a ready BrowserCore; tear everything down on exit."""
    settings = settings or get_settings()
    handler = setup_logging(settings.log_level, settings.log_format)
    load_type_matrix()  # TypeChartConfigError here is fatal at startup

    cache = await CacheStore.open(settings.cache_dir, max_bytes=settings.cache_max_bytes)
    client = ResilientPokeApiClient(
        base_url=settings.api_base_url,
        max_retries=settings.fetch_max_retries,
        base_delay_ms=settings.fetch_base_delay_ms,
        max_delay_ms=settings.fetch_max_delay_ms,
        timeout_seconds=settings.request_timeout_seconds,
        jitter=settings.fetch_backoff_jitter,
        transport=transport,
    )
    fetcher = DataFetcher(client, cache, catalog_size=settings.catalog_size)
    core = BrowserCore(fetcher, SpriteService(fetcher, cache))
    logger.info(
        f"Browser core started (cache: {settings.cache_dir if cache.persistent else 'memory'})"
    )
    try:
        yield core
    finally:
        logger.info("Browser core shutting down")
        await core.shutdown()
        await client.aclose()
        await cache.close()
        logging.root.removeHandler(handler)
