"""Service test fixtures — fetcher, sprite service, and BrowserCore over the fake PokeAPI.

Invariants:
    - All services share the tmp_path cache and the recording api_client from the root conftest
"""

import pytest

from pokedex_tui.services.browser_core import BrowserCore
from pokedex_tui.services.data_fetcher import DataFetcher
from pokedex_tui.services.sprite_service import SpriteService


@pytest.fixture
def fetcher(api_client, cache):
    return DataFetcher(api_client, cache, catalog_size=1025)


@pytest.fixture
def sprite_service(fetcher, cache):
    return SpriteService(fetcher, cache)


@pytest.fixture
async def core(fetcher, sprite_service):
    browser = BrowserCore(fetcher, sprite_service)
    yield browser
    await browser.shutdown()
