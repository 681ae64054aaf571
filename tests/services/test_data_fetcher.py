"""Data Fetcher — verifies cache-first retrieval, catalog bounds, and cancellation.

Tests:
    - fetch writes to the cache before returning; get_or_fetch serves the cache
    - Species fetched by name is also cached under its id, for catalog ids only
    - Out-of-catalog ids -> NotFoundError with no request made
    - 404 / malformed / exhausted retries surface as typed errors, nothing cached
    - Cancelled calls are abandoned and never written to the cache
    - Unreadable cached records are refetched
    - Sprites come from the species sprite_url; missing URL -> NotFoundError
    - Moves and the species listing follow the same contract
"""

import pytest

from pokedex_tui.core.cache_keys import move_key, species_key, species_list_key, sprite_key
from pokedex_tui.core.errors import MalformedError, NetworkError, NotFoundError
from pokedex_tui.services.cancellation import AbandonedError, CancelToken
from pokedex_tui.services.data_fetcher import RECORD_FORMAT_VERSION, DataFetcher

BASE = "https://pokeapi.test/api/v2"


# ==============================================================================
# Species
# ==============================================================================


async def test_fetch_species_caches_before_returning(fake_api, fetcher, cache):
    fake_api.add_species()
    record = await fetcher.fetch_species(25)
    assert record.name == "pikachu"
    assert await cache.get(species_key(25), RECORD_FORMAT_VERSION) is not None


async def test_get_or_fetch_serves_cache_on_second_call(fake_api, fetcher):
    fake_api.add_species()
    first = await fetcher.get_or_fetch_species(25)
    second = await fetcher.get_or_fetch_species("25")
    assert first == second
    assert fake_api.count(f"{BASE}/pokemon/25") == 1


async def test_species_by_name_also_cached_by_id(fake_api, fetcher):
    fake_api.add_species()
    await fetcher.get_or_fetch_species(" Pikachu ")
    await fetcher.get_or_fetch_species(25)
    assert fake_api.requests == [f"{BASE}/pokemon/pikachu"]


async def test_form_above_catalog_not_aliased_by_id(fake_api, fetcher, cache):
    fake_api.add_species(species_id=10001, name="pikachu-gmax")
    record = await fetcher.get_or_fetch_species("pikachu-gmax")
    assert record.id == 10001
    assert await cache.get(species_key(10001), RECORD_FORMAT_VERSION) is None

    with pytest.raises(NotFoundError):
        await fetcher.get_or_fetch_species(10001)
    assert await fetcher.get_or_fetch_species("pikachu-gmax") == record
    assert fake_api.requests == [f"{BASE}/pokemon/pikachu-gmax"]


@pytest.mark.parametrize("identifier", [0, 1026, "99999", -5, ""])
async def test_out_of_catalog_is_not_found_without_request(fake_api, fetcher, identifier):
    with pytest.raises(NotFoundError):
        await fetcher.get_or_fetch_species(identifier)
    assert fake_api.requests == []


async def test_unknown_name_is_not_found(fake_api, fetcher, cache):
    with pytest.raises(NotFoundError):
        await fetcher.get_or_fetch_species("missingno")
    assert fake_api.count(f"{BASE}/pokemon/missingno") == 1
    assert await cache.get(species_key("missingno")) is None


async def test_malformed_body_not_cached(fake_api, fetcher, cache):
    fake_api.add(f"{BASE}/pokemon/25", {"id": 25, "name": "pikachu"})
    with pytest.raises(MalformedError):
        await fetcher.fetch_species(25)
    assert await cache.get(species_key(25)) is None


async def test_network_error_after_retries(fake_api, fetcher, sleeps):
    fake_api.add(f"{BASE}/pokemon/25", 503)
    with pytest.raises(NetworkError):
        await fetcher.fetch_species(25)
    assert fake_api.count(f"{BASE}/pokemon/25") == 4
    assert sleeps == [0.2, 0.4, 0.8]


async def test_cancelled_fetch_is_not_cached(fake_api, fetcher, cache):
    fake_api.add_species()
    token = CancelToken()
    token.cancel()
    with pytest.raises(AbandonedError):
        await fetcher.fetch_species(25, token)
    assert await cache.get(species_key(25)) is None


async def test_unreadable_cached_record_is_refetched(fake_api, fetcher, cache):
    fake_api.add_species()
    await cache.put(species_key(25), b"{not json", RECORD_FORMAT_VERSION)
    record = await fetcher.get_or_fetch_species(25)
    assert record.id == 25
    assert fake_api.count(f"{BASE}/pokemon/25") == 1


# ==============================================================================
# Sprites
# ==============================================================================


async def test_fetch_sprite_uses_species_sprite_url(fake_api, fetcher, cache, png):
    fake_api.add_species()
    image = png()
    fake_api.add("https://sprites.test/25.png", image)
    assert await fetcher.get_or_fetch_sprite(25) == image
    assert await cache.get(sprite_key(25)) == image

    await fetcher.get_or_fetch_sprite(25)
    assert fake_api.count("https://sprites.test/25.png") == 1


async def test_species_without_artwork_has_no_sprite(fake_api, fetcher):
    fake_api.add_species(sprite_url=None)
    with pytest.raises(NotFoundError) as exc:
        await fetcher.fetch_sprite(25)
    assert exc.value.resource_type == "sprite"


async def test_sprite_404_is_not_found(fake_api, fetcher):
    fake_api.add_species()
    with pytest.raises(NotFoundError):
        await fetcher.fetch_sprite(25)


# ==============================================================================
# Moves and listing
# ==============================================================================


async def test_move_fetched_and_cached(fake_api, fetcher, cache, move_payload):
    fake_api.add(f"{BASE}/move/thunder-shock", move_payload("thunder-shock", "electric", 40))
    move = await fetcher.get_or_fetch_move("Thunder Shock")
    assert move.power == 40
    assert await cache.get(move_key("thunder-shock"), RECORD_FORMAT_VERSION) is not None
    await fetcher.get_or_fetch_move("thunder-shock")
    assert fake_api.count(f"{BASE}/move/thunder-shock") == 1


async def test_species_list_trimmed_to_catalog_and_cached(fake_api, api_client, cache):
    fetcher = DataFetcher(api_client, cache, catalog_size=2)
    fake_api.add(f"{BASE}/pokemon?limit=2", {"results": [
        {"name": "ivysaur", "url": f"{BASE}/pokemon/2/"},
        {"name": "bulbasaur", "url": f"{BASE}/pokemon/1/"},
        {"name": "venusaur-mega", "url": f"{BASE}/pokemon/10033/"},
    ]})
    entries = await fetcher.get_or_fetch_species_list()
    assert [(e.id, e.name) for e in entries] == [(1, "bulbasaur"), (2, "ivysaur")]
    assert await cache.get(species_list_key(2), RECORD_FORMAT_VERSION) is not None

    assert await fetcher.get_or_fetch_species_list() == entries
    assert fake_api.count(f"{BASE}/pokemon?limit=2") == 1
