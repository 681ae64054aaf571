"""Root conftest — shared fixtures: PokeAPI payload builders, fake transport, cache store.

Invariants:
    - No test reaches the real network: every client gets an httpx.MockTransport
    - Every cache lives under tmp_path and is closed after the test

Design Decisions:
    - FakePokeApi records every request URL so tests can assert "no request made"
    - Routes hold a list of responses consumed in order; the last one repeats
"""

import io
import json

import httpx
import pytest
from PIL import Image

from pokedex_tui.infrastructure.cache_store import CacheStore
from pokedex_tui.infrastructure.pokeapi_client import ResilientPokeApiClient

BASE_URL = "https://pokeapi.test/api/v2"


def build_species_payload(
    species_id: int = 25,
    name: str = "pikachu",
    types: tuple[str, ...] = ("electric",),
    sprite_url: str | None = "https://sprites.test/25.png",
    moves: tuple[str, ...] = ("thunder-shock", "quick-attack"),
) -> dict:
    stats = {"hp": 35, "attack": 55, "defense": 40, "special-attack": 50,
             "special-defense": 50, "speed": 90}
    return {
        "id": species_id,
        "name": name,
        "height": 4,
        "weight": 60,
        "types": [
            {"slot": i, "type": {"name": t, "url": f"{BASE_URL}/type/{t}/"}}
            for i, t in enumerate(types, start=1)
        ],
        "stats": [
            {"base_stat": v, "effort": 0, "stat": {"name": k, "url": ""}}
            for k, v in stats.items()
        ],
        "abilities": [
            {"ability": {"name": "static", "url": ""}, "is_hidden": False, "slot": 1},
            {"ability": {"name": "lightning-rod", "url": ""}, "is_hidden": True, "slot": 3},
        ],
        "moves": [{"move": {"name": m, "url": ""}} for m in moves],
        "sprites": {"front_default": sprite_url, "back_default": None},
        "base_experience": 112,
    }


def build_move_payload(name: str, move_type: str, power: int | None = 40) -> dict:
    return {
        "id": sum(map(ord, name)) % 900 + 1,
        "name": name,
        "type": {"name": move_type, "url": ""},
        "power": power,
        "accuracy": 100,
        "pp": 30,
        "damage_class": {"name": "special", "url": ""},
    }


def build_png(width: int = 4, height: int = 4, color=(255, 0, 0, 255)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


class FakePokeApi:
    """In-memory PokeAPI; unrouted URLs answer 404."""

    def __init__(self):
        self.routes: dict[str, list] = {}
        self.requests: list[str] = []

    def add(self, url: str, *responses) -> None:
        """Each response: dict (JSON 200), bytes (200 body), int (empty status),
        httpx.Response, or an exception instance to raise."""
        self.routes[url] = list(responses)

    def add_species(self, **kwargs) -> dict:
        payload = build_species_payload(**kwargs)
        self.add(f"{BASE_URL}/pokemon/{payload['id']}", payload)
        self.add(f"{BASE_URL}/pokemon/{payload['name']}", payload)
        return payload

    def count(self, url: str) -> int:
        return self.requests.count(url)

    def handle(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        queue = self.routes.get(url)
        if not queue:
            return httpx.Response(404, json={"detail": "Not found."})
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        if isinstance(item, httpx.Response):
            return item
        if isinstance(item, int):
            return httpx.Response(item)
        if isinstance(item, bytes):
            return httpx.Response(200, content=item)
        return httpx.Response(200, content=json.dumps(item).encode())

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def fake_api():
    return FakePokeApi()


@pytest.fixture
def sleeps():
    """Recorded backoff delays (seconds) instead of real sleeping."""
    return []


@pytest.fixture
async def api_client(fake_api, sleeps):
    async def record_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    client = ResilientPokeApiClient(
        base_url=BASE_URL, transport=fake_api.transport, jitter=0.0, sleep=record_sleep,
    )
    yield client
    await client.aclose()


@pytest.fixture
async def cache(tmp_path):
    store = await CacheStore.open(tmp_path / "cache")
    yield store
    await store.close()


@pytest.fixture
def species_payload():
    return build_species_payload


@pytest.fixture
def move_payload():
    return build_move_payload


@pytest.fixture
def png():
    return build_png
