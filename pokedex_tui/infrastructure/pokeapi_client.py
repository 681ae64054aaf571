"""Resilient PokeAPI Client — wraps httpx.AsyncClient with retry, backoff, and error mapping.

Invariants:
    - Transient failures (timeout, connection error, 5xx, 429): max_retries retries with
      exponential backoff (base, 2x base, 4x base ...), then NetworkError
    - 404: immediate NotFoundError, never retried
    - Other 4xx, empty bodies: immediate MalformedError, never retried
    - Each attempt is bounded by timeout_seconds end to end, including a slow body
    - CancelledError (BaseException) passes through uncaught

Design Decisions:
    - Wrapper over raw client: isolates retry logic from the fetcher
    - Optional jitter on backoff (0 gives exact 200/400/800ms delays)
    - sleep is injectable so tests can record delays without waiting
"""

import asyncio
import random
import logging
from typing import Awaitable, Callable

import httpx

from pokedex_tui.core.errors import (
    ErrorContext, MalformedError, NetworkError, NotFoundError,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://pokeapi.co/api/v2"
USER_AGENT = "pokedex-tui/0.1 (+https://pokeapi.co)"

Sleep = Callable[[float], Awaitable[None]]


def _is_transient_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


class ResilientPokeApiClient:
    """GET-only client for PokeAPI resources and sprite images."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        max_retries: int = 3,
        base_delay_ms: int = 200,
        max_delay_ms: int = 5_000,
        timeout_seconds: float = 10.0,
        jitter: float = 0.0,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            timeout=timeout_seconds,
            transport=transport,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.jitter = jitter
        self._sleep = sleep

    # --- URL builders ---------------------------------------------------------

    def species_url(self, identifier: str) -> str:
        return f"{self.base_url}/pokemon/{identifier}"

    def species_list_url(self, limit: int) -> str:
        return f"{self.base_url}/pokemon?limit={limit}"

    def move_url(self, name: str) -> str:
        return f"{self.base_url}/move/{name}"

    # --- Requests -------------------------------------------------------------

    async def get_bytes(
        self,
        url: str,
        resource_type: str,
        identifier: str,
        context: ErrorContext | None = None,
    ) -> bytes:
        """Body of a successful GET, with retry on transient failures."""
        context = context or ErrorContext(species_id=identifier, url=url)
        for attempt in range(self.max_retries + 1):
            context.attempt = attempt + 1
            try:
                async with asyncio.timeout(self.timeout_seconds):
                    response = await self.client.get(url)
            except httpx.TimeoutException as e:
                await self._handle_transient_error(f"timeout: {e}", attempt, context)
                continue
            except TimeoutError:
                await self._handle_transient_error(
                    f"timeout: no complete response in {self.timeout_seconds}s", attempt, context,
                )
                continue
            except httpx.TransportError as e:
                await self._handle_transient_error(f"connection error: {e}", attempt, context)
                continue

            status = response.status_code
            if status == 404:
                raise NotFoundError(resource_type, identifier, context)
            if _is_transient_status(status):
                await self._handle_transient_error(
                    f"HTTP {status}", attempt, context,
                    retry_after_ms=self._extract_retry_after(response),
                )
                continue
            if status >= 400:
                raise MalformedError(f"unexpected HTTP {status} for {url}", context)
            if not response.content:
                raise MalformedError(f"empty body from {url}", context)

            logger.debug(
                "PokeAPI fetch success",
                extra={"url": url, "attempt": attempt + 1, "species_id": identifier},
            )
            return response.content
        # unreachable: the last attempt either returns or raises
        raise NetworkError("retries exhausted", self.max_retries + 1, context)

    async def _handle_transient_error(
        self,
        reason: str,
        attempt: int,
        context: ErrorContext,
        retry_after_ms: int | None = None,
    ) -> None:
        """Sleep before the next attempt, or raise NetworkError when out of retries."""
        if attempt >= self.max_retries:
            raise NetworkError(reason, attempt + 1, context)
        delay = retry_after_ms or self._backoff(attempt)
        logger.warning(
            f"Transient error, retry after {delay}ms: {reason}",
            extra={"attempt": attempt + 1, "delay_ms": delay, "url": context.url},
        )
        await self._sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with optional ±jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        if self.jitter:
            delay = delay * random.uniform(1 - self.jitter, 1 + self.jitter)  # nosec B311
        return int(delay)

    def _extract_retry_after(self, response: httpx.Response) -> int | None:
        """Retry-After header in milliseconds, capped at max_delay_ms."""
        val = response.headers.get("retry-after")
        if val and val.isdigit():
            return min(int(val) * 1000, self.max_delay_ms)
        return None

    async def aclose(self) -> None:
        await self.client.aclose()
