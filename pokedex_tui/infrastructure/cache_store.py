"""Local Cache Store — durable key -> payload store with atomic writes and LRU capping.

Invariants:
    - put() is one transaction: the row holds the old payload or the complete new one
    - An interrupted put never touches any other key's row
    - Writes are serialised by one process-wide asyncio.Lock; reads take no lock
    - put() on an existing key overwrites (last writer wins)
    - Eviction never deletes a key with an in-flight get() (pinned) or the key just written
    - Disk failures never propagate: put() keeps the entry in memory and returns False,
      get() logs and reports a miss
    - Entries never expire; they change only by put(), delete(), clear(), or eviction

Design Decisions:
    - Access times tracked in memory and flushed inside the eviction write, so get()
      stays read-only and never waits on the write lock
    - A stored row with a different format_version reads as a miss
    - Construction takes an already-resolved directory; no ambient cache location
"""

import asyncio
import logging
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from pokedex_tui.core.cache_keys import CacheKey
from pokedex_tui.core.domain_types import CacheKind
from pokedex_tui.core.errors import CacheIOError, ErrorContext
from pokedex_tui.infrastructure.database import CacheDatabase, DATABASE_FILENAME
from pokedex_tui.models.cache_entry import CacheEntry

logger = logging.getLogger(__name__)

DEFAULT_FORMAT_VERSION = 1

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _pk(key: CacheKey) -> tuple[str, str, str, str]:
    return (key.kind.value, key.identifier, key.size, key.fingerprint)


def _row_key(row) -> CacheKey:
    return CacheKey(CacheKind(row.kind), row.identifier, row.size, row.fingerprint)


class CacheStore:
    """get/put over a CacheDatabase, degrading to memory when the disk misbehaves."""

    def __init__(
        self,
        database: CacheDatabase | None,
        max_bytes: int | None = None,
        clock: Clock = _utcnow,
    ):
        self._db = database
        self._max_bytes = max_bytes
        self._clock = clock
        self._write_lock = asyncio.Lock()
        self._memory: dict[CacheKey, tuple[bytes, int]] = {}
        self._pinned: Counter[CacheKey] = Counter()
        self._touched: dict[CacheKey, datetime] = {}

    @classmethod
    async def open(
        cls,
        cache_dir: Path,
        max_bytes: int | None = None,
        clock: Clock = _utcnow,
    ) -> "CacheStore":
        """Open (or create) the store under cache_dir; memory-only if the disk is unusable."""
        try:
            cache_dir.mkdir(parents=True, exist_ok=True)
            database = CacheDatabase(cache_dir / DATABASE_FILENAME)
            await database.create_schema()
        except (OSError, CacheIOError) as e:
            logger.warning(
                f"Cache directory unusable, caching in memory only: {e}",
                extra={"error_code": "CACHE_IO_ERROR"},
            )
            return cls(None, max_bytes=max_bytes, clock=clock)
        return cls(database, max_bytes=max_bytes, clock=clock)

    @property
    def persistent(self) -> bool:
        return self._db is not None

    async def get(
        self, key: CacheKey, format_version: int = DEFAULT_FORMAT_VERSION,
    ) -> bytes | None:
        """Payload for key, or None on miss, version mismatch, or read failure."""
        held = self._memory.get(key)
        if held is not None:
            payload, version = held
            return payload if version == format_version else None
        if self._db is None:
            return None

        self._pinned[key] += 1
        try:
            async with self._db.session() as db:
                row = await db.get(CacheEntry, _pk(key))
                if row is None or row.format_version != format_version:
                    return None
                payload = row.payload
        except CacheIOError as e:
            logger.warning(
                f"Cache read failed, treating as miss: {e}",
                extra={"cache_key": str(key), "error_code": e.code},
            )
            return None
        finally:
            self._pinned[key] -= 1
            if self._pinned[key] <= 0:
                del self._pinned[key]

        self._touched[key] = self._clock()
        return payload

    async def put(
        self,
        key: CacheKey,
        payload: bytes,
        format_version: int = DEFAULT_FORMAT_VERSION,
    ) -> bool:
        """Store payload under key. True if durably committed, False if memory only."""
        async with self._write_lock:
            if self._db is None:
                self._memory[key] = (payload, format_version)
                return False
            now = self._clock()
            try:
                async with self._db.session() as db:
                    await db.execute(self._upsert(key, payload, format_version, now))
                    await db.commit()
            except (CacheIOError, OSError) as e:
                self._memory[key] = (payload, format_version)
                warning = e if isinstance(e, CacheIOError) else CacheIOError(str(e), "put")
                warning.context = ErrorContext(cache_key=str(key))
                logger.warning(
                    f"Cache write failed, keeping entry in memory: {warning.message}",
                    extra={"cache_key": str(key), "error_code": warning.code},
                )
                return False

            self._memory.pop(key, None)
            self._touched.pop(key, None)
            if self._max_bytes is not None:
                await self._evict(keep=key)
            return True

    def _upsert(self, key: CacheKey, payload: bytes, format_version: int, now: datetime):
        kind, identifier, size, fp = _pk(key)
        stmt = sqlite_insert(CacheEntry).values(
            kind=kind, identifier=identifier, size=size, fingerprint=fp,
            payload=payload, format_version=format_version,
            size_bytes=len(payload), created_at=now, last_accessed=now,
        )
        return stmt.on_conflict_do_update(
            index_elements=["kind", "identifier", "size", "fingerprint"],
            set_={
                "payload": stmt.excluded.payload,
                "format_version": stmt.excluded.format_version,
                "size_bytes": stmt.excluded.size_bytes,
                "created_at": stmt.excluded.created_at,
                "last_accessed": stmt.excluded.last_accessed,
            },
        )

    async def _evict(self, keep: CacheKey) -> None:
        """Delete least-recently-used rows until under max_bytes. Caller holds the write lock."""
        touched, self._touched = self._touched, {}
        try:
            async with self._db.session() as db:
                for key, ts in touched.items():
                    kind, identifier, size, fp = _pk(key)
                    await db.execute(
                        update(CacheEntry)
                        .where(
                            CacheEntry.kind == kind,
                            CacheEntry.identifier == identifier,
                            CacheEntry.size == size,
                            CacheEntry.fingerprint == fp,
                        )
                        .values(last_accessed=ts)
                    )
                total = (await db.execute(
                    select(func.coalesce(func.sum(CacheEntry.size_bytes), 0))
                )).scalar_one()
                if total > self._max_bytes:
                    rows = (await db.execute(
                        select(
                            CacheEntry.kind, CacheEntry.identifier,
                            CacheEntry.size, CacheEntry.fingerprint,
                            CacheEntry.size_bytes,
                        ).order_by(CacheEntry.last_accessed)
                    )).all()
                    for row in rows:
                        if total <= self._max_bytes:
                            break
                        key = _row_key(row)
                        if key == keep or self._pinned.get(key):
                            continue
                        await db.execute(delete(CacheEntry).where(
                            CacheEntry.kind == row.kind,
                            CacheEntry.identifier == row.identifier,
                            CacheEntry.size == row.size,
                            CacheEntry.fingerprint == row.fingerprint,
                        ))
                        total -= row.size_bytes
                        logger.debug(
                            "Evicted cache entry",
                            extra={"cache_key": str(key), "cache_kind": row.kind},
                        )
                await db.commit()
        except CacheIOError as e:
            logger.warning(
                f"Cache eviction failed: {e.message}",
                extra={"error_code": e.code},
            )

    async def delete(self, key: CacheKey) -> None:
        async with self._write_lock:
            self._memory.pop(key, None)
            self._touched.pop(key, None)
            if self._db is None:
                return
            kind, identifier, size, fp = _pk(key)
            try:
                async with self._db.session() as db:
                    await db.execute(delete(CacheEntry).where(
                        CacheEntry.kind == kind,
                        CacheEntry.identifier == identifier,
                        CacheEntry.size == size,
                        CacheEntry.fingerprint == fp,
                    ))
                    await db.commit()
            except CacheIOError as e:
                logger.warning(f"Cache delete failed: {e.message}", extra={"cache_key": str(key)})

    async def clear(self, kind: CacheKind | None = None) -> None:
        """Drop every entry, or every entry of one kind."""
        async with self._write_lock:
            if kind is None:
                self._memory.clear()
                self._touched.clear()
            else:
                self._memory = {k: v for k, v in self._memory.items() if k.kind != kind}
                self._touched = {k: v for k, v in self._touched.items() if k.kind != kind}
            if self._db is None:
                return
            stmt = delete(CacheEntry)
            if kind is not None:
                stmt = stmt.where(CacheEntry.kind == kind.value)
            try:
                async with self._db.session() as db:
                    await db.execute(stmt)
                    await db.commit()
            except CacheIOError as e:
                logger.warning(f"Cache clear failed: {e.message}", extra={"error_code": e.code})

    async def stats(self) -> dict[str, dict[str, int]]:
        """{kind: {"entries": n, "bytes": total}} over durable and memory-only entries."""
        out: dict[str, dict[str, int]] = {}
        if self._db is not None:
            try:
                async with self._db.session() as db:
                    rows = (await db.execute(
                        select(
                            CacheEntry.kind,
                            func.count(),
                            func.coalesce(func.sum(CacheEntry.size_bytes), 0),
                        ).group_by(CacheEntry.kind)
                    )).all()
                for kind, count, total in rows:
                    out[kind] = {"entries": count, "bytes": total}
            except CacheIOError as e:
                logger.warning(f"Cache stats failed: {e.message}")
        for key, (payload, _) in self._memory.items():
            bucket = out.setdefault(key.kind.value, {"entries": 0, "bytes": 0})
            bucket["entries"] += 1
            bucket["bytes"] += len(payload)
        return out

    async def close(self) -> None:
        if self._db is not None:
            await self._db.dispose()
