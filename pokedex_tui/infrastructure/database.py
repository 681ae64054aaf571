"""Cache Database — async SQLite engine with WAL journaling and automatic rollback.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - Journal mode is WAL: readers see the last committed state and never wait on a writer
    - All SQLAlchemy exceptions mapped to CacheIOError (core/errors.py)

Design Decisions:
    - SQLite via aiosqlite: the cache is single-user, local, and needs crash-safe commits
    - expire_on_commit=False: prevents lazy-load issues in async context
    - The database path is injected; nothing here resolves directories
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

from pokedex_tui.core.errors import CacheIOError
from pokedex_tui.db.base import Base
import pokedex_tui.models  # noqa: F401  (registers tables on Base.metadata)

logger = logging.getLogger(__name__)

DATABASE_FILENAME = "cache.sqlite3"


def _enable_wal(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


class CacheDatabase:
    """Owns the engine and session factory for one cache file."""

    def __init__(self, path: Path, busy_timeout_seconds: float = 5.0):
        self.path = path
        self.engine = create_async_engine(
            f"sqlite+aiosqlite:///{path}",
            connect_args={"timeout": busy_timeout_seconds},
        )
        event.listen(self.engine.sync_engine, "connect", _enable_wal)
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_schema(self) -> None:
        """Create tables if missing. Raises CacheIOError when the file is unusable."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            logger.error(f"Cache schema creation failed: {e}")
            raise CacheIOError(str(e), "open") from e

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except IntegrityError as e:
            await session.rollback()
            logger.error(f"Cache integrity error: {e}")
            raise CacheIOError("Integrity constraint violated", "commit") from e
        except OperationalError as e:
            await session.rollback()
            logger.error(f"Cache operational error: {e}")
            raise CacheIOError("Disk or locking error", "execute") from e
        except DBAPIError as e:
            await session.rollback()
            logger.error(f"Cache driver error: {e}")
            raise CacheIOError("Database driver error", "query") from e
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"SQLAlchemy error: {e}")
            raise CacheIOError("Database operation failed", "unknown") from e
        finally:
            await session.close()

    async def dispose(self) -> None:
        await self.engine.dispose()
