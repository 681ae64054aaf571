"""Cache Entry ORM — one durable payload addressed by a composite content key.

Invariants:
    - Primary key is (kind, identifier, size, fingerprint); empty string when not applicable
    - payload is the complete value; rows are written in a single transaction
    - format_version mismatch on read is a miss; the next put overwrites the row
    - size_bytes == len(payload), kept as a column for eviction sums

Design Decisions:
    - Blob in the row rather than side files: commit is the atomic swap
    - last_accessed is flushed lazily by the store (reads stay read-only)
"""

from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, LargeBinary, Index
from sqlalchemy.orm import Mapped, mapped_column

from pokedex_tui.db.base import Base


class CacheEntry(Base):
    __tablename__ = "cache_entries"

    kind: Mapped[str] = mapped_column(String(20), primary_key=True)
    identifier: Mapped[str] = mapped_column(String(100), primary_key=True)
    size: Mapped[str] = mapped_column(String(20), primary_key=True, default="")
    fingerprint: Mapped[str] = mapped_column(String(64), primary_key=True, default="")
    payload: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    format_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    last_accessed: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("ix_cache_entries_last_accessed", "last_accessed"),
    )
