"""Database Infrastructure — SQLAlchemy Base for the local cache database.

Invariants:
    - One SQLite file per cache directory, opened through CacheDatabase
    - All sessions are async (AsyncSession over aiosqlite)
"""
