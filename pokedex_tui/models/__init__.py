"""ORM Models — SQLAlchemy declarative models for the local cache.

Invariants:
    - All models inherit from Base (db/base.py)
    - Imported here so Base.metadata knows every table before create_all runs
"""

from pokedex_tui.models.cache_entry import CacheEntry  # noqa: F401
