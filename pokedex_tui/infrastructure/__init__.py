"""Infrastructure Layer — HTTP, SQLite, image decoding, and logging.

Invariants:
    - All external calls wrapped with retry/timeout/error mapping
    - Library exceptions (httpx, sqlalchemy, PIL) never cross this layer unmapped
"""
