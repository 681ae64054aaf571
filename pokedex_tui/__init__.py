"""Pokedex TUI Core — data, caching, sprites, and type math behind a terminal creature browser.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Explicit imports only, no star exports
"""
