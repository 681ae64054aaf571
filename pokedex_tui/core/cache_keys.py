"""Cache Keys — content-identifying composite keys for every cached payload.

Invariants:
    - A key is (kind, identifier, size, fingerprint); empty string means "not applicable"
    - Identifiers are normalised before keying, so "Pikachu " and "pikachu" never alias apart
    - Rendered-sprite keys always carry the source fingerprint and the target size

Design Decisions:
    - sha256 hex digest as fingerprint: stable across processes and platforms
    - Frozen dataclass: hashable, usable directly as an in-memory dict key
"""

import hashlib
from dataclasses import dataclass

from pokedex_tui.core.domain_types import CacheKind, Fingerprint, SpeciesKey


def fingerprint(payload: bytes) -> Fingerprint:
    return Fingerprint(hashlib.sha256(payload).hexdigest())


def normalize_identifier(identifier: int | str) -> SpeciesKey:
    """Lowercase, trimmed, spaces to hyphens. Ints become their decimal string."""
    if isinstance(identifier, int):
        return SpeciesKey(str(identifier))
    return SpeciesKey(str(identifier).strip().lower().replace(" ", "-"))


@dataclass(frozen=True)
class CacheKey:
    kind: CacheKind
    identifier: str
    size: str = ""
    fingerprint: str = ""

    def __str__(self) -> str:
        parts = [self.kind.value, self.identifier]
        if self.size:
            parts.append(self.size)
        if self.fingerprint:
            parts.append(self.fingerprint[:12])
        return ":".join(parts)


def species_key(identifier: int | str) -> CacheKey:
    return CacheKey(CacheKind.SPECIES, normalize_identifier(identifier))


def species_list_key(limit: int) -> CacheKey:
    return CacheKey(CacheKind.SPECIES_LIST, "all", size=str(limit))


def move_key(name: str) -> CacheKey:
    return CacheKey(CacheKind.MOVE, normalize_identifier(name))


def sprite_key(identifier: int | str) -> CacheKey:
    return CacheKey(CacheKind.SPRITE, normalize_identifier(identifier))


def rendered_key(
    identifier: int | str, rows: int, cols: int, source: Fingerprint,
) -> CacheKey:
    return CacheKey(
        CacheKind.RENDERED,
        normalize_identifier(identifier),
        size=f"{rows}x{cols}",
        fingerprint=source,
    )
