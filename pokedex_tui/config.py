"""Browser Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache): single instance per process
    - cache_dir is resolved here once and injected everywhere else

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for every setting: works out-of-the-box against the public PokeAPI
"""

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def default_cache_dir() -> Path:
    """$XDG_CACHE_HOME/pokedex-tui, falling back to ~/.cache/pokedex-tui."""
    base = os.environ.get("XDG_CACHE_HOME")
    root = Path(base) if base else Path.home() / ".cache"
    return root / "pokedex-tui"


class Settings(BaseSettings):
    """Browser settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Remote source
    api_base_url: str = "https://pokeapi.co/api/v2"
    catalog_size: int = Field(default=1025, ge=1)
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    fetch_max_retries: int = Field(default=3, ge=0)
    fetch_base_delay_ms: int = Field(default=200, ge=0)
    fetch_max_delay_ms: int = Field(default=5_000, ge=0)
    fetch_backoff_jitter: float = Field(default=0.25, ge=0, lt=1)

    # Cache
    cache_dir: Path = Field(default_factory=default_cache_dir)
    cache_max_bytes: int | None = None

    # Sprites
    sprite_rows: int = Field(default=20, ge=1)
    sprite_cols: int = Field(default=40, ge=1)

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("cache_dir", mode="after")
    @classmethod
    def expand_user(cls, v: Path) -> Path:
        return v.expanduser()


@lru_cache
def get_settings() -> Settings:
    return Settings()
