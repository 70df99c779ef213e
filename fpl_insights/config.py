from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_BASE_URL = "https://fantasy.premierleague.com/api"

# Seconds each category of upstream response stays fresh
DEFAULT_CACHE_TTLS = {
    "bootstrap": 300,
    "fixtures": 600,
    "live": 30,
    "manager": 120,
    "league": 300,
    "default": 300,
}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class Settings:
    base_url: str = DEFAULT_BASE_URL
    http_timeout: int = 30
    max_concurrency: int = 5
    cache_max_entries: int = 256
    cache_ttls: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_CACHE_TTLS))

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from FPL_* environment variables, falling back to defaults."""
        ttls = {
            category: _env_int(f"FPL_CACHE_TTL_{category.upper()}", seconds)
            for category, seconds in DEFAULT_CACHE_TTLS.items()
        }
        return cls(
            base_url=os.environ.get("FPL_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            http_timeout=_env_int("FPL_HTTP_TIMEOUT", 30),
            max_concurrency=max(1, _env_int("FPL_MAX_CONCURRENCY", 5)),
            cache_max_entries=max(1, _env_int("FPL_CACHE_MAX_ENTRIES", 256)),
            cache_ttls=ttls,
        )
