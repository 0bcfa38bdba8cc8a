"""Configuration loader: reads relay, cache, and client settings from environment variables.

All variables share the TUBELENS_ prefix; blank values are treated as unset.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from cache import DEFAULT_MAX_ENTRIES, DEFAULT_TTL_SECONDS

DEFAULT_RELAY_URL = "http://127.0.0.1:3000/proxy"
DEFAULT_TIMEOUT_SECONDS = 30.0

_FALSEY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class ClientConfig:
    relay_url: str = DEFAULT_RELAY_URL
    use_cache: bool = True
    cache_ttl: float = DEFAULT_TTL_SECONDS
    cache_max_entries: int = DEFAULT_MAX_ENTRIES
    cache_file: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    hl: str = "en"
    gl: str = "US"


def _env(key: str) -> str:
    """Resolve TUBELENS_{KEY}, stripped; empty when unset."""
    return os.environ.get(f"TUBELENS_{key}", "").strip()


def _env_float(key: str, default: float) -> float:
    raw = _env(key)
    try:
        value = float(raw) if raw else default
    except ValueError:
        return default
    return value if value > 0 else default


def _env_int(key: str, default: int) -> int:
    raw = _env(key)
    try:
        value = int(raw) if raw else default
    except ValueError:
        return default
    return value if value > 0 else default


def load_config() -> ClientConfig:
    """Build a ClientConfig from environment variables.

    Environment variables:
        TUBELENS_RELAY_URL: relay endpoint (e.g. http://127.0.0.1:3000/proxy)
        TUBELENS_USE_CACHE: "0", "false", "no" or "off" disables caching
        TUBELENS_CACHE_TTL: entry lifetime in seconds
        TUBELENS_CACHE_MAX_ENTRIES: cache capacity
        TUBELENS_CACHE_FILE: JSON file for persistence; unset keeps the cache in memory
        TUBELENS_TIMEOUT: relay request timeout in seconds
        TUBELENS_HL / TUBELENS_GL: interface language and region sent upstream

    Malformed or non-positive numbers fall back to the defaults.
    """
    return ClientConfig(
        relay_url=_env("RELAY_URL") or DEFAULT_RELAY_URL,
        use_cache=_env("USE_CACHE").lower() not in _FALSEY,
        cache_ttl=_env_float("CACHE_TTL", DEFAULT_TTL_SECONDS),
        cache_max_entries=_env_int("CACHE_MAX_ENTRIES", DEFAULT_MAX_ENTRIES),
        cache_file=_env("CACHE_FILE") or None,
        timeout=_env_float("TIMEOUT", DEFAULT_TIMEOUT_SECONDS),
        hl=_env("HL") or "en",
        gl=_env("GL") or "US",
    )
