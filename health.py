"""Environment health checks for the relay configuration and cache backing."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import httpx

from config import ClientConfig


@dataclass(frozen=True)
class HealthStatus:
    relay_url: str
    relay_url_valid: bool
    httpx_version: str
    cache_enabled: bool
    cache_file: Optional[str]
    cache_writable: bool
    message: str


def _relay_url_valid(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _cache_writable(cache_file: Optional[str]) -> bool:
    if not cache_file:
        return True
    path = Path(cache_file)
    if path.exists():
        return os.access(path, os.W_OK)
    parent = path.parent
    while not parent.exists() and parent != parent.parent:
        parent = parent.parent
    return os.access(parent, os.W_OK)


def check_health(config: ClientConfig) -> HealthStatus:
    """Check environment health. Never raises."""
    relay_ok = _relay_url_valid(config.relay_url)
    try:
        writable = _cache_writable(config.cache_file)
    except OSError:
        writable = False

    problems = []
    if not relay_ok:
        problems.append(
            f"relay URL {config.relay_url!r} is not an http(s) URL. "
            "Set TUBELENS_RELAY_URL, e.g. http://127.0.0.1:3000/proxy"
        )
    if config.use_cache and not writable:
        problems.append(f"cache file {config.cache_file} is not writable")

    return HealthStatus(
        relay_url=config.relay_url,
        relay_url_valid=relay_ok,
        httpx_version=httpx.__version__,
        cache_enabled=config.use_cache,
        cache_file=config.cache_file,
        cache_writable=writable,
        message="; ".join(problems) if problems else "ok",
    )
