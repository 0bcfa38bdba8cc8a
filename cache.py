"""Persistent LRU cache with per-entry expiry for normalized search results.

Entries live in an explicit key -> entry map; recency lives in an explicit
index list (least recently used first). Both are mirrored to a string
key-value backing after every mutation:

    <namespace>_keys   JSON list, the index
    <namespace>:<key>  JSON object {results, inserted_at, expires_at}

A backing that fails to write is logged and otherwise ignored, so the
cache keeps serving from memory.
"""

from __future__ import annotations

import json
import time
from typing import Callable, Iterable, Optional

from logs import logger
from models import CacheEntry, SearchResult
from storage import KeyValueStore, MemoryStore

DEFAULT_TTL_SECONDS = 600  # 10 minutes
DEFAULT_MAX_ENTRIES = 50
DEFAULT_NAMESPACE = "yt_search"


class SearchCache:
    """Bounded, expiring cache of search results.

    Not safe for concurrent mutation from several threads; every operation
    is a single synchronous unit of work.
    """

    def __init__(
        self,
        storage: Optional[KeyValueStore] = None,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        namespace: str = DEFAULT_NAMESPACE,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._storage = storage if storage is not None else MemoryStore()
        self._max_entries = max_entries
        self._ttl = default_ttl
        self._namespace = namespace
        self._entries: dict[str, CacheEntry] = {}
        self._index: list[str] = []
        self._hydrate()

    @property
    def index_key(self) -> str:
        return f"{self._namespace}_keys"

    def _entry_key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the live entry for *key* and mark it most recently used."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(time.time()):
            logger.debug("cache_entry_expired", key=key)
            self._evict(key)
            self._persist_index()
            return None
        self._touch(key)
        self._persist_index()
        return entry

    def put(
        self, key: str, results: Iterable[SearchResult], ttl: Optional[float] = None
    ) -> CacheEntry:
        """Create or overwrite the entry for *key*, evicting LRU keys past capacity."""
        now = time.time()
        entry = CacheEntry(
            key=key,
            results=tuple(results),
            inserted_at=now,
            expires_at=now + (self._ttl if ttl is None else ttl),
        )
        self._entries[key] = entry
        self._touch(key)
        self._mirror(
            self._storage.set,
            self._entry_key(key),
            json.dumps(entry.to_dict(), ensure_ascii=False),
        )
        while len(self._index) > self._max_entries:
            oldest = self._index[0]
            logger.debug("cache_evict_lru", key=oldest)
            self._evict(oldest)
        self._persist_index()
        return entry

    def clear(self) -> None:
        """Drop every entry and leave the namespace as if never used."""
        self._entries.clear()
        self._index.clear()
        self._wipe_namespace()

    def keys(self) -> list[str]:
        """Resident keys, least recently used first."""
        return list(self._index)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not entry.is_expired(time.time())

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _touch(self, key: str) -> None:
        if key in self._index:
            self._index.remove(key)
        self._index.append(key)

    def _evict(self, key: str) -> None:
        self._entries.pop(key, None)
        if key in self._index:
            self._index.remove(key)
        self._mirror(self._storage.remove, self._entry_key(key))

    def _mirror(self, op: Callable[..., None], *args: str) -> None:
        """Apply one backing write; a failed write leaves memory authoritative."""
        try:
            op(*args)
        except OSError as exc:
            logger.warning(
                "cache_persist_failed",
                namespace=self._namespace,
                op=getattr(op, "__name__", repr(op)),
                error=str(exc),
            )

    def _persist_index(self) -> None:
        self._mirror(self._storage.set, self.index_key, json.dumps(self._index, ensure_ascii=False))

    def _wipe_namespace(self) -> None:
        prefix = f"{self._namespace}:"
        for stored in self._storage.keys():
            if stored.startswith(prefix):
                self._mirror(self._storage.remove, stored)
        self._mirror(self._storage.remove, self.index_key)

    def _hydrate(self) -> None:
        """Rebuild state from the backing, discarding anything unreadable."""
        raw_index = self._storage.get(self.index_key)
        if raw_index is None:
            return
        try:
            index = json.loads(raw_index)
            if not isinstance(index, list) or not all(isinstance(k, str) for k in index):
                raise ValueError("cache index must be a list of strings")
        except ValueError as exc:
            logger.warning("cache_index_corrupt", namespace=self._namespace, error=str(exc))
            self._wipe_namespace()
            return

        now = time.time()
        dirty = False
        for key in dict.fromkeys(index):
            raw = self._storage.get(self._entry_key(key))
            if raw is None:
                dirty = True
                continue
            try:
                entry = CacheEntry.from_dict(key, json.loads(raw))
            except (ValueError, TypeError) as exc:
                logger.warning("cache_entry_corrupt", key=key, error=str(exc))
                self._mirror(self._storage.remove, self._entry_key(key))
                dirty = True
                continue
            if entry.is_expired(now):
                self._mirror(self._storage.remove, self._entry_key(key))
                dirty = True
                continue
            self._entries[key] = entry
            self._index.append(key)

        while len(self._index) > self._max_entries:
            self._evict(self._index[0])
            dirty = True

        if dirty or len(self._index) != len(index):
            self._persist_index()
        logger.debug("cache_hydrated", namespace=self._namespace, entries=len(self._index))
