"""YouTube search through a relay, with parsed results cached per query.

Concurrent identical searches are not coalesced: each one misses the cache,
fetches, and overwrites the entry independently.
"""

from __future__ import annotations

from typing import Optional, Union

from cache import SearchCache
from config import ClientConfig
from logs import logger
from models import ErrorKind, SearchPage, SearchQuery, SearchResult, SearchType
from parser import extract_continuation, parse_results
from storage import JsonFileStore, KeyValueStore, MemoryStore
from transport import RelayTransport, TransportError


class SearchError(Exception):
    """Search operation failed."""

    def __init__(
        self, kind: ErrorKind, message: str, status_code: Optional[int] = None
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


def _invalid(message: str) -> SearchError:
    return SearchError(ErrorKind.INVALID_ARGUMENT, message)


def _validate_search_params(
    text: str, type: Union[str, SearchType], limit: int, continuation: Optional[str] = None
) -> SearchQuery:
    """Validate input parameters and build the query they describe."""
    if not isinstance(text, str) or not text.strip():
        raise _invalid("Search query must be a non-empty string")
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise _invalid("limit must be a positive integer")
    try:
        search_type = SearchType(type)
    except ValueError:
        choices = ", ".join(t.value for t in SearchType)
        raise _invalid(f"type must be one of: {choices}") from None
    if continuation is not None and (not isinstance(continuation, str) or not continuation):
        raise _invalid("continuation must be a non-empty string")
    return SearchQuery(
        text=text.strip(), type=search_type, limit=limit, continuation=continuation
    )


class SearchClient:
    """Search entry point combining transport, parser, and cache."""

    def __init__(
        self,
        transport: RelayTransport,
        cache: Optional[SearchCache] = None,
        use_cache: bool = True,
    ) -> None:
        self._transport = transport
        self._use_cache = use_cache
        self._cache = cache if cache is not None else SearchCache()

    @classmethod
    def from_config(
        cls, config: ClientConfig, storage: Optional[KeyValueStore] = None
    ) -> SearchClient:
        """Wire a client from configuration; *storage* overrides the configured backing."""
        if storage is None:
            storage = JsonFileStore(config.cache_file) if config.cache_file else MemoryStore()
        transport = RelayTransport(
            config.relay_url, timeout=config.timeout, hl=config.hl, gl=config.gl
        )
        cache = SearchCache(
            storage,
            max_entries=config.cache_max_entries,
            default_ttl=config.cache_ttl,
        )
        return cls(transport, cache=cache, use_cache=config.use_cache)

    @property
    def cache(self) -> SearchCache:
        return self._cache

    @property
    def use_cache(self) -> bool:
        return self._use_cache

    async def search(
        self,
        text: str,
        type: Union[str, SearchType] = SearchType.VIDEO,
        limit: int = 5,
        continuation: Optional[str] = None,
    ) -> list[SearchResult]:
        """Search for videos, channels, playlists, or all three.

        Args:
            text: Search query string.
            type: "video" (default), "channel", "playlist" or "all".
            limit: Maximum number of results, a positive integer.
            continuation: Page token from a previous ``search_page`` call.

        Returns:
            At most *limit* results in upstream relevance order. An empty
            list means upstream had nothing matching.

        Raises:
            SearchError: ``invalid-argument`` before any I/O, or the
                transport's kind when the relay request fails.
        """
        query = _validate_search_params(text, type, limit, continuation)
        key = query.cache_key()

        if self._use_cache:
            entry = self._cache.get(key)
            if entry is not None:
                logger.debug("search_cache_hit", key=key)
                return list(entry.results)
            logger.debug("search_cache_miss", key=key)

        raw = await self._fetch(query)
        results = parse_results(raw, query)

        if self._use_cache:
            self._cache.put(key, results)
        return results

    async def search_page(
        self,
        text: str,
        type: Union[str, SearchType] = SearchType.VIDEO,
        limit: int = 20,
        continuation: Optional[str] = None,
    ) -> SearchPage:
        """Fetch one page plus the token for the next one.

        Pages always go to the network; continuation tokens are short-lived
        so they are not cached.
        """
        query = _validate_search_params(text, type, limit, continuation)
        raw = await self._fetch(query)
        return SearchPage(
            results=tuple(parse_results(raw, query)),
            continuation=extract_continuation(raw),
        )

    def clear_cache(self) -> None:
        self._cache.clear()

    async def _fetch(self, query: SearchQuery) -> dict:
        try:
            return await self._transport.fetch(query)
        except TransportError as exc:
            logger.warning("search_failed", kind=exc.kind.value, status_code=exc.status_code)
            raise SearchError(exc.kind, str(exc), status_code=exc.status_code) from exc
