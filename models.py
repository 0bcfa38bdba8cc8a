"""Immutable data structures for search queries, results, and cache entries."""

from __future__ import annotations

import dataclasses
import enum
import json
from dataclasses import dataclass
from typing import ClassVar, Optional


class SearchType(enum.Enum):
    VIDEO = "video"
    CHANNEL = "channel"
    PLAYLIST = "playlist"
    ALL = "all"


class ErrorKind(enum.Enum):
    INVALID_ARGUMENT = "invalid-argument"
    NETWORK = "network"
    RELAY_REJECTED = "relay-rejected"
    MALFORMED_BODY = "malformed-body"


@dataclass(frozen=True)
class SearchQuery:
    """A validated search request.

    The cache key is an exact JSON-array composition of the fields, so two
    distinct queries can never share a key.
    """

    text: str
    type: SearchType = SearchType.VIDEO
    limit: int = 5
    continuation: Optional[str] = None

    def cache_key(self) -> str:
        parts: list = [self.type.value, self.limit, self.text]
        if self.continuation:
            parts.append(self.continuation)
        return json.dumps(parts, ensure_ascii=False, separators=(",", ":"))


@dataclass(frozen=True)
class SearchResult:
    """Fields shared by every result variant."""

    type: ClassVar[SearchType]

    id: str
    title: str
    link: str
    thumbnail: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to plain dictionary, tagged with the variant."""
        return {"type": self.type.value, **dataclasses.asdict(self)}


@dataclass(frozen=True)
class VideoResult(SearchResult):
    """Single video search result."""

    type: ClassVar[SearchType] = SearchType.VIDEO

    author: Optional[str] = None
    duration: Optional[str] = None
    views: Optional[str] = None


@dataclass(frozen=True)
class ChannelResult(SearchResult):
    """Single channel search result."""

    type: ClassVar[SearchType] = SearchType.CHANNEL

    subscriber_count: Optional[str] = None


@dataclass(frozen=True)
class PlaylistResult(SearchResult):
    """Single playlist search result."""

    type: ClassVar[SearchType] = SearchType.PLAYLIST

    video_count: Optional[int] = None


_RESULT_CLASSES: dict[str, type[SearchResult]] = {
    cls.type.value: cls for cls in (VideoResult, ChannelResult, PlaylistResult)
}


def result_from_dict(data: dict) -> SearchResult:
    """Rebuild a result from ``SearchResult.to_dict`` output.

    Raises:
        ValueError: If the variant tag is unknown or required fields are missing.
    """
    if not isinstance(data, dict):
        raise ValueError("result must be a mapping")
    cls = _RESULT_CLASSES.get(data.get("type"))
    if cls is None:
        raise ValueError(f"Unknown result type: {data.get('type')!r}")
    names = {f.name for f in dataclasses.fields(cls)}
    kwargs = {k: v for k, v in data.items() if k in names}
    for required in ("id", "title", "link"):
        if not isinstance(kwargs.get(required), str) or not kwargs[required]:
            raise ValueError(f"result is missing {required!r}")
    return cls(**kwargs)


@dataclass(frozen=True)
class CacheEntry:
    """Cached search results with absolute wall-clock expiry."""

    key: str
    results: tuple[SearchResult, ...]
    inserted_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def to_dict(self) -> dict:
        """Persisted form; the key lives in the storage key, not the value."""
        return {
            "results": [r.to_dict() for r in self.results],
            "inserted_at": self.inserted_at,
            "expires_at": self.expires_at,
        }

    @classmethod
    def from_dict(cls, key: str, data: dict) -> CacheEntry:
        """Inverse of ``to_dict``.

        Raises:
            ValueError: If *data* is not a well-formed persisted entry.
        """
        if not isinstance(data, dict):
            raise ValueError("cache entry must be a mapping")
        results = data.get("results")
        inserted_at = data.get("inserted_at")
        expires_at = data.get("expires_at")
        if not isinstance(results, list):
            raise ValueError("cache entry results must be a list")
        for stamp in (inserted_at, expires_at):
            if isinstance(stamp, bool) or not isinstance(stamp, (int, float)):
                raise ValueError("cache entry timestamps must be numbers")
        return cls(
            key=key,
            results=tuple(result_from_dict(r) for r in results),
            inserted_at=float(inserted_at),
            expires_at=float(expires_at),
        )


@dataclass(frozen=True)
class SearchPage:
    """One page of results plus the token for the next page, if any."""

    results: tuple[SearchResult, ...]
    continuation: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "results": [r.to_dict() for r in self.results],
            "continuation": self.continuation,
        }
