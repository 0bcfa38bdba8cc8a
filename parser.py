"""Flatten InnerTube search responses into typed search results.

The response is a tree of renderer nodes. Each node is a dict whose first
known key names its kind:

    container: holds further nodes under one or more child fields
    video: videoRenderer and friends
    channel: channelRenderer
    playlist: playlistRenderer and friends
    unknown: anything else; skipped without error

Traversal is depth-first in document order. Leaves are turned into results
by a builder looked up in ``_LEAF_BUILDERS``, so supporting a new leaf shape
means adding one builder and one registry line.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Iterator, Optional

from models import (
    ChannelResult,
    PlaylistResult,
    SearchQuery,
    SearchResult,
    SearchType,
    VideoResult,
)

WATCH_URL = "https://www.youtube.com/watch?v={}"
CHANNEL_URL = "https://www.youtube.com/channel/{}"
PLAYLIST_URL = "https://www.youtube.com/playlist?list={}"

# Container key -> child fields, visited in this order.
_CONTAINERS: dict[str, tuple[str, ...]] = {
    "twoColumnSearchResultsRenderer": ("primaryContents",),
    "sectionListRenderer": ("contents",),
    "itemSectionRenderer": ("contents",),
    "shelfRenderer": ("content",),
    "verticalListRenderer": ("items",),
    "horizontalListRenderer": ("items",),
    "reelShelfRenderer": ("items",),
    "richShelfRenderer": ("contents",),
    "richItemRenderer": ("content",),
    "appendContinuationItemsAction": ("continuationItems",),
    "reloadContinuationItemsCommand": ("continuationItems",),
}

# Where a response keeps its top-level nodes.
_ROOT_FIELDS = ("contents", "onResponseReceivedCommands")

_MAX_DEPTH = 64


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _text(value: Any) -> Optional[str]:
    """Read a text object in either ``simpleText`` or ``runs`` form."""
    if isinstance(value, str):
        return value.strip() or None
    if not isinstance(value, dict):
        return None
    simple = value.get("simpleText")
    if isinstance(simple, str) and simple.strip():
        return simple.strip()
    runs = value.get("runs")
    if isinstance(runs, list):
        joined = "".join(
            run["text"] for run in runs if isinstance(run, dict) and isinstance(run.get("text"), str)
        ).strip()
        return joined or None
    return None


def _thumbnail(renderer: dict) -> Optional[str]:
    """Largest thumbnail URL, which upstream lists last."""
    holder = renderer.get("thumbnail")
    if holder is None:
        # playlistRenderer nests one more level: thumbnails[0].thumbnails
        nested = renderer.get("thumbnails")
        holder = nested[0] if isinstance(nested, list) and nested else None
    if not isinstance(holder, dict):
        return None
    thumbs = holder.get("thumbnails")
    if not isinstance(thumbs, list):
        return None
    for thumb in reversed(thumbs):
        url = thumb.get("url") if isinstance(thumb, dict) else None
        if isinstance(url, str) and url:
            return f"https:{url}" if url.startswith("//") else url
    return None


def _identifier(renderer: dict, field: str) -> Optional[str]:
    value = renderer.get(field)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _parse_count(text: Optional[str]) -> Optional[int]:
    if not text:
        return None
    digits = re.sub(r"[^\d]", "", text)
    return int(digits) if digits else None


# ---------------------------------------------------------------------------
# Leaf builders
# ---------------------------------------------------------------------------


def _build_video(renderer: dict) -> Optional[SearchResult]:
    video_id = _identifier(renderer, "videoId")
    title = _text(renderer.get("title"))
    if not video_id or not title:
        return None
    return VideoResult(
        id=video_id,
        title=title,
        link=WATCH_URL.format(video_id),
        thumbnail=_thumbnail(renderer),
        author=(
            _text(renderer.get("ownerText"))
            or _text(renderer.get("longBylineText"))
            or _text(renderer.get("shortBylineText"))
        ),
        duration=_text(renderer.get("lengthText")),
        views=_text(renderer.get("viewCountText")) or _text(renderer.get("shortViewCountText")),
    )


def _build_channel(renderer: dict) -> Optional[SearchResult]:
    channel_id = _identifier(renderer, "channelId")
    title = _text(renderer.get("title"))
    if not channel_id or not title:
        return None
    # Newer responses put the handle in subscriberCountText and the
    # subscriber figure in videoCountText.
    subscribers = None
    for field in ("subscriberCountText", "videoCountText"):
        text = _text(renderer.get(field))
        if text and "subscriber" in text.lower():
            subscribers = text
            break
    if subscribers is None:
        subscribers = _text(renderer.get("subscriberCountText"))
        if subscribers and subscribers.startswith("@"):
            subscribers = None
    return ChannelResult(
        id=channel_id,
        title=title,
        link=CHANNEL_URL.format(channel_id),
        thumbnail=_thumbnail(renderer),
        subscriber_count=subscribers,
    )


def _build_playlist(renderer: dict) -> Optional[SearchResult]:
    playlist_id = _identifier(renderer, "playlistId")
    title = _text(renderer.get("title"))
    if not playlist_id or not title:
        return None
    count = renderer.get("videoCount")
    if isinstance(count, int) and not isinstance(count, bool):
        video_count: Optional[int] = count
    else:
        video_count = _parse_count(_text(count) or _text(renderer.get("videoCountText")))
    return PlaylistResult(
        id=playlist_id,
        title=title,
        link=PLAYLIST_URL.format(playlist_id),
        thumbnail=_thumbnail(renderer),
        video_count=video_count,
    )


_LEAF_BUILDERS: dict[str, tuple[SearchType, Callable[[dict], Optional[SearchResult]]]] = {
    "videoRenderer": (SearchType.VIDEO, _build_video),
    "gridVideoRenderer": (SearchType.VIDEO, _build_video),
    "channelRenderer": (SearchType.CHANNEL, _build_channel),
    "playlistRenderer": (SearchType.PLAYLIST, _build_playlist),
    "gridPlaylistRenderer": (SearchType.PLAYLIST, _build_playlist),
}


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------


def _classify(node: dict) -> tuple[str, Optional[str]]:
    """Return (kind, discriminator key) for a renderer node."""
    for key in node:
        if key in _CONTAINERS:
            return "container", key
        if key in _LEAF_BUILDERS:
            return "leaf", key
    return "unknown", None


def _children(value: Any) -> Iterator[dict]:
    if isinstance(value, dict):
        yield value
    elif isinstance(value, list):
        for item in value:
            if isinstance(item, dict):
                yield item


def _walk(node: dict, wanted: SearchType, depth: int = 0) -> Iterator[SearchResult]:
    if depth > _MAX_DEPTH:
        return
    kind, key = _classify(node)
    if kind == "unknown":
        return
    body = node[key]
    if not isinstance(body, dict):
        return
    if kind == "container":
        for field in _CONTAINERS[key]:
            for child in _children(body.get(field)):
                yield from _walk(child, wanted, depth + 1)
        return
    variant, build = _LEAF_BUILDERS[key]
    if wanted is not SearchType.ALL and variant is not wanted:
        return
    result = build(body)
    if result is not None:
        yield result


def _roots(raw: Any) -> Iterator[dict]:
    if not isinstance(raw, dict):
        return
    for field in _ROOT_FIELDS:
        yield from _children(raw.get(field))


def parse_results(raw: Any, query: SearchQuery) -> list[SearchResult]:
    """Extract up to ``query.limit`` unique results of the requested type.

    Never raises on unexpected shapes; unusable nodes are simply omitted.
    The first occurrence of a repeated id wins, and the limit is applied
    only after filtering and de-duplication.
    """
    results: list[SearchResult] = []
    if query.limit < 1:
        return results
    seen: set[str] = set()
    for root in _roots(raw):
        for result in _walk(root, query.type):
            if result.id in seen:
                continue
            seen.add(result.id)
            results.append(result)
            if len(results) >= query.limit:
                return results
    return results


def _continuation_token(item: Any) -> Optional[str]:
    endpoint = item.get("continuationEndpoint") if isinstance(item, dict) else None
    command = endpoint.get("continuationCommand") if isinstance(endpoint, dict) else None
    token = command.get("token") if isinstance(command, dict) else None
    return token if isinstance(token, str) and token else None


def extract_continuation(raw: Any) -> Optional[str]:
    """Token for the next page, taken from the first continuationItemRenderer."""
    stack = list(_roots(raw))
    stack.reverse()
    while stack:
        node = stack.pop()
        token = _continuation_token(node.get("continuationItemRenderer"))
        if token:
            return token
        kind, key = _classify(node)
        if kind != "container" or not isinstance(node[key], dict):
            continue
        found = []
        for field in _CONTAINERS[key]:
            found.extend(_children(node[key].get(field)))
        stack.extend(reversed(found))
    return None
