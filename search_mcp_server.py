"""TubeLens MCP Server: YouTube search through a CORS relay."""

from __future__ import annotations

import dataclasses
import json
import logging

from mcp.server.fastmcp import FastMCP

from config import load_config
from health import check_health
from logs import configure_logging
from search import SearchClient, SearchError

_config = load_config()

_client = SearchClient.from_config(_config)

mcp = FastMCP("tubelens")


@mcp.tool()
async def search_youtube(query: str, type: str = "video", limit: int = 5) -> str:
    """Search YouTube for videos, channels, or playlists.

    Args:
        query: Search query string.
        type: "video" (default), "channel", "playlist", or "all" for mixed
              results in YouTube's own relevance order.
        limit: Maximum number of results (positive integer, default 5).

    Returns:
        JSON string with a list of search results or error details.
        Every result has type, id, title, link and thumbnail; videos add
        author, duration and views; channels add subscriber_count;
        playlists add video_count.
    """
    try:
        results = await _client.search(query, type=type, limit=limit)
        data = [r.to_dict() for r in results]
        return json.dumps(data, ensure_ascii=False, indent=2)
    except SearchError as exc:
        return json.dumps(
            {"error": exc.kind.value, "message": str(exc), "status_code": exc.status_code}
        )
    except Exception as exc:
        return json.dumps({"error": "UnexpectedError", "message": str(exc)})


@mcp.tool()
async def clear_cache() -> str:
    """Remove every cached search result.

    Returns:
        JSON string confirming how many entries were dropped.
    """
    dropped = len(_client.cache)
    _client.clear_cache()
    return json.dumps({"cleared": dropped})


@mcp.tool()
async def health_check() -> str:
    """Check TubeLens configuration health (relay URL, cache backing).

    Returns:
        JSON string with health status details.
    """
    return json.dumps(dataclasses.asdict(check_health(_config)), ensure_ascii=False, indent=2)


def main() -> None:
    configure_logging(logging.WARNING)
    mcp.run()


if __name__ == "__main__":
    main()
