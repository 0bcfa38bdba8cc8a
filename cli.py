"""CLI entry point for TubeLens search."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys

from config import load_config
from formatter import format_results
from logs import configure_logging
from models import SearchType
from search import SearchClient, SearchError


async def run(args: argparse.Namespace) -> int:
    config = load_config()
    overrides = {}
    if args.relay:
        overrides["relay_url"] = args.relay
    if args.no_cache:
        overrides["use_cache"] = False
    if overrides:
        config = dataclasses.replace(config, **overrides)

    client = SearchClient.from_config(config)
    if args.clear_cache:
        client.clear_cache()
        if not args.query:
            return 0
    if not args.query:
        print("error: a search query is required", file=sys.stderr)
        return 2

    try:
        results = await client.search(args.query, type=args.type, limit=args.limit)
    except SearchError as exc:
        print(f"search failed ({exc.kind.value}): {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps([r.to_dict() for r in results], ensure_ascii=False, indent=2))
    else:
        print(format_results(results))
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="TubeLens - YouTube search through a CORS relay")
    parser.add_argument("query", nargs="?", help="search text")
    parser.add_argument(
        "--type",
        choices=[t.value for t in SearchType],
        default=SearchType.VIDEO.value,
        help="result type to keep (default: video)",
    )
    parser.add_argument("--limit", type=int, default=5, help="maximum results (default: 5)")
    parser.add_argument("--relay", help="relay URL, overrides TUBELENS_RELAY_URL")
    parser.add_argument("--no-cache", action="store_true", help="bypass the result cache")
    parser.add_argument("--clear-cache", action="store_true", help="empty the cache first")
    parser.add_argument("--json", action="store_true", help="print results as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging to stderr")
    args = parser.parse_args(argv)

    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
