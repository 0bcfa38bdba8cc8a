"""Format search results as plain text for terminals and LLM consumption."""

from __future__ import annotations

from typing import Sequence

from models import ChannelResult, PlaylistResult, SearchResult, VideoResult


def _details(result: SearchResult) -> list[str]:
    if isinstance(result, VideoResult):
        parts = [result.author, result.duration, result.views]
    elif isinstance(result, ChannelResult):
        parts = [result.subscriber_count]
    elif isinstance(result, PlaylistResult):
        parts = [f"{result.video_count} videos" if result.video_count is not None else None]
    else:
        parts = []
    return [p for p in parts if p]


def format_results(results: Sequence[SearchResult]) -> str:
    """Render one numbered block per result.

    Always includes: type, title, link. Optional fields appear only when
    upstream supplied them.
    """
    if not results:
        return "(no results)"
    lines = []
    for i, result in enumerate(results, 1):
        lines.append(f"{i}. [{result.type.value}] {result.title}")
        details = _details(result)
        if details:
            lines.append("   " + " | ".join(details))
        lines.append(f"   {result.link}")
    return "\n".join(lines)
