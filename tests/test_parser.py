"""Tests for parser.py: InnerTube renderer tree flattening."""

from __future__ import annotations

from models import ChannelResult, PlaylistResult, SearchQuery, SearchType, VideoResult
from parser import extract_continuation, parse_results


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

def video(video_id, title="Video", **extra):
    body = {"videoId": video_id, "title": {"runs": [{"text": title}]}}
    body.update(extra)
    return {"videoRenderer": body}


def channel(channel_id, title="Channel", **extra):
    body = {"channelId": channel_id, "title": {"simpleText": title}}
    body.update(extra)
    return {"channelRenderer": body}


def playlist(playlist_id, title="Playlist", **extra):
    body = {"playlistId": playlist_id, "title": {"simpleText": title}}
    body.update(extra)
    return {"playlistRenderer": body}


def response(*items, continuation=None):
    contents = [{"itemSectionRenderer": {"contents": list(items)}}]
    if continuation:
        contents.append({
            "continuationItemRenderer": {
                "continuationEndpoint": {"continuationCommand": {"token": continuation}}
            }
        })
    return {
        "contents": {
            "twoColumnSearchResultsRenderer": {
                "primaryContents": {"sectionListRenderer": {"contents": contents}}
            }
        }
    }


def q(type=SearchType.VIDEO, limit=5):
    return SearchQuery(text="test", type=type, limit=limit)


# ---------------------------------------------------------------------------
# Leaf extraction
# ---------------------------------------------------------------------------

class TestVideoExtraction:

    def test_container_with_video_and_unknown(self):
        raw = response(
            video("abc123", "Test Video"),
            {"promotedSparklesWebRenderer": {"title": "Ad"}},
        )
        results = parse_results(raw, q(limit=5))
        assert results == [
            VideoResult(
                id="abc123",
                title="Test Video",
                link="https://www.youtube.com/watch?v=abc123",
            )
        ]

    def test_full_fields(self):
        raw = response(video(
            "v1",
            "Lofi",
            ownerText={"runs": [{"text": "Lofi Girl"}]},
            lengthText={"simpleText": "3:45"},
            viewCountText={"simpleText": "1,234 views"},
            thumbnail={"thumbnails": [
                {"url": "https://i.ytimg.com/vi/v1/default.jpg"},
                {"url": "https://i.ytimg.com/vi/v1/hqdefault.jpg"},
            ]},
        ))
        [result] = parse_results(raw, q())
        assert result.author == "Lofi Girl"
        assert result.duration == "3:45"
        assert result.views == "1,234 views"
        assert result.thumbnail == "https://i.ytimg.com/vi/v1/hqdefault.jpg"

    def test_author_falls_back_to_byline(self):
        raw = response(video("v1", longBylineText={"runs": [{"text": "Ch"}]}))
        [result] = parse_results(raw, q())
        assert result.author == "Ch"

    def test_runs_are_joined(self):
        raw = response({"videoRenderer": {
            "videoId": "v1",
            "title": {"runs": [{"text": "Part "}, {"text": "One"}]},
        }})
        assert parse_results(raw, q())[0].title == "Part One"

    def test_missing_id_is_dropped(self):
        raw = response({"videoRenderer": {"title": {"simpleText": "No id"}}}, video("ok"))
        assert [r.id for r in parse_results(raw, q())] == ["ok"]

    def test_missing_title_is_dropped(self):
        raw = response({"videoRenderer": {"videoId": "v1"}}, video("v2"))
        assert [r.id for r in parse_results(raw, q())] == ["v2"]

    def test_empty_title_is_dropped(self):
        raw = response({"videoRenderer": {"videoId": "v1", "title": {"runs": []}}})
        assert parse_results(raw, q()) == []


class TestChannelExtraction:

    def test_channel_fields(self):
        raw = response(channel(
            "UC1",
            "Lofi Girl",
            subscriberCountText={"simpleText": "14M subscribers"},
            thumbnail={"thumbnails": [{"url": "//yt3.ggpht.com/a.jpg"}]},
        ))
        [result] = parse_results(raw, q(type=SearchType.CHANNEL))
        assert isinstance(result, ChannelResult)
        assert result.link == "https://www.youtube.com/channel/UC1"
        assert result.subscriber_count == "14M subscribers"
        assert result.thumbnail == "https://yt3.ggpht.com/a.jpg"

    def test_subscribers_in_video_count_field(self):
        raw = response(channel(
            "UC1",
            subscriberCountText={"simpleText": "@lofigirl"},
            videoCountText={"simpleText": "14M subscribers"},
        ))
        [result] = parse_results(raw, q(type=SearchType.CHANNEL))
        assert result.subscriber_count == "14M subscribers"

    def test_handle_only_gives_no_count(self):
        raw = response(channel("UC1", subscriberCountText={"simpleText": "@lofigirl"}))
        [result] = parse_results(raw, q(type=SearchType.CHANNEL))
        assert result.subscriber_count is None


class TestPlaylistExtraction:

    def test_playlist_fields(self):
        raw = response(playlist(
            "PL1",
            "Study Mix",
            videoCount="42",
            thumbnails=[{"thumbnails": [{"url": "https://i.ytimg.com/pl.jpg"}]}],
        ))
        [result] = parse_results(raw, q(type=SearchType.PLAYLIST))
        assert isinstance(result, PlaylistResult)
        assert result.link == "https://www.youtube.com/playlist?list=PL1"
        assert result.video_count == 42
        assert result.thumbnail == "https://i.ytimg.com/pl.jpg"

    def test_video_count_text_with_separators(self):
        raw = response(playlist("PL1", videoCountText={"runs": [{"text": "1,204"}, {"text": " videos"}]}))
        [result] = parse_results(raw, q(type=SearchType.PLAYLIST))
        assert result.video_count == 1204

    def test_missing_video_count(self):
        raw = response(playlist("PL1"))
        [result] = parse_results(raw, q(type=SearchType.PLAYLIST))
        assert result.video_count is None


# ---------------------------------------------------------------------------
# Traversal, filtering, dedup, limit
# ---------------------------------------------------------------------------

class TestTraversal:

    def test_type_filter(self):
        raw = response(video("v1"), channel("c1"), playlist("p1"))
        assert [r.id for r in parse_results(raw, q(type=SearchType.VIDEO))] == ["v1"]
        assert [r.id for r in parse_results(raw, q(type=SearchType.CHANNEL))] == ["c1"]
        assert [r.id for r in parse_results(raw, q(type=SearchType.PLAYLIST))] == ["p1"]

    def test_all_keeps_document_order(self):
        raw = response(channel("c1"), video("v1"), playlist("p1"), video("v2"))
        results = parse_results(raw, q(type=SearchType.ALL, limit=10))
        assert [r.id for r in results] == ["c1", "v1", "p1", "v2"]

    def test_nested_shelf_children_in_order(self):
        shelf = {"shelfRenderer": {"content": {"verticalListRenderer": {
            "items": [video("s1"), video("s2")],
        }}}}
        raw = response(video("v1"), shelf, video("v2"))
        assert [r.id for r in parse_results(raw, q(limit=10))] == ["v1", "s1", "s2", "v2"]

    def test_dedup_keeps_first_occurrence(self):
        shelf = {"shelfRenderer": {"content": {"verticalListRenderer": {
            "items": [video("v1", "Second copy")],
        }}}}
        raw = response(video("v1", "First copy"), shelf, video("v2"))
        results = parse_results(raw, q(limit=10))
        assert [r.id for r in results] == ["v1", "v2"]
        assert results[0].title == "First copy"

    def test_limit_applied_after_filter_and_dedup(self):
        raw = response(channel("c1"), video("v1"), video("v1"), channel("c2"), video("v2"), video("v3"))
        results = parse_results(raw, q(limit=2))
        assert [r.id for r in results] == ["v1", "v2"]

    def test_ids_unique_and_required_fields_present(self):
        raw = response(*[video(f"v{i % 3}") for i in range(10)])
        results = parse_results(raw, q(limit=10))
        ids = [r.id for r in results]
        assert len(ids) == len(set(ids)) == 3
        assert all(r.id and r.title and r.link for r in results)

    def test_continuation_response_shape(self):
        raw = {"onResponseReceivedCommands": [{
            "appendContinuationItemsAction": {"continuationItems": [
                {"itemSectionRenderer": {"contents": [video("n1"), video("n2")]}},
            ]}
        }]}
        assert [r.id for r in parse_results(raw, q())] == ["n1", "n2"]

    def test_rich_grid_containers(self):
        raw = {"contents": {"richShelfRenderer": {"contents": [
            {"richItemRenderer": {"content": video("r1")}},
        ]}}}
        assert [r.id for r in parse_results(raw, q())] == ["r1"]


class TestDefensiveParsing:

    def test_non_dict_input(self):
        assert parse_results(None, q()) == []
        assert parse_results([], q()) == []
        assert parse_results("oops", q()) == []

    def test_missing_contents(self):
        assert parse_results({"responseContext": {}}, q()) == []

    def test_wrong_shapes_inside_tree(self):
        raw = {"contents": {"twoColumnSearchResultsRenderer": {"primaryContents": {
            "sectionListRenderer": {"contents": [
                "not a node",
                42,
                {"itemSectionRenderer": "not a dict"},
                {"itemSectionRenderer": {"contents": {"unexpected": True}}},
                {"videoRenderer": ["list", "body"]},
                {"itemSectionRenderer": {"contents": [video("ok")]}},
            ]}
        }}}}
        assert [r.id for r in parse_results(raw, q())] == ["ok"]

    def test_unknown_wrapper_is_not_probed(self):
        raw = response({"someFutureRenderer": {"contents": [video("hidden")]}})
        assert parse_results(raw, q()) == []

    def test_malformed_thumbnail_ignored(self):
        raw = response(video("v1", thumbnail={"thumbnails": "nope"}))
        assert parse_results(raw, q())[0].thumbnail is None


class TestExtractContinuation:

    def test_token_found(self):
        raw = response(video("v1"), continuation="TOKEN123")
        assert extract_continuation(raw) == "TOKEN123"

    def test_no_token(self):
        assert extract_continuation(response(video("v1"))) is None

    def test_token_in_continuation_response(self):
        raw = {"onResponseReceivedCommands": [{
            "appendContinuationItemsAction": {"continuationItems": [
                {"itemSectionRenderer": {"contents": [video("n1")]}},
                {"continuationItemRenderer": {
                    "continuationEndpoint": {"continuationCommand": {"token": "NEXT"}}
                }},
            ]}
        }]}
        assert extract_continuation(raw) == "NEXT"

    def test_malformed_continuation_item(self):
        raw = {"contents": [{"continuationItemRenderer": {"continuationEndpoint": "bad"}}]}
        assert extract_continuation(raw) is None
        assert extract_continuation(None) is None
