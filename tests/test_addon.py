"""Tests for the mitmproxy addon: request inspection and response rewriting."""

import asyncio
import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from conftest import browse_shelves, make_browse, make_shelf, make_tile, shelf_items, video_ids

from tubeproxy.config import FilterConfig, MitmConfig, TubeProxyConfig
from tubeproxy.interceptor import DecodePipeline
from tubeproxy.mitm.addon import (
    NAVIGATION_METADATA_KEY,
    VIDEO_METADATA_KEY,
    TubeProxyAddon,
    navigation_from_request,
)
from tubeproxy.navigation import NavigationState, PageContext, classify_page
from tubeproxy.state import PlaybackState, SponsorSegment


TV_APP_URL = "https://www.youtube.com/tv"


def make_flow(
    endpoint: str,
    request_body: Any = None,
    response_body: Any = None,
    *,
    host: str = "youtubei.googleapis.com",
    content_type: str = "application/json; charset=UTF-8",
    headers: dict[str, str] | None = None,
) -> MagicMock:
    flow = MagicMock()
    flow.metadata = {}
    flow.request.pretty_host = host
    flow.request.pretty_url = f"https://{host}/youtubei/v1/{endpoint}"
    flow.request.path = f"/youtubei/v1/{endpoint}?prettyPrint=false"
    flow.request.headers = headers or {}
    flow.request.content = json.dumps(request_body).encode() if request_body is not None else b""
    flow.response.headers = {"content-type": content_type}
    if isinstance(response_body, str):
        flow.response.get_text.return_value = response_body
    else:
        flow.response.get_text.return_value = json.dumps(response_body) if response_body is not None else ""
    return flow


def player_response(video_id: str = "v1") -> dict[str, Any]:
    return {
        "videoDetails": {"videoId": video_id},
        "adPlacements": [{"adPlacementRenderer": {}}],
        "playerOverlays": {"playerOverlayRenderer": {}},
    }


@pytest.fixture
def make_addon():
    def factory(sponsorblock: Any = None, segment_timeout: float = 2.0, **filters: Any) -> TubeProxyAddon:
        config = TubeProxyConfig(filters=FilterConfig(**filters))
        state = PlaybackState()
        pipeline = DecodePipeline(config_provider=lambda: config, state=state)
        return TubeProxyAddon(
            pipeline,
            MitmConfig(),
            state=state,
            sponsorblock=sponsorblock,
            config_provider=lambda: config,
            segment_timeout=segment_timeout,
        )

    return factory


class TestNavigationFromRequest:
    @pytest.mark.parametrize(
        "headers,body,expected",
        [
            ({"x-tubeproxy-location": "/#/browse?c=FEhistory"}, {"browseId": "FEtrending"}, "/browse?c=FEhistory"),
            ({}, {"context": {"client": {"originalUrl": "https://www.youtube.com/tv#/watch?v=abc"}}}, "/watch?v=abc"),
            ({}, {"browseId": "FEsubscriptions"}, "/browse?c=FEsubscriptions"),
            ({}, {"query": "cats"}, "/search?search_query=cats"),
            ({}, {"videoId": "v1", "playlistId": "PL1"}, "/watch?v=v1&list=PL1"),
            ({}, {"playlistId": "PL1"}, "/browse?list=PL1"),
            (
                {},
                {"context": {"client": {"originalUrl": "https://www.youtube.com/tv"}}, "browseId": "FEsubscriptions"},
                "/browse?c=FEsubscriptions",
            ),
        ],
    )
    def test_sources(self, headers: dict[str, str], body: Any, expected: str) -> None:
        navigation = navigation_from_request(headers, body)
        assert navigation is not None
        assert navigation.hash == expected

    @pytest.mark.parametrize(
        "ids,expected",
        [
            ({"browseId": "FEsubscriptions"}, PageContext.SUBSCRIPTIONS),
            ({"browseId": "VLPL123"}, PageContext.PLAYLIST),
            ({"browseId": "FEwhat_to_watch"}, PageContext.HOME),
            ({"query": "cats"}, PageContext.SEARCH),
            ({"videoId": "v1"}, PageContext.WATCH),
            ({}, PageContext.HOME),
        ],
    )
    def test_tv_app_url_with_request_ids(self, ids: dict[str, str], expected: PageContext) -> None:
        body = {"context": {"client": {"originalUrl": TV_APP_URL}}, **ids}
        navigation = navigation_from_request({}, body)
        assert navigation is not None
        assert navigation.path == "/tv"
        assert classify_page(navigation) == expected

    @pytest.mark.parametrize("body", [None, [], {}, {"browseId": ""}])
    def test_nothing_to_say(self, body: Any) -> None:
        assert navigation_from_request({}, body) is None


class TestRequest:
    def test_records_navigation_and_video(self, make_addon) -> None:
        addon = make_addon()
        flow = make_flow("next", {"videoId": "v1"})
        addon.request(flow)

        assert flow.metadata[VIDEO_METADATA_KEY] == "v1"
        assert flow.metadata[NAVIGATION_METADATA_KEY] == NavigationState(hash="/watch?v=v1")
        assert addon.last_navigation == NavigationState(hash="/watch?v=v1")

    def test_keeps_last_navigation(self, make_addon) -> None:
        addon = make_addon()
        addon.request(make_flow("browse", {"browseId": "FEsubscriptions"}))
        flow = make_flow("guide", {"context": {}})
        addon.request(flow)
        assert flow.metadata[NAVIGATION_METADATA_KEY].hash == "/browse?c=FEsubscriptions"

    def test_ignores_other_hosts(self, make_addon) -> None:
        addon = make_addon()
        flow = make_flow("browse", {"browseId": "FEhistory"}, host="example.com")
        addon.request(flow)
        assert flow.metadata == {}

    def test_subdomain_of_api_host(self, make_addon) -> None:
        addon = make_addon()
        flow = make_flow("browse", {"browseId": "FEhistory"}, host="eu.youtubei.googleapis.com")
        addon.request(flow)
        assert NAVIGATION_METADATA_KEY in flow.metadata


class TestResponse:
    @pytest.mark.asyncio
    async def test_filters_browse_response(self, make_addon) -> None:
        addon = make_addon(enable_shorts=False)
        payload = make_browse([make_shelf([make_tile("a"), make_tile("s", short=True)])])
        flow = make_flow("browse", {"browseId": "FEwhat_to_watch"}, payload)

        addon.request(flow)
        await addon.response(flow)

        result = json.loads(flow.response.text)
        assert video_ids(shelf_items(browse_shelves(result)[0])) == ["a"]
        # Serialized tickets are closed
        assert all(t.closed for t in addon.pipeline._tickets)

    @pytest.mark.asyncio
    async def test_other_hosts_untouched(self, make_addon) -> None:
        addon = make_addon()
        flow = make_flow("browse", None, {"adPlacements": [1]}, host="example.com")
        await addon.response(flow)
        flow.response.get_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_json_untouched(self, make_addon) -> None:
        addon = make_addon()
        flow = make_flow("browse", None, "<html></html>", content_type="text/html")
        await addon.response(flow)
        flow.response.get_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_malformed_json_passes_through(self, make_addon) -> None:
        addon = make_addon()
        flow = make_flow("browse", None, "{truncated")
        original_text = flow.response.text
        await addon.response(flow)
        assert flow.response.text is original_text

    @pytest.mark.asyncio
    async def test_player_gets_skip_buttons(self, make_addon) -> None:
        sponsorblock = MagicMock()
        sponsorblock.fetch_segments = AsyncMock(return_value=[SponsorSegment("sponsor", 10, 20)])
        addon = make_addon(sponsorblock=sponsorblock, sponsor_block_manual_skips=["sponsor"])
        flow = make_flow("player", {"videoId": "v1"}, player_response())

        addon.request(flow)
        await addon.response(flow)

        sponsorblock.fetch_segments.assert_awaited_once_with("v1", ["sponsor", "poi_highlight"])
        result = json.loads(flow.response.text)
        assert result["adPlacements"] == []
        actions = result["playerOverlays"]["playerOverlayRenderer"]["timelyActionRenderers"]
        assert actions[0]["timelyActionRenderer"]["triggerTimeMs"] == 10000
        assert addon.state.video_id == "v1"

    @pytest.mark.asyncio
    async def test_segments_fetched_once_per_video(self, make_addon) -> None:
        sponsorblock = MagicMock()
        sponsorblock.fetch_segments = AsyncMock(return_value=[])
        addon = make_addon(sponsorblock=sponsorblock, sponsor_block_manual_skips=["sponsor"])

        for endpoint in ("player", "next"):
            flow = make_flow(endpoint, {"videoId": "v1"}, player_response())
            addon.request(flow)
            await addon.response(flow)

        assert sponsorblock.fetch_segments.await_count == 1

    @pytest.mark.asyncio
    async def test_slow_segments_do_not_block(self, make_addon) -> None:
        async def slow(video_id: str, categories: list[str]) -> list[SponsorSegment]:
            await asyncio.sleep(1)
            return [SponsorSegment("sponsor", 10, 20)]

        sponsorblock = MagicMock()
        sponsorblock.fetch_segments = slow
        addon = make_addon(sponsorblock=sponsorblock, segment_timeout=0.01, sponsor_block_manual_skips=["sponsor"])
        payload = player_response()
        payload["playerOverlays"]["playerOverlayRenderer"]["timelyActionRenderers"] = [{"existing": True}]
        flow = make_flow("player", {"videoId": "v1"}, payload)

        addon.request(flow)
        await addon.response(flow)

        assert addon.state.segments is None
        result = json.loads(flow.response.text)
        assert result["playerOverlays"]["playerOverlayRenderer"]["timelyActionRenderers"] == [{"existing": True}]

    @pytest.mark.asyncio
    async def test_no_categories_skips_lookup(self, make_addon) -> None:
        sponsorblock = MagicMock()
        sponsorblock.fetch_segments = AsyncMock(return_value=[])
        addon = make_addon(sponsorblock=sponsorblock, enable_sponsor_block_highlight=False)
        flow = make_flow("player", {"videoId": "v1"}, player_response())

        addon.request(flow)
        await addon.response(flow)
        sponsorblock.fetch_segments.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_watched_filter_follows_tv_pages(self, make_addon) -> None:
        addon = make_addon(enable_hide_watched_videos=True)
        payload = make_browse([make_shelf([make_tile("a"), make_tile("w", progress=100)])])
        tv_context = {"context": {"client": {"originalUrl": TV_APP_URL}}}

        playlist = make_flow("browse", {**tv_context, "browseId": "VLPL123"}, payload)
        addon.request(playlist)
        await addon.response(playlist)
        # Playlists need their own toggle
        assert video_ids(shelf_items(browse_shelves(json.loads(playlist.response.text))[0])) == ["a", "w"]

        history = make_flow("browse", {**tv_context, "browseId": "FEhistory"}, payload)
        addon.request(history)
        await addon.response(history)
        assert video_ids(shelf_items(browse_shelves(json.loads(history.response.text))[0])) == ["a"]
