"""Tests for SponsorBlock segments, skip buttons and the queue shelf."""

import json
from typing import Any

import httpx
import pytest
from conftest import make_shelf, make_tile, video_ids

from tubeproxy.config import FilterConfig
from tubeproxy.pipeline.context import PayloadContext
from tubeproxy.pipeline.hooks.inject_queue import inject_queue
from tubeproxy.pipeline.hooks.sponsor_highlight import HIGHLIGHT_BUTTON_TYPE, sponsor_highlight
from tubeproxy.pipeline.hooks.sponsor_skips import sponsor_skip_actions
from tubeproxy.sponsorblock import SponsorBlockClient, parse_segments
from tubeproxy.state import PlaybackState, SponsorSegment, VideoQueue


def sponsor_client(handler) -> SponsorBlockClient:
    return SponsorBlockClient("https://sponsor.test", client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def player_payload(video_id: str = "v1") -> dict[str, Any]:
    return {
        "videoDetails": {"videoId": video_id},
        "playerOverlays": {"playerOverlayRenderer": {"timelyActionRenderers": [{"existing": True}]}},
        "transportControls": {"transportControlsRenderer": {"promotedActions": []}},
    }


def player_ctx(state: PlaybackState, **filters: Any) -> PayloadContext:
    return PayloadContext(payload=player_payload(), config=FilterConfig(**filters), state=state)


def timely_actions(ctx: PayloadContext) -> list[Any]:
    return ctx.payload["playerOverlays"]["playerOverlayRenderer"]["timelyActionRenderers"]


class TestSponsorBlockClient:
    @pytest.mark.asyncio
    async def test_fetch_segments(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=[{"category": "sponsor", "segment": [10, 20.5], "UUID": "abc"}])

        client = sponsor_client(handler)
        segments = await client.fetch_segments("v1", ["sponsor", "intro"])
        await client.aclose()

        assert segments == [SponsorSegment("sponsor", 10.0, 20.5)]
        assert requests[0].url.path == "/api/skipSegments"
        assert requests[0].url.params["videoID"] == "v1"
        assert json.loads(requests[0].url.params["categories"]) == ["sponsor", "intro"]

    @pytest.mark.asyncio
    async def test_not_found_means_no_segments(self) -> None:
        client = sponsor_client(lambda request: httpx.Response(404, text="Not Found"))
        assert await client.fetch_segments("v1", ["sponsor"]) == []

    @pytest.mark.asyncio
    async def test_server_error_means_unknown(self) -> None:
        client = sponsor_client(lambda request: httpx.Response(502))
        assert await client.fetch_segments("v1", ["sponsor"]) is None

    @pytest.mark.asyncio
    async def test_no_categories_skips_request(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=[])

        assert await sponsor_client(handler).fetch_segments("v1", []) == []
        assert requests == []

    def test_parse_drops_malformed_entries(self) -> None:
        data = [
            {"category": "intro", "segment": [0, 5]},
            {"category": "outro", "segment": [1]},
            {"category": 3, "segment": [0, 1]},
            {"category": "filler", "segment": ["a", "b"]},
            "junk",
        ]
        assert parse_segments(data) == [SponsorSegment("intro", 0.0, 5.0)]
        assert parse_segments({"not": "a list"}) == []


class TestSkipActions:
    def test_one_button_per_configured_segment(self) -> None:
        state = PlaybackState(
            video_id="v1",
            segments=[SponsorSegment("sponsor", 10, 20.5), SponsorSegment("intro", 0, 5)],
        )
        ctx = player_ctx(state, sponsor_block_manual_skips=["sponsor"])
        sponsor_skip_actions(ctx, {})

        actions = timely_actions(ctx)
        assert len(actions) == 1
        renderer = actions[0]["timelyActionRenderer"]
        assert renderer["triggerTimeMs"] == 10000
        assert renderer["timeoutMs"] == 10500
        button = renderer["actionButtons"][0]["buttonRenderer"]
        assert button["text"] == {"simpleText": "Skip sponsor"}
        assert button["command"]["customAction"] == {"action": "SKIP", "parameters": {"time": 20.5}}

    def test_nothing_configured_clears_actions(self) -> None:
        ctx = player_ctx(PlaybackState(video_id="v1", segments=[SponsorSegment("sponsor", 1, 2)]))
        sponsor_skip_actions(ctx, {})
        assert timely_actions(ctx) == []

    def test_unknown_segments_leave_overlay(self) -> None:
        ctx = player_ctx(PlaybackState(video_id="v1"), sponsor_block_manual_skips=["sponsor"])
        sponsor_skip_actions(ctx, {})
        assert timely_actions(ctx) == [{"existing": True}]

    def test_segments_of_another_video_are_not_used(self) -> None:
        state = PlaybackState(video_id="other", segments=[SponsorSegment("sponsor", 1, 2)])
        ctx = player_ctx(state, sponsor_block_manual_skips=["sponsor"])
        sponsor_skip_actions(ctx, {})
        assert timely_actions(ctx) == [{"existing": True}]

    def test_guard_requires_overlay(self) -> None:
        spec = sponsor_skip_actions._hook_spec
        assert spec.should_run(player_ctx(PlaybackState()))
        assert not spec.should_run(PayloadContext(payload={"videoDetails": {}}))


class TestHighlight:
    def test_adds_transport_button(self) -> None:
        state = PlaybackState(video_id="v1", segments=[SponsorSegment("poi_highlight", 42, 42)])
        ctx = player_ctx(state)
        sponsor_highlight(ctx, {})

        actions = ctx.payload["transportControls"]["transportControlsRenderer"]["promotedActions"]
        assert len(actions) == 1
        assert actions[0]["type"] == HIGHLIGHT_BUTTON_TYPE
        button = actions[0]["button"]["buttonRenderer"]
        assert button["text"] == {"simpleText": "Skip to highlight"}
        assert button["command"]["customAction"]["parameters"] == {"time": 42.0}

    def test_no_highlight_segment(self) -> None:
        ctx = player_ctx(PlaybackState(video_id="v1", segments=[SponsorSegment("sponsor", 1, 2)]))
        sponsor_highlight(ctx, {})
        assert ctx.payload["transportControls"]["transportControlsRenderer"]["promotedActions"] == []

    def test_guard(self) -> None:
        spec = sponsor_highlight._hook_spec
        assert spec.should_run(player_ctx(PlaybackState()))
        assert not spec.should_run(player_ctx(PlaybackState(), enable_sponsor_block_highlight=False))
        assert not spec.should_run(PayloadContext(payload={}))


class TestQueue:
    def test_queue_tracks_last_added(self) -> None:
        queue = VideoQueue()
        queue.add(make_tile("a"))
        queue.add(make_tile("b"))
        assert queue.last_video_id == "b"
        assert queue.index_of("b") == 1
        assert queue.index_of("missing") is None
        assert queue.index_of(None) is None

        queue.clear()
        assert queue.videos == []
        assert queue.last_video_id is None

    def test_load_video_resets_segments(self) -> None:
        state = PlaybackState()
        state.load_video("a")
        state.segments = [SponsorSegment("sponsor", 1, 2)]
        state.load_video("a")
        assert state.segments is not None
        state.load_video("b")
        assert state.segments is None
        assert state.segments_for(None) is None

    def test_segment_duration_never_negative(self) -> None:
        assert SponsorSegment("sponsor", 5, 3).duration == 0.0

    def test_inject_queue_shelf(self) -> None:
        state = PlaybackState()
        state.queue.add(make_tile("q1"))
        state.queue.add(make_tile("q2"))
        state.queue.last_video_id = "q1"
        pivot = [make_shelf([make_tile("v1")])]
        payload = {"contents": {"singleColumnWatchNextResults": {"pivot": {"sectionListRenderer": {"contents": pivot}}}}}
        ctx = PayloadContext(payload=payload, state=state)

        assert inject_queue._hook_spec.should_run(ctx)
        inject_queue(ctx, {})

        shelf = pivot[0]["shelfRenderer"]
        assert shelf["headerRenderer"]["shelfHeaderRenderer"]["title"] == {"simpleText": "Queued Videos"}
        content = shelf["content"]["horizontalListRenderer"]
        assert content["selectedIndex"] == 1
        clear = content["items"][0]["tileRenderer"]
        assert clear["onSelectCommand"] == {"customAction": {"action": "CLEAR_QUEUE"}}
        assert video_ids(content["items"][1:]) == ["q1", "q2"]

    def test_empty_queue_not_injected(self) -> None:
        payload = {"contents": {"singleColumnWatchNextResults": {"pivot": {"sectionListRenderer": {"contents": []}}}}}
        assert not inject_queue._hook_spec.should_run(PayloadContext(payload=payload))
