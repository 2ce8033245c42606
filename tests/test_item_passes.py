"""Tests for the items stage passes."""

import json

import pytest
from conftest import make_tile, video_ids

from tubeproxy.items import DEFAULT_TILE_STYLE
from tubeproxy.navigation import PageContext
from tubeproxy.pipeline.context import ItemBatch
from tubeproxy.pipeline.guards import watched_filter_applies
from tubeproxy.pipeline.hooks.hide_watched import hide_watched, is_watched
from tubeproxy.pipeline.hooks.hq_thumbnails import hq_thumbnail_url, hq_thumbnails
from tubeproxy.pipeline.hooks.long_press import long_press
from tubeproxy.pipeline.hooks.previews import previews
from tubeproxy.pipeline.hooks.remove_ad_slots import remove_ad_slots


def batch_of(ctx, items, allow_previews=True) -> ItemBatch:
    return ItemBatch(items=items, payload=ctx, allow_previews=allow_previews)


def menu_labels(item: dict) -> list[str]:
    menu = item["tileRenderer"]["onLongPressCommand"]["showMenuCommand"]["menu"]["menuRenderer"]["items"]
    return [entry["menuServiceItemRenderer"]["text"]["simpleText"] for entry in menu]


class TestRemoveAdSlots:
    def test_removes_ad_slots_regardless_of_setting(self, make_ctx) -> None:
        items = [{"adSlotRenderer": {}}, make_tile("v1"), {"adSlotRenderer": {"slot": 2}}]
        batch = remove_ad_slots(batch_of(make_ctx(enable_ad_block=False), items), {})
        assert video_ids(batch.items) == ["v1"]


class TestHqThumbnails:
    def test_url_keeps_query(self) -> None:
        url = hq_thumbnail_url("abc", "https://i.ytimg.com/vi/abc/hqdefault.jpg?sqp=xyz&rs=1")
        assert url == "https://i.ytimg.com/vi/abc/sddefault.jpg?sqp=xyz&rs=1"

    def test_url_without_query(self) -> None:
        assert hq_thumbnail_url("abc", "https://i.ytimg.com/vi/abc/hqdefault.jpg") == (
            "https://i.ytimg.com/vi/abc/sddefault.jpg"
        )

    def test_rewrites_default_tiles_only(self, make_ctx) -> None:
        default = make_tile("v1")
        other = make_tile("v2", style="TILE_STYLE_YTLR_VERTICAL_LIST")
        hq_thumbnails(batch_of(make_ctx(enable_hq_thumbnails=True), [default, other]), {})

        (thumb,) = default["tileRenderer"]["header"]["tileHeaderRenderer"]["thumbnail"]["thumbnails"]
        assert thumb == {"url": "https://i.ytimg.com/vi/v1/sddefault.jpg?sqp=abc&rs=xyz", "width": 640, "height": 480}
        assert "hqdefault" in other["tileRenderer"]["header"]["tileHeaderRenderer"]["thumbnail"]["thumbnails"][0]["url"]

    def test_tile_without_thumbnails(self, make_ctx) -> None:
        item = make_tile("v1")
        item["tileRenderer"]["header"] = {}
        hq_thumbnails(batch_of(make_ctx(enable_hq_thumbnails=True), [item]), {})
        assert item["tileRenderer"]["header"] == {}


class TestLongPress:
    def test_synthesizes_menu(self, make_ctx) -> None:
        item = make_tile("v1", title="Title")
        long_press(batch_of(make_ctx(), [item]), {})

        command = item["tileRenderer"]["onLongPressCommand"]["showMenuCommand"]
        assert command["contentId"] == "v1"
        assert command["title"] == {"simpleText": "Title"}
        assert command["subtitle"] == {"simpleText": "Channel"}
        assert menu_labels(item) == ["Play", "Add to Queue", "Save to Watch Later"]
        # Embedded queue copy must not reference the tile itself
        json.dumps(item)

    def test_extends_existing_menu(self, make_ctx) -> None:
        existing = {"menuServiceItemRenderer": {"text": {"simpleText": "Not interested"}}}
        item = make_tile("v1", menu=[existing])
        long_press(batch_of(make_ctx(), [item]), {})

        assert menu_labels(item) == ["Not interested", "Add to Queue"]
        menu = item["tileRenderer"]["onLongPressCommand"]["showMenuCommand"]["menu"]["menuRenderer"]["items"]
        queued = menu[1]["menuServiceItemRenderer"]["serviceEndpoint"]["playlistEditEndpoint"]["customAction"]
        assert queued["action"] == "ADD_TO_QUEUE"
        assert queued["parameters"]["tileRenderer"]["contentId"] == "v1"
        assert queued["parameters"] is not item

    def test_existing_menu_extended_when_disabled(self, make_ctx) -> None:
        item = make_tile("v1", menu=[])
        plain = make_tile("v2")
        long_press(batch_of(make_ctx(enable_long_press=False), [item, plain]), {})
        assert menu_labels(item) == ["Add to Queue"]
        assert "onLongPressCommand" not in plain["tileRenderer"]

    def test_skips_non_video_tiles(self, make_ctx) -> None:
        channel = make_tile("c1")
        channel["tileRenderer"]["onSelectCommand"] = {"browseEndpoint": {"browseId": "UC1"}}
        vertical = make_tile("v2", style="TILE_STYLE_YTLR_VERTICAL_LIST")
        long_press(batch_of(make_ctx(), [channel, vertical, {"gridVideoRenderer": {}}]), {})
        assert "onLongPressCommand" not in channel["tileRenderer"]
        assert "onLongPressCommand" not in vertical["tileRenderer"]


class TestPreviews:
    def test_adds_muted_preview(self, make_ctx) -> None:
        item = make_tile("v1")
        batch = batch_of(make_ctx(enable_previews=True), [item])
        previews(batch, {})

        command = item["tileRenderer"]["onFocusCommand"]["startInlinePlaybackCommand"]
        assert command["delayMs"] == 3000
        assert command["durationMs"] == 40000
        assert command["muted"] is True
        assert command["resumeVideo"] is True
        assert command["playbackEndpoint"] == {"watchEndpoint": {"videoId": "v1"}}

    def test_existing_focus_playback_kept(self, make_ctx) -> None:
        item = make_tile("v1")
        existing = {"startInlinePlaybackCommand": {"playbackEndpoint": {"watchEndpoint": {"videoId": "x"}}}}
        item["tileRenderer"]["onFocusCommand"] = existing
        previews(batch_of(make_ctx(enable_previews=True), [item]), {})
        assert item["tileRenderer"]["onFocusCommand"] is existing

    def test_guard_respects_location(self, make_ctx) -> None:
        spec = previews._hook_spec
        ctx = make_ctx(enable_previews=True)
        assert spec.should_run(batch_of(ctx, [], allow_previews=True)) is True
        assert spec.should_run(batch_of(ctx, [], allow_previews=False)) is False
        assert spec.should_run(batch_of(make_ctx(), [], allow_previews=True)) is False


class TestHideWatched:
    def test_threshold_boundary(self, make_ctx) -> None:
        items = [make_tile("at", progress=80), make_tile("below", progress=79), make_tile("none")]
        batch = hide_watched(batch_of(make_ctx(enable_hide_watched_videos=True), items), {})
        assert video_ids(batch.items) == ["below", "none"]

    @pytest.mark.parametrize("threshold", [0, 1, 50, 100])
    def test_items_without_progress_never_hidden(self, make_ctx, threshold: float) -> None:
        items = [make_tile("a"), {"gridVideoRenderer": {"videoId": "b"}}, {"adSlotRenderer": {}}]
        ctx = make_ctx(enable_hide_watched_videos=True, hide_watched_videos_threshold=threshold)
        batch = hide_watched(batch_of(ctx, list(items)), {})
        assert batch.items == items

    def test_is_watched(self) -> None:
        assert is_watched(make_tile("a", progress="90%"), 80) is True
        assert is_watched(make_tile("a", progress=0.5), 80) is False
        assert is_watched(make_tile("a"), 0) is False


class TestWatchedGuard:
    def test_global_toggle(self, make_ctx) -> None:
        assert watched_filter_applies(make_ctx()) is False
        assert watched_filter_applies(make_ctx(enable_hide_watched_videos=True)) is True

    def test_page_allow_list(self, make_ctx) -> None:
        ctx = make_ctx(enable_hide_watched_videos=True, hide_watched_videos_pages=["subscriptions", "home"])
        ctx.page = PageContext.SUBSCRIPTIONS
        assert watched_filter_applies(ctx) is True
        ctx.page = PageContext.SEARCH
        assert watched_filter_applies(ctx) is False

    def test_playlist_needs_own_toggle(self, make_ctx) -> None:
        ctx = make_ctx(enable_hide_watched_videos=True)
        ctx.page = PageContext.PLAYLIST
        assert watched_filter_applies(ctx) is False

        ctx = make_ctx(enable_hide_watched_videos=True, enable_hide_watched_in_playlists=True)
        ctx.page = PageContext.PLAYLIST
        assert watched_filter_applies(ctx) is True

    def test_reads_batch_context(self, make_ctx) -> None:
        ctx = make_ctx(enable_hide_watched_videos=True, hide_watched_videos_pages=["history"])
        ctx.page = PageContext.HISTORY
        assert watched_filter_applies(batch_of(ctx, [])) is True


class TestItemsStage:
    def test_full_stage(self, processor, make_ctx) -> None:
        items = [
            {"adSlotRenderer": {}},
            make_tile("s1", short=True),
            make_tile("w1", progress=100),
            make_tile("v1"),
        ]
        ctx = make_ctx(
            enable_shorts=False,
            enable_hide_watched_videos=True,
            enable_hq_thumbnails=True,
            enable_previews=True,
        )
        processor.process_items(items, ctx, allow_previews=True)

        (item,) = items
        tile = item["tileRenderer"]
        assert tile["contentId"] == "v1"
        assert tile["style"] == DEFAULT_TILE_STYLE
        assert "sddefault" in tile["header"]["tileHeaderRenderer"]["thumbnail"]["thumbnails"][0]["url"]
        assert "onLongPressCommand" in tile
        assert "onFocusCommand" in tile

    def test_pass_overrides(self, processor, make_ctx) -> None:
        items = [make_tile("s1", short=True), make_tile("v1")]
        ctx = make_ctx(enable_shorts=False, pass_overrides="-filter_shorts,-long_press")
        processor.process_items(items, ctx)
        assert video_ids(items) == ["s1", "v1"]
        assert "onLongPressCommand" not in items[1]["tileRenderer"]

    def test_force_run_override(self, processor, make_ctx) -> None:
        items = [make_tile("s1", short=True), make_tile("v1")]
        processor.process_items(items, make_ctx(pass_overrides="+filter_shorts"))
        assert video_ids(items) == ["v1"]
