"""Shared fixtures: payload builders and config cleanup."""

from collections.abc import Callable
from typing import Any

import pytest

from tubeproxy.config import FilterConfig, TubeProxyConfig, clear_config_instance
from tubeproxy.items import DEFAULT_TILE_STYLE
from tubeproxy.pipeline.context import PayloadContext
from tubeproxy.pipeline.executor import PipelineExecutor
from tubeproxy.pipeline.hook import ITEMS_STAGE
from tubeproxy.shelves import ShelfProcessor


@pytest.fixture(autouse=True)
def cleanup():
    """Clean up the global config between tests."""
    clear_config_instance()
    yield
    clear_config_instance()


def make_tile(
    video_id: str,
    title: str = "A video",
    *,
    style: str = DEFAULT_TILE_STYLE,
    progress: Any = None,
    short: bool = False,
    thumbnail_url: str | None = None,
    menu: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build a TV tile item the way browse responses carry them."""
    header: dict[str, Any] = {
        "thumbnail": {
            "thumbnails": [
                {
                    "url": thumbnail_url or f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg?sqp=abc&rs=xyz",
                    "width": 480,
                    "height": 360,
                }
            ]
        }
    }
    if progress is not None:
        header["thumbnailOverlays"] = [{"thumbnailOverlayResumePlaybackRenderer": {"percentDurationWatched": progress}}]

    tile: dict[str, Any] = {
        "style": style,
        "contentId": video_id,
        "header": {"tileHeaderRenderer": header},
        "metadata": {
            "tileMetadataRenderer": {
                "title": {"simpleText": title},
                "lines": [{"lineRenderer": {"items": [{"lineItemRenderer": {"text": {"runs": [{"text": "Channel"}]}}}]}}],
            }
        },
        "onSelectCommand": {"watchEndpoint": {"videoId": video_id}},
    }
    if short:
        tile["contentType"] = "TILE_CONTENT_TYPE_SHORT"
        tile["onSelectCommand"] = {"reelWatchEndpoint": {"videoId": video_id}}
    if menu is not None:
        tile["onLongPressCommand"] = {"showMenuCommand": {"menu": {"menuRenderer": {"items": menu}}}}
    return {"tileRenderer": tile}


def make_shelf(items: list[dict[str, Any]]) -> dict[str, Any]:
    """Horizontal-list shelf holding ``items``."""
    return {"shelfRenderer": {"content": {"horizontalListRenderer": {"items": items}}}}


def make_browse(shelves: list[dict[str, Any]]) -> dict[str, Any]:
    """TV browse payload holding ``shelves``."""
    return {
        "contents": {
            "tvBrowseRenderer": {
                "content": {"tvSurfaceContentRenderer": {"content": {"sectionListRenderer": {"contents": shelves}}}}
            }
        }
    }


def browse_shelves(payload: dict[str, Any]) -> list[dict[str, Any]]:
    return payload["contents"]["tvBrowseRenderer"]["content"]["tvSurfaceContentRenderer"]["content"][
        "sectionListRenderer"
    ]["contents"]


def shelf_items(shelf: dict[str, Any]) -> list[dict[str, Any]]:
    return shelf["shelfRenderer"]["content"]["horizontalListRenderer"]["items"]


def video_ids(items: list[dict[str, Any]]) -> list[str]:
    return [item["tileRenderer"]["contentId"] for item in items]


@pytest.fixture
def tile() -> Callable[..., dict[str, Any]]:
    return make_tile


@pytest.fixture
def processor() -> ShelfProcessor:
    """Shelf processor over the built-in items stage."""
    return ShelfProcessor(PipelineExecutor.for_stage(ITEMS_STAGE))


@pytest.fixture
def make_ctx() -> Callable[..., PayloadContext]:
    """Build a payload context with filter settings given as keyword arguments."""

    def factory(payload: dict[str, Any] | None = None, **filters: Any) -> PayloadContext:
        return PayloadContext(payload=payload if payload is not None else {}, config=FilterConfig(**filters))

    return factory


@pytest.fixture
def config_with() -> Callable[..., TubeProxyConfig]:
    """Build a full config with filter settings given as keyword arguments."""

    def factory(**filters: Any) -> TubeProxyConfig:
        return TubeProxyConfig(filters=FilterConfig(**filters))

    return factory
