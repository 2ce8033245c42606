"""Item renderer shapes and tile accessors.

An item is one entry of a shelf's item list, a dict holding exactly one
renderer key (``tileRenderer``, ``gridVideoRenderer``, ``adSlotRenderer``...).
The tables below enumerate the renderer locations known to carry a video;
they are data, extend them when the service ships a new shape.
"""

from __future__ import annotations

from typing import Any

from tubeproxy.utils import dig, first_present, text_of

Path = tuple[str, ...]

DEFAULT_TILE_STYLE = "TILE_STYLE_YTLR_DEFAULT"

# Renderer locations checked for watch progress, in order.
PROGRESS_RENDERER_PATHS: tuple[Path, ...] = (
    ("tileRenderer",),
    ("playlistVideoRenderer",),
    ("compactVideoRenderer",),
    ("gridVideoRenderer",),
    ("videoRenderer",),
    ("richItemRenderer", "content", "videoRenderer"),
    ("richItemRenderer", "content", "reelItemRenderer"),
    ("videoWithContextRenderer",),
    ("commandVideoRenderer",),
)

# Renderer locations inspected for short-form badges, overlays and URLs.
VIDEO_RENDERER_PATHS: tuple[Path, ...] = (
    ("tileRenderer",),
    ("videoRenderer",),
    ("compactVideoRenderer",),
    ("gridVideoRenderer",),
    ("richItemRenderer", "content", "videoRenderer"),
)

# Renderer locations whose presence alone marks short-form content.
REEL_RENDERER_PATHS: tuple[Path, ...] = (
    ("reelItemRenderer",),
    ("shortsLockupViewModel",),
    ("richItemRenderer", "content", "reelItemRenderer"),
    ("richItemRenderer", "content", "shortsLockupViewModel"),
)

# Where a renderer keeps its thumbnail overlay list.
OVERLAY_PATHS: tuple[Path, ...] = (
    ("thumbnailOverlays",),
    ("header", "tileHeaderRenderer", "thumbnailOverlays"),
    ("thumbnail", "thumbnailOverlays"),
)


def find_renderer(item: Any, paths: tuple[Path, ...]) -> dict[str, Any] | None:
    """Return the first renderer dict found in ``item`` along ``paths``."""
    for path in paths:
        renderer = dig(item, *path)
        if isinstance(renderer, dict):
            return renderer
    return None


def overlays_of(renderer: dict[str, Any]) -> list[Any]:
    """Thumbnail overlay list of a renderer, or an empty list."""
    overlays = first_present(renderer, OVERLAY_PATHS)
    return overlays if isinstance(overlays, list) else []


def is_ad_slot(item: Any) -> bool:
    return isinstance(item, dict) and "adSlotRenderer" in item


def tile_of(item: Any) -> dict[str, Any] | None:
    tile = dig(item, "tileRenderer")
    return tile if isinstance(tile, dict) else None


def is_default_tile(tile: dict[str, Any]) -> bool:
    return tile.get("style") == DEFAULT_TILE_STYLE


def tile_video_id(tile: dict[str, Any]) -> str | None:
    """Video id of a tile, from its select command or its content id."""
    video_id = dig(tile, "onSelectCommand", "watchEndpoint", "videoId") or tile.get("contentId")
    return video_id if isinstance(video_id, str) and video_id else None


def tile_title(tile: dict[str, Any]) -> str | None:
    return text_of(dig(tile, "metadata", "tileMetadataRenderer", "title"))


def set_tile_title(tile: dict[str, Any], title: str) -> bool:
    """Replace a tile's title text in place; False if the tile has no title node."""
    node = dig(tile, "metadata", "tileMetadataRenderer", "title")
    if not isinstance(node, dict):
        return False
    node.pop("runs", None)
    node["simpleText"] = title
    return True


def tile_subtitle(tile: dict[str, Any]) -> str | None:
    """First metadata line of a tile (usually the channel name)."""
    return text_of(
        dig(tile, "metadata", "tileMetadataRenderer", "lines", 0, "lineRenderer", "items", 0, "lineItemRenderer", "text")
    )


def tile_thumbnails(tile: dict[str, Any]) -> list[dict[str, Any]] | None:
    thumbnails = dig(tile, "header", "tileHeaderRenderer", "thumbnail", "thumbnails")
    return thumbnails if isinstance(thumbnails, list) else None


def set_tile_thumbnails(tile: dict[str, Any], thumbnails: list[dict[str, Any]]) -> bool:
    """Replace a tile's thumbnail list in place; False if the tile has no thumbnail node."""
    node = dig(tile, "header", "tileHeaderRenderer", "thumbnail")
    if not isinstance(node, dict):
        return False
    node["thumbnails"] = thumbnails
    return True


def watch_endpoint_of(tile: dict[str, Any]) -> dict[str, Any] | None:
    endpoint = dig(tile, "onSelectCommand", "watchEndpoint")
    return endpoint if isinstance(endpoint, dict) else None


def is_playable_tile(tile: dict[str, Any]) -> bool:
    """Default-style tile that opens a video when selected."""
    return is_default_tile(tile) and watch_endpoint_of(tile) is not None
