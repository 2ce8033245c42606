"""Short-form content detection."""

from __future__ import annotations

from typing import Any

from tubeproxy.items import REEL_RENDERER_PATHS, VIDEO_RENDERER_PATHS, find_renderer, overlays_of
from tubeproxy.utils import dig, first_present

SHORTS_LABEL = "Shorts"
SHORTS_OVERLAY_STYLE = "SHORTS"
SHORT_TILE_CONTENT_TYPE = "TILE_CONTENT_TYPE_SHORT"
SHORTS_URL_SEGMENT = "/shorts/"

COMMAND_URL_PATHS: tuple[tuple[str, ...], ...] = (
    ("navigationEndpoint", "commandMetadata", "webCommandMetadata", "url"),
    ("onSelectCommand", "commandMetadata", "webCommandMetadata", "url"),
)


def _has_shorts_badge(renderer: dict[str, Any]) -> bool:
    badges = renderer.get("badges")
    if not isinstance(badges, list):
        return False
    return any(dig(badge, "metadataBadgeRenderer", "label") == SHORTS_LABEL for badge in badges)


def _has_shorts_overlay(renderer: dict[str, Any]) -> bool:
    return any(
        dig(overlay, "thumbnailOverlayTimeStatusRenderer", "style") == SHORTS_OVERLAY_STYLE
        for overlay in overlays_of(renderer)
    )


def _is_short_tile(renderer: dict[str, Any]) -> bool:
    if renderer.get("contentType") == SHORT_TILE_CONTENT_TYPE:
        return True
    return dig(renderer, "onSelectCommand", "reelWatchEndpoint") is not None


def is_short_item(item: Any) -> bool:
    """Whether ``item`` is short-form content.

    Checked in order: a reel renderer on the item or its rich-item wrapper,
    a Shorts badge or overlay on the video renderer, then a ``/shorts/``
    navigation URL. Missing fields count as "not short".
    """
    if not isinstance(item, dict):
        return False

    if find_renderer(item, REEL_RENDERER_PATHS) is not None:
        return True

    video = find_renderer(item, VIDEO_RENDERER_PATHS)
    if video is None:
        return False

    if "tileRenderer" in item and _is_short_tile(video):
        return True

    if _has_shorts_badge(video) or _has_shorts_overlay(video):
        return True

    url = first_present(video, COMMAND_URL_PATHS)
    return isinstance(url, str) and SHORTS_URL_SEGMENT in url
