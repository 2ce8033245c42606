"""Builders for the renderer structures tubeproxy synthesizes.

Everything here returns fresh dicts; nothing is derived from input items
except where a builder explicitly takes item data.
"""

from __future__ import annotations

from typing import Any

from tubeproxy.items import DEFAULT_TILE_STYLE


def text(value: str) -> dict[str, str]:
    return {"simpleText": value}


def custom_action(action: str, parameters: Any = None) -> dict[str, Any]:
    """Client-side action command understood by the TV userscript."""
    command: dict[str, Any] = {"action": action}
    if parameters is not None:
        command["parameters"] = parameters
    return {"customAction": command}


def tile_renderer(title: str, on_select_command: dict[str, Any], thumbnail_url: str | None = None) -> dict[str, Any]:
    """A default-style tile with a title and a select command."""
    thumbnails = [{"url": thumbnail_url, "width": 320, "height": 180}] if thumbnail_url else []
    return {
        "tileRenderer": {
            "style": DEFAULT_TILE_STYLE,
            "header": {"tileHeaderRenderer": {"thumbnail": {"thumbnails": thumbnails}}},
            "metadata": {"tileMetadataRenderer": {"title": text(title), "lines": []}},
            "onSelectCommand": on_select_command,
        }
    }


def shelf_renderer(title: str, items: list[dict[str, Any]], selected_index: int = 0) -> dict[str, Any]:
    """A horizontal-list shelf focused on ``selected_index``."""
    return {
        "shelfRenderer": {
            "headerRenderer": {"shelfHeaderRenderer": {"title": text(title)}},
            "content": {
                "horizontalListRenderer": {
                    "items": items,
                    "selectedIndex": selected_index,
                    "focusIndex": selected_index,
                    "visibleItemCount": 4,
                    "collapsedItemCount": 0,
                }
            },
        }
    }


def menu_service_item(label: str, service_endpoint: dict[str, Any], icon: str | None = None) -> dict[str, Any]:
    renderer: dict[str, Any] = {"text": text(label), "serviceEndpoint": service_endpoint}
    if icon:
        renderer["icon"] = {"iconType": icon}
    return {"menuServiceItemRenderer": renderer}


def button_renderer(is_disabled: bool, label: str, icon: str, command: dict[str, Any]) -> dict[str, Any]:
    return {
        "isDisabled": is_disabled,
        "text": text(label),
        "icon": {"iconType": icon},
        "navigationEndpoint": command,
        "command": command,
    }


def timely_action(label: str, icon: str, command: dict[str, Any], start_ms: int, duration_ms: int) -> dict[str, Any]:
    """A button shown on the player overlay for ``duration_ms`` from ``start_ms``."""
    return {
        "timelyActionRenderer": {
            "actionButtons": [{"buttonRenderer": button_renderer(False, label, icon, command)}],
            "triggerTimeMs": start_ms,
            "timeoutMs": duration_ms,
            "type": "TIMELY_ACTION_TYPE_SKIP",
        }
    }


def skip_command(time_seconds: float) -> dict[str, Any]:
    return {"clickTrackingParams": None, **custom_action("SKIP", {"time": time_seconds})}


def add_to_queue_command(item: dict[str, Any]) -> dict[str, Any]:
    return {"clickTrackingParams": None, "playlistEditEndpoint": custom_action("ADD_TO_QUEUE", item)}


def long_press_command(
    *,
    video_id: str,
    title: str,
    subtitle: str | None,
    thumbnails: list[dict[str, Any]],
    watch_endpoint: dict[str, Any],
    item: dict[str, Any],
) -> dict[str, Any]:
    """A long-press menu for a video tile.

    ``item`` is embedded in the queue action and must be a detached copy,
    not the tile the command is attached to.
    """
    menu_items = [
        menu_service_item("Play", {"clickTrackingParams": None, "watchEndpoint": watch_endpoint}, "PLAY_ARROW"),
        menu_service_item("Add to Queue", add_to_queue_command(item), "ADD_TO_QUEUE_TAIL"),
        menu_service_item(
            "Save to Watch Later",
            {
                "clickTrackingParams": None,
                "playlistEditEndpoint": {
                    "playlistId": "WL",
                    "actions": [{"addedVideoId": video_id, "action": "ACTION_ADD_VIDEO"}],
                },
            },
            "WATCH_LATER",
        ),
    ]
    header: dict[str, Any] = {"title": text(title), "videoThumbnail": {"thumbnails": thumbnails}}
    if subtitle:
        header["subtitle"] = text(subtitle)
    return {
        "clickTrackingParams": None,
        "showMenuCommand": {
            "contentId": video_id,
            "menu": {"menuRenderer": {"items": menu_items}},
            "menuHeaderRenderer": header,
            "thumbnail": {"thumbnails": thumbnails},
            "title": text(title),
            "subtitle": text(subtitle or ""),
        },
    }


def inline_preview_command(playback_endpoint: dict[str, Any]) -> dict[str, Any]:
    """Focus command that starts a muted, resumable inline preview."""
    return {
        "startInlinePlaybackCommand": {
            "blockAdoption": True,
            "caption": False,
            "delayMs": 3000,
            "durationMs": 40000,
            "muted": True,
            "restartPlaybackBeforeSeconds": 10,
            "resumeVideo": True,
            "playbackEndpoint": playback_endpoint,
        }
    }
