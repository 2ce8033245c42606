"""Inline previews when a tile is focused."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from tubeproxy.items import tile_of, watch_endpoint_of
from tubeproxy.pipeline.guards import previews_enabled
from tubeproxy.pipeline.hook import ITEMS_STAGE, hook
from tubeproxy.renderers import inline_preview_command
from tubeproxy.utils import dig

if TYPE_CHECKING:
    from tubeproxy.pipeline.context import ItemBatch


def _has_focus_playback(tile: dict[str, Any]) -> bool:
    focus = tile.get("onFocusCommand")
    return dig(focus, "startInlinePlaybackCommand") is not None or dig(focus, "playbackEndpoint") is not None


@hook(stage=ITEMS_STAGE, reads=["items.ad_free"], writes=["items.focus"], guard=previews_enabled)
def previews(batch: ItemBatch, params: dict[str, Any]) -> ItemBatch:
    for item in batch.items:
        tile = tile_of(item)
        if tile is None or watch_endpoint_of(tile) is None or _has_focus_playback(tile):
            continue
        tile["onFocusCommand"] = inline_preview_command(copy.deepcopy(tile["onSelectCommand"]))
    return batch
