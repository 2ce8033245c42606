"""Long-press menus for video tiles."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from tubeproxy.items import (
    is_default_tile,
    is_playable_tile,
    tile_of,
    tile_subtitle,
    tile_thumbnails,
    tile_title,
    tile_video_id,
    watch_endpoint_of,
)
from tubeproxy.pipeline.hook import ITEMS_STAGE, hook
from tubeproxy.renderers import add_to_queue_command, long_press_command, menu_service_item
from tubeproxy.utils import dig

if TYPE_CHECKING:
    from tubeproxy.pipeline.context import ItemBatch

MENU_ITEMS_PATH = ("onLongPressCommand", "showMenuCommand", "menu", "menuRenderer", "items")


@hook(stage=ITEMS_STAGE, reads=["items.ad_free"], writes=["items.long_press"])
def long_press(batch: ItemBatch, params: dict[str, Any]) -> ItemBatch:
    """Add "Add to Queue" to existing long-press menus, synthesize missing ones.

    Existing menus are always extended. Menus are only synthesized when
    long-press is enabled and the tile opens a video.
    """
    synthesize = batch.config.enable_long_press
    for item in batch.items:
        tile = tile_of(item)
        if tile is None or not is_default_tile(tile):
            continue

        menu_items = dig(tile, *MENU_ITEMS_PATH)
        if isinstance(menu_items, list):
            menu_items.append(menu_service_item("Add to Queue", add_to_queue_command(copy.deepcopy(item))))
            continue

        if "onLongPressCommand" in tile or not synthesize or not is_playable_tile(tile):
            continue
        video_id = tile_video_id(tile)
        if not video_id:
            continue
        tile["onLongPressCommand"] = long_press_command(
            video_id=video_id,
            title=tile_title(tile) or "",
            subtitle=tile_subtitle(tile),
            thumbnails=tile_thumbnails(tile) or [],
            watch_endpoint=copy.deepcopy(watch_endpoint_of(tile)),
            item=copy.deepcopy(item),
        )
    return batch
