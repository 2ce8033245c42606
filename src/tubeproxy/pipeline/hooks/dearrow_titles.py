"""DeArrow title and thumbnail substitution for tiles."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tubeproxy.items import tile_of, tile_video_id
from tubeproxy.pipeline.hook import ITEMS_STAGE, hook

if TYPE_CHECKING:
    from tubeproxy.pipeline.context import ItemBatch

logger = logging.getLogger(__name__)


def dearrow_titles_guard(batch: ItemBatch) -> bool:
    """Guard: Run if DeArrow is enabled and a branding service is attached."""
    return batch.config.enable_dearrow and batch.payload.branding is not None


@hook(stage=ITEMS_STAGE, reads=["items.ad_free", "items.thumbnail"], writes=["items.title"])
def dearrow_titles(batch: ItemBatch, params: dict[str, Any]) -> ItemBatch:
    """Apply community branding to every tile.

    Cached branding is applied before this pass returns. Misses are looked
    up in the background and land on the tile later, only while the payload
    ticket is still open.
    """
    branding = batch.payload.branding
    if branding is None:
        return batch
    with_thumbnails = batch.config.enable_dearrow_thumbnails

    applied = scheduled = 0
    for item in batch.items:
        tile = tile_of(item)
        if tile is None:
            continue
        video_id = tile_video_id(tile)
        if not video_id:
            continue
        if branding.apply(tile, video_id, batch.payload.ticket, with_thumbnails):
            applied += 1
        else:
            scheduled += 1

    if applied or scheduled:
        logger.debug("DeArrow: %d applied from cache, %d pending", applied, scheduled)
    return batch
