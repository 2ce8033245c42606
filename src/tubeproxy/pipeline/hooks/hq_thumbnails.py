"""High resolution thumbnails for default-style tiles."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from tubeproxy.items import is_default_tile, set_tile_thumbnails, tile_of, tile_thumbnails, tile_video_id
from tubeproxy.pipeline.hook import ITEMS_STAGE, hook

if TYPE_CHECKING:
    from tubeproxy.pipeline.context import ItemBatch

HQ_THUMBNAIL_URL = "https://i.ytimg.com/vi/{video_id}/sddefault.jpg"
HQ_THUMBNAIL_WIDTH = 640
HQ_THUMBNAIL_HEIGHT = 480


def hq_thumbnail_url(video_id: str, original_url: Any = None) -> str:
    """sddefault URL for ``video_id`` carrying over the query string of ``original_url``."""
    url = HQ_THUMBNAIL_URL.format(video_id=video_id)
    if isinstance(original_url, str) and "?" in original_url:
        query = original_url.split("?", 1)[1]
        if query:
            url = f"{url}?{query}"
    return url


def hq_thumbnails_guard(batch: ItemBatch) -> bool:
    return batch.config.enable_hq_thumbnails


@hook(stage=ITEMS_STAGE, reads=["items.ad_free"], writes=["items.thumbnail"])
def hq_thumbnails(batch: ItemBatch, params: dict[str, Any]) -> ItemBatch:
    for item in batch.items:
        tile = tile_of(item)
        if tile is None or not is_default_tile(tile):
            continue
        video_id = tile_video_id(tile)
        thumbnails = tile_thumbnails(tile)
        if not video_id or not thumbnails:
            continue
        original = thumbnails[0].get("url") if isinstance(thumbnails[0], dict) else None
        set_tile_thumbnails(
            tile,
            [{"url": hq_thumbnail_url(video_id, original), "width": HQ_THUMBNAIL_WIDTH, "height": HQ_THUMBNAIL_HEIGHT}],
        )
    return batch
