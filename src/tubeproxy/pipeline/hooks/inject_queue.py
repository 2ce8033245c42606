"""Queued-videos shelf injection on the watch-next pivot."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tubeproxy.locator import WATCH_NEXT_PIVOT_PATH
from tubeproxy.pipeline.hook import PAYLOAD_STAGE, hook
from tubeproxy.renderers import custom_action, shelf_renderer, tile_renderer
from tubeproxy.utils import dig

if TYPE_CHECKING:
    from tubeproxy.pipeline.context import PayloadContext

logger = logging.getLogger(__name__)

QUEUE_SHELF_TITLE = "Queued Videos"
CLEAR_QUEUE_TITLE = "Clear Queue"


def inject_queue_guard(ctx: PayloadContext) -> bool:
    """Guard: Run on watch-next responses while videos are queued."""
    return bool(ctx.state.queue.videos) and isinstance(dig(ctx.payload, *WATCH_NEXT_PIVOT_PATH), list)


@hook(stage=PAYLOAD_STAGE, reads=["payload.shelves"], isolated=True)
def inject_queue(ctx: PayloadContext, params: dict[str, Any]) -> PayloadContext:
    """Prepend a "Queued Videos" shelf to the watch-next pivot.

    The shelf opens with a "Clear Queue" tile and is focused on the most
    recently queued video. It is built after the pivot shelves were
    processed, so the queued tiles are shown as they were queued.
    """
    queue = ctx.state.queue
    items: list[dict[str, Any]] = [tile_renderer(CLEAR_QUEUE_TITLE, custom_action("CLEAR_QUEUE"))]
    items.extend(queue.videos)

    index = queue.index_of(queue.last_video_id)
    selected = index + 1 if index is not None else 0

    pivot = dig(ctx.payload, *WATCH_NEXT_PIVOT_PATH)
    pivot.insert(0, shelf_renderer(QUEUE_SHELF_TITLE, items, selected))
    logger.debug("Injected queue shelf with %d videos", len(queue.videos))
    return ctx
