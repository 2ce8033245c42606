"""Short-form item filtering."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tubeproxy.pipeline.guards import shorts_hidden
from tubeproxy.pipeline.hook import ITEMS_STAGE, hook
from tubeproxy.shorts import is_short_item

if TYPE_CHECKING:
    from tubeproxy.pipeline.context import ItemBatch

logger = logging.getLogger(__name__)


@hook(
    stage=ITEMS_STAGE,
    reads=["items.title", "items.thumbnail", "items.long_press", "items.focus"],
    writes=["items.shorts_free"],
    guard=shorts_hidden,
)
def filter_shorts(batch: ItemBatch, params: dict[str, Any]) -> ItemBatch:
    kept = [item for item in batch.items if not is_short_item(item)]
    if len(kept) != len(batch.items):
        logger.debug("Removed %d short-form items", len(batch.items) - len(kept))
    batch.items = kept
    return batch
