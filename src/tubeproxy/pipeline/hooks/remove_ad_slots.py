"""Ad slot removal from item lists."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tubeproxy.items import is_ad_slot
from tubeproxy.pipeline.hook import ITEMS_STAGE, hook

if TYPE_CHECKING:
    from tubeproxy.pipeline.context import ItemBatch

logger = logging.getLogger(__name__)


@hook(stage=ITEMS_STAGE, writes=["items.ad_free"])
def remove_ad_slots(batch: ItemBatch, params: dict[str, Any]) -> ItemBatch:
    """Drop every ad slot item. Runs regardless of the ad-block setting."""
    kept = [item for item in batch.items if not is_ad_slot(item)]
    if len(kept) != len(batch.items):
        logger.debug("Removed %d ad slots", len(batch.items) - len(kept))
    batch.items = kept
    return batch
