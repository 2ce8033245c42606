"""Watched video filtering."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tubeproxy.pipeline.guards import watched_filter_applies
from tubeproxy.pipeline.hook import ITEMS_STAGE, hook
from tubeproxy.progress import watch_progress

if TYPE_CHECKING:
    from tubeproxy.pipeline.context import ItemBatch

logger = logging.getLogger(__name__)


def is_watched(item: Any, threshold: float) -> bool:
    """Whether ``item`` was watched at or above ``threshold`` percent.

    Items without progress data are never watched.
    """
    progress = watch_progress(item)
    return progress is not None and progress >= threshold


@hook(stage=ITEMS_STAGE, reads=["items.shorts_free"], guard=watched_filter_applies)
def hide_watched(batch: ItemBatch, params: dict[str, Any]) -> ItemBatch:
    threshold = batch.config.hide_watched_videos_threshold
    kept = [item for item in batch.items if not is_watched(item, threshold)]
    if len(kept) != len(batch.items):
        logger.debug("Removed %d watched items on %s page", len(batch.items) - len(kept), batch.page.value)
    batch.items = kept
    return batch
