"""Shelf processing over every container located in a payload."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tubeproxy.locator import ContainerKind, locate
from tubeproxy.pipeline.hook import PAYLOAD_STAGE, hook

if TYPE_CHECKING:
    from tubeproxy.pipeline.context import PayloadContext
    from tubeproxy.shelves import ShelfProcessor

logger = logging.getLogger(__name__)


@hook(stage=PAYLOAD_STAGE, reads=["payload.ads_stripped"], writes=["payload.shelves"])
def process_shelves(ctx: PayloadContext, params: dict[str, Any]) -> PayloadContext:
    """Run the items stage over every shelf and item container of the payload.

    Args:
        ctx: Payload context
        params: Must contain 'shelf_processor' (ShelfProcessor instance)

    Returns:
        Context with shelves filtered and annotated in place
    """
    processor: ShelfProcessor | None = params.get("shelf_processor")
    if processor is None:
        logger.warning("Shelf processor not found in process_shelves params")
        return ctx

    for located in locate(ctx.payload):
        location = located.location
        if location.kind == ContainerKind.SHELVES:
            processed = processor.process_shelves(located.container, ctx, location.allow_previews)
        else:
            processed = processor.process_items(located.container, ctx, location.allow_previews)
        if processed:
            logger.debug("Processed %s on %s page", location.name, ctx.page.value)

    return ctx
