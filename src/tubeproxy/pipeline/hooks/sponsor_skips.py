"""Manual SponsorBlock skip buttons on the player overlay."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tubeproxy.pipeline.hook import PAYLOAD_STAGE, hook
from tubeproxy.renderers import skip_command, timely_action
from tubeproxy.utils import dig

if TYPE_CHECKING:
    from tubeproxy.pipeline.context import PayloadContext

logger = logging.getLogger(__name__)


def sponsor_skip_actions_guard(ctx: PayloadContext) -> bool:
    return isinstance(dig(ctx.payload, "playerOverlays", "playerOverlayRenderer"), dict)


@hook(stage=PAYLOAD_STAGE, isolated=True)
def sponsor_skip_actions(ctx: PayloadContext, params: dict[str, Any]) -> PayloadContext:
    """Replace the overlay's timely actions with one skip button per configured segment.

    With no categories configured any existing skip actions are cleared.
    With categories configured but segments not yet known for the video,
    the overlay is left as it is.
    """
    overlay = ctx.payload["playerOverlays"]["playerOverlayRenderer"]
    categories = ctx.config.sponsor_block_manual_skips
    if not categories:
        overlay["timelyActionRenderers"] = []
        return ctx

    segments = ctx.state.segments_for(ctx.current_video_id())
    if segments is None:
        logger.debug("Sponsor segments unknown, leaving player overlay untouched")
        return ctx

    overlay["timelyActionRenderers"] = [
        timely_action(
            f"Skip {segment.category}",
            "SKIP_NEXT",
            skip_command(segment.end),
            start_ms=int(segment.start * 1000),
            duration_ms=int(segment.duration * 1000),
        )
        for segment in segments
        if segment.category in categories
    ]
    logger.debug("Added %d skip actions", len(overlay["timelyActionRenderers"]))
    return ctx
