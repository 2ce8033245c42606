"""SponsorBlock "skip to highlight" transport button."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tubeproxy.pipeline.hook import PAYLOAD_STAGE, hook
from tubeproxy.renderers import button_renderer, skip_command
from tubeproxy.sponsorblock import HIGHLIGHT_CATEGORY
from tubeproxy.utils import dig

if TYPE_CHECKING:
    from tubeproxy.pipeline.context import PayloadContext

logger = logging.getLogger(__name__)

HIGHLIGHT_BUTTON_TYPE = "TRANSPORT_CONTROLS_BUTTON_TYPE_SPONSORBLOCK_HIGHLIGHT"


def sponsor_highlight_guard(ctx: PayloadContext) -> bool:
    return ctx.config.enable_sponsor_block_highlight and isinstance(
        dig(ctx.payload, "transportControls", "transportControlsRenderer", "promotedActions"), list
    )


@hook(stage=PAYLOAD_STAGE, isolated=True)
def sponsor_highlight(ctx: PayloadContext, params: dict[str, Any]) -> PayloadContext:
    """Append a promoted "Skip to highlight" button when the video has a highlight."""
    segments = ctx.state.segments_for(ctx.current_video_id()) or []
    highlight = next((s for s in segments if s.category == HIGHLIGHT_CATEGORY), None)
    if highlight is None:
        return ctx

    actions = ctx.payload["transportControls"]["transportControlsRenderer"]["promotedActions"]
    actions.append(
        {
            "type": HIGHLIGHT_BUTTON_TYPE,
            "button": {
                "buttonRenderer": button_renderer(False, "Skip to highlight", "SKIP_NEXT", skip_command(highlight.start))
            },
        }
    )
    logger.debug("Added highlight button at %.1fs", highlight.start)
    return ctx
