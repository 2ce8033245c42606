"""Preferred codec filtering of adaptive streaming formats."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tubeproxy.pipeline.hook import PAYLOAD_STAGE, hook
from tubeproxy.utils import dig

if TYPE_CHECKING:
    from tubeproxy.pipeline.context import PayloadContext

logger = logging.getLogger(__name__)


def filter_codecs_guard(ctx: PayloadContext) -> bool:
    """Guard: Run if a codec is preferred and the payload has adaptive formats."""
    codec = ctx.config.video_preferred_codec
    return bool(codec) and codec != "any" and isinstance(dig(ctx.payload, "streamingData", "adaptiveFormats"), list)


@hook(stage=PAYLOAD_STAGE, isolated=True)
def filter_codecs(ctx: PayloadContext, params: dict[str, Any]) -> PayloadContext:
    """Keep only video formats of the preferred codec.

    Audio formats are always kept. Nothing changes when no video format
    uses the preferred codec, so playback never loses every video stream.
    """
    codec = ctx.config.video_preferred_codec
    streaming = ctx.payload["streamingData"]
    formats = streaming["adaptiveFormats"]

    def mime(fmt: Any) -> str:
        value = fmt.get("mimeType") if isinstance(fmt, dict) else None
        return value if isinstance(value, str) else ""

    if not any(codec in mime(fmt) for fmt in formats):
        logger.debug("No %s formats offered, keeping all %d formats", codec, len(formats))
        return ctx

    streaming["adaptiveFormats"] = [fmt for fmt in formats if mime(fmt).startswith("audio/") or codec in mime(fmt)]
    logger.debug("Kept %d of %d formats for codec %s", len(streaming["adaptiveFormats"]), len(formats), codec)
    return ctx
