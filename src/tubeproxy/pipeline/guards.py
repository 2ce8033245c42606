"""Shared guard functions for pipeline passes.

Guards read the per-payload config snapshot and navigation context, never
the live configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tubeproxy.navigation import PageContext

if TYPE_CHECKING:
    from tubeproxy.pipeline.context import ItemBatch, PayloadContext


def ad_block_enabled(ctx: PayloadContext | ItemBatch) -> bool:
    return ctx.config.enable_ad_block


def shorts_hidden(ctx: PayloadContext | ItemBatch) -> bool:
    """Check if short-form content must be removed.

    Args:
        ctx: Pipeline context

    Returns:
        True if short-form display is turned off
    """
    return not ctx.config.enable_shorts


def watched_filter_applies(ctx: PayloadContext | ItemBatch) -> bool:
    """Check if watched videos are hidden on the current page.

    Requires the global toggle; a non-empty page list restricts it to the
    listed pages; playlists additionally need their own toggle.

    Args:
        ctx: Pipeline context

    Returns:
        True if watched-video filtering should run
    """
    config = ctx.config
    if not config.enable_hide_watched_videos:
        return False

    pages = config.hide_watched_videos_pages
    if pages and ctx.page.value not in pages:
        return False

    if ctx.page == PageContext.PLAYLIST and not config.enable_hide_watched_in_playlists:
        return False

    return True


def previews_enabled(batch: ItemBatch) -> bool:
    """Check if inline previews may be added to this shelf."""
    return batch.config.enable_previews and batch.allow_previews
