"""Mitmproxy addon script for use with mitmdump -s flag.

This script is loaded by mitmdump and wires the decode pipeline, the
DeArrow branding service and the SponsorBlock client into a
``TubeProxyAddon``. Configuration is read from tubeproxy.yaml in
``TUBEPROXY_CONFIG_DIR`` (set by ``tubeproxy start``).

Usage:
    mitmdump --listen-port 8080 -s script.py
"""

from __future__ import annotations

import logging
import os
from typing import Any

from tubeproxy.config import get_config
from tubeproxy.dearrow import BrandingService, DeArrowClient
from tubeproxy.interceptor import DecodePipeline
from tubeproxy.mitm.addon import TubeProxyAddon
from tubeproxy.sponsorblock import SponsorBlockClient
from tubeproxy.state import PlaybackState

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


class TubeProxyScript:
    """Mitmproxy addon script that wraps TubeProxyAddon."""

    def __init__(self) -> None:
        self.addon: TubeProxyAddon | None = None
        self.branding: BrandingService | None = None
        self.sponsorblock: SponsorBlockClient | None = None

    def load(self, loader: Any) -> None:  # noqa: ANN401
        """Called when addon is loaded by mitmproxy."""
        logger.info("Loading tubeproxy mitmproxy addon...")

        config = get_config()
        if config.debug or os.environ.get("TUBEPROXY_DEBUG", "false").lower() in ("true", "1", "yes"):
            logging.getLogger("tubeproxy").setLevel(logging.DEBUG)

        services = config.services
        self.branding = BrandingService(
            DeArrowClient(services.dearrow_api, timeout=services.request_timeout),
            services.dearrow_thumbnail_api,
            cache_size=services.branding_cache_size,
        )
        self.sponsorblock = SponsorBlockClient(services.sponsorblock_api, timeout=services.request_timeout)

        state = PlaybackState()
        pipeline = DecodePipeline(state=state, branding=self.branding)
        addon = TubeProxyAddon(
            pipeline,
            config.mitm,
            state=state,
            sponsorblock=self.sponsorblock,
            segment_timeout=services.segment_prefetch_timeout,
        )
        # Payloads decoded outside a flow use the last navigation seen
        pipeline.location = lambda: addon.last_navigation
        self.addon = addon

        logger.info(
            "Filtering %s under %s (config: %s)",
            ", ".join(config.mitm.api_hosts),
            config.mitm.api_path_prefix,
            config.config_path,
        )

    async def done(self) -> None:
        """Called when mitmproxy shuts down."""
        logger.info("Shutting down tubeproxy addon...")
        if self.branding:
            await self.branding.aclose()
        if self.sponsorblock:
            await self.sponsorblock.aclose()
        logger.info("tubeproxy addon shutdown complete")

    def request(self, flow: Any) -> None:  # noqa: ANN401
        """Handle HTTP request."""
        if self.addon:
            self.addon.request(flow)

    async def response(self, flow: Any) -> None:  # noqa: ANN401
        """Handle HTTP response."""
        if self.addon:
            await self.addon.response(flow)


addons = [TubeProxyScript()]
