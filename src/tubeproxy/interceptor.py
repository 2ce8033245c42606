"""Decode pipeline: raw decode, transform, return.

``DecodePipeline`` has the signature of ``json.loads`` and is what a host
calls instead of its default decoder. Every call builds its own
``PayloadContext``, so the pipeline is reentrant: the decoder may be
invoked again from inside a pass or from another caller while a payload
is being transformed.
"""

from __future__ import annotations

import json
import logging
from collections import deque
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from tubeproxy.config import TubeProxyConfig, get_config
from tubeproxy.navigation import NavigationState, PageTracker, classify_page
from tubeproxy.pipeline.context import PayloadContext, PayloadTicket
from tubeproxy.pipeline.executor import PipelineExecutor
from tubeproxy.pipeline.hook import ITEMS_STAGE, PAYLOAD_STAGE
from tubeproxy.pipeline.overrides import parse_overrides
from tubeproxy.shelves import ShelfProcessor
from tubeproxy.state import PlaybackState

if TYPE_CHECKING:
    from tubeproxy.dearrow import BrandingService

logger = logging.getLogger(__name__)


class DecodePipeline:
    """Drop-in replacement for a JSON decoder that filters what it decodes.

    Args:
        config_provider: Returns the current configuration; read once per payload
        state: Externally-owned playback and queue state
        location: Returns the ambient navigation state when a call does not pass one
        branding: DeArrow service, None to disable substitution
        decoder: Original decoder
        live_tickets: Number of recent payloads that may still receive
            background updates; older tickets are closed
    """

    def __init__(
        self,
        config_provider: Callable[[], TubeProxyConfig] = get_config,
        state: PlaybackState | None = None,
        location: Callable[[], NavigationState] | None = None,
        branding: BrandingService | None = None,
        decoder: Callable[..., Any] = json.loads,
        live_tickets: int = 32,
    ) -> None:
        self.config_provider = config_provider
        self.state = state if state is not None else PlaybackState()
        self.location = location or NavigationState
        self.branding = branding
        self.decoder = decoder
        self.pages = PageTracker()

        self.items_executor = PipelineExecutor.for_stage(ITEMS_STAGE)
        self.shelf_processor = ShelfProcessor(self.items_executor)
        self.payload_executor = PipelineExecutor.for_stage(
            PAYLOAD_STAGE, extra_params={"shelf_processor": self.shelf_processor}
        )

        self._live_tickets = live_tickets
        self._tickets: deque[PayloadTicket] = deque()

    def transform(self, payload: dict[str, Any], navigation: NavigationState | None = None) -> PayloadTicket:
        """Run both stages over ``payload`` in place.

        Exceptions from non-isolated passes propagate to the caller.

        Returns:
            The payload's ticket; close it once the payload is discarded
        """
        config = self.config_provider().filters.snapshot()
        navigation = navigation if navigation is not None else self.location()
        page = classify_page(navigation)
        self.pages.observe(page, navigation)

        ctx = PayloadContext(
            payload=payload,
            config=config,
            navigation=navigation,
            page=page,
            state=self.state,
            branding=self.branding,
        )
        self._track(ctx.ticket)
        try:
            self.payload_executor.execute(ctx, parse_overrides(config.pass_overrides))
        except Exception:
            ctx.ticket.close()
            raise
        return ctx.ticket

    def _track(self, ticket: PayloadTicket) -> None:
        self._tickets.append(ticket)
        while len(self._tickets) > self._live_tickets:
            self._tickets.popleft().close()

    def decode_with_ticket(
        self, s: str | bytes, *, navigation: NavigationState | None = None, **kwargs: Any
    ) -> tuple[Any, PayloadTicket | None]:
        """Decode ``s`` and transform the result.

        Malformed input raises exactly as the original decoder does. If the
        transform fails, the error is logged and ``s`` is decoded again, so
        the caller receives an unmodified result.

        Returns:
            Tuple of (decoded value, ticket or None when nothing was transformed)
        """
        result = self.decoder(s, **kwargs)
        if not isinstance(result, dict):
            return result, None

        try:
            ticket = self.transform(result, navigation)
        except Exception as e:
            logger.error("Transform failed, returning unmodified payload: %s: %s", type(e).__name__, e, exc_info=True)
            return self.decoder(s, **kwargs), None
        return result, ticket

    def decode(self, s: str | bytes, *, navigation: NavigationState | None = None, **kwargs: Any) -> Any:
        result, _ = self.decode_with_ticket(s, navigation=navigation, **kwargs)
        return result

    def __call__(self, s: str | bytes, **kwargs: Any) -> Any:
        return self.decode(s, **kwargs)
