"""Context objects for pipeline execution.

``PayloadContext`` carries one decoded payload through the payload stage;
``ItemBatch`` carries one shelf's item list through the items stage.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from tubeproxy.config import FilterConfig
from tubeproxy.navigation import NavigationState, PageContext
from tubeproxy.state import PlaybackState
from tubeproxy.utils import first_present

if TYPE_CHECKING:
    from tubeproxy.dearrow import BrandingService

_generations = itertools.count(1)


class PayloadTicket:
    """Liveness token for one transformed payload.

    Background work that finishes after the pipeline returns holds the
    ticket weakly and checks ``is_current`` before touching the payload.
    The host closes the ticket once it has discarded or serialized the tree.
    """

    __slots__ = ("generation", "closed", "__weakref__")

    def __init__(self) -> None:
        self.generation = next(_generations)
        self.closed = False

    def close(self) -> None:
        self.closed = True

    def is_current(self, generation: int) -> bool:
        return not self.closed and generation == self.generation

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"PayloadTicket(generation={self.generation}, {state})"


class ProcessedGuard:
    """Set of containers already walked for one payload, keyed by identity.

    Holds a reference to every claimed container so ids cannot be reused
    while the payload is being processed.
    """

    def __init__(self) -> None:
        self._claimed: dict[int, Any] = {}

    def claim(self, node: Any) -> bool:
        """Mark ``node`` as processed; False if it already was."""
        key = id(node)
        if key in self._claimed:
            return False
        self._claimed[key] = node
        return True

    def __contains__(self, node: Any) -> bool:
        return id(node) in self._claimed

    def __len__(self) -> int:
        return len(self._claimed)


@dataclass
class PayloadContext:
    """Typed context for the payload stage.

    Attributes:
        payload: Root decoded object, mutated in place
        config: Filter settings snapshot taken for this payload
        navigation: Navigation state the payload was requested from
        page: Page context classified from ``navigation``
        state: Externally-owned playback and queue state (read only)
        ticket: Liveness token for background updates
        guard: Containers already processed in this payload
        branding: DeArrow service, None when unavailable
    """

    payload: dict[str, Any]
    config: FilterConfig = field(default_factory=FilterConfig)
    navigation: NavigationState = field(default_factory=NavigationState)
    page: PageContext = PageContext.OTHER
    state: PlaybackState = field(default_factory=PlaybackState)
    ticket: PayloadTicket = field(default_factory=PayloadTicket)
    guard: ProcessedGuard = field(default_factory=ProcessedGuard)
    branding: BrandingService | None = None

    def current_video_id(self) -> str | None:
        """Video id the payload describes, when it says so."""
        video_id = first_present(
            self.payload,
            (("currentVideoEndpoint", "watchEndpoint", "videoId"), ("videoDetails", "videoId")),
        )
        return video_id if isinstance(video_id, str) else None


@dataclass
class ItemBatch:
    """Typed context for the items stage.

    Attributes:
        items: Item list of one shelf; filters rebind it, other passes mutate items
        payload: Context of the payload the shelf belongs to
        allow_previews: Whether the location permits inline previews
    """

    items: list[Any]
    payload: PayloadContext
    allow_previews: bool = False

    @property
    def config(self) -> FilterConfig:
        return self.payload.config

    @property
    def page(self) -> PageContext:
        return self.payload.page
