"""DeArrow title and thumbnail substitution.

Lookups are fire-and-forget. ``BrandingService.apply`` substitutes cached
branding immediately; on a cache miss it schedules a fetch on the running
event loop and returns. When the fetch resolves, the result is cached for
later payloads and applied to the waiting tile only if the payload it came
from is still live (weak reference plus generation check on its ticket).
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections import OrderedDict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from tubeproxy.items import set_tile_thumbnails, set_tile_title

if TYPE_CHECKING:
    from tubeproxy.pipeline.context import PayloadTicket

logger = logging.getLogger(__name__)

THUMBNAIL_WIDTH = 1280
THUMBNAIL_HEIGHT = 640


@dataclass(frozen=True)
class Branding:
    """Highest-voted community branding for one video."""

    title: str | None = None
    thumbnail_time: float | None = None


def _most_voted(candidates: Any) -> dict[str, Any] | None:
    if not isinstance(candidates, list):
        return None
    valid = [c for c in candidates if isinstance(c, dict)]
    if not valid:
        return None
    return max(valid, key=lambda c: c.get("votes") or 0)


def parse_branding(data: Any) -> Branding:
    """Pick the highest-voted title and thumbnail from a branding response."""
    if not isinstance(data, dict):
        return Branding()
    title = _most_voted(data.get("titles"))
    thumbnail = _most_voted(data.get("thumbnails"))
    title_text = title.get("title") if title else None
    timestamp = thumbnail.get("timestamp") if thumbnail else None
    return Branding(
        title=title_text if isinstance(title_text, str) and title_text else None,
        thumbnail_time=float(timestamp) if isinstance(timestamp, int | float) and not isinstance(timestamp, bool) else None,
    )


class DeArrowClient:
    """HTTP client for the DeArrow branding API."""

    def __init__(self, base_url: str, timeout: float = 5.0, client: httpx.AsyncClient | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
        return self._client

    async def fetch_branding(self, video_id: str) -> Branding | None:
        """Fetch branding for ``video_id``; None on any network or format error."""
        try:
            response = await self._get_client().get(f"{self.base_url}/api/branding", params={"videoID": video_id})
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.debug("DeArrow lookup failed for %s: %s", video_id, e)
            return None
        return parse_branding(data)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


@dataclass
class _PendingUpdate:
    tile: dict[str, Any]
    ticket: weakref.ref[PayloadTicket]
    generation: int
    with_thumbnails: bool


class BrandingService:
    """Caches branding and applies it to tiles, fetching misses in the background."""

    def __init__(self, client: DeArrowClient, thumbnail_base_url: str, cache_size: int = 2048) -> None:
        self.client = client
        self.thumbnail_base_url = thumbnail_base_url.rstrip("/")
        self.cache_size = cache_size
        self._cache: OrderedDict[str, Branding] = OrderedDict()
        self._pending: dict[str, list[_PendingUpdate]] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    def thumbnail_url(self, video_id: str, time: float) -> str:
        return f"{self.thumbnail_base_url}/api/v1/getThumbnail?videoID={video_id}&time={time}"

    def cached(self, video_id: str) -> Branding | None:
        branding = self._cache.get(video_id)
        if branding is not None:
            self._cache.move_to_end(video_id)
        return branding

    def store(self, video_id: str, branding: Branding) -> None:
        self._cache[video_id] = branding
        self._cache.move_to_end(video_id)
        while len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)

    def apply(self, tile: dict[str, Any], video_id: str, ticket: PayloadTicket, with_thumbnails: bool) -> bool:
        """Apply branding to ``tile`` now if cached, otherwise schedule a lookup.

        Returns:
            True if the tile was updated synchronously
        """
        branding = self.cached(video_id)
        if branding is not None:
            self._substitute(tile, video_id, branding, with_thumbnails)
            return True

        update = _PendingUpdate(tile, weakref.ref(ticket), ticket.generation, with_thumbnails)
        if video_id in self._pending:
            self._pending[video_id].append(update)
            return False

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, skipping DeArrow lookup for %s", video_id)
            return False

        self._pending[video_id] = [update]
        task = loop.create_task(self._resolve(video_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return False

    async def _resolve(self, video_id: str) -> None:
        try:
            branding = await self.client.fetch_branding(video_id)
        except Exception as e:
            logger.error("DeArrow lookup for %s failed: %s: %s", video_id, type(e).__name__, e)
            branding = None
        finally:
            updates = self._pending.pop(video_id, [])

        if branding is None:
            return

        self.store(video_id, branding)
        for update in updates:
            ticket = update.ticket()
            if ticket is None or not ticket.is_current(update.generation):
                logger.debug("Dropping late DeArrow update for %s", video_id)
                continue
            self._substitute(update.tile, video_id, branding, update.with_thumbnails)

    def _substitute(self, tile: dict[str, Any], video_id: str, branding: Branding, with_thumbnails: bool) -> None:
        if branding.title:
            set_tile_title(tile, branding.title)
        if with_thumbnails and branding.thumbnail_time is not None:
            set_tile_thumbnails(
                tile,
                [
                    {
                        "url": self.thumbnail_url(video_id, branding.thumbnail_time),
                        "width": THUMBNAIL_WIDTH,
                        "height": THUMBNAIL_HEIGHT,
                    }
                ],
            )

    async def drain(self) -> None:
        """Wait for in-flight lookups (used on shutdown and in tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await self.drain()
        await self.client.aclose()
