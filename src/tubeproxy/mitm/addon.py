"""Mitmproxy addon that filters YouTube TV API responses.

Requests are inspected to record where the client is navigating; JSON
responses from the configured API hosts are decoded through the
``DecodePipeline`` and written back re-encoded.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

from mitmproxy import http

from tubeproxy.config import MitmConfig, TubeProxyConfig, get_config
from tubeproxy.navigation import NavigationState
from tubeproxy.sponsorblock import HIGHLIGHT_CATEGORY
from tubeproxy.state import PlaybackState
from tubeproxy.utils import dig

if TYPE_CHECKING:
    from collections.abc import Callable

    from tubeproxy.interceptor import DecodePipeline
    from tubeproxy.sponsorblock import SponsorBlockClient

logger = logging.getLogger(__name__)

LOCATION_HEADER = "x-tubeproxy-location"
NAVIGATION_METADATA_KEY = "tubeproxy.navigation"
VIDEO_METADATA_KEY = "tubeproxy.video_id"

# Endpoints whose responses describe a single video
WATCH_ENDPOINTS = frozenset({"player", "next"})


def _hash_from_body(body: dict[str, Any]) -> str | None:
    """Client location implied by the ids a request asks for."""
    browse_id = body.get("browseId")
    if isinstance(browse_id, str) and browse_id:
        return f"/browse?{urlencode({'c': browse_id})}"

    query = body.get("query")
    if isinstance(query, str) and query:
        return f"/search?{urlencode({'search_query': query})}"

    video_id = body.get("videoId")
    playlist_id = body.get("playlistId")
    if isinstance(video_id, str) and video_id:
        params = {"v": video_id}
        if isinstance(playlist_id, str) and playlist_id:
            params["list"] = playlist_id
        return f"/watch?{urlencode(params)}"

    if isinstance(playlist_id, str) and playlist_id:
        return f"/browse?{urlencode({'list': playlist_id})}"

    return None


def navigation_from_request(headers: Any, body: Any) -> NavigationState | None:
    """Derive the client's navigation state from one API request.

    The location header wins outright. Otherwise the request's browse id,
    search query, video id or playlist id set the hash, on top of the path
    and query of ``context.client.originalUrl``. TV clients send the same
    app URL with every request, so the ids are what tell pages apart.
    Returns None when the request says nothing about the location.
    """
    location = headers.get(LOCATION_HEADER) if headers is not None else None
    if location:
        return NavigationState.from_url(location)

    if not isinstance(body, dict):
        return None

    original_url = dig(body, "context", "client", "originalUrl")
    base = NavigationState.from_url(original_url) if isinstance(original_url, str) and original_url else None

    hash_ = _hash_from_body(body)
    if hash_ is None:
        return base
    if base is None:
        return NavigationState(hash=hash_)
    return NavigationState(path=base.path, hash=hash_, query=base.query)


class TubeProxyAddon:
    """Rewrites YouTube TV API responses through the decode pipeline."""

    def __init__(
        self,
        pipeline: DecodePipeline,
        config: MitmConfig,
        state: PlaybackState | None = None,
        sponsorblock: SponsorBlockClient | None = None,
        config_provider: Callable[[], TubeProxyConfig] = get_config,
        segment_timeout: float = 2.0,
    ) -> None:
        """Initialize the addon.

        Args:
            pipeline: Decode pipeline applied to intercepted responses
            config: Mitmproxy configuration
            state: Playback state shared with ``pipeline``
            sponsorblock: Segment client, None to skip segment prefetching
            config_provider: Returns the current configuration
            segment_timeout: How long a watch response waits for segments
        """
        self.pipeline = pipeline
        self.config = config
        self.state = state if state is not None else pipeline.state
        self.sponsorblock = sponsorblock
        self.config_provider = config_provider
        self.segment_timeout = segment_timeout
        self.last_navigation = NavigationState()

    def _is_api_flow(self, flow: http.HTTPFlow) -> bool:
        request = flow.request
        host = request.pretty_host.lower()
        if not any(host == api_host or host.endswith(f".{api_host}") for api_host in self.config.api_hosts):
            return False
        return request.path.startswith(self.config.api_path_prefix)

    def _endpoint(self, flow: http.HTTPFlow) -> str:
        """API endpoint name (``browse``, ``next``, ``player``...)."""
        path = flow.request.path.split("?", 1)[0]
        return path[len(self.config.api_path_prefix) :].strip("/")

    @staticmethod
    def _request_json(request: http.Request) -> Any:
        if not request.content:
            return None
        try:
            return json.loads(request.content)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None

    def request(self, flow: http.HTTPFlow) -> None:
        """Record navigation state and the requested video for the response."""
        if not self._is_api_flow(flow):
            return

        try:
            body = self._request_json(flow.request)
            navigation = navigation_from_request(flow.request.headers, body)
            if navigation is not None:
                self.last_navigation = navigation
            flow.metadata[NAVIGATION_METADATA_KEY] = self.last_navigation

            video_id = body.get("videoId") if isinstance(body, dict) else None
            if isinstance(video_id, str) and video_id:
                flow.metadata[VIDEO_METADATA_KEY] = video_id
        except Exception as e:
            logger.error("Error inspecting request: %s", e, exc_info=True)

    def _segment_categories(self) -> list[str]:
        filters = self.config_provider().filters
        categories = list(filters.sponsor_block_manual_skips)
        if filters.enable_sponsor_block_highlight and HIGHLIGHT_CATEGORY not in categories:
            categories.append(HIGHLIGHT_CATEGORY)
        return categories

    async def _prefetch_segments(self, video_id: str) -> None:
        """Load sponsor segments of ``video_id`` into the playback state, bounded by a timeout."""
        self.state.load_video(video_id)
        if self.sponsorblock is None or self.state.segments is not None:
            return

        categories = self._segment_categories()
        if not categories:
            return

        try:
            segments = await asyncio.wait_for(
                self.sponsorblock.fetch_segments(video_id, categories), timeout=self.segment_timeout
            )
        except TimeoutError:
            logger.debug("Sponsor segments for %s not ready within %.1fs", video_id, self.segment_timeout)
            return

        if segments is not None and self.state.video_id == video_id:
            self.state.segments = segments
            logger.debug("Loaded %d sponsor segments for %s", len(segments), video_id)

    async def response(self, flow: http.HTTPFlow) -> None:
        """Filter a JSON API response in place."""
        response = flow.response
        if response is None or not self._is_api_flow(flow):
            return
        if "json" not in response.headers.get("content-type", "").lower():
            return

        try:
            if self._endpoint(flow) in WATCH_ENDPOINTS:
                video_id = flow.metadata.get(VIDEO_METADATA_KEY)
                if video_id:
                    await self._prefetch_segments(video_id)

            text = response.get_text()
            if not text:
                return

            navigation = flow.metadata.get(NAVIGATION_METADATA_KEY, self.last_navigation)
            try:
                result, ticket = self.pipeline.decode_with_ticket(text, navigation=navigation)
            except json.JSONDecodeError:
                logger.debug("Response of %s is not valid JSON, passing through", flow.request.pretty_url)
                return

            if ticket is None:
                return
            try:
                response.text = json.dumps(result, ensure_ascii=False, separators=(",", ":"))
            finally:
                # The tree is serialized; late background updates have nowhere to land
                ticket.close()

            if self.config.debug:
                logger.info("Filtered %s (%s page)", flow.request.pretty_url, navigation.href)

        except Exception as e:
            logger.error("Error filtering response: %s", e, exc_info=True)
