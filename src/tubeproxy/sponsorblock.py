"""SponsorBlock segment client."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from tubeproxy.state import SponsorSegment

logger = logging.getLogger(__name__)

HIGHLIGHT_CATEGORY = "poi_highlight"


class SponsorBlockClient:
    """Fetches skip segments for a video, best effort."""

    def __init__(self, base_url: str, timeout: float = 5.0, client: httpx.AsyncClient | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
        return self._client

    async def fetch_segments(self, video_id: str, categories: list[str]) -> list[SponsorSegment] | None:
        """Fetch segments of ``categories`` for ``video_id``.

        Returns:
            Segment list (empty when the video has none), or None on failure
        """
        if not categories:
            return []

        params = {"videoID": video_id, "categories": json.dumps(categories)}
        try:
            response = await self._get_client().get(f"{self.base_url}/api/skipSegments", params=params)
            if response.status_code == 404:
                return []
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.debug("SponsorBlock lookup failed for %s: %s", video_id, e)
            return None

        return parse_segments(data)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def parse_segments(data: Any) -> list[SponsorSegment]:
    """Parse a skipSegments response, dropping malformed entries."""
    segments: list[SponsorSegment] = []
    if not isinstance(data, list):
        return segments
    for entry in data:
        if not isinstance(entry, dict):
            continue
        bounds = entry.get("segment")
        category = entry.get("category")
        if not isinstance(category, str) or not isinstance(bounds, list) or len(bounds) != 2:
            continue
        try:
            start, end = float(bounds[0]), float(bounds[1])
        except (TypeError, ValueError):
            continue
        segments.append(SponsorSegment(category=category, start=start, end=end))
    return segments
