"""Externally-owned playback state read by the transform pipeline.

The pipeline only reads these objects. The mitm addon (or any other host)
owns them: it records the video being watched, stores the sponsor segments
fetched for it, and edits the queue.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from tubeproxy.items import tile_of, tile_video_id


@dataclass(frozen=True)
class SponsorSegment:
    """One SponsorBlock segment, times in seconds."""

    category: str
    start: float
    end: float

    @property
    def duration(self) -> float:
        return max(self.end - self.start, 0.0)


@dataclass
class VideoQueue:
    """Videos queued from long-press menus, oldest first."""

    videos: list[dict[str, Any]] = field(default_factory=list)
    last_video_id: str | None = None

    def add(self, item: dict[str, Any]) -> None:
        self.videos.append(item)
        tile = tile_of(item)
        self.last_video_id = tile_video_id(tile) if tile else None

    def clear(self) -> None:
        self.videos.clear()
        self.last_video_id = None

    def index_of(self, video_id: str | None) -> int | None:
        if video_id is None:
            return None
        for index, item in enumerate(self.videos):
            tile = tile_of(item)
            if (tile and tile_video_id(tile) == video_id) or item.get("contentId") == video_id:
                return index
        return None


@dataclass
class PlaybackState:
    """State of the currently loaded video."""

    video_id: str | None = None
    segments: list[SponsorSegment] | None = None
    queue: VideoQueue = field(default_factory=VideoQueue)

    def load_video(self, video_id: str | None) -> None:
        """Switch to another video; segments are unknown until set."""
        if video_id != self.video_id:
            self.video_id = video_id
            self.segments = None

    def segments_for(self, video_id: str | None) -> list[SponsorSegment] | None:
        """Segments of ``video_id``, or None if they are not known.

        ``video_id`` None means the caller cannot tell which video it renders
        and accepts the current video's segments.
        """
        if video_id is not None and video_id != self.video_id:
            return None
        return self.segments
