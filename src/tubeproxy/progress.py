"""Watch progress extraction.

``watch_progress`` returns the percentage of a video already watched, or
None when the item carries no progress data at all. None must never be read
as zero progress: callers keep items without data.
"""

from __future__ import annotations

import math
from typing import Any

from tubeproxy.items import PROGRESS_RENDERER_PATHS, overlays_of
from tubeproxy.utils import dig

RESUME_OVERLAY_KEY = "thumbnailOverlayResumePlaybackRenderer"

# Fields of a resume-playback overlay that may hold the percentage.
RESUME_FIELDS: tuple[str, ...] = (
    "percentDurationWatched",
    "percent",
    "progressPercent",
    "resumePlaybackPercent",
    "width",
)

# Scalar fields carried directly on some renderers.
SCALAR_FIELDS: tuple[str, ...] = (
    "percentDurationWatched",
    "progressPercent",
    "resumePlaybackPercent",
    "percentWatched",
    "progress",
)


def to_percent(value: Any) -> float | None:
    """Normalize a percent-like value to [0, 100].

    Numbers from 1 to 100 are percentages, fractions strictly between 0 and 1
    are rescaled, and strings with a trailing ``%`` are always percentages.
    Values above 100 are clamped. Anything else (negative, NaN, booleans,
    unparsable strings) yields None.
    """
    if isinstance(value, bool) or value is None:
        return None

    explicit_percent = False
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("%"):
            explicit_percent = True
            text = text[:-1].strip()
        try:
            number = float(text)
        except ValueError:
            return None
    elif isinstance(value, int | float):
        number = float(value)
    else:
        return None

    if math.isnan(number) or number < 0:
        return None
    if not explicit_percent and 0 < number < 1:
        number *= 100
    return min(number, 100.0)


def _from_overlays(renderer: dict[str, Any]) -> float | None:
    for overlay in overlays_of(renderer):
        if not isinstance(overlay, dict):
            continue
        resume = overlay.get(RESUME_OVERLAY_KEY)
        if isinstance(resume, dict):
            for name in RESUME_FIELDS:
                percent = to_percent(resume.get(name))
                if percent is not None:
                    return percent
        # Legacy overlays describe the bar by its CSS width
        percent = to_percent(dig(overlay, "style", "width"))
        if percent is not None:
            return percent
    return None


def _from_scalars(renderer: dict[str, Any]) -> float | None:
    for name in SCALAR_FIELDS:
        percent = to_percent(renderer.get(name))
        if percent is not None:
            return percent
    return None


def watch_progress(item: Any) -> float | None:
    """Percentage of ``item`` already watched, or None without progress data."""
    if not isinstance(item, dict):
        return None
    for path in PROGRESS_RENDERER_PATHS:
        renderer = dig(item, *path)
        if not isinstance(renderer, dict):
            continue
        percent = _from_overlays(renderer)
        if percent is None:
            percent = _from_scalars(renderer)
        if percent is not None:
            return percent
    return None
