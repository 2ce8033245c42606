"""Locations of shelf and item containers inside a payload.

Browse, search, continuation and watch-next responses keep their section
lists at different depths. Each ``ContainerLocation`` describes one of them;
``locate`` yields every container present in a payload. Different locations
may resolve to the same list object, callers deduplicate by identity.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any

from tubeproxy.utils import dig


class ContainerKind(Enum):
    SHELVES = "shelves"
    """A section list: a list of shelves"""

    ITEMS = "items"
    """A bare item list (continuation of a single shelf)"""


@dataclass(frozen=True)
class ContainerLocation:
    """Where one kind of container lives.

    Attributes:
        name: Location name for logging
        kind: Whether the container holds shelves or items
        resolve: Function returning every container list at this location
        allow_previews: Whether inline previews are wanted here
    """

    name: str
    kind: ContainerKind
    resolve: Callable[[dict[str, Any]], Iterator[Any]]
    allow_previews: bool = True


def _at(*path: str) -> Callable[[dict[str, Any]], Iterator[Any]]:
    def resolve(payload: dict[str, Any]) -> Iterator[Any]:
        container = dig(payload, *path)
        if isinstance(container, list):
            yield container

    return resolve


def _secondary_nav_tabs(payload: dict[str, Any]) -> Iterator[Any]:
    """Section lists of every tab of a TV secondary navigation (subscriptions, library)."""
    sections = dig(payload, "contents", "tvBrowseRenderer", "content", "tvSecondaryNavRenderer", "sections")
    if not isinstance(sections, list):
        return
    for section in sections:
        tabs = dig(section, "tvSecondaryNavSectionRenderer", "tabs")
        if not isinstance(tabs, list):
            continue
        for tab in tabs:
            contents = dig(
                tab, "tabRenderer", "content", "tvSurfaceContentRenderer", "content", "sectionListRenderer", "contents"
            )
            if isinstance(contents, list):
                yield contents


WATCH_NEXT_PIVOT_PATH = ("contents", "singleColumnWatchNextResults", "pivot", "sectionListRenderer", "contents")

CONTAINER_LOCATIONS: tuple[ContainerLocation, ...] = (
    ContainerLocation(
        "tv_browse",
        ContainerKind.SHELVES,
        _at("contents", "tvBrowseRenderer", "content", "tvSurfaceContentRenderer", "content", "sectionListRenderer", "contents"),
    ),
    ContainerLocation("section_list", ContainerKind.SHELVES, _at("contents", "sectionListRenderer", "contents")),
    ContainerLocation(
        "section_list_continuation",
        ContainerKind.SHELVES,
        _at("continuationContents", "sectionListContinuation", "contents"),
    ),
    ContainerLocation("secondary_nav", ContainerKind.SHELVES, _secondary_nav_tabs),
    ContainerLocation("watch_next_pivot", ContainerKind.SHELVES, _at(*WATCH_NEXT_PIVOT_PATH), allow_previews=False),
    ContainerLocation(
        "horizontal_list_continuation",
        ContainerKind.ITEMS,
        _at("continuationContents", "horizontalListContinuation", "items"),
    ),
    ContainerLocation(
        "grid_continuation",
        ContainerKind.ITEMS,
        _at("continuationContents", "gridContinuation", "items"),
    ),
)


@dataclass(frozen=True)
class LocatedContainer:
    location: ContainerLocation
    container: list[Any]


def locate(
    payload: dict[str, Any],
    locations: tuple[ContainerLocation, ...] = CONTAINER_LOCATIONS,
) -> Iterator[LocatedContainer]:
    """Yield every known container present in ``payload``, in table order."""
    for location in locations:
        for container in location.resolve(payload):
            yield LocatedContainer(location, container)
