"""Page context classification from navigation state.

The TV client keeps its location in the URL hash (``#/browse?c=FEsubscriptions``),
web clients use the path (``/feed/subscriptions``). ``classify_page`` maps
either form to a ``PageContext`` through an ordered rule table: machine
readable browse ids and query parameters are checked before human path
segments, and the first matching rule wins.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import parse_qsl, urlsplit

logger = logging.getLogger(__name__)


class PageContext(Enum):
    """Canonical page category."""

    HOME = "home"
    WATCH = "watch"
    SEARCH = "search"
    CHANNEL = "channel"
    PLAYLIST = "playlist"
    PLAYLISTS = "playlists"
    SUBSCRIPTIONS = "subscriptions"
    LIBRARY = "library"
    HISTORY = "history"
    TRENDING = "trending"
    MUSIC = "music"
    GAMING = "gaming"
    OTHER = "other"


@dataclass(frozen=True)
class NavigationState:
    """Ambient location of the client.

    Attributes:
        path: URL path (``/watch``)
        hash: URL fragment without the leading ``#`` (``/browse?c=FEtrending``)
        query: URL query string without the leading ``?``
    """

    path: str = ""
    hash: str = ""
    query: str = ""

    @property
    def href(self) -> str:
        """Composed location string."""
        href = self.path or "/"
        if self.query:
            href += f"?{self.query}"
        if self.hash:
            href += f"#{self.hash}"
        return href

    @classmethod
    def from_url(cls, url: str) -> NavigationState:
        """Build navigation state from a full or relative URL."""
        parts = urlsplit(url)
        return cls(path=parts.path, hash=parts.fragment, query=parts.query)


@dataclass
class _Location:
    """Pre-parsed view of a navigation state used by the rules."""

    params: dict[str, str] = field(default_factory=dict)
    text: str = ""
    paths: tuple[str, ...] = ()

    @property
    def browse_id(self) -> str:
        for key in ("c", "browse_id", "browseId"):
            if self.params.get(key):
                return self.params[key]
        return ""

    def has_segment(self, *segments: str) -> bool:
        return any(segment in self.text for segment in segments)


def _parse(state: NavigationState) -> _Location:
    params = dict(parse_qsl(state.query.lstrip("?")))
    hash_path, _, hash_query = state.hash.lstrip("#").partition("?")
    params.update(parse_qsl(hash_query))
    text = f"{hash_path} {state.path}".strip().lower()
    return _Location(params=params, text=text, paths=(hash_path.lower(), state.path.lower()))


def _browse_id_in(*ids: str) -> Callable[[_Location], bool]:
    return lambda loc: loc.browse_id in ids


def _list_param_in(*ids: str) -> Callable[[_Location], bool]:
    return lambda loc: loc.params.get("list") in ids


def _segment(*segments: str) -> Callable[[_Location], bool]:
    return lambda loc: loc.has_segment(*segments)


ROOT_PATHS = frozenset({"", "/browse", "/home", "/tv"})


def _is_root(loc: _Location) -> bool:
    return all(path.rstrip("/") in ROOT_PATHS for path in loc.paths)


@dataclass(frozen=True)
class PageRule:
    """One classification rule: ``page`` applies when ``matches`` holds."""

    name: str
    page: PageContext
    matches: Callable[[_Location], bool]


# Evaluated top to bottom, first match wins.
PAGE_RULES: tuple[PageRule, ...] = (
    # Browse ids and query parameters
    PageRule("subscriptions_feed", PageContext.SUBSCRIPTIONS, _browse_id_in("FEsubscriptions")),
    PageRule("watch_later", PageContext.PLAYLIST, lambda loc: loc.browse_id == "VLWL" or loc.params.get("list") == "WL"),
    PageRule("liked_videos", PageContext.PLAYLIST, lambda loc: loc.browse_id == "VLLL" or loc.params.get("list") == "LL"),
    PageRule("history_feed", PageContext.HISTORY, _browse_id_in("FEhistory")),
    PageRule("trending_feed", PageContext.TRENDING, _browse_id_in("FEtrending", "FEexplore")),
    PageRule("library_feed", PageContext.LIBRARY, _browse_id_in("FElibrary", "FEmy_youtube", "FEyou")),
    PageRule("playlists_feed", PageContext.PLAYLISTS, _browse_id_in("FEplaylist_aggregation", "FEplaylists")),
    PageRule("music_feed", PageContext.MUSIC, _browse_id_in("FEtopics_music", "FEmusic_home", "UC-9-kyTW8ZkZNDHQJ6FgpwQ")),
    PageRule("gaming_feed", PageContext.GAMING, _browse_id_in("FEtopics_gaming", "UCOpNcN46UbXVtpKMrmU4Abg")),
    PageRule("home_feed", PageContext.HOME, _browse_id_in("FEwhat_to_watch", "FEtopics")),
    PageRule("playlist_id", PageContext.PLAYLIST, lambda loc: loc.browse_id.startswith("VL") or bool(loc.params.get("list"))),
    PageRule("channel_id", PageContext.CHANNEL, lambda loc: loc.browse_id.startswith("UC")),
    PageRule("search_query", PageContext.SEARCH, lambda loc: bool(loc.params.get("search_query") or loc.params.get("q"))),
    # Human path segments
    PageRule("subscriptions_path", PageContext.SUBSCRIPTIONS, _segment("/feed/subscriptions")),
    PageRule("history_path", PageContext.HISTORY, _segment("/feed/history")),
    PageRule("playlists_path", PageContext.PLAYLISTS, _segment("/feed/playlists")),
    PageRule("library_path", PageContext.LIBRARY, _segment("/feed/library", "/feed/you")),
    PageRule("trending_path", PageContext.TRENDING, _segment("/feed/trending", "/feed/explore")),
    PageRule("search_path", PageContext.SEARCH, _segment("/results", "/search")),
    PageRule("playlist_path", PageContext.PLAYLIST, _segment("/playlist")),
    PageRule("watch_path", PageContext.WATCH, lambda loc: loc.has_segment("/watch") or bool(loc.params.get("v"))),
    PageRule("channel_path", PageContext.CHANNEL, _segment("/@", "/channel/", "/c/", "/user/")),
    PageRule("music_path", PageContext.MUSIC, _segment("/music")),
    PageRule("gaming_path", PageContext.GAMING, _segment("/gaming")),
    PageRule("root", PageContext.HOME, _is_root),
)


def classify_page(state: NavigationState) -> PageContext:
    """Classify the current navigation state.

    Always recomputed from ``state``; callers that want change detection
    should use ``PageTracker``.
    """
    location = _parse(state)
    for rule in PAGE_RULES:
        if rule.matches(location):
            return rule.page
    return PageContext.OTHER


class PageTracker:
    """Remembers the last classified page to log navigation changes once."""

    def __init__(self) -> None:
        self._last: tuple[PageContext, str] | None = None

    @property
    def last(self) -> tuple[PageContext, str] | None:
        return self._last

    def observe(self, page: PageContext, state: NavigationState) -> bool:
        """Record a classification; returns True if it differs from the last one."""
        key = (page, state.href)
        if key == self._last:
            return False
        previous = self._last[0].value if self._last else None
        self._last = key
        logger.info("Page context: %s -> %s (%s)", previous, page.value, state.href)
        return True
