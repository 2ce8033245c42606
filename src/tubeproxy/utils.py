"""Small helpers shared across tubeproxy modules."""

from collections.abc import Iterable
from pathlib import Path
from typing import Any

_MISSING = object()


def dig(obj: Any, *path: str | int, default: Any = None) -> Any:
    """Walk a decoded JSON tree along ``path``.

    Each step is a dict key or a list index. Any missing key, out-of-range
    index or wrong container type yields ``default`` instead of raising.

    Example:
        >>> dig({"a": [{"b": 1}]}, "a", 0, "b")
        1
    """
    current = obj
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or not -len(current) <= step < len(current):
                return default
            current = current[step]
        else:
            if not isinstance(current, dict):
                return default
            current = current.get(step, _MISSING)
            if current is _MISSING:
                return default
    return current


def first_present(obj: Any, paths: Iterable[tuple[str | int, ...]]) -> Any:
    """Return the first non-None value found along any of ``paths``."""
    for path in paths:
        value = dig(obj, *path)
        if value is not None:
            return value
    return None


def text_of(node: Any) -> str | None:
    """Extract plain text from a ``simpleText`` or ``runs`` text node."""
    if isinstance(node, str):
        return node
    if not isinstance(node, dict):
        return None
    if isinstance(node.get("simpleText"), str):
        return node["simpleText"]
    runs = node.get("runs")
    if isinstance(runs, list):
        parts = [run.get("text", "") for run in runs if isinstance(run, dict)]
        return "".join(parts) if parts else None
    return None


def get_templates_dir() -> Path:
    """Get the directory holding bundled configuration templates.

    Raises:
        RuntimeError: If the templates directory is missing from the install
    """
    templates_dir = Path(__file__).parent / "templates"
    if not templates_dir.is_dir():
        raise RuntimeError(f"Templates directory not found at {templates_dir}")
    return templates_dir
