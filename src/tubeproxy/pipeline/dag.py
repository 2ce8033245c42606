"""DAG-based ordering of the passes within one stage.

Uses graphlib.TopologicalSorter to compute execution order from
reads/writes declarations: if pass A writes key X and pass B reads key X,
B runs after A. Passes with no relation keep their registration order.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from graphlib import CycleError, TopologicalSorter
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tubeproxy.pipeline.hook import HookSpec

logger = logging.getLogger(__name__)


class HookDAG:
    """Directed Acyclic Graph for pass dependencies."""

    def __init__(self, hooks: list[HookSpec]) -> None:
        """Initialize DAG with pass specifications.

        Raises:
            CycleError: If dependencies form a cycle
        """
        self._hooks: dict[str, HookSpec] = {h.name: h for h in hooks}
        self._key_writers: dict[str, set[str]] = defaultdict(set)
        self._key_readers: dict[str, set[str]] = defaultdict(set)
        self._execution_order: list[str] = []
        self._levels: list[list[str]] = []

        self._build_key_index()
        self._compute_order()

    def _build_key_index(self) -> None:
        for name, spec in self._hooks.items():
            for key in spec.writes:
                self._key_writers[key].add(name)
            for key in spec.reads:
                self._key_readers[key].add(name)

    def _build_dependencies(self) -> dict[str, set[str]]:
        """Map each pass name to the passes it depends on."""
        deps: dict[str, set[str]] = {name: set() for name in self._hooks}
        for name, spec in self._hooks.items():
            for key in spec.reads:
                deps[name].update(writer for writer in self._key_writers.get(key, ()) if writer != name)
        return deps

    def _compute_order(self) -> None:
        deps = self._build_dependencies()
        position = {name: index for index, name in enumerate(self._hooks)}

        sorter = TopologicalSorter(deps)
        try:
            sorter.prepare()
        except CycleError as e:
            logger.error("Cycle detected in pass dependencies: %s", e.args[1])
            raise

        # Emit ready passes level by level, registration order within a level
        while sorter.is_active():
            ready = sorted(sorter.get_ready(), key=position.__getitem__)
            self._levels.append(ready)
            self._execution_order.extend(ready)
            sorter.done(*ready)

    @property
    def execution_order(self) -> list[str]:
        """Pass names in dependency-safe order."""
        return list(self._execution_order)

    @property
    def levels(self) -> list[list[str]]:
        """Groups of passes with no dependencies on each other, in order."""
        return [list(level) for level in self._levels]

    def get_hook(self, name: str) -> HookSpec:
        """Get a pass by name.

        Raises:
            KeyError: If pass not found
        """
        return self._hooks[name]

    def get_hooks_in_order(self) -> list[HookSpec]:
        return [self._hooks[name] for name in self._execution_order]

    def get_dependencies(self, hook_name: str) -> set[str]:
        """Passes that ``hook_name`` depends on."""
        return self._build_dependencies().get(hook_name, set())

    def get_dependents(self, hook_name: str) -> set[str]:
        """Passes that depend on ``hook_name``."""
        return {name for name, deps in self._build_dependencies().items() if hook_name in deps}

    def to_mermaid(self) -> str:
        """Generate a Mermaid diagram of the DAG."""
        lines = ["graph TD"]
        deps = self._build_dependencies()

        for name in self._execution_order:
            for dep in sorted(deps[name]):
                lines.append(f"    {dep} --> {name}")

        # Isolated nodes
        for name in self._execution_order:
            if not deps[name] and not self.get_dependents(name):
                lines.append(f"    {name}")

        return "\n".join(lines)

    def to_ascii(self) -> str:
        """Generate an ASCII representation of the DAG."""
        lines: list[str] = []
        for index, level in enumerate(self._levels):
            if index > 0:
                lines.append("       │")
                lines.append("       ▼")
            lines.append(f"┌{'─' * 48}┐")
            for name in level:
                spec = self._hooks[name]
                lines.append(f"│ {name:<46} │")
                if spec.reads:
                    reads_str = ", ".join(sorted(spec.reads))
                    lines.append(f"│   reads: {reads_str:<38} │")
                if spec.writes:
                    writes_str = ", ".join(sorted(spec.writes))
                    lines.append(f"│   writes: {writes_str:<37} │")
            lines.append(f"└{'─' * 48}┘")
        return "\n".join(lines)

    def validate(self) -> list[str]:
        """Validate the DAG configuration.

        Returns:
            List of warning messages (empty if valid)
        """
        warnings: list[str] = []

        for name, spec in self._hooks.items():
            for key in spec.reads:
                if key not in self._key_writers:
                    warnings.append(f"Pass '{name}' reads '{key}' but no pass writes it")

        for key, writers in self._key_writers.items():
            if not self._key_readers.get(key):
                for writer in sorted(writers):
                    warnings.append(f"Pass '{writer}' writes '{key}' but no pass reads it")

        return warnings
