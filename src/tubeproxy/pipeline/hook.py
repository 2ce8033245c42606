"""Pass specification and decorator.

Defines the HookSpec class and @hook decorator for declaring a transform
pass, the pipeline stage it belongs to, and its ordering dependencies via
reads/writes.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

# Stages
PAYLOAD_STAGE = "payload"
ITEMS_STAGE = "items"
STAGES = (PAYLOAD_STAGE, ITEMS_STAGE)

# Type aliases; the context is a PayloadContext or an ItemBatch depending on stage
GuardFn = Callable[[Any], bool]
HandlerFn = Callable[[Any, dict[str, Any]], Any]


def always_true(ctx: Any) -> bool:
    """Default guard that always returns True."""
    return True


@dataclass
class HookSpec:
    """Specification for a pipeline pass.

    Attributes:
        name: Unique pass identifier
        handler: Function that transforms the context
        guard: Predicate that determines if handler should run
        stage: Pipeline stage (``payload`` or ``items``)
        reads: Keys this pass reads
        writes: Keys this pass writes
        isolated: Contain handler errors at this pass instead of propagating
        params: Static parameters passed to handler
    """

    name: str
    handler: HandlerFn
    guard: GuardFn = always_true
    stage: str = ITEMS_STAGE
    reads: frozenset[str] = field(default_factory=frozenset)
    writes: frozenset[str] = field(default_factory=frozenset)
    isolated: bool = False
    params: dict[str, Any] = field(default_factory=dict)

    def __hash__(self) -> int:
        return hash(self.name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HookSpec):
            return NotImplemented
        return self.name == other.name

    def should_run(self, ctx: Any) -> bool:
        """Check if this pass should run for the given context."""
        return self.guard(ctx)

    def execute(self, ctx: Any, extra_params: dict[str, Any] | None = None) -> Any:
        """Execute the pass handler.

        Args:
            ctx: Pipeline context
            extra_params: Additional parameters to merge with static params

        Returns:
            Modified context
        """
        params = dict(self.params)
        if extra_params:
            params.update(extra_params)
        return self.handler(ctx, params)


class _HookRegistry:
    """Global registry for passes decorated with @hook."""

    def __init__(self) -> None:
        self._hooks: dict[str, HookSpec] = {}

    def register_spec(self, spec: HookSpec) -> None:
        """Register a pass specification."""
        self._hooks[spec.name] = spec

    def get_stage_specs(self, stage: str) -> list[HookSpec]:
        """Get the registered passes of one stage, in registration order."""
        return [spec for spec in self._hooks.values() if spec.stage == stage]

    def clear(self) -> None:
        """Clear all registered passes (for testing)."""
        self._hooks.clear()


# Global registry
_registry = _HookRegistry()


def get_registry() -> _HookRegistry:
    """Get the global pass registry."""
    return _registry


def hook(
    *,
    stage: str = ITEMS_STAGE,
    reads: list[str] | None = None,
    writes: list[str] | None = None,
    guard: GuardFn | None = None,
    isolated: bool = False,
) -> Callable[[HandlerFn], HandlerFn]:
    """Decorator to register a function as a pipeline pass.

    Args:
        stage: Pipeline stage the pass runs in
        reads: Keys this pass reads
        writes: Keys this pass writes
        guard: Predicate that determines if handler should run
        isolated: Log and contain handler errors instead of propagating them

    Returns:
        Decorator function

    Example:
        @hook(reads=["items.ad_free"], writes=["items.thumbnail"])
        def hq_thumbnails(batch: ItemBatch, params: dict) -> ItemBatch:
            ...

        # Define guard separately (naming convention: {pass_name}_guard)
        def hq_thumbnails_guard(batch: ItemBatch) -> bool:
            return batch.config.enable_hq_thumbnails
    """
    if stage not in STAGES:
        raise ValueError(f"Unknown pipeline stage '{stage}'")

    def decorator(fn: HandlerFn) -> HandlerFn:
        # Try to find guard function by convention
        resolved_guard = guard
        if resolved_guard is None:
            module = sys.modules.get(fn.__module__)
            if module:
                resolved_guard = getattr(module, f"{fn.__name__}_guard", None)

        spec = HookSpec(
            name=fn.__name__,
            handler=fn,
            guard=resolved_guard or always_true,
            stage=stage,
            reads=frozenset(reads or []),
            writes=frozenset(writes or []),
            isolated=isolated,
        )
        _registry.register_spec(spec)

        # Attach spec to function for introspection
        fn._hook_spec = spec  # type: ignore[attr-defined]
        return fn

    return decorator


def create_hook_spec(
    name: str,
    handler: HandlerFn,
    *,
    stage: str = ITEMS_STAGE,
    reads: list[str] | None = None,
    writes: list[str] | None = None,
    guard: GuardFn | None = None,
    isolated: bool = False,
    params: dict[str, Any] | None = None,
) -> HookSpec:
    """Create a HookSpec programmatically (without decorator or registration)."""
    return HookSpec(
        name=name,
        handler=handler,
        guard=guard or always_true,
        stage=stage,
        reads=frozenset(reads or []),
        writes=frozenset(writes or []),
        isolated=isolated,
        params=params or {},
    )
