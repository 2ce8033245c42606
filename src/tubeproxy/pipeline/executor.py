"""Pipeline executor with DAG-ordered execution.

Runs the passes of one stage in dependency-safe order with override
support. Errors propagate unless the pass is declared ``isolated``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tubeproxy.pipeline.dag import HookDAG
from tubeproxy.pipeline.hook import get_registry
from tubeproxy.pipeline.overrides import HookOverride, OverrideSet

if TYPE_CHECKING:
    from tubeproxy.pipeline.hook import HookSpec

logger = logging.getLogger(__name__)


class PipelineExecutor:
    """Executes the passes of one stage in DAG order.

    Attributes:
        stage: Stage name, for logging
        dag: Pass dependency graph
        extra_params: Additional parameters passed to every pass
    """

    def __init__(
        self,
        hooks: list[HookSpec],
        stage: str = "",
        extra_params: dict[str, Any] | None = None,
    ) -> None:
        """Initialize executor with passes.

        Raises:
            CycleError: If pass dependencies form a cycle
        """
        self.stage = stage
        self.dag = HookDAG(hooks)
        self.extra_params = extra_params or {}

        logger.info("Pipeline %s order: %s", stage or "execution", " → ".join(self.dag.execution_order))

        for warning in self.dag.validate():
            logger.warning("DAG validation: %s", warning)

    @classmethod
    def for_stage(cls, stage: str, extra_params: dict[str, Any] | None = None) -> PipelineExecutor:
        """Build an executor over every registered pass of ``stage``."""
        # Importing the package registers the built-in passes
        import tubeproxy.pipeline.hooks  # noqa: F401

        return cls(get_registry().get_stage_specs(stage), stage=stage, extra_params=extra_params)

    def execute(self, ctx: Any, overrides: OverrideSet | None = None) -> Any:
        """Run every pass over ``ctx``.

        Args:
            ctx: PayloadContext or ItemBatch
            overrides: Per-pass overrides

        Returns:
            Modified context
        """
        overrides = overrides or OverrideSet()
        for hook_name in self.dag.execution_order:
            spec = self.dag.get_hook(hook_name)
            ctx = self._execute_hook(ctx, spec, overrides)
        return ctx

    def _execute_hook(self, ctx: Any, spec: HookSpec, overrides: OverrideSet) -> Any:
        hook_name = spec.name

        override = overrides.get_override(hook_name)
        if override == HookOverride.FORCE_SKIP:
            logger.debug("Pass '%s' skipped (override)", hook_name)
            return ctx

        try:
            if override != HookOverride.FORCE_RUN and not spec.should_run(ctx):
                logger.debug("Pass '%s' skipped (guard)", hook_name)
                return ctx

            logger.debug("Executing pass '%s'", hook_name)
            result = spec.execute(ctx, self.extra_params)
            return ctx if result is None else result

        except Exception as e:
            if not spec.isolated:
                raise
            # Error isolation: log and continue
            logger.error(
                "Pass '%s' failed: %s: %s",
                hook_name,
                type(e).__name__,
                str(e),
            )
            return ctx

    def get_execution_order(self) -> list[str]:
        return self.dag.execution_order

    def to_mermaid(self) -> str:
        return self.dag.to_mermaid()

    def to_ascii(self) -> str:
        return self.dag.to_ascii()
