"""Pass override parsing for the ``pass_overrides`` setting.

Lets the configuration force or suppress individual passes:
- +pass → Force run (skip guard)
- -pass → Force skip
- No prefix → Normal (guard decides)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache

logger = logging.getLogger(__name__)


class HookOverride(Enum):
    """Override mode for a pass."""

    NORMAL = "normal"  # Guard decides
    FORCE_RUN = "force_run"  # Skip guard, always run
    FORCE_SKIP = "force_skip"  # Skip this pass entirely


@dataclass(frozen=True)
class OverrideSet:
    """Parsed override configuration.

    Attributes:
        overrides: Mapping of pass name to override mode
        raw: Original setting value for debugging
    """

    overrides: dict[str, HookOverride] = field(default_factory=dict)
    raw: str = ""

    def get_override(self, hook_name: str) -> HookOverride:
        return self.overrides.get(hook_name, HookOverride.NORMAL)

    def should_run(self, hook_name: str, guard_result: bool) -> bool:
        """Combine a pass's guard result with its override."""
        override = self.get_override(hook_name)
        if override == HookOverride.FORCE_RUN:
            return True
        if override == HookOverride.FORCE_SKIP:
            return False
        return guard_result


@lru_cache(maxsize=32)
def parse_overrides(value: str | None) -> OverrideSet:
    """Parse a comma-separated override list.

    Examples:
        >>> parse_overrides("+hq_thumbnails,-dearrow").get_override("dearrow")
        <HookOverride.FORCE_SKIP: 'force_skip'>
        >>> parse_overrides(None).overrides
        {}
    """
    if not value:
        return OverrideSet()

    overrides: dict[str, HookOverride] = {}
    value = value.strip()

    for part in value.split(","):
        part = part.strip()
        if not part:
            continue

        if part.startswith("+"):
            if part[1:]:
                overrides[part[1:]] = HookOverride.FORCE_RUN
        elif part.startswith("-"):
            if part[1:]:
                overrides[part[1:]] = HookOverride.FORCE_SKIP
        else:
            overrides[part] = HookOverride.NORMAL

    if overrides:
        logger.debug("Parsed pass overrides: %s", overrides)

    return OverrideSet(overrides=overrides, raw=value)
