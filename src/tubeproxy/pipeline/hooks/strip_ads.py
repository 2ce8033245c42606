"""Ad and promotion stripping at the top level of a payload.

Each rule pairs a top-level field with an action and the setting that
enables it. A missing field is left alone; a present field is rewritten
only when its rule is enabled.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from tubeproxy.pipeline.hook import PAYLOAD_STAGE, hook
from tubeproxy.utils import dig

if TYPE_CHECKING:
    from tubeproxy.config import FilterConfig
    from tubeproxy.pipeline.context import PayloadContext

logger = logging.getLogger(__name__)


def _clear_list(value: Any) -> Any:
    return [] if isinstance(value, list) else value


def _false(value: Any) -> Any:
    return False


def _none(value: Any) -> Any:
    return None


def _drop_you_there(value: Any) -> Any:
    if not isinstance(value, list):
        return value
    return [msg for msg in value if not (isinstance(msg, dict) and msg.get("youThereRenderer"))]


def _drop_ad_entries(value: Any) -> Any:
    if not isinstance(value, list):
        return value
    return [entry for entry in value if not dig(entry, "command", "reelWatchEndpoint", "adClientParams", "isAd")]


@dataclass(frozen=True)
class StripRule:
    """One top-level field rewrite.

    Attributes:
        field: Top-level payload key
        action: Maps the current value to the replacement
        enabled: Whether the rule applies under a config snapshot
    """

    field: str
    action: Callable[[Any], Any]
    enabled: Callable[[FilterConfig], bool]


STRIP_RULES: tuple[StripRule, ...] = (
    StripRule("adPlacements", _clear_list, lambda c: c.enable_ad_block),
    StripRule("playerAds", _false, lambda c: c.enable_ad_block),
    StripRule("adSlots", _clear_list, lambda c: c.enable_ad_block),
    StripRule("paidContentOverlay", _none, lambda c: not c.enable_paid_promotion_overlay),
    StripRule("endscreen", _none, lambda c: c.enable_hide_end_screen_cards),
    StripRule("messages", _drop_you_there, lambda c: not c.enable_you_there_renderer),
    StripRule("entries", _drop_ad_entries, lambda c: c.enable_ad_block),
)


def apply_strip_rules(payload: dict[str, Any], config: FilterConfig, rules: tuple[StripRule, ...] = STRIP_RULES) -> list[str]:
    """Apply ``rules`` to ``payload`` in place.

    Returns:
        Names of the fields that were rewritten
    """
    stripped: list[str] = []
    for rule in rules:
        if rule.field not in payload or not payload[rule.field]:
            continue
        if not rule.enabled(config):
            continue
        payload[rule.field] = rule.action(payload[rule.field])
        stripped.append(rule.field)
    return stripped


@hook(stage=PAYLOAD_STAGE, writes=["payload.ads_stripped"])
def strip_ads(ctx: PayloadContext, params: dict[str, Any]) -> PayloadContext:
    """Strip ad-carrying top-level fields before the tree is walked.

    Args:
        ctx: Payload context
        params: Additional parameters (unused)

    Returns:
        Context with ad fields cleared according to the config snapshot
    """
    stripped = apply_strip_rules(ctx.payload, ctx.config)
    if stripped:
        logger.debug("Stripped top-level fields: %s", ", ".join(stripped))
    return ctx
