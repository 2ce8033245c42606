"""Transform pipeline for decoded YouTube TV payloads.

Passes are declared with the ``@hook`` decorator and grouped in two stages:

- ``payload``: runs once per decoded payload (ad stripping, codec
  filtering, shelf processing, watch-next and player injections)
- ``items``: runs once per located item list (ad slots, DeArrow, HQ
  thumbnails, long-press, previews, short-form and watched filtering)

Formal Model:
    Pass pᵢ = (gᵢ, fᵢ) where:
        gᵢ: Context → Bool    (guard)
        fᵢ: Context → Context (handler)

    apply(p, s) = if guard(s) then handler(s) else s

Order within a stage comes from the passes' reads/writes declarations.
"""

from tubeproxy.pipeline.context import ItemBatch, PayloadContext, PayloadTicket, ProcessedGuard
from tubeproxy.pipeline.dag import HookDAG
from tubeproxy.pipeline.executor import PipelineExecutor
from tubeproxy.pipeline.hook import ITEMS_STAGE, PAYLOAD_STAGE, HookSpec, hook
from tubeproxy.pipeline.overrides import HookOverride, parse_overrides

__all__ = [
    "HookDAG",
    "HookOverride",
    "HookSpec",
    "ITEMS_STAGE",
    "ItemBatch",
    "PAYLOAD_STAGE",
    "PayloadContext",
    "PayloadTicket",
    "PipelineExecutor",
    "ProcessedGuard",
    "hook",
    "parse_overrides",
]
