"""Shelf adapters and the shelf dispatcher.

A shelf is one entry of a section list. Each known wrapper shape gets a
``CollectionAdapter`` that knows where the shape keeps its item list; the
dispatcher runs the items stage over whatever list an adapter finds and
removes shelves that end up with nothing to show.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from tubeproxy.items import is_ad_slot
from tubeproxy.pipeline.context import ItemBatch
from tubeproxy.pipeline.guards import ad_block_enabled, shorts_hidden
from tubeproxy.pipeline.overrides import parse_overrides
from tubeproxy.shorts import is_short_item
from tubeproxy.utils import dig

if TYPE_CHECKING:
    from tubeproxy.pipeline.context import PayloadContext
    from tubeproxy.pipeline.executor import PipelineExecutor

logger = logging.getLogger(__name__)

# Whole short-form shelves are dropped under the same switch as the item pass
SHORTS_PASS = "filter_shorts"


@dataclass(frozen=True)
class CollectionAdapter:
    """Locates the item list inside one shelf wrapper shape.

    Attributes:
        name: Shape name for logging
        items_path: Keys leading from the shelf node to its item list
    """

    name: str
    items_path: tuple[str, ...]

    def items(self, shelf: Any) -> list[Any] | None:
        items = dig(shelf, *self.items_path)
        return items if isinstance(items, list) else None

    def matches(self, shelf: Any) -> bool:
        return self.items(shelf) is not None


# Checked in order; the first adapter whose item list exists handles the shelf.
COLLECTION_ADAPTERS: tuple[CollectionAdapter, ...] = (
    CollectionAdapter("grid", ("gridRenderer", "items")),
    CollectionAdapter("horizontal_list", ("shelfRenderer", "content", "horizontalListRenderer", "items")),
    CollectionAdapter("vertical_list", ("shelfRenderer", "content", "verticalListRenderer", "items")),
    CollectionAdapter("rich_grid_shelf", ("richShelfRenderer", "content", "richGridRenderer", "contents")),
    CollectionAdapter(
        "rich_section_shelf",
        ("richSectionRenderer", "content", "richShelfRenderer", "content", "richGridRenderer", "contents"),
    ),
    CollectionAdapter("rich_grid", ("richGridRenderer", "contents")),
)


def find_adapter(shelf: Any, adapters: tuple[CollectionAdapter, ...] = COLLECTION_ADAPTERS) -> CollectionAdapter | None:
    for adapter in adapters:
        if adapter.matches(shelf):
            return adapter
    return None


class ShelfProcessor:
    """Drives the items stage over every shelf of a section list."""

    def __init__(
        self,
        items_executor: PipelineExecutor,
        adapters: tuple[CollectionAdapter, ...] = COLLECTION_ADAPTERS,
    ) -> None:
        self.items_executor = items_executor
        self.adapters = adapters

    def run_items(self, items: list[Any], ctx: PayloadContext, allow_previews: bool) -> list[Any]:
        """Run the items stage over ``items`` in place and return the same list."""
        batch = ItemBatch(items=list(items), payload=ctx, allow_previews=allow_previews)
        batch = self.items_executor.execute(batch, parse_overrides(ctx.config.pass_overrides))
        items[:] = batch.items
        return items

    def process_items(self, items: Any, ctx: PayloadContext, allow_previews: bool = False) -> bool:
        """Process a bare item list (continuations). The list itself is never removed.

        Returns:
            False if the list was skipped (not a list, or already processed)
        """
        if not isinstance(items, list) or not ctx.guard.claim(items):
            return False
        self.run_items(items, ctx, allow_previews)
        return True

    def process_shelves(self, shelves: Any, ctx: PayloadContext, allow_previews: bool = False) -> bool:
        """Process every shelf of ``shelves`` in place.

        Shelves are visited from the end so removals do not shift the
        indexes still to visit; survivors keep their relative order. A shelf
        that fails is logged and left as it is.

        Returns:
            False if the list was skipped (not a list, or already processed)
        """
        if not isinstance(shelves, list):
            return False
        if not ctx.guard.claim(shelves):
            logger.debug("Section list already processed, skipping")
            return False

        for index in range(len(shelves) - 1, -1, -1):
            shelf = shelves[index]
            try:
                keep = self._process_shelf(shelf, ctx, allow_previews)
            except Exception as e:
                logger.error("Shelf %d failed: %s: %s", index, type(e).__name__, str(e))
                continue
            if not keep:
                del shelves[index]

        return True

    def _process_shelf(self, shelf: Any, ctx: PayloadContext, allow_previews: bool) -> bool:
        """Process one shelf; returns False when it must be removed."""
        if is_ad_slot(shelf):
            return not ad_block_enabled(ctx)

        adapter = find_adapter(shelf, self.adapters)
        if adapter is None:
            return True

        items = adapter.items(shelf)
        if items is None:
            return True

        drop_shorts = parse_overrides(ctx.config.pass_overrides).should_run(SHORTS_PASS, shorts_hidden(ctx))
        if drop_shorts and items and all(is_short_item(item) for item in items):
            logger.debug("Dropping %s shelf of %d short-form items", adapter.name, len(items))
            return False

        self.run_items(items, ctx, allow_previews)

        if not items:
            logger.debug("Dropping empty %s shelf", adapter.name)
            return False
        return True
