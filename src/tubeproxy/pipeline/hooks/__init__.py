"""Built-in transform passes.

Importing this package registers every pass with the global registry.
Execution order within each stage is computed from reads/writes.
"""

from tubeproxy.pipeline.hooks.dearrow_titles import dearrow_titles
from tubeproxy.pipeline.hooks.filter_codecs import filter_codecs
from tubeproxy.pipeline.hooks.filter_shorts import filter_shorts
from tubeproxy.pipeline.hooks.hide_watched import hide_watched
from tubeproxy.pipeline.hooks.hq_thumbnails import hq_thumbnails
from tubeproxy.pipeline.hooks.inject_queue import inject_queue
from tubeproxy.pipeline.hooks.long_press import long_press
from tubeproxy.pipeline.hooks.previews import previews
from tubeproxy.pipeline.hooks.process_shelves import process_shelves
from tubeproxy.pipeline.hooks.remove_ad_slots import remove_ad_slots
from tubeproxy.pipeline.hooks.sponsor_highlight import sponsor_highlight
from tubeproxy.pipeline.hooks.sponsor_skips import sponsor_skip_actions
from tubeproxy.pipeline.hooks.strip_ads import strip_ads

__all__ = [
    "dearrow_titles",
    "filter_codecs",
    "filter_shorts",
    "hide_watched",
    "hq_thumbnails",
    "inject_queue",
    "long_press",
    "previews",
    "process_shelves",
    "remove_ad_slots",
    "sponsor_highlight",
    "sponsor_skip_actions",
    "strip_ads",
]
