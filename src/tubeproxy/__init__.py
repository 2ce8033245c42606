"""tubeproxy - ad, short-form and watched-video filtering for YouTube TV API responses."""

__version__ = "0.1.0"
