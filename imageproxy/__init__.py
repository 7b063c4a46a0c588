"""On-demand image optimization proxy: fetch, resize, re-encode to WebP, cache."""

__version__ = "1.0.0"
