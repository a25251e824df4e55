# src/__init__.py — v1
"""wispview: resolve, fetch and locally serve wisp.place static sites."""

from wispview.version import __version__

__all__ = ["__version__"]
