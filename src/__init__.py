# src/__init__.py - v1
"""track-ratings: deduplicated, rate-limited fetch-and-cache engine for track ratings."""

from trackratings.version import __version__

__all__ = ["__version__"]
