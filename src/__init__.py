"""stemcache — content-addressed stem separation cache and submission history."""

from stemcache.version import __version__

__all__ = ["__version__"]
