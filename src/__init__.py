"""tiercache — tiered build-cache restore."""

from tiercache.version import __version__

__all__ = ["__version__"]
