# src/core/errors.py — v1
"""Error taxonomy for tier failures.

Configuration problems are reported by ConfigurationError in
tiercache.config.settings; everything raised while a tier runs derives from
TierError so the orchestrator can apply one policy to all of them.
"""

from __future__ import annotations


class TierError(Exception):
    """A tier could not complete its lookup or materialization."""

    tier: str = "unknown"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class LocalTierError(TierError):
    """Filesystem failure (other than not-found) in the local tier."""

    tier = "local"


class RemoteTierError(TierError):
    """Network, auth, storage or materialization failure in the remote tier."""

    tier = "remote"


class FallbackTierError(TierError):
    """The fallback cache backend failed."""

    tier = "fallback"


class ArchiveError(Exception):
    """An archive could not be listed or extracted."""
