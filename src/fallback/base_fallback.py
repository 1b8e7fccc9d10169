# src/fallback/base_fallback.py — v1
"""Abstract fallback cache backend.

A fallback backend is an independent cache with its own storage and its own
key matching, compatible with tiercache.core.matcher: exact key first, then
restore keys as prefixes in order.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence


class BaseFallbackBackend(ABC):
    """Restore-only view of an independent cache service."""

    @abstractmethod
    async def restore(
        self,
        paths: Sequence[str],
        primary_key: str,
        restore_keys: Sequence[str],
    ) -> str | None:
        """Restore paths from the best match and return the matched key, or None on miss."""
