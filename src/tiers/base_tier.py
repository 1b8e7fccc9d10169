# src/tiers/base_tier.py — v1
"""Abstract cache tier.

A tier either finds and materializes an archive (hit), finds nothing
(miss) or raises its TierError subclass. Policy for errors lives in the
orchestrator, not here.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from tiercache.core.models import CacheRequest, TierResult, TierSource


class BaseTier(ABC):
    """One storage backend consulted in priority order."""

    source: TierSource

    @abstractmethod
    async def lookup(self, request: CacheRequest, scratch_dir: Path) -> TierResult:
        """Find and materialize the best archive for request.

        Args:
            request: The restore request.
            scratch_dir: Invocation-owned directory for intermediate archives.

        Returns:
            TierResult with status "hit" or "miss".

        Raises:
            TierError: If the tier could not complete.
        """
