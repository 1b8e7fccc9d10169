# src/tiers/fallback_tier.py — v1
"""Fallback tier: delegate to an independent cache backend."""

from __future__ import annotations

import logging
from pathlib import Path

from tiercache.core.errors import FallbackTierError
from tiercache.core.matcher import match_key
from tiercache.core.models import CacheRequest, MatchResult, TierResult, TierSource
from tiercache.fallback.base_fallback import BaseFallbackBackend
from tiercache.tiers.base_tier import BaseTier

logger = logging.getLogger(__name__)


class FallbackTier(BaseTier):
    """Restore through a BaseFallbackBackend."""

    source = TierSource.FALLBACK

    def __init__(self, backend: BaseFallbackBackend) -> None:
        self._backend = backend

    async def lookup(self, request: CacheRequest, scratch_dir: Path) -> TierResult:
        logger.info("Restore cache using fallback cache")
        try:
            matched_key = await self._backend.restore(
                list(request.paths),
                request.primary_key,
                list(request.restore_key_prefixes),
            )
        except Exception as e:
            raise FallbackTierError(str(e) or type(e).__name__) from e

        if not matched_key:
            logger.info("Fallback cache restore found no entry")
            return TierResult.miss(self.source)

        match = match_key(matched_key, request.primary_key, request.restore_key_prefixes)
        if not match.hit:
            # Backend matched by its own rules; report its key as given.
            match = MatchResult(
                matched_key=matched_key, is_exact=matched_key == request.primary_key
            )
        logger.info("Fallback cache restored successfully")
        return TierResult(source=self.source, status="hit", match=match)
