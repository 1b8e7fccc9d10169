# src/tiers/local_tier.py — v2
"""Local filesystem tier: exact-key lookup under a cache root.

Restore keys are never consulted here; the local cache is a fast exact-match
layer in front of the remote store.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from tiercache.archive.compression import CompressionMethod, cache_file_name
from tiercache.archive.tar import extract_archive
from tiercache.core.errors import ArchiveError, LocalTierError
from tiercache.core.matcher import match_key
from tiercache.core.models import CacheRequest, CandidateObject, TierResult, TierSource
from tiercache.storage.layout import local_archive_path
from tiercache.tiers.base_tier import BaseTier

logger = logging.getLogger(__name__)


class LocalTier(BaseTier):
    """Exact-match lookup in a local cache directory."""

    source = TierSource.LOCAL

    def __init__(self, compression: CompressionMethod, workdir: Path) -> None:
        self._compression = compression
        self._workdir = workdir

    async def lookup(self, request: CacheRequest, scratch_dir: Path) -> TierResult:
        if not request.local_root:
            return TierResult.miss(self.source)

        file_name = cache_file_name(self._compression)
        path = local_archive_path(request.local_root, request.primary_key, file_name)
        logger.info("Looking for exact match: %s", path)

        try:
            if not path.is_file():
                logger.info("Local cache MISS")
                return TierResult.miss(self.source)
        except OSError as e:
            raise LocalTierError(f"Failed to read {path}: {e}") from e

        logger.info("Local cache HIT")
        archive_path = scratch_dir / file_name
        try:
            shutil.copy2(path, archive_path)
            logger.info("Local cache copied")
            extract_archive(archive_path, self._compression, self._workdir)
            size = archive_path.stat().st_size
        except (OSError, ArchiveError) as e:
            raise LocalTierError(f"Failed to restore {path}: {e}") from e

        return TierResult(
            source=self.source,
            status="hit",
            match=match_key(request.primary_key, request.primary_key),
            candidate=CandidateObject(name=str(path), key=request.primary_key, size=size),
        )
