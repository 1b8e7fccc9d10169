# src/tiers/remote_tier.py — v2
"""Remote tier: best-match lookup in an S3-compatible bucket.

Lookup order:
  1. the archive stored under the primary key, exact match only
  2. for each restore key in order, objects under that prefix; the first
     prefix with any archive wins, ties broken by core.matcher's ranking

An empty listing is a miss, not an error. Every failure while listing,
downloading or extracting surfaces as RemoteTierError.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from tiercache.archive.compression import CompressionMethod, cache_file_name
from tiercache.archive.tar import extract_archive, list_archive
from tiercache.core.errors import RemoteTierError
from tiercache.core.matcher import select_best
from tiercache.core.models import (
    CacheRequest,
    CandidateObject,
    MatchResult,
    TierResult,
    TierSource,
)
from tiercache.core.units import format_size
from tiercache.storage.base_object_store import BaseObjectStore
from tiercache.storage.layout import key_from_object_name, object_name
from tiercache.tiers.base_tier import BaseTier

logger = logging.getLogger(__name__)


class RemoteTier(BaseTier):
    """Prefix-aware lookup in object storage."""

    source = TierSource.REMOTE

    def __init__(
        self,
        store: BaseObjectStore,
        compression: CompressionMethod,
        workdir: Path,
        list_contents: bool = False,
    ) -> None:
        self._store = store
        self._compression = compression
        self._workdir = workdir
        self._list_contents = list_contents

    async def lookup(self, request: CacheRequest, scratch_dir: Path) -> TierResult:
        try:
            return await self._lookup(request, scratch_dir)
        except RemoteTierError:
            raise
        except Exception as e:
            raise RemoteTierError(str(e) or type(e).__name__) from e

    async def _lookup(self, request: CacheRequest, scratch_dir: Path) -> TierResult:
        selection = await self.find_object(
            request.bucket, request.primary_key, request.restore_key_prefixes
        )
        if selection is None:
            logger.info("No cache object found for key %s", request.primary_key)
            return TierResult.miss(self.source)

        obj, match = selection
        archive_path = scratch_dir / cache_file_name(self._compression)
        logger.info(
            "Downloading cache from s3 to %s. bucket: %s, object: %s",
            archive_path, request.bucket, obj.name,
        )
        await self._store.download(request.bucket, obj.name, archive_path)

        if self._list_contents:
            for member in list_archive(archive_path, self._compression):
                logger.debug("  %s", member)

        size = obj.size or archive_path.stat().st_size
        logger.info("Cache Size: %s (%d bytes)", format_size(size), size)

        extract_archive(archive_path, self._compression, self._workdir)
        return TierResult(source=self.source, status="hit", match=match, candidate=obj)

    async def find_object(
        self,
        bucket: str,
        primary_key: str,
        restore_key_prefixes: Sequence[str],
    ) -> tuple[CandidateObject, MatchResult] | None:
        """Select the best archive for the keys, or None if there is none."""
        logger.debug("Finding exact match for: %s", primary_key)
        exact_name = object_name(primary_key, cache_file_name(self._compression))
        best = select_best(await self._candidates(bucket, exact_name), primary_key)
        if best is not None:
            return best

        for prefix in restore_key_prefixes:
            logger.debug("Finding object with prefix: %s", prefix)
            best = select_best(
                await self._candidates(bucket, prefix), primary_key, restore_key_prefixes
            )
            if best is not None:
                return best
        return None

    async def _candidates(self, bucket: str, prefix: str) -> list[CandidateObject]:
        """Archives stored under prefix, each tagged with its cache key."""
        file_name = cache_file_name(self._compression)
        found: list[CandidateObject] = []
        for obj in await self._store.list_objects(bucket, prefix):
            key = key_from_object_name(obj.name, file_name)
            if key is not None:
                found.append(obj.model_copy(update={"key": key}))
        logger.debug("Found %d archive(s) under %s", len(found), prefix)
        return found
