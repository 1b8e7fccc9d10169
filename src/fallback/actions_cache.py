# src/fallback/actions_cache.py — v1
"""GitHub Actions cache service backend (the hosted cache used by actions/cache).

Uses the results service twirp API: one call resolves the key and restore
keys to a signed download URL, then the archive is fetched and extracted.
Entries are scoped by a version hash over the cached paths and the
compression method, computed exactly as actions/cache does so caches it
saved can be restored here.
"""

from __future__ import annotations

import hashlib
import json
import logging
import shutil
import sys
import tempfile
import urllib.request
from collections.abc import Sequence
from pathlib import Path

from tiercache.archive.compression import CompressionMethod, cache_file_name
from tiercache.archive.tar import extract_archive
from tiercache.config.settings import RunnerEnvironment
from tiercache.fallback.base_fallback import BaseFallbackBackend

logger = logging.getLogger(__name__)

_SERVICE_PATH = (
    "twirp/github.actions.results.api.v1.CacheService/GetCacheEntryDownloadURL"
)
_VERSION_SALT = "1.0"
MAX_KEY_LENGTH = 512
MAX_KEY_COUNT = 10


def cache_version(paths: Sequence[str], compression: CompressionMethod) -> str:
    """Version hash scoping cache entries to paths and compression."""
    components = [*paths, compression.value]
    if sys.platform == "win32":
        components.append("windows-only")
    components.append(_VERSION_SALT)
    return hashlib.sha256("|".join(components).encode("utf-8")).hexdigest()


def validate_keys(primary_key: str, restore_keys: Sequence[str]) -> None:
    """Apply the service's key limits.

    Raises:
        ValueError: On too many keys, an over-long key or a key with a comma.
    """
    keys = [primary_key, *restore_keys]
    if len(keys) > MAX_KEY_COUNT:
        raise ValueError(
            f"Key Validation Error: Keys are limited to a maximum of {MAX_KEY_COUNT}."
        )
    for key in keys:
        if len(key) > MAX_KEY_LENGTH:
            raise ValueError(
                f"Key Validation Error: {key} cannot be larger than {MAX_KEY_LENGTH} characters."
            )
        if "," in key:
            raise ValueError(f"Key Validation Error: {key} cannot contain commas.")


class ActionsCacheBackend(BaseFallbackBackend):
    """Restore from the hosted GitHub Actions cache."""

    def __init__(
        self,
        env: RunnerEnvironment,
        compression: CompressionMethod,
        timeout_seconds: float = 60.0,
    ) -> None:
        self._env = env
        self._compression = compression
        self._timeout = timeout_seconds

    async def restore(
        self,
        paths: Sequence[str],
        primary_key: str,
        restore_keys: Sequence[str],
    ) -> str | None:
        """Resolve, download and extract the best entry for the keys."""
        if not paths:
            raise ValueError("Path Validation Error: At least one directory or file path is required")
        validate_keys(primary_key, restore_keys)

        entry = self._get_download_url(
            primary_key, list(restore_keys), cache_version(paths, self._compression)
        )
        if entry is None:
            logger.debug("Fallback cache has no entry for %s", primary_key)
            return None
        matched_key, url = entry

        if self._env.runner_temp is not None:
            self._env.runner_temp.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(
            prefix="tiercache-fallback-", dir=self._env.runner_temp
        ) as tmp:
            archive_path = Path(tmp) / cache_file_name(self._compression)
            self._download(url, archive_path)
            logger.info(
                "Fallback cache downloaded (%d bytes)", archive_path.stat().st_size
            )
            extract_archive(archive_path, self._compression, self._env.workspace)

        return matched_key

    def _get_download_url(
        self, key: str, restore_keys: list[str], version: str
    ) -> tuple[str, str] | None:
        """Ask the cache service for a signed URL; None when nothing matches."""
        base_url = self._env.actions_results_url
        token = self._env.actions_runtime_token
        if not base_url or not token:
            raise RuntimeError(
                "Cache service url not found, ensure ACTIONS_RESULTS_URL and "
                "ACTIONS_RUNTIME_TOKEN are set"
            )

        url = f"{base_url.rstrip('/')}/{_SERVICE_PATH}"
        payload = json.dumps(
            {"key": key, "restore_keys": restore_keys, "version": version}
        ).encode("utf-8")
        req = urllib.request.Request(
            url,
            data=payload,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                "Authorization": f"Bearer {token}",
            },
            method="POST",
        )
        with urllib.request.urlopen(req, timeout=self._timeout) as resp:
            data = json.loads(resp.read().decode("utf-8"))

        if not data.get("ok"):
            return None
        signed_url = data.get("signed_download_url") or ""
        matched_key = data.get("matched_key") or ""
        if not signed_url or not matched_key:
            return None
        return matched_key, signed_url

    def _download(self, url: str, dest: Path) -> None:
        req = urllib.request.Request(url, method="GET")
        with urllib.request.urlopen(req, timeout=self._timeout) as resp, open(dest, "wb") as f:
            shutil.copyfileobj(resp, f)
