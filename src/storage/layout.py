# src/storage/layout.py — v2
"""Where a cache key's archive lives, locally and in a bucket.

Both tiers store one archive per key:
    {key}/{archive file name}
"""

from __future__ import annotations

from pathlib import Path


def object_name(key: str, file_name: str) -> str:
    """Object name of the archive saved under key."""
    return f"{key}/{file_name}"


def key_from_object_name(name: str, file_name: str) -> str | None:
    """Recover the cache key from an object name, or None if it is not an archive."""
    suffix = f"/{file_name}"
    if not name.endswith(suffix) or len(name) == len(suffix):
        return None
    return name[: -len(suffix)]


def local_archive_path(local_root: str | Path, key: str, file_name: str) -> Path:
    """Path of the archive for key under a local cache root."""
    return Path(local_root).expanduser() / key / file_name
