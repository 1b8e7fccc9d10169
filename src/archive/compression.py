# src/archive/compression.py — v1
"""Compression method selection and the archive file name it implies.

Archive names match what the save phase (and actions/cache) write, so a
cache saved by either can be found here.
"""

from __future__ import annotations

import logging
import shutil
from enum import Enum

logger = logging.getLogger(__name__)


class CompressionMethod(str, Enum):
    """Supported archive compressions."""

    ZSTD = "zstd"
    GZIP = "gzip"
    NONE = "none"


_CACHE_FILE_NAMES = {
    CompressionMethod.ZSTD: "cache.tzst",
    CompressionMethod.GZIP: "cache.tgz",
    CompressionMethod.NONE: "cache.tar",
}


def cache_file_name(method: CompressionMethod) -> str:
    """Archive file name stored under each cache key."""
    return _CACHE_FILE_NAMES[method]


def detect_compression_method() -> CompressionMethod:
    """Prefer zstd when the zstd binary is on PATH, otherwise gzip."""
    if shutil.which("zstd"):
        return CompressionMethod.ZSTD
    return CompressionMethod.GZIP


def resolve_compression_method(setting: str) -> CompressionMethod:
    """Map the 'compression' input to a method ('auto' probes the runner).

    Raises:
        ValueError: If the setting names no known method.
    """
    if setting == "auto":
        method = detect_compression_method()
        logger.debug("Detected compression method: %s", method.value)
        return method
    return CompressionMethod(setting)
