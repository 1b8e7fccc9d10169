# src/archive/tar.py — v1
"""Tar extraction and listing.

gzip and uncompressed archives are handled with tarfile; zstd archives go
through the system tar so long-distance-matching frames written by the save
phase decode correctly.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tarfile
from pathlib import Path

from tiercache.archive.compression import CompressionMethod
from tiercache.core.errors import ArchiveError

logger = logging.getLogger(__name__)

_TARFILE_MODES = {
    CompressionMethod.GZIP: "r:gz",
    CompressionMethod.NONE: "r:",
}

_ZSTD_PROGRAM = "zstd -d --long=30"


def _run_tar(args: list[str]) -> str:
    tar = shutil.which("tar")
    if tar is None:
        raise ArchiveError("tar executable not found on PATH")
    result = subprocess.run(
        [tar, *args], capture_output=True, text=True, check=False
    )
    if result.returncode != 0:
        raise ArchiveError(
            f"tar exited with code {result.returncode}: {result.stderr.strip()}"
        )
    return result.stdout


def extract_archive(
    archive_path: Path, method: CompressionMethod, workdir: Path
) -> None:
    """Extract an archive into workdir.

    Members are stored relative to the workspace the save phase ran in,
    which may include paths above it (e.g. ``../.cache``); they are restored
    to the same relative location.

    Raises:
        ArchiveError: If the archive is unreadable or extraction fails.
    """
    workdir.mkdir(parents=True, exist_ok=True)
    logger.debug("Extracting %s into %s", archive_path, workdir)

    if method == CompressionMethod.ZSTD:
        _run_tar([
            "-xf", str(archive_path), "-P", "-C", str(workdir),
            "--use-compress-program", _ZSTD_PROGRAM,
        ])
        return

    try:
        with tarfile.open(archive_path, _TARFILE_MODES[method]) as tar:
            tar.extractall(path=workdir, filter="fully_trusted")
    except (tarfile.TarError, OSError) as e:
        raise ArchiveError(f"Failed to extract {archive_path.name}: {e}") from e


def list_archive(archive_path: Path, method: CompressionMethod) -> list[str]:
    """List archive member names without modifying the archive."""
    if method == CompressionMethod.ZSTD:
        output = _run_tar([
            "-tf", str(archive_path), "-P",
            "--use-compress-program", _ZSTD_PROGRAM,
        ])
        return [line for line in output.splitlines() if line]

    try:
        with tarfile.open(archive_path, _TARFILE_MODES[method]) as tar:
            return tar.getnames()
    except (tarfile.TarError, OSError) as e:
        raise ArchiveError(f"Failed to list {archive_path.name}: {e}") from e
