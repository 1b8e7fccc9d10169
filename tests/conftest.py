# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides an in-memory object store, a scripted fallback backend, real tar
archives and an isolated runner environment. No network access.
"""

from __future__ import annotations

import io
import tarfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

from tiercache.archive.compression import CompressionMethod
from tiercache.config.settings import RunnerEnvironment
from tiercache.core.models import CacheRequest, CandidateObject
from tiercache.fallback.base_fallback import BaseFallbackBackend
from tiercache.storage.base_object_store import BaseObjectStore


# === Helpers ===


def build_archive(files: dict[str, str], method: CompressionMethod = CompressionMethod.GZIP) -> bytes:
    """Build a tar archive in memory from {member name: text content}."""
    mode = "w:gz" if method == CompressionMethod.GZIP else "w"
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode=mode) as tar:
        for name, content in files.items():
            data = content.encode("utf-8")
            info = tarfile.TarInfo(name=name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


class InMemoryObjectStore(BaseObjectStore):
    """Object store backed by a dict, recording every call."""

    def __init__(self) -> None:
        self.objects: dict[str, tuple[bytes, datetime]] = {}
        self.list_calls: list[str] = []
        self.download_calls: list[str] = []
        self.error: Exception | None = None

    def put(self, name: str, data: bytes, last_modified: datetime | None = None) -> None:
        ts = last_modified or datetime(2026, 1, 1, tzinfo=timezone.utc)
        self.objects[name] = (data, ts)

    async def list_objects(self, bucket: str, prefix: str) -> list[CandidateObject]:
        self.list_calls.append(prefix)
        if self.error is not None:
            raise self.error
        return [
            CandidateObject(name=name, key=name, size=len(data), last_modified=ts)
            for name, (data, ts) in sorted(self.objects.items())
            if name.startswith(prefix)
        ]

    async def download(self, bucket: str, name: str, dest: Path) -> None:
        self.download_calls.append(name)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(self.objects[name][0])


class ScriptedFallbackBackend(BaseFallbackBackend):
    """Fallback backend returning a fixed key (or raising), recording calls."""

    def __init__(self, matched_key: str | None = None, error: Exception | None = None) -> None:
        self.matched_key = matched_key
        self.error = error
        self.calls: list[tuple[list[str], str, list[str]]] = []

    async def restore(self, paths, primary_key, restore_keys):
        self.calls.append((list(paths), primary_key, list(restore_keys)))
        if self.error is not None:
            raise self.error
        return self.matched_key


# === FIXTURES ===


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    ws = tmp_path / "workspace"
    ws.mkdir()
    return ws


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    return scratch


@pytest.fixture
def runner_env(tmp_path: Path, workspace: Path) -> RunnerEnvironment:
    """Runner environment with every file and directory under tmp_path."""
    return RunnerEnvironment(
        github_server_url="https://github.com",
        github_workspace=workspace,
        runner_temp=tmp_path / "runner_temp",
        github_output=tmp_path / "github_output",
        github_state=tmp_path / "github_state",
        runner_debug="",
        actions_results_url="https://results.example.test/",
        actions_runtime_token="runtime-token",
    )


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def sample_request() -> CacheRequest:
    return CacheRequest(
        primary_key="build-42",
        restore_key_prefixes=("build-",),
        paths=("dist",),
        bucket="ci-cache",
        use_fallback=True,
    )


@pytest.fixture
def gzip_archive() -> bytes:
    return build_archive({"dist/app.txt": "built"})


@pytest.fixture
def make_archive():
    """Factory fixture: build_archive(files, method) -> bytes."""
    return build_archive


@pytest.fixture
def make_fallback():
    """Factory fixture: ScriptedFallbackBackend(matched_key=None, error=None)."""
    return ScriptedFallbackBackend
