# src/runtime/environment.py — v1
"""Facts about the runner the restore is executing on."""

from __future__ import annotations

import tempfile
from pathlib import Path

from tiercache.config.settings import RunnerEnvironment

_HOSTED_SERVER = "github.com"


def is_ghes(env: RunnerEnvironment) -> bool:
    """True on GitHub Enterprise Server, where the hosted cache service is unavailable."""
    return env.server_hostname != _HOSTED_SERVER


def create_scratch_dir(env: RunnerEnvironment) -> Path:
    """Create a fresh directory for downloaded archives, under RUNNER_TEMP if set."""
    parent = env.runner_temp
    if parent is not None:
        parent.mkdir(parents=True, exist_ok=True)
    return Path(tempfile.mkdtemp(prefix="tiercache-", dir=parent))
