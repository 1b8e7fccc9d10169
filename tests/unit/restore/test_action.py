# tests/unit/restore/test_action.py — v2
"""Tests for restore/action.py — settings in, outputs and exit code out."""

from __future__ import annotations

import logging
from unittest.mock import patch

import pytest

from tiercache.archive.compression import CompressionMethod
from tiercache.config.settings import Settings
from tiercache.core.models import TierSource
from tiercache.logging.context import get_context
from tiercache.restore.action import build_orchestrator, build_request, run_restore
from tiercache.runtime.state import StateStore


def _settings(**kwargs) -> Settings:
    defaults = dict(
        bucket="ci-cache",
        key="build-42",
        restore_keys="build-\n\n  main-  \n",
        path="dist\nnode_modules",
        compression="gzip",
    )
    defaults.update(kwargs)
    return Settings(**defaults)


def _outputs(runner_env) -> str:
    return runner_env.github_output.read_text()


class TestBuildRequest:
    def test_request_fields(self):
        request = build_request(_settings(local="  /mnt/cache ", error_on_remote_exception="true"))
        assert request.primary_key == "build-42"
        assert request.restore_key_prefixes == ("build-", "main-")
        assert request.paths == ("dist", "node_modules")
        assert request.local_root == "/mnt/cache"
        assert request.error_on_remote_exception is True
        assert request.use_fallback is True


class TestBuildOrchestrator:
    def test_ghes_disables_fallback(self, runner_env, object_store, make_fallback):
        env = runner_env.model_copy(update={"github_server_url": "https://ghe.corp.example"})
        orch = build_orchestrator(
            _settings(), env, StateStore(), CompressionMethod.GZIP,
            store=object_store, fallback_backend=make_fallback(),
        )
        assert orch._fallback_permitted is False


class TestRunRestore:
    @pytest.mark.asyncio
    async def test_missing_inputs_exit_1(self, runner_env, caplog):
        caplog.set_level(logging.ERROR, logger="tiercache")
        with patch("tiercache.restore.action.load_settings", side_effect=Settings):
            code = await run_restore(env=runner_env)
        assert code == 1
        assert "Input required and not supplied" in caplog.text

    @pytest.mark.asyncio
    async def test_hit_writes_outputs_and_state(self, runner_env, object_store, make_fallback, make_archive):
        object_store.put("build-42/cache.tgz", make_archive({"dist/app.txt": "hit"}))

        code = await run_restore(
            _settings(), runner_env, store=object_store, fallback_backend=make_fallback()
        )

        assert code == 0
        out = _outputs(runner_env)
        assert "cache-hit<<" in out and "\ntrue\n" in out
        assert "\nbuild-42\n" in out
        state = runner_env.github_state.read_text()
        assert state.startswith("primary-key<<")
        assert "matched-key<<" in state

    @pytest.mark.asyncio
    async def test_miss_exit_0(self, runner_env, object_store, make_fallback, caplog):
        caplog.set_level(logging.INFO, logger="tiercache")
        code = await run_restore(
            _settings(), runner_env, store=object_store, fallback_backend=make_fallback()
        )
        assert code == 0
        assert "Cache not found for input keys: build-42, build-, main-" in caplog.text
        assert "matched-key<<" not in runner_env.github_state.read_text()

    @pytest.mark.asyncio
    async def test_fatal_remote_error_exit_1(self, runner_env, object_store, make_fallback):
        object_store.error = PermissionError("AccessDenied")
        code = await run_restore(
            _settings(error_on_remote_exception="true", use_fallback="false"),
            runner_env,
            store=object_store,
            fallback_backend=make_fallback(),
        )
        assert code == 1

    @pytest.mark.asyncio
    async def test_unexpected_error_is_warning(self, runner_env, object_store, make_fallback, caplog):
        caplog.set_level(logging.WARNING, logger="tiercache")
        with patch(
            "tiercache.restore.action.RestoreOrchestrator.run",
            side_effect=RuntimeError("unexpected"),
        ):
            code = await run_restore(
                _settings(), runner_env, store=object_store, fallback_backend=make_fallback()
            )
        assert code == 0
        assert "unexpected" in caplog.text
        assert "cache-hit<<" in _outputs(runner_env)

    @pytest.mark.asyncio
    async def test_remote_source_reported(self, runner_env, object_store, make_fallback, make_archive, caplog):
        caplog.set_level(logging.INFO, logger="tiercache")
        object_store.put("main-3/cache.tgz", make_archive({"dist/app.txt": "main"}))

        await run_restore(_settings(), runner_env, store=object_store, fallback_backend=make_fallback())

        assert f"Cache restored from {TierSource.REMOTE.value}" in caplog.text
        assert "restore-key match: main-3" in caplog.text
        assert "Restored archive size: " in caplog.text

    @pytest.mark.asyncio
    async def test_logging_context_cleared_after_run(self, runner_env, object_store, make_fallback):
        await run_restore(_settings(), runner_env, store=object_store, fallback_backend=make_fallback())
        assert get_context().as_dict() == {}
