# src/restore/action.py — v2
"""Restore step entry: configuration in, outputs and exit status out.

Outputs:
    cache-hit        true only when the primary key matched exactly
    cache-hit-local  true when the local tier restored the archive
    matched-key      key of the restored entry (empty on miss)
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from tiercache.archive.compression import CompressionMethod, resolve_compression_method
from tiercache.config.settings import (
    ConfigurationError,
    RunnerEnvironment,
    Settings,
    load_runner_environment,
    load_settings,
)
from tiercache.core.models import CacheRequest, RestoreReport
from tiercache.core.units import format_size
from tiercache.fallback.base_fallback import BaseFallbackBackend
from tiercache.logging.context import clear_context
from tiercache.restore.orchestrator import RestoreOrchestrator
from tiercache.runtime.commands import set_output
from tiercache.runtime.environment import is_ghes
from tiercache.runtime.state import StateStore
from tiercache.storage.base_object_store import BaseObjectStore
from tiercache.tiers.fallback_tier import FallbackTier
from tiercache.tiers.local_tier import LocalTier
from tiercache.tiers.remote_tier import RemoteTier

logger = logging.getLogger(__name__)

OUTPUT_CACHE_HIT = "cache-hit"
OUTPUT_CACHE_HIT_LOCAL = "cache-hit-local"
OUTPUT_MATCHED_KEY = "matched-key"


def build_request(settings: Settings) -> CacheRequest:
    """Freeze action inputs into a CacheRequest."""
    return CacheRequest(
        primary_key=settings.key,
        restore_key_prefixes=tuple(settings.restore_keys_list),
        paths=tuple(settings.paths_list),
        local_root=settings.local_root,
        bucket=settings.bucket,
        error_on_remote_exception=settings.error_on_remote_exception,
        use_fallback=settings.use_fallback,
    )


def build_orchestrator(
    settings: Settings,
    env: RunnerEnvironment,
    state: StateStore,
    compression: CompressionMethod,
    store: BaseObjectStore | None = None,
    fallback_backend: BaseFallbackBackend | None = None,
) -> RestoreOrchestrator:
    """Wire tiers for the configured backends.

    Args:
        settings: Action inputs.
        env: Runner environment.
        state: State store for the save step.
        compression: Archive compression in use.
        store: Object store override (defaults to S3 from settings).
        fallback_backend: Fallback backend override (defaults to the
            GitHub Actions cache service).
    """
    if store is None:
        from tiercache.storage.store_factory import create_object_store

        store = create_object_store(settings)
    if fallback_backend is None:
        from tiercache.fallback.actions_cache import ActionsCacheBackend

        fallback_backend = ActionsCacheBackend(
            env, compression, timeout_seconds=settings.timeout_seconds
        )

    workdir = env.workspace
    return RestoreOrchestrator(
        remote=RemoteTier(
            store,
            compression,
            workdir,
            list_contents=logging.getLogger("tiercache").isEnabledFor(logging.DEBUG),
        ),
        state=state,
        env=env,
        local=LocalTier(compression, workdir),
        fallback=FallbackTier(fallback_backend),
        fallback_permitted=not is_ghes(env),
    )


def emit_outputs(report: RestoreReport, env: RunnerEnvironment) -> None:
    """Write step outputs for report."""
    set_output(OUTPUT_CACHE_HIT, report.cache_hit, env.github_output)
    set_output(OUTPUT_CACHE_HIT_LOCAL, report.local_hit, env.github_output)
    set_output(OUTPUT_MATCHED_KEY, report.match.matched_key or "", env.github_output)


def _log_summary(request: CacheRequest, report: RestoreReport) -> None:
    if report.failed:
        logger.error(report.failure_message)
    elif report.outcome.hit:
        kind = "exact match" if report.match.is_exact else "restore-key match"
        logger.info(
            "Cache restored from %s successfully (%s: %s)",
            report.outcome.source.value, kind, report.match.matched_key,
        )
        if report.archive_size:
            logger.info(
                "Restored archive size: %s (%d bytes)",
                format_size(report.archive_size), report.archive_size,
            )
    else:
        keys = ", ".join([request.primary_key, *request.restore_key_prefixes])
        logger.info("Cache not found for input keys: %s", keys)


async def run_restore(
    settings: Settings | None = None,
    env: RunnerEnvironment | None = None,
    store: BaseObjectStore | None = None,
    fallback_backend: BaseFallbackBackend | None = None,
) -> int:
    """Run the restore step.

    Returns:
        Process exit code: 1 for configuration errors and fatal remote
        failures, otherwise 0 (hit or miss).
    """
    try:
        settings = settings or load_settings()
    except (ConfigurationError, ValidationError) as e:
        logger.error("%s", e)
        return 1

    env = env or load_runner_environment()
    try:
        return await _restore(settings, env, store, fallback_backend)
    finally:
        clear_context()


async def _restore(
    settings: Settings,
    env: RunnerEnvironment,
    store: BaseObjectStore | None,
    fallback_backend: BaseFallbackBackend | None,
) -> int:
    state = StateStore(env.github_state)
    report = RestoreReport()
    try:
        compression = resolve_compression_method(settings.compression)
        request = build_request(settings)
        orchestrator = build_orchestrator(
            settings, env, state, compression, store=store, fallback_backend=fallback_backend
        )
        report = await orchestrator.run(request, settings.credentials)
    except Exception as e:
        # Unexpected failures never fail the build; the job runs uncached.
        logger.warning("warning: %s", e, exc_info=logger.isEnabledFor(logging.DEBUG))
        emit_outputs(report, env)
        return 0

    emit_outputs(report, env)
    _log_summary(request, report)
    return 1 if report.failed else 0
