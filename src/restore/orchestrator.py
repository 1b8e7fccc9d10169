# src/restore/orchestrator.py — v2
"""Tier orchestrator: consult tiers one at a time until one hits.

Stages:
  START -> LOCAL_LOOKUP     local root configured
  START -> REMOTE_LOOKUP    otherwise
  LOCAL_LOOKUP -> DONE            hit
  LOCAL_LOOKUP -> REMOTE_LOOKUP   miss or local failure
  REMOTE_LOOKUP -> DONE             hit, or no object found
  REMOTE_LOOKUP -> FALLBACK_LOOKUP  remote failure, fallback enabled and permitted
  REMOTE_LOOKUP -> DONE             remote failure otherwise
  FALLBACK_LOOKUP -> DONE

Tier errors are reduced to TierResult here and nowhere else, so the error
policy (fatal vs logged) is applied in one place.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Mapping
from enum import Enum
from pathlib import Path

from tiercache.config.settings import RunnerEnvironment
from tiercache.core.errors import TierError
from tiercache.core.models import (
    CacheRequest,
    RestoreOutcome,
    RestoreReport,
    TierResult,
    TierSource,
)
from tiercache.logging.context import set_restore_context, set_tier_context
from tiercache.runtime.environment import create_scratch_dir
from tiercache.runtime.state import StateKey, StateStore
from tiercache.tiers.base_tier import BaseTier

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    """Orchestrator state."""

    START = "start"
    LOCAL_LOOKUP = "local_lookup"
    REMOTE_LOOKUP = "remote_lookup"
    FALLBACK_LOOKUP = "fallback_lookup"
    DONE = "done"


def next_stage(
    stage: Stage,
    request: CacheRequest,
    result: TierResult | None,
    fallback_permitted: bool,
) -> Stage:
    """Pure transition function.

    Args:
        stage: Current stage.
        request: The restore request (local root, fallback flag).
        result: Result of the tier run in the current stage, if any.
        fallback_permitted: Whether the environment allows the fallback tier.

    Returns:
        The stage to enter next.
    """
    if stage is Stage.START:
        return Stage.LOCAL_LOOKUP if request.local_root else Stage.REMOTE_LOOKUP

    if stage is Stage.LOCAL_LOOKUP:
        if result is not None and result.hit:
            return Stage.DONE
        return Stage.REMOTE_LOOKUP

    if stage is Stage.REMOTE_LOOKUP:
        if result is not None and result.status == "error":
            if request.use_fallback and fallback_permitted:
                return Stage.FALLBACK_LOOKUP
        return Stage.DONE

    return Stage.DONE


class RestoreOrchestrator:
    """Sequence the tiers and fold their results into a RestoreReport.

    Args:
        remote: Remote object-store tier.
        state: Store for the values the save step needs.
        env: Runner environment (scratch location).
        local: Local tier, consulted when the request has a local root.
        fallback: Fallback tier, consulted after a remote failure.
        fallback_permitted: False in environments that cannot reach the
            fallback backend.
    """

    def __init__(
        self,
        remote: BaseTier,
        state: StateStore,
        env: RunnerEnvironment,
        local: BaseTier | None = None,
        fallback: BaseTier | None = None,
        fallback_permitted: bool = True,
    ) -> None:
        self._tiers: dict[Stage, BaseTier | None] = {
            Stage.LOCAL_LOOKUP: local,
            Stage.REMOTE_LOOKUP: remote,
            Stage.FALLBACK_LOOKUP: fallback,
        }
        self._state = state
        self._env = env
        self._fallback_permitted = fallback_permitted

    async def run(
        self, request: CacheRequest, credentials: Mapping[str, str] | None = None
    ) -> RestoreReport:
        """Restore the cache for request.

        The primary key and credential snapshot are saved before any tier
        runs; the matched key is saved when a tier hits.
        """
        set_restore_context(request.primary_key)
        self._state.save_request(request.primary_key, credentials or {})

        report = RestoreReport()
        remote_error: str | None = None
        result: TierResult | None = None
        stage = Stage.START
        fallback_available = (
            self._fallback_permitted and self._tiers[Stage.FALLBACK_LOOKUP] is not None
        )

        scratch_dir = create_scratch_dir(self._env)
        try:
            while True:
                stage = next_stage(stage, request, result, fallback_available)
                if stage is Stage.DONE:
                    break
                result = await self._attempt(stage, request, scratch_dir)
                report.attempted.append(result.source)

                if stage is Stage.LOCAL_LOOKUP:
                    report.local_hit = result.hit
                    if result.status == "error":
                        logger.warning(
                            "Local cache restore failed, trying remote: %s", result.error
                        )
                elif stage is Stage.REMOTE_LOOKUP and result.status == "error":
                    remote_error = result.error
                    logger.warning("Restore s3 cache failed: %s", remote_error)
                    if request.use_fallback and not self._fallback_permitted:
                        logger.warning(
                            "Cache fallback is not supported on GitHub Enterprise Server."
                        )
                elif stage is Stage.FALLBACK_LOOKUP and result.status == "error":
                    logger.warning("Fallback cache restore failed: %s", result.error)
        finally:
            set_tier_context(None)
            shutil.rmtree(scratch_dir, ignore_errors=True)

        if result is not None and result.hit:
            report.outcome = RestoreOutcome(hit=True, source=result.source)
            report.match = result.match
            report.cache_hit = result.match.is_exact
            if result.candidate is not None:
                report.archive_size = result.candidate.size
            self._state.save(StateKey.MATCHED_KEY, result.match.matched_key or "")

        if remote_error is not None and request.error_on_remote_exception:
            if not report.outcome.hit:
                report.failed = True
                report.failure_message = f"Restore s3 cache failed: {remote_error}"

        return report

    async def _attempt(
        self, stage: Stage, request: CacheRequest, scratch_dir: Path
    ) -> TierResult:
        """Run the tier for stage, reducing TierError to a failed TierResult."""
        tier = self._tiers[stage]
        if tier is None:
            return TierResult.miss(_SOURCE_BY_STAGE[stage])

        set_tier_context(tier.source.value)
        try:
            return await tier.lookup(request, scratch_dir)
        except TierError as e:
            return TierResult.failure(tier.source, e.message)


_SOURCE_BY_STAGE = {
    Stage.LOCAL_LOOKUP: TierSource.LOCAL,
    Stage.REMOTE_LOOKUP: TierSource.REMOTE,
    Stage.FALLBACK_LOOKUP: TierSource.FALLBACK,
}
