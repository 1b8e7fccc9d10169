# src/core/models.py — v2
"""Core domain models shared by every tier and the orchestrator.

CacheRequest is built once from configuration and never mutated; tiers
report back through TierResult, and the orchestrator folds those into a
single RestoreReport.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class TierSource(str, Enum):
    """Tier that produced the final outcome."""

    NONE = "none"
    LOCAL = "local"
    REMOTE = "remote"
    FALLBACK = "fallback"


class CacheRequest(BaseModel):
    """Everything a restore needs, fixed for the whole invocation."""

    model_config = ConfigDict(frozen=True)

    primary_key: str
    restore_key_prefixes: tuple[str, ...] = ()
    paths: tuple[str, ...] = ()
    local_root: str | None = None
    bucket: str
    error_on_remote_exception: bool = False
    use_fallback: bool = False


class CandidateObject(BaseModel):
    """A stored archive found by a tier query."""

    model_config = ConfigDict(frozen=True)

    name: str
    key: str
    size: int = 0
    last_modified: datetime | None = None


class MatchResult(BaseModel):
    """How a stored key relates to the requested keys."""

    model_config = ConfigDict(frozen=True)

    matched_key: str | None = None
    is_exact: bool = False
    restore_prefix: str | None = None

    @property
    def hit(self) -> bool:
        return self.matched_key is not None


NO_MATCH = MatchResult()


class TierResult(BaseModel):
    """Typed result of one tier attempt."""

    source: TierSource
    status: Literal["hit", "miss", "error"]
    match: MatchResult = Field(default_factory=MatchResult)
    candidate: CandidateObject | None = None
    error: str | None = None

    @property
    def hit(self) -> bool:
        return self.status == "hit"

    @classmethod
    def miss(cls, source: TierSource) -> TierResult:
        return cls(source=source, status="miss")

    @classmethod
    def failure(cls, source: TierSource, error: str) -> TierResult:
        return cls(source=source, status="error", error=error)


class RestoreOutcome(BaseModel):
    """Externally visible result of the whole restore."""

    model_config = ConfigDict(frozen=True)

    hit: bool = False
    source: TierSource = TierSource.NONE


class RestoreReport(BaseModel):
    """Outcome plus everything needed to emit outputs and the exit status."""

    outcome: RestoreOutcome = Field(default_factory=RestoreOutcome)
    match: MatchResult = Field(default_factory=MatchResult)
    cache_hit: bool = False
    local_hit: bool = False
    failed: bool = False
    failure_message: str | None = None
    archive_size: int | None = None
    attempted: list[TierSource] = Field(default_factory=list)
