# src/logging/context.py — v2
"""Contextual logging support — attach the active tier and cache key to records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_tier: contextvars.ContextVar[str | None] = contextvars.ContextVar("tier", default=None)
_cache_key: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "cache_key", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    tier: str | None = None
    cache_key: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(tier=_tier.get(), cache_key=_cache_key.get())


def set_restore_context(cache_key: str) -> None:
    """Set invocation-level context (called once per restore)."""
    _cache_key.set(cache_key)


def set_tier_context(tier: str | None) -> None:
    """Set the tier currently being consulted."""
    _tier.set(tier)


def clear_context() -> None:
    """Reset all context variables."""
    _tier.set(None)
    _cache_key.set(None)
