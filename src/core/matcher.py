# src/core/matcher.py — v1
"""Key matching: decides whether a stored key is a hit and how good a hit it is.

Used by every tier, so "what counts as a hit" has a single definition.

Ranking among several matching candidates is a total order:
  1. exact match before any restore-key match
  2. earlier restore-key prefix before later ones
  3. longer (more specific) stored key
  4. more recently modified (unknown timestamps rank oldest)
  5. lexicographically greater object name
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from tiercache.core.models import NO_MATCH, CandidateObject, MatchResult

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def match_key(
    candidate_key: str,
    primary_key: str,
    restore_key_prefixes: Sequence[str] = (),
) -> MatchResult:
    """Classify a stored key against the primary key and restore prefixes.

    Args:
        candidate_key: Key the archive was stored under.
        primary_key: Exact key requested.
        restore_key_prefixes: Fallback prefixes, highest priority first.

    Returns:
        Exact match, fallback match naming the first matching prefix, or
        NO_MATCH.
    """
    if candidate_key == primary_key:
        return MatchResult(matched_key=candidate_key, is_exact=True)
    for prefix in restore_key_prefixes:
        if prefix and candidate_key.startswith(prefix):
            return MatchResult(
                matched_key=candidate_key, is_exact=False, restore_prefix=prefix
            )
    return NO_MATCH


def _prefix_index(match: MatchResult, restore_key_prefixes: Sequence[str]) -> int:
    if match.is_exact:
        return -1
    return list(restore_key_prefixes).index(match.restore_prefix)


def _timestamp(candidate: CandidateObject) -> datetime:
    ts = candidate.last_modified
    if ts is None:
        return _EPOCH
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def candidate_rank(
    candidate: CandidateObject,
    match: MatchResult,
    restore_key_prefixes: Sequence[str],
) -> tuple:
    """Sort key for a matching candidate; smaller ranks first."""
    return (
        _prefix_index(match, restore_key_prefixes),
        -len(candidate.key),
        -_timestamp(candidate).timestamp(),
        _Reversed(candidate.name),
    )


class _Reversed:
    """Wraps a string so that sorting ascending orders it descending."""

    __slots__ = ("value",)

    def __init__(self, value: str) -> None:
        self.value = value

    def __lt__(self, other: _Reversed) -> bool:
        return self.value > other.value

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _Reversed) and self.value == other.value


def select_best(
    candidates: Iterable[CandidateObject],
    primary_key: str,
    restore_key_prefixes: Sequence[str] = (),
) -> tuple[CandidateObject, MatchResult] | None:
    """Pick the best matching candidate, or None if nothing matches."""
    matching: list[tuple[tuple, CandidateObject, MatchResult]] = []
    for candidate in candidates:
        match = match_key(candidate.key, primary_key, restore_key_prefixes)
        if match.hit:
            rank = candidate_rank(candidate, match, restore_key_prefixes)
            matching.append((rank, candidate, match))
    if not matching:
        return None
    _, best, match = min(matching, key=lambda item: item[0])
    return best, match
