# src/storage/base_object_store.py — v1
"""Abstract object store interface used by the remote tier."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from tiercache.core.models import CandidateObject


class BaseObjectStore(ABC):
    """Read side of an object storage backend."""

    @abstractmethod
    async def list_objects(self, bucket: str, prefix: str) -> list[CandidateObject]:
        """List every object whose name starts with prefix.

        Returned candidates carry the object name as ``key``; callers
        derive the cache key from the name.
        """

    @abstractmethod
    async def download(self, bucket: str, name: str, dest: Path) -> None:
        """Download an object to a local file."""
