"""
Key-value storage interface for connections and rate-limit counters.

Call sites only see ``KeyValueStore``; ``InMemoryStore`` keeps everything
in process memory and is a stand-in for a real datastore (Redis, Postgres).
Values are JSON-compatible dicts so any backend can hold them.
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, Optional

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Async get / set / delete over JSON-compatible values."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def set(self, key: str, value: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove ``key``. Returns True if it existed."""
        ...


class InMemoryStore(KeyValueStore):
    """
    Dict-backed store. Nothing is ever evicted, so the number of entries
    grows with every distinct key written.

    Not safe under true parallel mutation; there are no locks.
    """

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, Any]] = {}

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        value = self._data.get(key)
        # Copies keep callers from mutating stored state in place.
        return copy.deepcopy(value) if value is not None else None

    async def set(self, key: str, value: Dict[str, Any]) -> None:
        self._data[key] = copy.deepcopy(value)

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self, prefix: str = "") -> Iterator[str]:
        return (k for k in list(self._data) if k.startswith(prefix))

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data
