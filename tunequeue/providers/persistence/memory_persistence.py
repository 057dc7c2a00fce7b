"""In-memory persistence provider using cachetools.LRUCache.

Process-local and lost on restart; suited to tests and ephemeral
deployments.  The LRU bound keeps a long-running process from accumulating
stale keys.
"""

from __future__ import annotations

import structlog
from cachetools import LRUCache

from tunequeue.interfaces.persistence_provider import IPersistenceProvider

logger = structlog.get_logger(logger_name=__name__)


class MemoryPersistenceProvider(IPersistenceProvider):
    """Dict-like key/value store backed by ``cachetools.LRUCache``.

    Parameters
    ----------
    max_entries:
        Maximum number of keys kept before the least-recently-used key is
        evicted.
    """

    def __init__(self, max_entries: int = 64) -> None:
        self._store: LRUCache[str, str] = LRUCache(maxsize=max_entries)

    # ------------------------------------------------------------------
    # IPersistenceProvider implementation
    # ------------------------------------------------------------------

    async def get_item(self, key: str) -> str | None:
        value = self._store.get(key)
        logger.debug("memory_persistence_get", key=key, hit=value is not None)
        return value

    async def set_item(self, key: str, value: str) -> None:
        self._store[key] = value
        logger.debug("memory_persistence_set", key=key, size=len(value))

    async def remove_item(self, key: str) -> None:
        self._store.pop(key, None)

    async def exists(self, key: str) -> bool:
        return key in self._store

    def get_provider_name(self) -> str:
        return "memory"
