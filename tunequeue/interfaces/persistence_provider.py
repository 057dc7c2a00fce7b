"""Abstract base class for persistence providers.

Defines the key/value storage contract used to persist trained embeddings
and auto-queue state between sessions.  Values are opaque strings produced by
``EmbeddingTrainer.export_embeddings`` and ``AutoQueueManager.export_state``;
the provider decides where they physically live (memory, files, SQLite).

The host application selects exactly one implementation at construction time
(see ``tunequeue.main._build_persistence_provider``); the engine never
branches on the platform it is running on.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IPersistenceProvider(ABC):
    """Contract for opaque-string key/value persistence.

    All operations are async so file and database backends never block the
    event loop.  Implementations raise
    :class:`~tunequeue.utils.errors.PersistenceError` on backend failures.
    """

    @abstractmethod
    async def get_item(self, key: str) -> str | None:
        """Return the value stored under *key*, or ``None`` if absent."""

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        """Delete *key*.  No-op if the key does not exist."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* currently holds a value."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short backend name used in logs and error messages."""
