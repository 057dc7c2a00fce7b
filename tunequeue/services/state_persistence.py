"""Saves and restores engine state through an ``IPersistenceProvider``.

Two opaque string blobs are stored under fixed keys:

    tunequeue:embeddings   base64 export from ``EmbeddingTrainer``
    tunequeue:queue        JSON ``QueueState`` from ``AutoQueueManager``

Every method returns ``True`` on success and ``False`` otherwise.  Storage
failures and corrupt payloads are logged and swallowed here so a broken
store degrades to "no prior state" instead of taking the service down; the
in-memory state is never touched by a failed load.
"""

from __future__ import annotations

from tunequeue.interfaces.persistence_provider import IPersistenceProvider
from tunequeue.services.auto_queue import AutoQueueManager
from tunequeue.services.embedding_trainer import EmbeddingTrainer
from tunequeue.utils.errors import MalformedImportError, PersistenceError
from tunequeue.utils.logging import get_logger

EMBEDDINGS_KEY = "tunequeue:embeddings"
QUEUE_KEY = "tunequeue:queue"


class StatePersistenceService:
    """Bridges the trainer and queue manager to a persistence backend."""

    def __init__(
        self,
        provider: IPersistenceProvider,
        trainer: EmbeddingTrainer,
        queue_manager: AutoQueueManager | None = None,
    ) -> None:
        self._provider = provider
        self._trainer = trainer
        self._queue_manager = queue_manager
        self._logger = get_logger(__name__)

    @property
    def provider_name(self) -> str:
        return self._provider.get_provider_name()

    async def save_embeddings(self) -> bool:
        if len(self._trainer) == 0:
            self._logger.debug("embeddings_save_skipped", reason="empty")
            return False
        try:
            await self._provider.set_item(EMBEDDINGS_KEY, self._trainer.export_embeddings())
        except PersistenceError as exc:
            self._logger.warning("embeddings_save_failed", error=str(exc))
            return False
        self._logger.info("embeddings_saved", tracks=len(self._trainer), provider=self.provider_name)
        return True

    async def load_embeddings(self) -> bool:
        try:
            data = await self._provider.get_item(EMBEDDINGS_KEY)
            if data is None:
                self._logger.info("embeddings_not_stored", provider=self.provider_name)
                return False
            count = self._trainer.import_embeddings(data)
        except (PersistenceError, MalformedImportError) as exc:
            self._logger.warning("embeddings_import_failed", error=str(exc))
            return False
        self._logger.info("embeddings_restored", tracks=count, provider=self.provider_name)
        return True

    async def save_queue(self) -> bool:
        if self._queue_manager is None:
            return False
        payload = self._queue_manager.export_state().model_dump_json()
        try:
            await self._provider.set_item(QUEUE_KEY, payload)
        except PersistenceError as exc:
            self._logger.warning("queue_save_failed", error=str(exc))
            return False
        self._logger.info("queue_saved", provider=self.provider_name)
        return True

    async def load_queue(self) -> bool:
        if self._queue_manager is None:
            return False
        try:
            data = await self._provider.get_item(QUEUE_KEY)
            if data is None:
                return False
            self._queue_manager.import_state(data)
        except (PersistenceError, MalformedImportError) as exc:
            self._logger.warning("queue_import_failed", error=str(exc))
            return False
        self._logger.info("queue_restored", provider=self.provider_name)
        return True

    async def clear(self) -> None:
        """Remove both stored blobs.  Backend errors propagate."""
        await self._provider.remove_item(EMBEDDINGS_KEY)
        await self._provider.remove_item(QUEUE_KEY)
