"""Persistence providers.

Three interchangeable backends for trained embeddings and queue state:

- MemoryPersistenceProvider -- process-local LRU store (tests, ephemeral runs)
- FilePersistenceProvider   -- one text file per key (browser-storage analogue)
- SQLitePersistenceProvider -- aiosqlite key/value table (IndexedDB analogue)
"""

from tunequeue.providers.persistence.file_persistence import FilePersistenceProvider
from tunequeue.providers.persistence.memory_persistence import MemoryPersistenceProvider
from tunequeue.providers.persistence.sqlite_persistence import SQLitePersistenceProvider

__all__ = [
    "FilePersistenceProvider",
    "MemoryPersistenceProvider",
    "SQLitePersistenceProvider",
]
