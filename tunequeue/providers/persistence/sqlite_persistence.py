"""SQLite-backed persistence provider.

The IndexedDB / mobile-persistent-storage analogue: a single ``kv_store``
table in a local SQLite file.  Uses ``aiosqlite`` for async I/O.  Call
:meth:`initialize` once at startup to create the table.
"""

from __future__ import annotations

from pathlib import Path

import aiosqlite
import structlog

from tunequeue.interfaces.persistence_provider import IPersistenceProvider
from tunequeue.utils.errors import PersistenceError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/tunequeue_state.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS kv_store (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    updated_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""

_UPSERT_SQL = """\
INSERT INTO kv_store (key, value)
VALUES (?, ?)
ON CONFLICT(key)
DO UPDATE SET value      = excluded.value,
              updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now');
"""


class SQLitePersistenceProvider(IPersistenceProvider):
    """Key/value persistence in a local SQLite database."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the key/value table if it doesn't exist."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_CREATE_TABLE_SQL)
                await db.commit()
        except (aiosqlite.Error, OSError) as exc:
            raise PersistenceError(
                message=f"Failed to initialise {self._db_path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("sqlite_persistence_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # IPersistenceProvider implementation
    # ------------------------------------------------------------------

    async def get_item(self, key: str) -> str | None:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise PersistenceError(
                message=f"Failed to read key {key!r}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return row[0] if row else None

    async def set_item(self, key: str, value: str) -> None:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_UPSERT_SQL, (key, value))
                await db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceError(
                message=f"Failed to write key {key!r}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.debug("sqlite_persistence_set", key=key, size=len(value))

    async def remove_item(self, key: str) -> None:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                await db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceError(
                message=f"Failed to remove key {key!r}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def exists(self, key: str) -> bool:
        return await self.get_item(key) is not None

    def get_provider_name(self) -> str:
        return "sqlite"
