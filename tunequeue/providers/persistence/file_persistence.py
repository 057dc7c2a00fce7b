"""File-backed persistence provider (one file per key).

The desktop/browser-storage analogue: each key maps to a small UTF-8 text
file inside ``base_dir``.  Writes go to a temporary sibling first and are
moved into place with ``os.replace`` so a crash mid-write never leaves a
truncated payload behind.  Blocking file I/O runs via ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import os
import re
from pathlib import Path

import structlog

from tunequeue.interfaces.persistence_provider import IPersistenceProvider
from tunequeue.utils.errors import PersistenceError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DIR = Path("data/state")
_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._-]+")


class FilePersistenceProvider(IPersistenceProvider):
    """Stores each key as ``<base_dir>/<sanitised key>.txt``."""

    def __init__(self, base_dir: str | Path = _DEFAULT_DIR) -> None:
        self._base_dir = Path(base_dir)

    def _path_for(self, key: str) -> Path:
        safe = _UNSAFE_CHARS_RE.sub("_", key).strip("_") or "_"
        return self._base_dir / f"{safe}.txt"

    # -- Sync helpers (executed via asyncio.to_thread) -------------------------

    def _read_sync(self, path: Path) -> str | None:
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write_sync(self, path: Path, value: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        os.replace(tmp_path, path)

    # ------------------------------------------------------------------
    # IPersistenceProvider implementation
    # ------------------------------------------------------------------

    async def get_item(self, key: str) -> str | None:
        path = self._path_for(key)
        try:
            return await asyncio.to_thread(self._read_sync, path)
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceError(
                message=f"Failed to read {path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def set_item(self, key: str, value: str) -> None:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(self._write_sync, path, value)
        except OSError as exc:
            raise PersistenceError(
                message=f"Failed to write {path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.debug("file_persistence_set", key=key, path=str(path), size=len(value))

    async def remove_item(self, key: str) -> None:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as exc:
            raise PersistenceError(
                message=f"Failed to remove {path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def exists(self, key: str) -> bool:
        return await asyncio.to_thread(self._path_for(key).exists)

    def get_provider_name(self) -> str:
        return "file"
