"""JSON-file dataset provider.

Reads the catalog (``tracks.json``) and the session log (``sessions.json``)
from disk.  Both files hold a top-level JSON array.  A missing file yields an
empty list with a warning; a file that is present but unparseable is a
startup configuration error.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import structlog

from tunequeue.interfaces.dataset_provider import IDatasetProvider
from tunequeue.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)


class JSONDatasetProvider(IDatasetProvider):
    """Loads raw track and session records from two JSON files."""

    def __init__(
        self,
        tracks_path: str | Path = "data/tracks.json",
        sessions_path: str | Path = "data/sessions.json",
    ) -> None:
        self._tracks_path = Path(tracks_path)
        self._sessions_path = Path(sessions_path)

    async def load_tracks(self) -> list[dict[str, Any]]:
        records = await asyncio.to_thread(self._read_array, self._tracks_path)
        logger.info("tracks_loaded", path=str(self._tracks_path), count=len(records))
        return records

    async def load_sessions(self) -> list[dict[str, Any]]:
        records = await asyncio.to_thread(self._read_array, self._sessions_path)
        logger.info("sessions_loaded", path=str(self._sessions_path), count=len(records))
        return records

    def get_provider_name(self) -> str:
        return "json"

    def _read_array(self, path: Path) -> list[dict[str, Any]]:
        if not path.exists():
            logger.warning("dataset_file_missing", path=str(path))
            return []
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ConfigurationError(
                message=f"Cannot read dataset file {path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not isinstance(data, list):
            raise ConfigurationError(
                message=f"Dataset file {path} must contain a JSON array",
                provider_name=self.get_provider_name(),
            )
        return [item for item in data if isinstance(item, dict)]
