"""Abstract base class for catalog / session-log sources.

The catalog and the historical listening sessions come from outside the
engine.  A dataset provider returns raw records; validation into ``Track``
and ``Session`` models happens in the services so a bad record is dropped
rather than aborting startup.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class IDatasetProvider(ABC):
    """Contract for loading raw track and session records."""

    @abstractmethod
    async def load_tracks(self) -> list[dict[str, Any]]:
        """Return raw track records (schema of ``tunequeue.models.Track``).

        Returns an empty list when the source holds no tracks.
        """

    @abstractmethod
    async def load_sessions(self) -> list[dict[str, Any]]:
        """Return raw ``{userId, sessionId, tracks: [...]}`` session records."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short source name used in logs."""
