"""Custom exception hierarchy for TuneQueue.

All application exceptions inherit from :class:`TuneQueueError`, which
carries an optional ``provider_name`` so error handlers can identify which
backend (e.g. "sqlite", "file") caused the failure.

The hierarchy follows the failure modes of the recommendation engine:

    TuneQueueError  (base -- catch-all for any tunequeue error)
    +-- TrackNotFoundError       (unknown track id in a recommendation query)
    +-- TrainingInProgressError  (training invoked while a run is active)
    +-- PersistenceError         (storage backend read/write failure)
    +-- MalformedImportError     (corrupt serialized embeddings / queue state)
    +-- ConfigurationError       (startup / invalid config)

Candidate generation (orchestrator, ranker, queue) never raises for an
unresolvable candidate id; the id is dropped instead.  Only the seed lookup
in ``RecommendationService.recommend_for_track`` surfaces
``TrackNotFoundError``.
"""


class TuneQueueError(Exception):
    """Base exception for all TuneQueue errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which backend triggered the error.
    ``__str__`` prefixes the provider name in brackets, e.g.
    ``[sqlite] database is locked``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Lookup errors
# ---------------------------------------------------------------------------

class TrackNotFoundError(TuneQueueError):
    """Raised when a seed track id is absent from the catalog."""

    def __init__(
        self,
        message: str = "Track not found",
        provider_name: str | None = None,
        track_id: str | None = None,
    ) -> None:
        self._track_id = track_id
        super().__init__(message=message, provider_name=provider_name)

    @property
    def track_id(self) -> str | None:
        return self._track_id


# ---------------------------------------------------------------------------
# Training errors
# ---------------------------------------------------------------------------

class TrainingInProgressError(TuneQueueError):
    """Raised when training is requested while another run is active.

    The second caller fails immediately; runs are never queued or interleaved.
    """

    def __init__(
        self,
        message: str = "Training already in progress",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Persistence errors
# ---------------------------------------------------------------------------

class PersistenceError(TuneQueueError):
    """Raised by persistence providers when the storage backend fails.

    ``StatePersistenceService`` catches this, logs it, and treats the
    affected state as "no prior state".
    """

    def __init__(
        self,
        message: str = "Persistence backend failure",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class MalformedImportError(TuneQueueError):
    """Raised when serialized embeddings or queue state cannot be decoded.

    Raising this guarantees the in-memory state was left untouched.
    """

    def __init__(
        self,
        message: str = "Serialized data is malformed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(TuneQueueError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
