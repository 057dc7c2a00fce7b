"""Utility modules for TuneQueue.

- **errors** -- Domain exception hierarchy rooted at TuneQueueError; each
  failure mode (not found, training conflict, persistence, malformed import)
  has its own subclass so callers can handle failures granularly.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **vectors** -- numpy cosine similarity, in-place normalisation and tag
  Jaccard similarity.
"""

# -- Domain exception hierarchy --------------------------------------------
from tunequeue.utils.errors import (
    ConfigurationError,
    MalformedImportError,
    PersistenceError,
    TrackNotFoundError,
    TrainingInProgressError,
    TuneQueueError,
)

# -- Structured logging setup ----------------------------------------------
from tunequeue.utils.logging import configure_logging, get_logger

# -- Vector math -----------------------------------------------------------
from tunequeue.utils.vectors import cosine_similarity, jaccard_similarity, normalize_in_place

__all__ = [
    "ConfigurationError",
    "MalformedImportError",
    "PersistenceError",
    "TrackNotFoundError",
    "TrainingInProgressError",
    "TuneQueueError",
    "configure_logging",
    "cosine_similarity",
    "get_logger",
    "jaccard_similarity",
    "normalize_in_place",
]
