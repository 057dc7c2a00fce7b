"""TuneQueue FastAPI application entry point.

Wires together providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.

Startup sequence (see ``_lifespan``):
    1. Load the catalog and session log through the dataset provider.
    2. Build every service and store it on ``app.state``.
    3. Build the co-occurrence matrix from the sessions.
    4. Restore embeddings from persistence, or train them and persist the
       result when none are stored.
    5. Restore the last saved queue, if any.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI
from pydantic import ValidationError

from tunequeue.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from tunequeue.api.routes import router as api_router
from tunequeue.config.loader import build_queue_config, build_training_config, load_config
from tunequeue.config.settings import Settings
from tunequeue.interfaces.persistence_provider import IPersistenceProvider
from tunequeue.models.track import Session
from tunequeue.providers.dataset.json_dataset_provider import JSONDatasetProvider
from tunequeue.providers.persistence.file_persistence import FilePersistenceProvider
from tunequeue.providers.persistence.memory_persistence import MemoryPersistenceProvider
from tunequeue.providers.persistence.sqlite_persistence import SQLitePersistenceProvider
from tunequeue.services.auto_queue import AutoQueueManager
from tunequeue.services.catalog import TrackCatalog
from tunequeue.services.cooccurrence import CooccurrenceModel
from tunequeue.services.embedding_trainer import EmbeddingTrainer
from tunequeue.services.ranker import SimilarityRanker
from tunequeue.services.recommendation_service import RecommendationService
from tunequeue.services.state_persistence import StatePersistenceService
from tunequeue.utils.errors import PersistenceError
from tunequeue.utils.logging import configure_logging, get_logger

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_persistence_provider(app_settings: Settings) -> IPersistenceProvider:
    """Select the persistence backend named by ``PERSISTENCE_BACKEND``."""
    backend = app_settings.persistence_backend
    if backend == "sqlite":
        return SQLitePersistenceProvider(db_path=Path(app_settings.persistence_db_path))
    if backend == "file":
        return FilePersistenceProvider(base_dir=Path(app_settings.persistence_dir))
    return MemoryPersistenceProvider()


def _parse_sessions(records: list[dict[str, Any]]) -> list[Session]:
    """Validate raw session records, dropping the ones that fail."""
    sessions: list[Session] = []
    for record in records:
        try:
            sessions.append(Session.model_validate(record))
        except ValidationError as exc:
            _logger.warning(
                "invalid_session_record_dropped",
                session_id=record.get("sessionId") or record.get("session_id"),
                errors=exc.error_count(),
            )
    return sessions


def _build_all(
    app_settings: Settings,
    app_config: dict[str, Any],
    track_records: list[dict[str, Any]],
    session_records: list[dict[str, Any]],
) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    training_config = build_training_config(app_config)
    queue_config = build_queue_config(app_config)

    catalog = TrackCatalog.from_records(track_records)
    sessions = _parse_sessions(session_records)

    cooccurrence = CooccurrenceModel()
    cooccurrence.build_co_matrix(sessions)

    trainer = EmbeddingTrainer(config=training_config, seed=app_settings.random_seed)
    ranker = SimilarityRanker(catalog, trainer, cooccurrence)
    recommender = RecommendationService(catalog, trainer, cooccurrence, ranker=ranker)
    queue_manager = AutoQueueManager(trainer, catalog, config=queue_config, recommender=recommender)

    persistence_provider = _build_persistence_provider(app_settings)
    state_persistence = StatePersistenceService(persistence_provider, trainer, queue_manager)

    return {
        "catalog": catalog,
        "sessions": sessions,
        "cooccurrence": cooccurrence,
        "trainer": trainer,
        "ranker": ranker,
        "recommender": recommender,
        "queue_manager": queue_manager,
        "persistence_provider": persistence_provider,
        "state_persistence": state_persistence,
    }


async def _initialize_persistence(components: dict[str, Any]) -> None:
    """Prepare the persistence backend, degrading to memory if it is unusable."""
    provider = components["persistence_provider"]
    if not isinstance(provider, SQLitePersistenceProvider):
        return
    try:
        await provider.initialize()
    except PersistenceError as exc:
        _logger.warning("persistence_unavailable", error=str(exc), fallback="memory")
        fallback = MemoryPersistenceProvider()
        components["persistence_provider"] = fallback
        components["state_persistence"] = StatePersistenceService(
            fallback, components["trainer"], components["queue_manager"]
        )


async def _restore_or_train(components: dict[str, Any], app_settings: Settings) -> None:
    """Load stored embeddings, or train from the session log and store them."""
    state_persistence: StatePersistenceService = components["state_persistence"]
    trainer: EmbeddingTrainer = components["trainer"]
    sessions: list[Session] = components["sessions"]

    if await state_persistence.load_embeddings():
        return
    if not app_settings.train_on_startup or not sessions:
        _logger.info("startup_training_skipped", sessions=len(sessions))
        return

    await trainer.train_embeddings(sessions)
    await state_persistence.save_embeddings()


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Load data, build services and warm the models on startup."""
    dataset = JSONDatasetProvider(
        tracks_path=settings.catalog_path,
        sessions_path=settings.sessions_path,
    )
    track_records = await dataset.load_tracks()
    session_records = await dataset.load_sessions()

    components = _build_all(settings, config, track_records, session_records)
    await _initialize_persistence(components)
    await _restore_or_train(components, settings)
    await components["state_persistence"].load_queue()

    for key, value in components.items():
        setattr(application.state, key, value)

    _logger.info(
        "app_startup",
        version=_VERSION,
        environment=settings.app_env,
        tracks=len(components["catalog"]),
        sessions=len(components["sessions"]),
        embeddings=len(components["trainer"]),
        persistence=components["persistence_provider"].get_provider_name(),
    )

    yield

    await components["state_persistence"].save_queue()
    _logger.info("app_shutdown", message="queue state saved")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="TuneQueue API",
        version=_VERSION,
        description=(
            "Track recommendations from learned embeddings, session co-occurrence "
            "and catalog metadata, plus a self-refilling playback queue."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    application.include_router(api_router)
    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "tunequeue.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
