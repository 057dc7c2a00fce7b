"""Shared pytest fixtures for the TuneQueue test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

from tunequeue.models.queue import QueueConfig
from tunequeue.models.track import Session, Track
from tunequeue.models.training import TrainingConfig
from tunequeue.services.auto_queue import AutoQueueManager
from tunequeue.services.catalog import TrackCatalog
from tunequeue.services.cooccurrence import CooccurrenceModel
from tunequeue.services.embedding_trainer import EmbeddingTrainer
from tunequeue.services.recommendation_service import RecommendationService

# ---------------------------------------------------------------------------
# Catalog builders
# ---------------------------------------------------------------------------

_GENRES = ("house", "techno", "ambient")


def make_track(track_id: str, **overrides: Any) -> Track:
    """Build a Track with neutral defaults and optional overrides."""
    fields: dict[str, Any] = {
        "id": track_id,
        "title": f"Title {track_id}",
        "artist": "Artist",
        "genre": "house",
        "tags": [],
        "tempo": 120.0,
        "energy": 0.5,
        "danceability": 0.5,
        "popularity": 50,
    }
    fields.update(overrides)
    return Track.model_validate(fields)


def _genre_tracks() -> list[Track]:
    """Thirty tracks: ten per genre, two artists per genre."""
    tracks = []
    for g_index, genre in enumerate(_GENRES):
        for i in range(10):
            number = g_index * 10 + i + 1
            tracks.append(
                make_track(
                    f"t{number:02d}",
                    title=f"{genre.title()} Song {i}",
                    artist=f"{genre.title()} Artist {i % 2}",
                    genre=genre,
                    tags=[genre, "even" if i % 2 == 0 else "odd"],
                    tempo=100.0 + g_index * 20 + i,
                    energy=0.2 + 0.3 * g_index,
                    danceability=0.4 + 0.1 * g_index,
                    popularity=10 + number,
                )
            )
    return tracks


def _genre_sessions() -> list[Session]:
    """Sessions that keep each genre's tracks together."""
    sessions = []
    for g_index in range(len(_GENRES)):
        ids = [f"t{g_index * 10 + i + 1:02d}" for i in range(10)]
        for rep in range(3):
            rotated = ids[rep:] + ids[:rep]
            sessions.append(Session(user_id=f"u{g_index}", session_id=f"s{g_index}-{rep}", tracks=rotated))
    return sessions


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def tracks() -> list[Track]:
    return _genre_tracks()


@pytest.fixture
def sessions() -> list[Session]:
    return _genre_sessions()


@pytest.fixture
def catalog(tracks: list[Track]) -> TrackCatalog:
    return TrackCatalog(tracks)


@pytest.fixture
def cooccurrence(sessions: list[Session]) -> CooccurrenceModel:
    model = CooccurrenceModel()
    model.build_co_matrix(sessions)
    return model


@pytest.fixture
def training_config() -> TrainingConfig:
    """Small, fast config for unit tests."""
    return TrainingConfig(embedding_dim=8, learning_rate=0.05, epochs=10, window_size=2, batch_size=32)


@pytest_asyncio.fixture
async def trained_trainer(sessions: list[Session], training_config: TrainingConfig) -> EmbeddingTrainer:
    trainer = EmbeddingTrainer(config=training_config, seed=7)
    await trainer.train_embeddings(sessions)
    return trainer


@pytest.fixture
def recommender(
    catalog: TrackCatalog,
    trained_trainer: EmbeddingTrainer,
    cooccurrence: CooccurrenceModel,
) -> RecommendationService:
    return RecommendationService(catalog, trained_trainer, cooccurrence)


@pytest.fixture
def queue_config() -> QueueConfig:
    """Permissive thresholds so refills are driven by queue bounds alone."""
    return QueueConfig(
        min_queue_size=5,
        max_queue_size=10,
        similarity_threshold=-1.0,
        diversity_factor=0.2,
        auto_refill=True,
    )


@pytest.fixture
def queue_manager(
    trained_trainer: EmbeddingTrainer,
    catalog: TrackCatalog,
    queue_config: QueueConfig,
    recommender: RecommendationService,
) -> AutoQueueManager:
    return AutoQueueManager(trained_trainer, catalog, config=queue_config, recommender=recommender)
