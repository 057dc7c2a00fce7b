"""FastAPI routes for the TuneQueue recommendation engine.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern; ``main._build_all`` populates
the state at startup.

Route map
---------
Endpoint                            Method  Description
/health                             GET     Liveness probe
/tracks                             GET     Full catalog
/tracks/search?q=&limit=            GET     Fuzzy title/artist search
/tracks/{track_id}                  GET     One track, 404 if unknown
/recommend/track/{track_id}?limit=  GET     Fused recommendations for a seed
/recommend/user/{user_id}?limit=    GET     Popularity baseline
/queue                              GET     Queue contents and stats
/queue/initialize/{track_id}        POST    Start a new queue around a seed
/queue/next                         POST    Advance playback by one track
/queue/events                       POST    Apply a playback event
/training/update                    POST    Incremental embedding update (409 while training)
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from tunequeue.api.schemas import (
    ErrorResponse,
    HealthResponse,
    NextTrackData,
    NextTrackResponse,
    PlaybackEventRequest,
    QueueResponse,
    QueueSnapshot,
    TrackListResponse,
    TrackRecommendationsResponse,
    TrackResponse,
    TrainingResponse,
    TrainingUpdateRequest,
    UserRecommendationsResponse,
)
from tunequeue.models.queue import PlaybackEvent
from tunequeue.models.track import Session
from tunequeue.services.auto_queue import AutoQueueManager
from tunequeue.services.catalog import TrackCatalog
from tunequeue.services.cooccurrence import CooccurrenceModel
from tunequeue.services.embedding_trainer import EmbeddingTrainer
from tunequeue.services.recommendation_service import RecommendationService
from tunequeue.services.state_persistence import StatePersistenceService
from tunequeue.utils.errors import TrackNotFoundError
from tunequeue.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter()

_MAX_LIMIT = 100


# ---------------------------------------------------------------------------
# Dependency helpers: read services from application state.
# ---------------------------------------------------------------------------


def _get_catalog(request: Request) -> TrackCatalog:
    return request.app.state.catalog


def _get_trainer(request: Request) -> EmbeddingTrainer:
    return request.app.state.trainer


def _get_recommender(request: Request) -> RecommendationService:
    return request.app.state.recommender


def _get_queue_manager(request: Request) -> AutoQueueManager:
    return request.app.state.queue_manager


def _get_state_persistence(request: Request) -> StatePersistenceService | None:
    """Return the persistence service, or ``None`` when none is configured."""
    return getattr(request.app.state, "state_persistence", None)


CatalogDep = Annotated[TrackCatalog, Depends(_get_catalog)]
TrainerDep = Annotated[EmbeddingTrainer, Depends(_get_trainer)]
RecommenderDep = Annotated[RecommendationService, Depends(_get_recommender)]
QueueDep = Annotated[AutoQueueManager, Depends(_get_queue_manager)]
PersistenceDep = Annotated[StatePersistenceService | None, Depends(_get_state_persistence)]
LimitQuery = Annotated[int, Query(ge=1, le=_MAX_LIMIT)]


def _not_found(message: str) -> JSONResponse:
    return JSONResponse(status_code=404, content=ErrorResponse(error=message).model_dump())


def _snapshot(queue_manager: AutoQueueManager) -> QueueSnapshot:
    return QueueSnapshot(
        queue=queue_manager.get_queue(),
        history=queue_manager.get_history(),
        stats=queue_manager.get_stats(),
    )


async def _save_queue(persistence: StatePersistenceService | None) -> None:
    if persistence is not None:
        await persistence.save_queue()


# ---------------------------------------------------------------------------
# System
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
async def health_check(catalog: CatalogDep, trainer: TrainerDep) -> HealthResponse:
    return HealthResponse(
        status="ok",
        tracks=len(catalog),
        embeddings=len(trainer),
        is_training=trainer.is_training,
    )


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@router.get("/tracks", response_model=TrackListResponse, summary="List every catalog track")
async def list_tracks(catalog: CatalogDep) -> TrackListResponse:
    return TrackListResponse(data=catalog.get_all_tracks())


@router.get(
    "/tracks/search",
    response_model=TrackListResponse,
    summary="Fuzzy search tracks by title and artist",
)
async def search_tracks(
    catalog: CatalogDep,
    q: Annotated[str, Query(min_length=1, max_length=200)],
    limit: LimitQuery = 10,
) -> TrackListResponse:
    return TrackListResponse(data=catalog.search(q, limit))


@router.get(
    "/tracks/{track_id}",
    response_model=TrackResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get one track",
)
async def get_track(track_id: str, catalog: CatalogDep) -> TrackResponse | JSONResponse:
    track = catalog.get_track(track_id)
    if track is None:
        return _not_found(f"Track {track_id} not found")
    return TrackResponse(data=track)


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------


@router.get(
    "/recommend/track/{track_id}",
    response_model=TrackRecommendationsResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Recommendations seeded from a track",
)
async def recommend_for_track(
    track_id: str,
    recommender: RecommenderDep,
    limit: LimitQuery = 10,
) -> TrackRecommendationsResponse | JSONResponse:
    try:
        result = recommender.recommend_for_track(track_id, limit)
    except TrackNotFoundError as exc:
        return _not_found(exc.message)
    return TrackRecommendationsResponse(data=result)


@router.get(
    "/recommend/user/{user_id}",
    response_model=UserRecommendationsResponse,
    summary="Popularity-baseline recommendations for a user",
)
async def recommend_for_user(
    user_id: str,
    recommender: RecommenderDep,
    limit: LimitQuery = 10,
) -> UserRecommendationsResponse:
    return UserRecommendationsResponse(data=recommender.recommend_for_user(user_id, limit))


# ---------------------------------------------------------------------------
# Queue
# ---------------------------------------------------------------------------


@router.get("/queue", response_model=QueueResponse, summary="Current queue and stats")
async def get_queue(queue_manager: QueueDep) -> QueueResponse:
    return QueueResponse(data=_snapshot(queue_manager))


@router.post(
    "/queue/initialize/{track_id}",
    response_model=QueueResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Start a new queue around a seed track",
)
async def initialize_queue(
    track_id: str,
    catalog: CatalogDep,
    queue_manager: QueueDep,
    persistence: PersistenceDep,
) -> QueueResponse | JSONResponse:
    if track_id not in catalog:
        return _not_found(f"Track {track_id} not found")
    queue_manager.initialize_queue(track_id)
    await _save_queue(persistence)
    return QueueResponse(data=_snapshot(queue_manager))


@router.post("/queue/next", response_model=NextTrackResponse, summary="Advance to the next track")
async def next_track(queue_manager: QueueDep, persistence: PersistenceDep) -> NextTrackResponse:
    track = queue_manager.get_next_track()
    await _save_queue(persistence)
    return NextTrackResponse(data=NextTrackData(track=track, queue=_snapshot(queue_manager)))


@router.post(
    "/queue/events",
    response_model=QueueResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Apply a playback event",
)
async def playback_event(
    body: PlaybackEventRequest,
    catalog: CatalogDep,
    queue_manager: QueueDep,
    persistence: PersistenceDep,
) -> QueueResponse | JSONResponse:
    if body.track_id not in catalog:
        return _not_found(f"Track {body.track_id} not found")
    queue_manager.handle_event(PlaybackEvent(type=body.type, track_id=body.track_id))
    await _save_queue(persistence)
    return QueueResponse(data=_snapshot(queue_manager))


# ---------------------------------------------------------------------------
# Training
# ---------------------------------------------------------------------------


@router.post(
    "/training/update",
    response_model=TrainingResponse,
    responses={409: {"model": ErrorResponse}},
    summary="Incrementally train on new listening sessions",
)
async def update_training(
    body: TrainingUpdateRequest,
    request: Request,
    trainer: TrainerDep,
    persistence: PersistenceDep,
) -> TrainingResponse:
    """Train on the posted sessions and fold them into the co-occurrence matrix.

    A run already in progress raises ``TrainingInProgressError``, which the
    error middleware turns into a 409.
    """
    report = await trainer.update_embeddings(body.sessions, iterations=body.iterations)

    sessions: list[Session] = request.app.state.sessions
    sessions.extend(body.sessions)
    cooccurrence: CooccurrenceModel = request.app.state.cooccurrence
    cooccurrence.build_co_matrix(sessions)

    if persistence is not None:
        await persistence.save_embeddings()
    _logger.info("training_update_applied", sessions=len(body.sessions), tracks=report.track_count)
    return TrainingResponse(data=report)
