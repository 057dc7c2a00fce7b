"""TuneQueue API layer: routes, schemas, and middleware."""

from tunequeue.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from tunequeue.api.routes import router
from tunequeue.api.schemas import (
    ErrorResponse,
    HealthResponse,
    PlaybackEventRequest,
    QueueResponse,
    TrackListResponse,
    TrackRecommendationsResponse,
    TrackResponse,
    TrainingUpdateRequest,
    UserRecommendationsResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "ErrorResponse",
    "HealthResponse",
    "PlaybackEventRequest",
    "QueueResponse",
    "TrackListResponse",
    "TrackRecommendationsResponse",
    "TrackResponse",
    "TrainingUpdateRequest",
    "UserRecommendationsResponse",
]
