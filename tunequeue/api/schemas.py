"""Pydantic request/response schemas for the TuneQueue API.

Every successful JSON body is an envelope ``{"success": true, "data": ...}``;
every error body is ``{"success": false, "error": "..."}``.  Domain models
are reused as ``data`` payloads and serialised by alias, so the wire keys
match the catalog JSON (``artistId``, ``trackId``, ``userId``).

Convention: request schemas end with "Request", response schemas end with
"Response".
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from tunequeue.models.queue import PlaybackEventType, QueueStats
from tunequeue.models.track import Session, Track
from tunequeue.models.recommendation import TrackRecommendations, UserRecommendations
from tunequeue.models.training import TrainingReport


class HealthResponse(BaseModel):
    """Liveness probe plus a few engine counters."""

    status: str = "ok"
    tracks: int = 0
    embeddings: int = 0
    is_training: bool = False


class ErrorResponse(BaseModel):
    """Standard error response body."""

    success: bool = False
    error: str


class TrackListResponse(BaseModel):
    success: bool = True
    data: list[Track]


class TrackResponse(BaseModel):
    success: bool = True
    data: Track


class TrackRecommendationsResponse(BaseModel):
    success: bool = True
    data: TrackRecommendations


class UserRecommendationsResponse(BaseModel):
    success: bool = True
    data: UserRecommendations


class QueueSnapshot(BaseModel):
    """Current queue contents with its health statistics."""

    queue: list[Track]
    history: list[str]
    stats: QueueStats


class QueueResponse(BaseModel):
    success: bool = True
    data: QueueSnapshot


class NextTrackData(BaseModel):
    # None when the queue was empty.
    track: Track | None
    queue: QueueSnapshot


class NextTrackResponse(BaseModel):
    success: bool = True
    data: NextTrackData


class PlaybackEventRequest(BaseModel):
    """A playback notification from the player or UI."""

    model_config = ConfigDict(populate_by_name=True)

    type: PlaybackEventType
    track_id: str = Field(min_length=1, alias="trackId")


class TrainingUpdateRequest(BaseModel):
    """New listening sessions for an incremental embedding update."""

    sessions: list[Session] = Field(min_length=1)
    iterations: int = Field(default=5, ge=1, le=100)


class TrainingResponse(BaseModel):
    success: bool = True
    data: TrainingReport
