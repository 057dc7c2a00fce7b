"""Recommendation models: candidates, scored results and response envelopes.

The pipeline that produces these:
    1. The orchestrator gathers ``Candidate`` objects from four sources
       (embedding neighbours, co-occurrence neighbours, same genre, same
       artist), each tagged with its provenance.
    2. The similarity ranker scores every candidate on seven signals and
       emits a ``ScoredCandidate`` with the full ``ScoreBreakdown``.
    3. The orchestrator wraps the ranked list in ``TrackRecommendations``.

Candidates and scored candidates are transient per-request values and are
never persisted.

See tunequeue/services/ranker.py and recommendation_service.py.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from tunequeue.models.track import TrackSummary


class CandidateSource(str, Enum):
    """Where a candidate track was discovered."""

    EMBEDDING = "embedding"
    COOCCURRENCE = "cooccurrence"
    GENRE = "genre"
    ARTIST = "artist"
    POPULAR = "popular"


class Candidate(BaseModel):
    """A track id proposed for ranking, tagged with its discovery source."""

    model_config = ConfigDict(frozen=True)

    id: str
    source: CandidateSource


class ScoreBreakdown(BaseModel):
    """Raw (unweighted) value of every ranking signal for one candidate."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    embedding: float = 0.0
    cooccurrence: float = 0.0
    genre: float = 0.0
    artist: float = 0.0
    audio_features: float = Field(default=0.0, alias="audioFeatures")
    tags: float = 0.0
    popularity: float = 0.0


class ScoredCandidate(BaseModel):
    """A ranked recommendation with its weighted score and explanation."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    artist: str
    genre: str
    source: CandidateSource
    # Weighted sum of the breakdown signals.
    score: float
    breakdown: ScoreBreakdown


class TrackRecommendations(BaseModel):
    """Recommendations seeded from a single track."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    track_id: str = Field(alias="trackId")
    track: TrackSummary
    recommendations: list[ScoredCandidate] = Field(default_factory=list)


class UserRecommendations(BaseModel):
    """Popularity-baseline recommendations for a user (no personalisation)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: str = Field(alias="userId")
    recommendations: list[ScoredCandidate] = Field(default_factory=list)


class SimilarTrack(BaseModel):
    """A neighbour id with its similarity score (embedding or co-occurrence)."""

    model_config = ConfigDict(frozen=True)

    id: str
    score: float
