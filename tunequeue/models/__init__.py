"""tunequeue domain models: re-exports all public model classes.

The models are organized across four submodules by concern:
    - track.py          - Catalog tracks and listening sessions
    - training.py       - Embedding training config, progress and reports
    - recommendation.py - Candidates, scored results and response envelopes
    - queue.py          - Auto-queue config, stats, state and playback events
"""

from __future__ import annotations

from tunequeue.models.queue import (
    PlaybackEvent,
    PlaybackEventType,
    QueueConfig,
    QueueState,
    QueueStats,
)
from tunequeue.models.recommendation import (
    Candidate,
    CandidateSource,
    ScoreBreakdown,
    ScoredCandidate,
    SimilarTrack,
    TrackRecommendations,
    UserRecommendations,
)
from tunequeue.models.track import Session, Track, TrackSummary
from tunequeue.models.training import (
    TrainingConfig,
    TrainingProfile,
    TrainingProgress,
    TrainingReport,
)

__all__ = [
    "Candidate",
    "CandidateSource",
    "PlaybackEvent",
    "PlaybackEventType",
    "QueueConfig",
    "QueueState",
    "QueueStats",
    "ScoreBreakdown",
    "ScoredCandidate",
    "Session",
    "SimilarTrack",
    "Track",
    "TrackRecommendations",
    "TrackSummary",
    "TrainingConfig",
    "TrainingProfile",
    "TrainingProgress",
    "TrainingReport",
    "UserRecommendations",
]
