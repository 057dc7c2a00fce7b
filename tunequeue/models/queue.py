"""Auto-queue models: configuration, statistics, persisted state and events."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tunequeue.models.track import Track


class QueueConfig(BaseModel):
    """Tuning knobs for one ``AutoQueueManager`` instance."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # Refill is triggered when the queue drops below this length.
    min_queue_size: int = Field(default=5, ge=0, alias="minQueueSize")
    # Hard upper bound on queue length.
    max_queue_size: int = Field(default=20, ge=1, alias="maxQueueSize")
    # Minimum embedding-neighbour score for automatic additions.
    similarity_threshold: float = Field(default=0.3, ge=-1.0, le=1.0, alias="similarityThreshold")
    # 0 = pure score order, 1 = strongest penalty on back-to-back look-alikes.
    diversity_factor: float = Field(default=0.2, ge=0.0, le=1.0, alias="diversityFactor")
    auto_refill: bool = Field(default=True, alias="autoRefill")

    @model_validator(mode="after")
    def _check_bounds(self) -> QueueConfig:
        if self.min_queue_size > self.max_queue_size:
            msg = (
                f"min_queue_size ({self.min_queue_size}) must not exceed "
                f"max_queue_size ({self.max_queue_size})"
            )
            raise ValueError(msg)
        return self


class QueueStats(BaseModel):
    """Snapshot of queue health for dashboards and debugging."""

    model_config = ConfigDict(frozen=True)

    queue_size: int
    history_size: int
    needs_refill: bool
    # Mean embedding similarity between consecutive queue entries.
    average_similarity: float
    skipped_count: int = 0
    disliked_count: int = 0


class QueueState(BaseModel):
    """Serializable queue snapshot used by export/import."""

    model_config = ConfigDict(frozen=True)

    queue: list[Track] = Field(default_factory=list)
    history: list[str] = Field(default_factory=list)
    config: QueueConfig | None = None


class PlaybackEventType(str, Enum):
    """Player/UI notifications consumed by the auto-queue."""

    STARTED = "started"
    FINISHED = "finished"
    SKIPPED = "skipped"
    LIKED = "liked"
    DISLIKED = "disliked"


class PlaybackEvent(BaseModel):
    """A single playback notification: which track, and what happened."""

    model_config = ConfigDict(frozen=True)

    type: PlaybackEventType
    track_id: str = Field(min_length=1)
