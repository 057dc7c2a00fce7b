"""Automatic playback-queue management.

The ``AutoQueueManager`` owns one live queue and keeps it stocked with
relevant, non-repetitive tracks as playback advances.

Queue invariants (enforced on every mutation, including ``import_state``):

    * ``0 <= len(queue) <= max_queue_size``
    * no track id appears twice in the queue
    * no track id is added while it is among the last 10 played ids

Track lifecycle: ``not queued -> queued -> played (history)`` or
``queued -> removed``.  A played track cannot re-enter the queue while it is
inside the 10-entry recency window.

Refill flow
-----------
``get_recommendations`` asks the embedding trainer for ``count * 2``
neighbours, drops anything queued, recently played, disliked, unknown to the
catalog, or below ``similarity_threshold``, then applies diversity
reordering: starting from the best-scored candidate it repeatedly picks the
remaining candidate maximising::

    score * (1 - diversity_factor * cosine(candidate, last_picked))

Ties go to the earlier (higher-scored) candidate.  The result is always a
permutation of the filtered input.  When the embedding neighbourhood cannot
fill a refill, the manager tops up from the recommendation orchestrator's
fused ranking under the same filters.

All operations are synchronous; none of them raise for a bad track id.
"""

from __future__ import annotations

from collections import deque

from pydantic import ValidationError

from tunequeue.models.queue import (
    PlaybackEvent,
    PlaybackEventType,
    QueueConfig,
    QueueState,
    QueueStats,
)
from tunequeue.models.recommendation import SimilarTrack
from tunequeue.models.track import Track
from tunequeue.services.catalog import TrackCatalog
from tunequeue.services.embedding_trainer import EmbeddingTrainer
from tunequeue.services.recommendation_service import RecommendationService
from tunequeue.utils.errors import MalformedImportError, TrackNotFoundError
from tunequeue.utils.logging import get_logger

HISTORY_LIMIT = 50
RECENT_WINDOW = 10
_SMART_SEED_COUNT = 5
_SMART_NEIGHBOURS = 20


class AutoQueueManager:
    """Owns the playback queue, play history and refill policy."""

    def __init__(
        self,
        trainer: EmbeddingTrainer,
        catalog: TrackCatalog,
        config: QueueConfig | None = None,
        recommender: RecommendationService | None = None,
    ) -> None:
        self._trainer = trainer
        self._catalog = catalog
        self._config = config or QueueConfig()
        self._recommender = recommender
        self._queue: list[Track] = []
        self._history: deque[str] = deque(maxlen=HISTORY_LIMIT)
        self._disliked: set[str] = set()
        self._skipped_count = 0
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Queue state
    # ------------------------------------------------------------------

    @property
    def config(self) -> QueueConfig:
        return self._config

    def get_queue(self) -> list[Track]:
        return list(self._queue)

    def get_queue_size(self) -> int:
        return len(self._queue)

    def get_history(self) -> list[str]:
        return list(self._history)

    def needs_refill(self) -> bool:
        return len(self._queue) < self._config.min_queue_size

    def is_in_queue(self, track_id: str) -> bool:
        return any(t.id == track_id for t in self._queue)

    def was_recently_played(self, track_id: str) -> bool:
        recent = list(self._history)[-RECENT_WINDOW:]
        return track_id in recent

    def is_disliked(self, track_id: str) -> bool:
        return track_id in self._disliked

    def add_to_history(self, track_id: str) -> None:
        # deque(maxlen=50) drops the oldest entry silently.
        self._history.append(track_id)

    # ------------------------------------------------------------------
    # Queue mutation
    # ------------------------------------------------------------------

    def get_next_track(self) -> Track | None:
        """Pop the queue head into history, refilling if it ran low."""
        if not self._queue:
            return None

        track = self._queue.pop(0)
        self.add_to_history(track.id)

        if self._config.auto_refill and self.needs_refill():
            self.refill_queue(track.id)

        return track

    def add_to_queue(self, track: Track) -> bool:
        """Append *track* unless queued, recently played, or the queue is full."""
        if self.is_in_queue(track.id) or self.was_recently_played(track.id):
            return False
        if len(self._queue) >= self._config.max_queue_size:
            return False
        self._queue.append(track)
        return True

    def add_multiple_to_queue(self, tracks: list[Track]) -> int:
        added = 0
        for track in tracks:
            if len(self._queue) >= self._config.max_queue_size:
                break
            if self.add_to_queue(track):
                added += 1
        return added

    def remove_from_queue(self, track_id: str) -> bool:
        for index, track in enumerate(self._queue):
            if track.id == track_id:
                del self._queue[index]
                return True
        return False

    def reorder_queue(self, from_index: int, to_index: int) -> bool:
        size = len(self._queue)
        if not (0 <= from_index < size and 0 <= to_index < size):
            return False
        track = self._queue.pop(from_index)
        self._queue.insert(to_index, track)
        return True

    def clear_queue(self) -> None:
        self._queue.clear()
        self._logger.info("queue_cleared")

    # ------------------------------------------------------------------
    # Recommendations
    # ------------------------------------------------------------------

    def _is_eligible(self, track_id: str) -> bool:
        return (
            not self.is_in_queue(track_id)
            and not self.was_recently_played(track_id)
            and track_id not in self._disliked
            and track_id in self._catalog
        )

    def get_recommendations(self, seed_id: str, count: int = 10) -> list[SimilarTrack]:
        """Filtered, diversity-ordered embedding neighbours of *seed_id*."""
        if count <= 0:
            return []
        similar = self._trainer.get_similar(seed_id, count * 2)
        filtered = [
            item
            for item in similar
            if self._is_eligible(item.id) and item.score >= self._config.similarity_threshold
        ]
        return self.apply_diversity(filtered)[:count]

    def apply_diversity(self, recommendations: list[SimilarTrack]) -> list[SimilarTrack]:
        """Greedy reorder penalising similarity to the previously picked track."""
        if not recommendations:
            return []

        remaining = list(recommendations)
        result = [remaining.pop(0)]
        factor = self._config.diversity_factor

        while remaining:
            last_id = result[-1].id
            best_index = 0
            best_score: float | None = None
            for index, candidate in enumerate(remaining):
                similarity = self._trainer.compute_embedding_similarity(last_id, candidate.id)
                diversity_score = candidate.score * (1.0 - factor * similarity)
                # Strict ">" keeps the earliest candidate on ties.
                if best_score is None or diversity_score > best_score:
                    best_score = diversity_score
                    best_index = index
            result.append(remaining.pop(best_index))

        return result

    def get_smart_recommendations(self, count: int = 10) -> list[SimilarTrack]:
        """Neighbours aggregated across the last five played tracks.

        Each candidate's score is its summed similarity divided by the number
        of seeds used, so tracks close to several recent plays rise to the top.
        """
        if not self._history or count <= 0:
            return []

        seeds = list(self._history)[-_SMART_SEED_COUNT:]
        totals: dict[str, float] = {}
        for seed_id in seeds:
            for rec in self._trainer.get_similar(seed_id, _SMART_NEIGHBOURS):
                if not self._is_eligible(rec.id) or rec.score < self._config.similarity_threshold:
                    continue
                totals[rec.id] = totals.get(rec.id, 0.0) + rec.score

        ranked = sorted(
            (SimilarTrack(id=tid, score=total / len(seeds)) for tid, total in totals.items()),
            key=lambda s: -s.score,
        )
        return ranked[:count]

    # ------------------------------------------------------------------
    # Refill
    # ------------------------------------------------------------------

    def refill_queue(self, seed_id: str) -> int:
        """Fill the queue toward ``max_queue_size`` from a single seed track."""
        needed = self._config.max_queue_size - len(self._queue)
        if needed <= 0:
            return 0

        self._logger.debug("queue_refill_started", seed_id=seed_id, needed=needed)
        tracks = self._resolve(self.get_recommendations(seed_id, needed))
        if len(tracks) < needed:
            tracks.extend(self._fallback_tracks(seed_id, needed - len(tracks), {t.id for t in tracks}))

        added = self.add_multiple_to_queue(tracks)
        self._logger.info("queue_refilled", seed_id=seed_id, added=added, total=len(self._queue))
        return added

    def smart_refill(self) -> int:
        """Fill the queue toward ``max_queue_size`` from recent play history."""
        needed = self._config.max_queue_size - len(self._queue)
        if needed <= 0:
            return 0

        tracks = self._resolve(self.get_smart_recommendations(needed))
        added = self.add_multiple_to_queue(tracks)
        self._logger.info("queue_smart_refilled", added=added, total=len(self._queue))
        return added

    def initialize_queue(self, seed_id: str) -> int:
        """Start a fresh queue around *seed_id*."""
        self._queue.clear()
        self.add_to_history(seed_id)
        self._logger.info("queue_initialized", seed_id=seed_id)
        return self.refill_queue(seed_id)

    def play_track(self, track: Track) -> int:
        """Record an explicitly chosen track as playing and top up the queue."""
        self.remove_from_queue(track.id)
        if not self._history or self._history[-1] != track.id:
            self.add_to_history(track.id)

        if not self._queue or self.needs_refill():
            return self.refill_queue(track.id)
        return 0

    def _resolve(self, recommendations: list[SimilarTrack]) -> list[Track]:
        tracks = []
        for rec in recommendations:
            track = self._catalog.get_track(rec.id)
            if track is not None:
                tracks.append(track)
        return tracks

    def _fallback_tracks(self, seed_id: str, count: int, exclude: set[str]) -> list[Track]:
        if self._recommender is None or count <= 0:
            return []
        try:
            ranked = self._recommender.recommend_for_track(seed_id, top_n=count * 2).recommendations
        except TrackNotFoundError:
            return []

        tracks: list[Track] = []
        for scored in ranked:
            if len(tracks) >= count:
                break
            if scored.id in exclude or not self._is_eligible(scored.id):
                continue
            track = self._catalog.get_track(scored.id)
            if track is not None:
                tracks.append(track)
        if tracks:
            self._logger.debug("queue_fallback_candidates", seed_id=seed_id, count=len(tracks))
        return tracks

    # ------------------------------------------------------------------
    # Playback events
    # ------------------------------------------------------------------

    def handle_event(self, event: PlaybackEvent) -> None:
        """Apply a player/UI notification to the queue."""
        if event.type is PlaybackEventType.STARTED:
            track = self._catalog.get_track(event.track_id)
            if track is None:
                self._logger.warning("unknown_track_started", track_id=event.track_id)
                return
            self.play_track(track)
        elif event.type in (PlaybackEventType.FINISHED, PlaybackEventType.SKIPPED):
            if event.type is PlaybackEventType.SKIPPED:
                self._skipped_count += 1
            if self._config.auto_refill and self.needs_refill():
                self.smart_refill()
        elif event.type is PlaybackEventType.LIKED:
            self._disliked.discard(event.track_id)
        elif event.type is PlaybackEventType.DISLIKED:
            self._disliked.add(event.track_id)
            self.remove_from_queue(event.track_id)

        self._logger.debug("playback_event", type=event.type.value, track_id=event.track_id)

    # ------------------------------------------------------------------
    # Stats & state
    # ------------------------------------------------------------------

    def get_stats(self) -> QueueStats:
        similarities = [
            self._trainer.compute_embedding_similarity(a.id, b.id)
            for a, b in zip(self._queue, self._queue[1:])
        ]
        return QueueStats(
            queue_size=len(self._queue),
            history_size=len(self._history),
            needs_refill=self.needs_refill(),
            average_similarity=sum(similarities) / len(similarities) if similarities else 0.0,
            skipped_count=self._skipped_count,
            disliked_count=len(self._disliked),
        )

    def export_state(self) -> QueueState:
        return QueueState(queue=list(self._queue), history=list(self._history), config=self._config)

    def import_state(self, state: QueueState | str) -> None:
        """Restore a previously exported state, re-applying every queue invariant.

        Raises
        ------
        MalformedImportError
            If *state* is a JSON string that does not describe a queue state.
        """
        if isinstance(state, str):
            try:
                state = QueueState.model_validate_json(state)
            except ValidationError as exc:
                raise MalformedImportError(f"Queue state is malformed: {exc.error_count()} errors") from exc

        if state.config is not None:
            self._config = state.config
        self._history = deque(state.history[-HISTORY_LIMIT:], maxlen=HISTORY_LIMIT)
        self._queue = []
        dropped = len(state.queue) - self.add_multiple_to_queue(state.queue)
        self._logger.info(
            "queue_state_imported",
            queue=len(self._queue),
            history=len(self._history),
            dropped=dropped,
        )
