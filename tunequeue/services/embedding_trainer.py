"""Item embedding trainer for listening sessions.

Learns one fixed-length vector per track so that tracks played near each
other in a session end up pointing in similar directions.

How a training run works
------------------------
1. Every distinct track id in the sessions gets a vector the first time it
   is seen: ``embedding_dim`` values drawn uniformly from
   ``(-0.5, 0.5) * sqrt(2 / embedding_dim)`` so initial dot products stay
   small.
2. Skip-gram window: for every position ``i`` of every session and every
   position ``j`` within ``window_size`` of ``i`` (``j != i``) the pair
   ``(track_i, track_j)`` becomes a training pair.
3. For ``epochs`` passes over the pair list, in batches of ``batch_size``,
   each target vector moves toward its context vector::

       target[k] += learning_rate * (context[k] - target[k])

   The loss ``1 - cosine(target, context)`` is diagnostic only and is
   logged as an epoch average.
4. With ``use_mobile_optimization`` the run yields to the event loop every
   few batches and re-normalises all vectors to unit length periodically
   and once more at the end.

The update rule has no repulsive term, so every pull is toward a
neighbour.  Long or repeated training can drift all vectors toward a shared
centroid and weaken discrimination between unrelated tracks.  The rule is
kept exactly as specified until the intended behaviour is confirmed; see
DESIGN.md.

Concurrency: a single ``is_training`` flag guards every mutating entry
point.  A second call while a run is active raises
:class:`~tunequeue.utils.errors.TrainingInProgressError` immediately.  There
is no cancellation of an in-progress run.
"""

from __future__ import annotations

import asyncio
import base64
import inspect
import json
import math
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Any

import numpy as np
from pydantic import ValidationError

from tunequeue.models.recommendation import SimilarTrack
from tunequeue.models.track import Session
from tunequeue.models.training import TrainingConfig, TrainingProgress, TrainingReport
from tunequeue.utils.errors import MalformedImportError, TrainingInProgressError
from tunequeue.utils.logging import get_logger
from tunequeue.utils.vectors import cosine_similarity, normalize_in_place

ProgressCallback = Callable[[TrainingProgress], Awaitable[None] | None]

# Decimal places kept by export_embeddings().
_EXPORT_PRECISION = 4

# Info-level loss summary cadence (debug logs every epoch).
_LOG_EVERY_EPOCHS = 10


class EmbeddingTrainer:
    """Owns the track-embedding store and every operation on it.

    Parameters
    ----------
    config:
        Default hyper-parameters, used when ``train_embeddings`` is called
        without an explicit config.
    seed:
        Seed for vector initialisation.  Fixing it makes runs reproducible.
    """

    def __init__(self, config: TrainingConfig | None = None, seed: int | None = None) -> None:
        self._config = config or TrainingConfig()
        self._embeddings: dict[str, np.ndarray] = {}
        self._rng = np.random.default_rng(seed)
        self._is_training = False
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_training(self) -> bool:
        return self._is_training

    @property
    def config(self) -> TrainingConfig:
        return self._config

    def __len__(self) -> int:
        return len(self._embeddings)

    def __contains__(self, track_id: object) -> bool:
        return track_id in self._embeddings

    def get_embedding(self, track_id: str) -> list[float] | None:
        """Return a copy of the vector for *track_id*, or ``None``."""
        vec = self._embeddings.get(track_id)
        return vec.tolist() if vec is not None else None

    def track_ids(self) -> list[str]:
        return list(self._embeddings)

    def memory_usage_mb(self) -> float:
        """Approximate size of the vector store (8 bytes per float64)."""
        total_bytes = len(self._embeddings) * self._config.embedding_dim * 8
        return total_bytes / (1024 * 1024)

    def clear(self) -> None:
        """Drop every vector and restore the default config."""
        self._ensure_idle()
        self._embeddings = {}
        self._config = TrainingConfig()
        self._logger.info("embeddings_cleared")

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    async def train_embeddings(
        self,
        sessions: Sequence[Session],
        config: TrainingConfig | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> TrainingReport:
        """Run a full training pass over *sessions*.

        Raises
        ------
        TrainingInProgressError
            If another training or update run is active.
        """
        self._ensure_idle()
        self._is_training = True
        try:
            self._config = config or self._config
            return await self._run_training(sessions, self._config, on_progress)
        finally:
            self._is_training = False

    async def update_embeddings(
        self,
        new_sessions: Sequence[Session],
        iterations: int = 5,
        on_progress: ProgressCallback | None = None,
    ) -> TrainingReport:
        """Cheap incremental update: train only on *new_sessions* for *iterations* epochs.

        Vectors are initialised only for ids not seen before; existing
        vectors continue from their current values.
        """
        self._ensure_idle()
        self._is_training = True
        try:
            config = self._config.model_copy(update={"epochs": max(iterations, 0)})
            return await self._run_training(new_sessions, config, on_progress)
        finally:
            self._is_training = False

    async def _run_training(
        self,
        sessions: Sequence[Session],
        config: TrainingConfig,
        on_progress: ProgressCallback | None,
    ) -> TrainingReport:
        self._drop_mismatched_dimensions(config.embedding_dim)

        track_ids = list(dict.fromkeys(tid for s in sessions for tid in s.tracks))
        new_count = self._initialize_embeddings(track_ids, config.embedding_dim)
        pairs = self._build_training_pairs(sessions, config.window_size)

        self._logger.info(
            "training_started",
            tracks=len(track_ids),
            new_tracks=new_count,
            pairs=len(pairs),
            epochs=config.epochs,
            mode="mobile" if config.use_mobile_optimization else "standard",
        )

        avg_loss = 0.0
        lr = config.learning_rate
        for epoch in range(config.epochs):
            total_loss = 0.0
            for batch_index, batch_start in enumerate(range(0, len(pairs), config.batch_size)):
                for target_id, context_id in pairs[batch_start : batch_start + config.batch_size]:
                    target = self._embeddings[target_id]
                    context = self._embeddings[context_id]
                    total_loss += 1.0 - cosine_similarity(target, context)
                    target += lr * (context - target)

                if config.use_mobile_optimization and batch_index % config.yield_every_batches == 0:
                    await asyncio.sleep(0)

            if config.use_mobile_optimization and epoch % config.normalize_every_epochs == 0:
                self._normalize_all()

            avg_loss = total_loss / len(pairs) if pairs else 0.0
            self._logger.debug("training_epoch", epoch=epoch, loss=round(avg_loss, 6))
            if epoch % _LOG_EVERY_EPOCHS == 0:
                self._logger.info(
                    "training_progress",
                    epoch=epoch,
                    total_epochs=config.epochs,
                    loss=round(avg_loss, 4),
                )

            if on_progress is not None:
                result = on_progress(
                    TrainingProgress(
                        epoch=epoch,
                        total_epochs=config.epochs,
                        loss=avg_loss,
                        progress=(epoch + 1) / config.epochs,
                    )
                )
                if inspect.isawaitable(result):
                    await result

        if config.use_mobile_optimization:
            self._normalize_all()

        report = TrainingReport(
            track_count=len(self._embeddings),
            new_track_count=new_count,
            pair_count=len(pairs),
            epochs=config.epochs,
            final_loss=avg_loss,
            mobile_optimized=config.use_mobile_optimization,
        )
        self._logger.info("training_finished", **report.model_dump())
        return report

    def _ensure_idle(self) -> None:
        if self._is_training:
            raise TrainingInProgressError()

    def _drop_mismatched_dimensions(self, dim: int) -> None:
        stale = [tid for tid, vec in self._embeddings.items() if vec.shape[0] != dim]
        if stale:
            self._logger.warning("embedding_dim_changed", dropped=len(stale), new_dim=dim)
            for tid in stale:
                del self._embeddings[tid]

    def _initialize_embeddings(self, track_ids: Iterable[str], dim: int) -> int:
        scale = math.sqrt(2.0 / dim)
        created = 0
        for track_id in track_ids:
            if track_id not in self._embeddings:
                self._embeddings[track_id] = (self._rng.random(dim) - 0.5) * scale
                created += 1
        return created

    @staticmethod
    def _build_training_pairs(sessions: Iterable[Session], window: int) -> list[tuple[str, str]]:
        pairs: list[tuple[str, str]] = []
        for session in sessions:
            tracks = session.tracks
            last = len(tracks) - 1
            for i, target in enumerate(tracks):
                for j in range(max(0, i - window), min(last, i + window) + 1):
                    if i != j:
                        pairs.append((target, tracks[j]))
        return pairs

    def _normalize_all(self) -> None:
        for vec in self._embeddings.values():
            normalize_in_place(vec)

    # ------------------------------------------------------------------
    # Similarity queries
    # ------------------------------------------------------------------

    def get_similar(self, track_id: str, top_n: int = 10) -> list[SimilarTrack]:
        """Nearest neighbours by cosine similarity, self excluded.

        Unknown ids return an empty list.  Ties keep store insertion order.
        """
        target = self._embeddings.get(track_id)
        if target is None or top_n <= 0:
            return []
        scored = [
            SimilarTrack(id=other_id, score=cosine_similarity(target, vec))
            for other_id, vec in self._embeddings.items()
            if other_id != track_id
        ]
        scored.sort(key=lambda s: -s.score)
        return scored[:top_n]

    def compute_embedding_similarity(self, track_a: str, track_b: str) -> float:
        """Cosine similarity of two tracks, or 0 if either has no vector."""
        vec_a = self._embeddings.get(track_a)
        vec_b = self._embeddings.get(track_b)
        if vec_a is None or vec_b is None:
            return 0.0
        return cosine_similarity(vec_a, vec_b)

    def batch_compute_similarity(self, track_id: str, candidate_ids: Iterable[str]) -> list[SimilarTrack]:
        """Similarity of *track_id* to each candidate, in input order."""
        return [
            SimilarTrack(id=cid, score=self.compute_embedding_similarity(track_id, cid))
            for cid in candidate_ids
        ]

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    def export_embeddings(self) -> str:
        """Serialise vectors (rounded) and config to a base64 JSON string."""
        payload = {
            "embeddings": {
                tid: [round(float(v), _EXPORT_PRECISION) for v in vec]
                for tid, vec in self._embeddings.items()
            },
            "config": self._config.model_dump(),
        }
        raw = json.dumps(payload, separators=(",", ":"))
        return base64.b64encode(raw.encode("utf-8")).decode("ascii")

    def import_embeddings(self, data: str) -> int:
        """Replace the store with the vectors encoded in *data*.

        The payload is fully validated before anything is replaced, so a
        malformed payload leaves the current vectors and config untouched.

        Returns
        -------
        int
            Number of imported track vectors.

        Raises
        ------
        MalformedImportError
            If *data* is not a valid export payload.
        TrainingInProgressError
            If a training run is active.
        """
        self._ensure_idle()
        embeddings, config = self._decode_payload(data)
        self._embeddings = embeddings
        self._config = config
        self._logger.info("embeddings_imported", tracks=len(embeddings), dim=config.embedding_dim)
        return len(embeddings)

    def _decode_payload(self, data: str) -> tuple[dict[str, np.ndarray], TrainingConfig]:
        try:
            raw = base64.b64decode(data.encode("ascii"), validate=True).decode("utf-8")
            parsed: Any = json.loads(raw)
        except (ValueError, AttributeError) as exc:
            raise MalformedImportError(f"Embedding payload is not base64 JSON: {exc}") from exc

        if not isinstance(parsed, dict) or not isinstance(parsed.get("embeddings"), dict):
            raise MalformedImportError("Embedding payload has no 'embeddings' object")

        embeddings: dict[str, np.ndarray] = {}
        dims: set[int] = set()
        for track_id, values in parsed["embeddings"].items():
            if not isinstance(values, list) or not values:
                raise MalformedImportError(f"Vector for {track_id!r} is not a non-empty list")
            if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
                raise MalformedImportError(f"Vector for {track_id!r} contains non-numeric values")
            try:
                vec = np.asarray(values, dtype=np.float64)
            except (OverflowError, ValueError, TypeError) as exc:
                raise MalformedImportError(f"Vector for {track_id!r} is not representable: {exc}") from exc
            if not np.all(np.isfinite(vec)):
                raise MalformedImportError(f"Vector for {track_id!r} contains non-finite values")
            embeddings[track_id] = vec
            dims.add(vec.shape[0])

        if len(dims) > 1:
            raise MalformedImportError(f"Mixed vector dimensions in payload: {sorted(dims)}")

        config = self._config
        if parsed.get("config") is not None:
            try:
                config = TrainingConfig.model_validate(parsed["config"])
            except ValidationError as exc:
                raise MalformedImportError(f"Invalid training config in payload: {exc}") from exc

        if dims:
            (dim,) = dims
            if dim != config.embedding_dim:
                if parsed.get("config") is not None:
                    raise MalformedImportError(
                        f"Vector dimension {dim} does not match config embedding_dim "
                        f"{config.embedding_dim}"
                    )
                config = config.model_copy(update={"embedding_dim": dim})

        return embeddings, config
