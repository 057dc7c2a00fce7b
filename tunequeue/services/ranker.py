"""Similarity ranker: fuses seven signals into one score per candidate.

For a seed track and a list of candidates, every candidate that is not the
seed and that exists in the catalog is scored on:

    embedding       cosine similarity of learned vectors
    cooccurrence    seed-normalised session co-occurrence (asymmetric)
    genre           1 if same genre else 0
    artist          1 if same artist else 0
    audio_features  1 - mean(|d tempo|/200, |d energy|, |d danceability|), floored at 0
    tags            Jaccard similarity of tag sets
    popularity      candidate popularity / 100

The weighted sum of these is the final score.  The weight table is fixed,
sums to 1.0 and is exposed read-only via :func:`get_weights`.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from tunequeue.models.recommendation import Candidate, ScoreBreakdown, ScoredCandidate
from tunequeue.models.track import MAX_POPULARITY, TEMPO_RANGE, Track
from tunequeue.services.catalog import TrackCatalog
from tunequeue.services.cooccurrence import CooccurrenceModel
from tunequeue.services.embedding_trainer import EmbeddingTrainer
from tunequeue.utils.logging import get_logger
from tunequeue.utils.vectors import jaccard_similarity

WEIGHTS: Mapping[str, float] = MappingProxyType(
    {
        "embedding": 0.35,
        "cooccurrence": 0.25,
        "genre": 0.10,
        "artist": 0.05,
        "audio_features": 0.10,
        "tags": 0.05,
        "popularity": 0.10,
    }
)


def get_weights() -> Mapping[str, float]:
    """Return the read-only signal weight table."""
    return WEIGHTS


# ---------------------------------------------------------------------------
# Catalog feature signals
# ---------------------------------------------------------------------------


def genre_match(a: Track, b: Track) -> float:
    return 1.0 if a.genre == b.genre else 0.0


def artist_match(a: Track, b: Track) -> float:
    return 1.0 if a.artist == b.artist else 0.0


def audio_feature_similarity(a: Track, b: Track) -> float:
    tempo_diff = abs(a.tempo - b.tempo) / TEMPO_RANGE
    energy_diff = abs(a.energy - b.energy)
    dance_diff = abs(a.danceability - b.danceability)
    return max(0.0, 1.0 - (tempo_diff + energy_diff + dance_diff) / 3.0)


def tag_similarity(a: Track, b: Track) -> float:
    return jaccard_similarity(a.tags, b.tags)


def popularity_score(track: Track) -> float:
    return track.popularity / MAX_POPULARITY


def weighted_score(breakdown: ScoreBreakdown) -> float:
    values = breakdown.model_dump()
    return math.fsum(WEIGHTS[name] * values[name] for name in WEIGHTS)


class SimilarityRanker:
    """Scores and orders candidate tracks relative to a seed track."""

    def __init__(
        self,
        catalog: TrackCatalog,
        trainer: EmbeddingTrainer,
        cooccurrence: CooccurrenceModel,
    ) -> None:
        self._catalog = catalog
        self._trainer = trainer
        self._cooccurrence = cooccurrence
        self._logger = get_logger(__name__)

    def score_pair(self, seed: Track, candidate: Track) -> ScoreBreakdown:
        """Raw signal values for one (seed, candidate) pair."""
        return ScoreBreakdown(
            embedding=self._trainer.compute_embedding_similarity(seed.id, candidate.id),
            cooccurrence=self._cooccurrence.compute_cooccurrence_score(seed.id, candidate.id),
            genre=genre_match(seed, candidate),
            artist=artist_match(seed, candidate),
            audio_features=audio_feature_similarity(seed, candidate),
            tags=tag_similarity(seed, candidate),
            popularity=popularity_score(candidate),
        )

    def rank_candidates(
        self,
        seed_id: str,
        candidates: Iterable[Candidate],
        top_n: int = 10,
    ) -> list[ScoredCandidate]:
        """Score *candidates* against *seed_id* and return the best *top_n*.

        The seed itself and ids missing from the catalog are skipped.  An
        unknown seed still ranks candidates, with every seed-dependent
        signal at 0 and only popularity contributing.
        """
        seed = self._catalog.get_track(seed_id)
        scored: list[ScoredCandidate] = []
        dropped = 0
        for candidate in candidates:
            if candidate.id == seed_id:
                continue
            track = self._catalog.get_track(candidate.id)
            if track is None:
                dropped += 1
                continue

            if seed is not None:
                breakdown = self.score_pair(seed, track)
            else:
                breakdown = ScoreBreakdown(popularity=popularity_score(track))

            scored.append(
                ScoredCandidate(
                    id=track.id,
                    title=track.title,
                    artist=track.artist,
                    genre=track.genre,
                    source=candidate.source,
                    score=weighted_score(breakdown),
                    breakdown=breakdown,
                )
            )

        if dropped:
            self._logger.debug("unknown_candidates_dropped", seed_id=seed_id, count=dropped)

        scored.sort(key=lambda c: -c.score)
        return scored[: max(top_n, 0)]
