"""Recommendation orchestrator.

Answers "what should play after this track?" by gathering candidates from
four independent sources, de-duplicating them, and handing the union to the
similarity ranker.

Candidate sources (each capped independently, first source wins on
duplicates):

    embedding     up to 10 nearest neighbours in embedding space
    cooccurrence  up to 10 tracks most often heard in the same sessions
    genre         up to 10 catalog tracks sharing the seed's genre
    artist        up to 5 catalog tracks by the seed's artist

Only an unknown *seed* is an error.  Unresolvable candidate ids are
dropped by the ranker so a partial result is still returned.

``recommend_for_user`` is a popularity baseline with no personalisation.
"""

from __future__ import annotations

from tunequeue.models.recommendation import (
    Candidate,
    CandidateSource,
    ScoreBreakdown,
    ScoredCandidate,
    TrackRecommendations,
    UserRecommendations,
)
from tunequeue.services.catalog import TrackCatalog
from tunequeue.services.cooccurrence import CooccurrenceModel
from tunequeue.services.embedding_trainer import EmbeddingTrainer
from tunequeue.services.ranker import SimilarityRanker, popularity_score
from tunequeue.utils.errors import TrackNotFoundError
from tunequeue.utils.logging import get_logger

_EMBEDDING_CANDIDATES = 10
_COOCCURRENCE_CANDIDATES = 10
_GENRE_CANDIDATES = 10
_ARTIST_CANDIDATES = 5


class RecommendationService:
    """Gathers, de-duplicates and ranks candidate tracks for a seed."""

    def __init__(
        self,
        catalog: TrackCatalog,
        trainer: EmbeddingTrainer,
        cooccurrence: CooccurrenceModel,
        ranker: SimilarityRanker | None = None,
    ) -> None:
        self._catalog = catalog
        self._trainer = trainer
        self._cooccurrence = cooccurrence
        self._ranker = ranker or SimilarityRanker(catalog, trainer, cooccurrence)
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def recommend_for_track(self, track_id: str, top_n: int = 10) -> TrackRecommendations:
        """Ranked recommendations seeded from *track_id*.

        Raises
        ------
        TrackNotFoundError
            If *track_id* is not in the catalog.
        """
        seed = self._catalog.get_track(track_id)
        if seed is None:
            raise TrackNotFoundError(message=f"Track {track_id} not found", track_id=track_id)

        candidates = self.gather_candidates(track_id)
        ranked = self._ranker.rank_candidates(track_id, candidates, top_n)
        self._logger.info(
            "track_recommendations",
            track_id=track_id,
            candidates=len(candidates),
            returned=len(ranked),
        )
        return TrackRecommendations(track_id=track_id, track=seed.summary(), recommendations=ranked)

    def recommend_for_user(self, user_id: str, top_n: int = 10) -> UserRecommendations:
        """Popularity baseline: the *top_n* most popular catalog tracks.

        Only the popularity signal is populated; there is no per-user
        history behind this yet.
        """
        recommendations = []
        for track in self._catalog.get_popular_tracks(top_n):
            pop = popularity_score(track)
            recommendations.append(
                ScoredCandidate(
                    id=track.id,
                    title=track.title,
                    artist=track.artist,
                    genre=track.genre,
                    source=CandidateSource.POPULAR,
                    score=pop,
                    breakdown=ScoreBreakdown(popularity=pop),
                )
            )
        self._logger.info("user_recommendations", user_id=user_id, returned=len(recommendations))
        return UserRecommendations(user_id=user_id, recommendations=recommendations)

    def get_similar_tracks(self, track_id: str, limit: int = 10) -> list[ScoredCandidate]:
        """Shortcut returning only the ranked list of ``recommend_for_track``."""
        return self.recommend_for_track(track_id, limit).recommendations

    # ------------------------------------------------------------------
    # Candidate generation
    # ------------------------------------------------------------------

    def gather_candidates(self, track_id: str) -> list[Candidate]:
        """Union of all candidate sources for *track_id*, seed excluded."""
        seed = self._catalog.get_track(track_id)
        seen: set[str] = {track_id}
        candidates: list[Candidate] = []

        def _add(ids: list[str], source: CandidateSource) -> None:
            for cid in ids:
                if cid not in seen:
                    seen.add(cid)
                    candidates.append(Candidate(id=cid, source=source))

        _add(
            [s.id for s in self._trainer.get_similar(track_id, _EMBEDDING_CANDIDATES)],
            CandidateSource.EMBEDDING,
        )
        _add(
            [s.id for s in self._cooccurrence.get_co_similar(track_id, _COOCCURRENCE_CANDIDATES)],
            CandidateSource.COOCCURRENCE,
        )
        if seed is not None:
            _add(
                [t.id for t in self._catalog.get_tracks_by_genre(seed.genre, _GENRE_CANDIDATES)],
                CandidateSource.GENRE,
            )
            _add(
                [t.id for t in self._catalog.get_tracks_by_artist(seed.artist, _ARTIST_CANDIDATES)],
                CandidateSource.ARTIST,
            )
        return candidates
