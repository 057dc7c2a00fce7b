"""Unit tests for the RecommendationService orchestrator."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from tunequeue.models.recommendation import CandidateSource, SimilarTrack
from tunequeue.models.track import Track
from tunequeue.services.catalog import TrackCatalog
from tunequeue.services.cooccurrence import CooccurrenceModel
from tunequeue.services.embedding_trainer import EmbeddingTrainer
from tunequeue.services.recommendation_service import RecommendationService
from tunequeue.utils.errors import TrackNotFoundError


def _track(track_id: str, **overrides) -> Track:
    fields = {"id": track_id, "title": track_id, "artist": "Other", "genre": "misc"}
    fields.update(overrides)
    return Track.model_validate(fields)


class TestGatherCandidates:
    def _service(self) -> RecommendationService:
        catalog = TrackCatalog(
            [
                _track("seed", genre="house", artist="Kiko"),
                _track("emb1"),
                _track("co1"),
                _track("g1", genre="house"),
                _track("a1", artist="Kiko"),
                _track("both", genre="house"),
            ]
        )
        trainer = MagicMock(spec=EmbeddingTrainer)
        trainer.get_similar.return_value = [SimilarTrack(id="emb1", score=0.9), SimilarTrack(id="both", score=0.5)]
        trainer.compute_embedding_similarity.return_value = 0.0
        co_model = MagicMock(spec=CooccurrenceModel)
        co_model.get_co_similar.return_value = [SimilarTrack(id="co1", score=3.0), SimilarTrack(id="ghost", score=1.0)]
        co_model.compute_cooccurrence_score.return_value = 0.0
        return RecommendationService(catalog, trainer, co_model)

    def test_union_of_sources_with_first_source_winning(self) -> None:
        candidates = self._service().gather_candidates("seed")
        by_id = {c.id: c.source for c in candidates}

        assert by_id == {
            "emb1": CandidateSource.EMBEDDING,
            "both": CandidateSource.EMBEDDING,
            "co1": CandidateSource.COOCCURRENCE,
            "ghost": CandidateSource.COOCCURRENCE,
            "g1": CandidateSource.GENRE,
            "a1": CandidateSource.ARTIST,
        }

    def test_seed_never_a_candidate(self) -> None:
        assert all(c.id != "seed" for c in self._service().gather_candidates("seed"))

    def test_unresolvable_candidates_dropped_from_ranking(self) -> None:
        result = self._service().recommend_for_track("seed", top_n=20)
        ids = [c.id for c in result.recommendations]
        assert "ghost" not in ids
        assert set(ids) == {"emb1", "both", "co1", "g1", "a1"}


class TestRecommendForTrack:
    def test_unknown_seed_raises(self, recommender: RecommendationService) -> None:
        with pytest.raises(TrackNotFoundError) as exc_info:
            recommender.recommend_for_track("nope")
        assert exc_info.value.track_id == "nope"

    def test_result_shape(self, recommender: RecommendationService) -> None:
        result = recommender.recommend_for_track("t02", top_n=5)
        assert result.track_id == "t02"
        assert result.track.id == "t02"
        assert 0 < len(result.recommendations) <= 5
        scores = [c.score for c in result.recommendations]
        assert scores == sorted(scores, reverse=True)
        assert all(c.id != "t02" for c in result.recommendations)

    def test_same_genre_dominates(self, recommender: RecommendationService) -> None:
        result = recommender.recommend_for_track("t21", top_n=5)
        assert all(c.genre == "ambient" for c in result.recommendations)

    def test_get_similar_tracks_shortcut(self, recommender: RecommendationService) -> None:
        assert recommender.get_similar_tracks("t02", 3) == recommender.recommend_for_track("t02", 3).recommendations


class TestRecommendForUser:
    def test_popularity_baseline(self, recommender: RecommendationService, catalog: TrackCatalog) -> None:
        result = recommender.recommend_for_user("anyone", top_n=4)
        assert result.user_id == "anyone"
        assert [c.id for c in result.recommendations] == [t.id for t in catalog.get_popular_tracks(4)]
        top = result.recommendations[0]
        assert top.source is CandidateSource.POPULAR
        assert top.score == pytest.approx(top.breakdown.popularity)
        assert top.breakdown.embedding == 0.0
