"""Unit tests for AutoQueueManager: invariants, refill, diversity, events and state."""

from __future__ import annotations

import pytest

from tunequeue.models.queue import PlaybackEvent, PlaybackEventType, QueueConfig, QueueState
from tunequeue.services.auto_queue import AutoQueueManager
from tunequeue.services.catalog import TrackCatalog
from tunequeue.services.cooccurrence import CooccurrenceModel
from tunequeue.services.embedding_trainer import EmbeddingTrainer
from tunequeue.services.recommendation_service import RecommendationService
from tunequeue.utils.errors import MalformedImportError


def _assert_invariants(manager: AutoQueueManager) -> None:
    ids = [t.id for t in manager.get_queue()]
    assert 0 <= len(ids) <= manager.config.max_queue_size
    assert len(ids) == len(set(ids))
    recent = manager.get_history()[-10:]
    assert not set(ids) & set(recent)


def _event(kind: PlaybackEventType, track_id: str) -> PlaybackEvent:
    return PlaybackEvent(type=kind, track_id=track_id)


# ======================================================================
# Basic queue operations
# ======================================================================


class TestQueueOperations:
    def test_add_to_queue(self, queue_manager: AutoQueueManager, catalog: TrackCatalog) -> None:
        assert queue_manager.add_to_queue(catalog.get_track("t01")) is True
        assert queue_manager.is_in_queue("t01")
        assert queue_manager.get_queue_size() == 1

    def test_duplicate_add_is_noop(self, queue_manager: AutoQueueManager, catalog: TrackCatalog) -> None:
        track = catalog.get_track("t01")
        queue_manager.add_to_queue(track)
        before = queue_manager.get_queue()
        assert queue_manager.add_to_queue(track) is False
        assert queue_manager.get_queue() == before

    def test_recently_played_add_is_noop(self, queue_manager: AutoQueueManager, catalog: TrackCatalog) -> None:
        queue_manager.add_to_history("t02")
        assert queue_manager.add_to_queue(catalog.get_track("t02")) is False
        assert queue_manager.get_queue() == []

    def test_recency_window_is_ten(self, queue_manager: AutoQueueManager, catalog: TrackCatalog) -> None:
        queue_manager.add_to_history("t02")
        for i in range(10):
            queue_manager.add_to_history(f"x{i}")
        assert queue_manager.was_recently_played("t02") is False
        assert queue_manager.add_to_queue(catalog.get_track("t02")) is True

    def test_full_queue_rejects(self, catalog: TrackCatalog, trained_trainer: EmbeddingTrainer) -> None:
        manager = AutoQueueManager(trained_trainer, catalog, config=QueueConfig(min_queue_size=1, max_queue_size=2))
        assert manager.add_multiple_to_queue(catalog.get_all_tracks()[:5]) == 2
        assert manager.get_queue_size() == 2

    def test_history_capped_at_fifty(self, queue_manager: AutoQueueManager) -> None:
        for i in range(60):
            queue_manager.add_to_history(f"h{i}")
        history = queue_manager.get_history()
        assert len(history) == 50
        assert history[0] == "h10"

    def test_needs_refill_iff_below_min(self, queue_manager: AutoQueueManager, catalog: TrackCatalog) -> None:
        tracks = catalog.get_all_tracks()
        for count, track in enumerate(tracks[:6], start=1):
            queue_manager.add_to_queue(track)
            assert queue_manager.needs_refill() is (count < queue_manager.config.min_queue_size)

    def test_get_next_track_on_empty_queue(self, queue_manager: AutoQueueManager) -> None:
        assert queue_manager.get_next_track() is None

    def test_get_next_track_moves_head_to_history(self, catalog: TrackCatalog, trained_trainer: EmbeddingTrainer) -> None:
        manager = AutoQueueManager(trained_trainer, catalog, config=QueueConfig(min_queue_size=0, max_queue_size=5))
        manager.add_multiple_to_queue([catalog.get_track("t01"), catalog.get_track("t02")])
        track = manager.get_next_track()
        assert track.id == "t01"
        assert manager.get_history() == ["t01"]
        assert [t.id for t in manager.get_queue()] == ["t02"]

    def test_remove_from_queue(self, queue_manager: AutoQueueManager, catalog: TrackCatalog) -> None:
        queue_manager.add_to_queue(catalog.get_track("t01"))
        assert queue_manager.remove_from_queue("t01") is True
        assert queue_manager.remove_from_queue("t01") is False

    def test_reorder_queue(self, queue_manager: AutoQueueManager, catalog: TrackCatalog) -> None:
        queue_manager.add_multiple_to_queue([catalog.get_track(t) for t in ("t01", "t02", "t03")])
        assert queue_manager.reorder_queue(0, 2) is True
        assert [t.id for t in queue_manager.get_queue()] == ["t02", "t03", "t01"]
        assert queue_manager.reorder_queue(0, 9) is False

    def test_clear_queue(self, queue_manager: AutoQueueManager, catalog: TrackCatalog) -> None:
        queue_manager.add_to_queue(catalog.get_track("t01"))
        queue_manager.clear_queue()
        assert queue_manager.get_queue() == []

    def test_get_queue_returns_copy(self, queue_manager: AutoQueueManager, catalog: TrackCatalog) -> None:
        queue_manager.add_to_queue(catalog.get_track("t01"))
        queue_manager.get_queue().clear()
        assert queue_manager.get_queue_size() == 1


# ======================================================================
# Recommendations & diversity
# ======================================================================


class TestRecommendations:
    def test_filters_queued_and_recent(self, queue_manager: AutoQueueManager, catalog: TrackCatalog) -> None:
        queue_manager.add_to_queue(catalog.get_track("t02"))
        queue_manager.add_to_history("t03")
        ids = [r.id for r in queue_manager.get_recommendations("t01", 20)]
        assert "t02" not in ids
        assert "t03" not in ids
        assert "t01" not in ids

    def test_threshold_filters_low_scores(self, catalog: TrackCatalog, trained_trainer: EmbeddingTrainer) -> None:
        manager = AutoQueueManager(trained_trainer, catalog, config=QueueConfig(similarity_threshold=0.5))
        assert all(r.score >= 0.5 for r in manager.get_recommendations("t01", 10))

    def test_diversity_is_a_permutation(self, queue_manager: AutoQueueManager, trained_trainer: EmbeddingTrainer) -> None:
        similar = trained_trainer.get_similar("t01", 29)
        reordered = queue_manager.apply_diversity(similar)
        assert sorted(r.id for r in reordered) == sorted(r.id for r in similar)
        assert reordered[0] == similar[0]

    def test_zero_diversity_keeps_score_order(self, catalog: TrackCatalog, trained_trainer: EmbeddingTrainer) -> None:
        manager = AutoQueueManager(trained_trainer, catalog, config=QueueConfig(diversity_factor=0.0))
        similar = trained_trainer.get_similar("t11", 29)
        assert manager.apply_diversity(similar) == similar

    def test_diversity_of_empty_list(self, queue_manager: AutoQueueManager) -> None:
        assert queue_manager.apply_diversity([]) == []

    def test_smart_recommendations_need_history(self, queue_manager: AutoQueueManager) -> None:
        assert queue_manager.get_smart_recommendations(5) == []

    def test_smart_recommendations_sorted_and_filtered(self, queue_manager: AutoQueueManager) -> None:
        for tid in ("t01", "t02", "t03"):
            queue_manager.add_to_history(tid)
        result = queue_manager.get_smart_recommendations(8)
        assert 0 < len(result) <= 8
        assert not {"t01", "t02", "t03"} & {r.id for r in result}
        scores = [r.score for r in result]
        assert scores == sorted(scores, reverse=True)


# ======================================================================
# Refill
# ======================================================================


class TestRefill:
    def test_initialize_queue_fills_to_max(self, queue_manager: AutoQueueManager) -> None:
        added = queue_manager.initialize_queue("t01")
        assert added == queue_manager.config.max_queue_size
        assert queue_manager.get_history() == ["t01"]
        _assert_invariants(queue_manager)

    def test_queue_stays_stocked_while_advancing(
        self,
        catalog: TrackCatalog,
        trained_trainer: EmbeddingTrainer,
        recommender: RecommendationService,
    ) -> None:
        config = QueueConfig(min_queue_size=5, max_queue_size=20, similarity_threshold=-1.0)
        manager = AutoQueueManager(trained_trainer, catalog, config=config, recommender=recommender)
        manager.initialize_queue("t01")

        for _ in range(40):
            assert manager.get_next_track() is not None
            assert manager.get_queue_size() >= 5
            _assert_invariants(manager)

    def test_refill_without_candidates_leaves_queue_unchanged(self, catalog: TrackCatalog) -> None:
        manager = AutoQueueManager(EmbeddingTrainer(), catalog, config=QueueConfig())
        manager.add_to_queue(catalog.get_track("t05"))
        assert manager.refill_queue("t01") == 0
        assert [t.id for t in manager.get_queue()] == ["t05"]

    def test_orchestrator_tops_up_when_embeddings_fall_short(
        self, catalog: TrackCatalog, cooccurrence: CooccurrenceModel
    ) -> None:
        untrained = EmbeddingTrainer()
        recommender = RecommendationService(catalog, untrained, cooccurrence)
        manager = AutoQueueManager(untrained, catalog, config=QueueConfig(), recommender=recommender)

        added = manager.initialize_queue("t01")
        queued = manager.get_queue()
        assert added == len(queued) > 0
        assert all(t.genre == "house" for t in queued)
        _assert_invariants(manager)

    def test_smart_refill_needs_history(self, queue_manager: AutoQueueManager) -> None:
        assert queue_manager.smart_refill() == 0
        assert queue_manager.get_queue() == []

    def test_smart_refill_from_recent_plays(self, queue_manager: AutoQueueManager) -> None:
        queue_manager.add_to_history("t01")
        queue_manager.add_to_history("t02")

        assert queue_manager.smart_refill() == queue_manager.config.max_queue_size
        queued = {t.id for t in queue_manager.get_queue()}
        assert not queued & {"t01", "t02"}
        _assert_invariants(queue_manager)

    def test_refill_noop_when_full(self, queue_manager: AutoQueueManager) -> None:
        queue_manager.initialize_queue("t01")
        assert queue_manager.refill_queue("t02") == 0

    def test_play_track_records_history_and_refills(self, queue_manager: AutoQueueManager, catalog: TrackCatalog) -> None:
        queue_manager.play_track(catalog.get_track("t11"))
        assert queue_manager.get_history() == ["t11"]
        assert queue_manager.get_queue_size() == queue_manager.config.max_queue_size
        _assert_invariants(queue_manager)

    def test_play_track_removes_it_from_queue(self, queue_manager: AutoQueueManager, catalog: TrackCatalog) -> None:
        queue_manager.initialize_queue("t01")
        head = queue_manager.get_queue()[3]
        queue_manager.play_track(head)
        assert not queue_manager.is_in_queue(head.id)
        _assert_invariants(queue_manager)


# ======================================================================
# Playback events
# ======================================================================


class TestPlaybackEvents:
    def test_started_behaves_like_play(self, queue_manager: AutoQueueManager) -> None:
        queue_manager.handle_event(_event(PlaybackEventType.STARTED, "t21"))
        queue_manager.handle_event(_event(PlaybackEventType.STARTED, "t21"))
        assert queue_manager.get_history() == ["t21"]
        assert queue_manager.get_queue_size() > 0

    def test_started_unknown_track_ignored(self, queue_manager: AutoQueueManager) -> None:
        queue_manager.handle_event(_event(PlaybackEventType.STARTED, "ghost"))
        assert queue_manager.get_history() == []
        assert queue_manager.get_queue() == []

    def test_skipped_counts(self, queue_manager: AutoQueueManager) -> None:
        queue_manager.initialize_queue("t01")
        queue_manager.handle_event(_event(PlaybackEventType.SKIPPED, "t01"))
        queue_manager.handle_event(_event(PlaybackEventType.SKIPPED, "t02"))
        assert queue_manager.get_stats().skipped_count == 2

    def test_finished_triggers_smart_refill_when_short(self, queue_manager: AutoQueueManager) -> None:
        queue_manager.add_to_history("t01")
        queue_manager.add_to_history("t02")
        queue_manager.handle_event(_event(PlaybackEventType.FINISHED, "t02"))
        assert queue_manager.get_queue_size() >= queue_manager.config.min_queue_size
        _assert_invariants(queue_manager)

    def test_finished_respects_auto_refill_off(self, catalog: TrackCatalog, trained_trainer: EmbeddingTrainer) -> None:
        manager = AutoQueueManager(trained_trainer, catalog, config=QueueConfig(auto_refill=False))
        manager.add_to_history("t01")
        manager.handle_event(_event(PlaybackEventType.FINISHED, "t01"))
        assert manager.get_queue() == []

    def test_disliked_removed_and_excluded_until_liked(self, queue_manager: AutoQueueManager) -> None:
        queue_manager.initialize_queue("t01")
        victim = queue_manager.get_queue()[0].id

        queue_manager.handle_event(_event(PlaybackEventType.DISLIKED, victim))
        assert not queue_manager.is_in_queue(victim)
        assert queue_manager.get_stats().disliked_count == 1

        queue_manager.initialize_queue("t01")
        assert not queue_manager.is_in_queue(victim)
        assert victim not in {r.id for r in queue_manager.get_recommendations("t01", 29)}

        queue_manager.handle_event(_event(PlaybackEventType.LIKED, victim))
        assert queue_manager.is_disliked(victim) is False
        assert queue_manager.get_stats().disliked_count == 0


# ======================================================================
# Stats & state
# ======================================================================


class TestStatsAndState:
    def test_stats(self, queue_manager: AutoQueueManager, trained_trainer: EmbeddingTrainer, catalog: TrackCatalog) -> None:
        queue_manager.add_multiple_to_queue([catalog.get_track("t01"), catalog.get_track("t02"), catalog.get_track("t03")])
        stats = queue_manager.get_stats()
        expected = (
            trained_trainer.compute_embedding_similarity("t01", "t02")
            + trained_trainer.compute_embedding_similarity("t02", "t03")
        ) / 2
        assert stats.queue_size == 3
        assert stats.history_size == 0
        assert stats.needs_refill is True
        assert stats.average_similarity == pytest.approx(expected)

    def test_empty_stats(self, queue_manager: AutoQueueManager) -> None:
        assert queue_manager.get_stats().average_similarity == 0.0

    def test_export_import_round_trip(
        self,
        queue_manager: AutoQueueManager,
        trained_trainer: EmbeddingTrainer,
        catalog: TrackCatalog,
    ) -> None:
        queue_manager.initialize_queue("t01")
        queue_manager.get_next_track()
        exported = queue_manager.export_state()

        restored = AutoQueueManager(trained_trainer, catalog)
        restored.import_state(exported.model_dump_json())
        assert restored.get_queue() == queue_manager.get_queue()
        assert restored.get_history() == queue_manager.get_history()
        assert restored.config == queue_manager.config

    def test_import_reapplies_invariants(self, queue_manager: AutoQueueManager, catalog: TrackCatalog) -> None:
        t = catalog.get_track
        state = QueueState(
            queue=[t("t01"), t("t02"), t("t02"), t("t03")] + [t(f"t{i}") for i in range(10, 20)],
            history=["t03"],
            config=QueueConfig(min_queue_size=2, max_queue_size=6),
        )
        queue_manager.import_state(state)
        ids = [x.id for x in queue_manager.get_queue()]
        assert ids == ["t01", "t02", "t10", "t11", "t12", "t13"]
        _assert_invariants(queue_manager)

    def test_malformed_import_leaves_state(self, queue_manager: AutoQueueManager) -> None:
        queue_manager.initialize_queue("t01")
        before = queue_manager.get_queue()
        with pytest.raises(MalformedImportError):
            queue_manager.import_state('{"queue": "not a list"}')
        with pytest.raises(MalformedImportError):
            queue_manager.import_state("not json")
        assert queue_manager.get_queue() == before
