"""Unit tests for tunequeue.utils.vectors."""

from __future__ import annotations

import numpy as np
import pytest

from tunequeue.utils.vectors import cosine_similarity, jaccard_similarity, normalize_in_place


class TestCosineSimilarity:
    def test_identical_vectors(self) -> None:
        vec = np.array([0.3, -1.2, 4.0])
        assert cosine_similarity(vec, vec) == pytest.approx(1.0)

    def test_opposite_vectors(self) -> None:
        assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)

    def test_orthogonal_vectors(self) -> None:
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_zero_vector_returns_zero(self) -> None:
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0

    def test_empty_vectors_return_zero(self) -> None:
        assert cosine_similarity([], []) == 0.0

    def test_result_within_bounds(self) -> None:
        rng = np.random.default_rng(3)
        for _ in range(50):
            a, b = rng.normal(size=6), rng.normal(size=6)
            assert -1.0 <= cosine_similarity(a, b) <= 1.0


class TestNormalizeInPlace:
    def test_unit_length(self) -> None:
        vec = np.array([3.0, 4.0])
        normalize_in_place(vec)
        assert np.linalg.norm(vec) == pytest.approx(1.0)
        assert vec.tolist() == pytest.approx([0.6, 0.8])

    def test_zero_vector_unchanged(self) -> None:
        vec = np.zeros(3)
        normalize_in_place(vec)
        assert vec.tolist() == [0.0, 0.0, 0.0]


class TestJaccard:
    def test_partial_overlap(self) -> None:
        assert jaccard_similarity({"a", "b"}, {"b", "c"}) == pytest.approx(1 / 3)

    def test_both_empty(self) -> None:
        assert jaccard_similarity(frozenset(), frozenset()) == 0.0

    def test_identical(self) -> None:
        assert jaccard_similarity({"x"}, {"x"}) == 1.0
