"""Session co-occurrence model.

Counts how often two tracks are played in the same listening session.  For
every session and every ordered pair of positions ``(i, j)`` with ``i != j``
the count ``matrix[track_i][track_j]`` is incremented.  This is O(n^2) in
session length; sessions are assumed to be ordinary listening sessions, not
unbounded logs.

Scores are normalised by the *source* track's own maximum outgoing count, so
``score(a, b)`` and ``score(b, a)`` can differ.  That asymmetry is kept as
is: a track heard with many others spreads its score thinly, while its rarer
partners may still rate it highly.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from tunequeue.models.recommendation import SimilarTrack
from tunequeue.models.track import Session
from tunequeue.utils.logging import get_logger


class CooccurrenceModel:
    """Pairwise play-together counts built from listening sessions."""

    def __init__(self) -> None:
        self._matrix: dict[str, dict[str, int]] = {}
        self._logger = get_logger(__name__)

    def build_co_matrix(self, sessions: Iterable[Session]) -> None:
        """Rebuild the matrix from scratch (not incremental)."""
        matrix: dict[str, dict[str, int]] = {}
        session_count = 0
        for session in sessions:
            session_count += 1
            tracks = session.tracks
            for i, track_a in enumerate(tracks):
                row = matrix.setdefault(track_a, {})
                for j, track_b in enumerate(tracks):
                    if i == j:
                        continue
                    row[track_b] = row.get(track_b, 0) + 1
        self._matrix = matrix
        self._logger.info(
            "co_matrix_built",
            sessions=session_count,
            tracks=len(matrix),
        )

    def get_co_similar(self, track_id: str, top_n: int = 10) -> list[SimilarTrack]:
        """Top co-occurring tracks by raw count, ties in first-seen order."""
        row = self._matrix.get(track_id)
        if not row or top_n <= 0:
            return []
        ranked = sorted(row.items(), key=lambda item: -item[1])
        return [SimilarTrack(id=tid, score=float(count)) for tid, count in ranked[:top_n]]

    def compute_cooccurrence_score(self, track_a: str, track_b: str) -> float:
        """``matrix[a][b] / max(matrix[a][*])`` in ``[0, 1]``; 0 when unseen."""
        row = self._matrix.get(track_a)
        if not row:
            return 0.0
        count = row.get(track_b, 0)
        if count <= 0:
            return 0.0
        max_count = max(row.values())
        return count / max_count

    def get_count(self, track_a: str, track_b: str) -> int:
        return self._matrix.get(track_a, {}).get(track_b, 0)

    def get_matrix(self) -> Mapping[str, Mapping[str, int]]:
        """Read-only view of the current matrix (for debugging)."""
        return MappingProxyType(
            {tid: MappingProxyType(row) for tid, row in self._matrix.items()}
        )

    def __len__(self) -> int:
        return len(self._matrix)
