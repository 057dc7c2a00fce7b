"""Vector math shared by the embedding trainer and the auto-queue.

Embeddings are stored as 1-D ``numpy`` float64 arrays.  Everything here
tolerates zero vectors: cosine similarity against a zero vector is ``0.0``
and normalising a zero vector leaves it unchanged.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def cosine_similarity(vec_a: np.ndarray | Sequence[float], vec_b: np.ndarray | Sequence[float]) -> float:
    """Return the cosine similarity of two vectors in ``[-1, 1]``.

    Vectors of different lengths are compared over their common prefix.
    Returns ``0.0`` when either vector has zero norm.
    """
    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)
    length = min(a.shape[0], b.shape[0])
    if length == 0:
        return 0.0
    a = a[:length]
    b = b[:length]

    norm_a = float(np.dot(a, a))
    norm_b = float(np.dot(b, b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    similarity = float(np.dot(a, b)) / (np.sqrt(norm_a) * np.sqrt(norm_b))
    # Clamp floating error so cos(v, v) never reads as 1.0000000002.
    return max(-1.0, min(1.0, similarity))


def normalize_in_place(vec: np.ndarray) -> None:
    """Scale *vec* to unit length in place (no-op for zero vectors)."""
    norm = float(np.linalg.norm(vec))
    if norm > 0.0:
        vec /= norm


def jaccard_similarity(a: set[str] | frozenset[str], b: set[str] | frozenset[str]) -> float:
    """Return ``|a & b| / |a | b|``, or ``0.0`` when both sets are empty."""
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)
