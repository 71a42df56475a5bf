"""
Vector Similarity
=================

Cosine similarity over embedding vectors and the two rescalings used by
the engine: [0, 100] for classification scores and [0, 1] for grouping.
"""

from typing import Sequence

import numpy as np

from signal_engine.core import VectorDimensionMismatchException


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine of two equal-length vectors.

    Raises:
        VectorDimensionMismatchException: If the lengths differ
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise VectorDimensionMismatchException(va.size, vb.size)

    norm = np.linalg.norm(va) * np.linalg.norm(vb)
    if norm == 0:
        return 0.0
    return float(np.clip(np.dot(va, vb) / norm, -1.0, 1.0))


def similarity_percent(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine remapped to [0, 100]."""
    return (cosine_similarity(a, b) + 1) * 50


def similarity_unit(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine remapped to [0, 1]."""
    return (cosine_similarity(a, b) + 1) / 2


def mean_vector(vectors: Sequence[Sequence[float]]) -> list[float]:
    """Element-wise mean of equal-length vectors."""
    if not vectors:
        return []
    dims = {len(v) for v in vectors}
    if len(dims) > 1:
        lengths = sorted(dims)
        raise VectorDimensionMismatchException(lengths[0], lengths[-1])
    return np.mean(np.asarray(vectors, dtype=np.float64), axis=0).tolist()
