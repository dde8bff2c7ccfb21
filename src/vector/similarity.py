"""
Cosine similarity and exact top-K ranking by linear scan.
"""

from typing import List, Sequence, Tuple
import numpy as np

from ..core.exceptions import DimensionMismatch
from .types import SimilarityResult


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity between two vectors of equal length.

    Raises DimensionMismatch when lengths differ. Returns 0.0 when either
    vector has zero norm, so degraded embeddings rank last instead of
    producing NaN.
    """
    if len(a) != len(b):
        raise DimensionMismatch(len(a), len(b))

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)

    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.dot(va, vb) / (norm_a * norm_b))


def top_k(query: Sequence[float], candidates: List[Tuple[str, Sequence[float]]], k: int) -> List[SimilarityResult]:
    """
    Rank candidates by similarity to the query and keep the best k.

    Ties keep the candidates' input order (sorted() is stable).
    """
    if k <= 0 or not candidates:
        return []

    scored = [
        SimilarityResult(id=candidate_id, score=cosine_similarity(query, vector))
        for candidate_id, vector in candidates
    ]
    scored = sorted(scored, key=lambda result: result.score, reverse=True)
    return scored[:k]
