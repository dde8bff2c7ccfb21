"""
Cosine similarity and top-K ranking.
"""

import math

import pytest

from src.core.exceptions import DimensionMismatch
from src.vector.similarity import cosine_similarity, top_k
from src.vector.types import zero_vector


def test_similarity_is_symmetric():
    a = [0.3, -0.2, 0.9, 0.1]
    b = [-0.5, 0.4, 0.2, 0.8]
    assert cosine_similarity(a, b) == cosine_similarity(b, a)


def test_self_similarity_is_one():
    v = [0.1, -0.7, 0.35, 0.2, 0.05]
    assert math.isclose(cosine_similarity(v, v), 1.0, rel_tol=1e-9)


def test_orthogonal_and_opposite_vectors():
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0
    assert math.isclose(cosine_similarity([1.0, 2.0], [-1.0, -2.0]), -1.0)


@pytest.mark.parametrize("n", [1, 3, 384])
def test_zero_vector_scores_zero(n):
    other = [0.5] * n
    assert cosine_similarity(zero_vector(n), other) == 0.0
    assert cosine_similarity(other, zero_vector(n)) == 0.0
    assert cosine_similarity(zero_vector(n), zero_vector(n)) == 0.0


def test_dimension_mismatch_raises_value_error():
    with pytest.raises(DimensionMismatch):
        cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])

    # Callers may treat it as a plain invalid argument
    with pytest.raises(ValueError):
        cosine_similarity([1.0], [])


def test_top_k_orders_descending():
    candidates = [
        ("far", [0.0, 1.0]),
        ("close", [1.0, 0.1]),
        ("middle", [1.0, 1.0]),
    ]
    results = top_k([1.0, 0.0], candidates, 3)

    assert [r.id for r in results] == ["close", "middle", "far"]
    scores = [r.score for r in results]
    assert scores == sorted(scores, reverse=True)


def test_top_k_ties_keep_input_order():
    candidates = [("b", [1.0, 0.0]), ("a", [2.0, 0.0]), ("c", [3.0, 0.0])]
    results = top_k([1.0, 0.0], candidates, 3)
    assert [r.id for r in results] == ["b", "a", "c"]


@pytest.mark.parametrize("k,expected", [(0, 0), (-1, 0), (2, 2), (3, 3), (10, 3)])
def test_top_k_length(k, expected):
    candidates = [("x", [1.0, 0.0]), ("y", [0.0, 1.0]), ("z", [1.0, 1.0])]
    assert len(top_k([1.0, 0.0], candidates, k)) == expected


def test_zero_vector_candidates_rank_last():
    candidates = [("degraded", zero_vector(2)), ("weak", [0.1, 1.0])]
    results = top_k([1.0, 0.0], candidates, 2)
    assert results[-1].id == "degraded"
    assert results[-1].score == 0.0
