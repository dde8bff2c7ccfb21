"""
Vector types shared by the codec, similarity engine and stores.
Vectors are plain lists of floats; stores own their copies.
"""

from dataclasses import dataclass
from typing import List

EmbeddingVector = List[float]


def zero_vector(dimension: int) -> EmbeddingVector:
    """The degraded-embedding sentinel of the given dimension."""
    return [0.0] * dimension


def is_degraded(vector: EmbeddingVector) -> bool:
    """True when the vector is the all-zero sentinel (or empty)."""
    return not any(vector)


@dataclass
class IndexEntry:
    """Association between an item identifier and its stored vector."""

    id: str
    """Opaque item identifier"""

    vector: EmbeddingVector
    """The stored embedding"""


@dataclass
class SimilarityResult:
    """Represents a ranked candidate from a similarity scan."""

    id: str
    """Identifier for the matching record"""

    score: float
    """Cosine similarity of the match, 0.0 for degenerate vectors"""
