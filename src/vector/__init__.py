"""
Vector layer: embeddings, similarity math and vector stores.
Non-canonical, advisory layer over the book catalog.
"""

# Package initialization for vector module
from .index import IVectorStore, SimpleInMemoryVectorStore, NullVectorStore
from .redis_store import RedisVectorStore
from .types import EmbeddingVector, IndexEntry, SimilarityResult, zero_vector, is_degraded
from .similarity import cosine_similarity, top_k
from .embeddings import (
    ITextGenerator,
    OllamaTextGenerator,
    IEmbeddingProvider,
    PromptedEmbeddingProvider,
    DeterministicHashEmbedding,
    VectorCodec,
)

__all__ = [
    'IVectorStore',
    'SimpleInMemoryVectorStore',
    'NullVectorStore',
    'RedisVectorStore',
    'EmbeddingVector',
    'IndexEntry',
    'SimilarityResult',
    'zero_vector',
    'is_degraded',
    'cosine_similarity',
    'top_k',
    'ITextGenerator',
    'OllamaTextGenerator',
    'IEmbeddingProvider',
    'PromptedEmbeddingProvider',
    'DeterministicHashEmbedding',
    'VectorCodec',
]
