"""
Configuration for the semantic search and recommendation core.
Values are read from the environment once at import; factories read them
again where tests need to flip them at runtime.
"""

import os
from pathlib import Path

# Catalog database path (local SQLite adapter)
DB_PATH = os.getenv("DB_PATH", "./data/books.db")

DEBUG = os.getenv("DEBUG", "true").lower() == "true"

# Vector system configuration
VECTOR_ENABLED = os.getenv("VECTOR_ENABLED", "true").lower() == "true"
VECTOR_PROVIDER = os.getenv("VECTOR_PROVIDER", "memory")  # redis|memory|none
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
STORE_TIMEOUT_SEC = float(os.getenv("STORE_TIMEOUT_SEC", "2.0"))

# Embedding configuration
EMBED_PROVIDER = os.getenv("EMBED_PROVIDER", "prompt")  # prompt|hash
EMBED_DIM = int(os.getenv("EMBED_DIM", "384"))
EMBED_TIMEOUT_SEC = float(os.getenv("EMBED_TIMEOUT_SEC", "30.0"))
EMBED_MAX_ATTEMPTS = int(os.getenv("EMBED_MAX_ATTEMPTS", "3"))
EMBED_MAX_OUTPUT_TOKENS = int(os.getenv("EMBED_MAX_OUTPUT_TOKENS", "2000"))

# Text generation provider
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.2:latest")
OLLAMA_HOST = os.getenv("OLLAMA_HOST", "http://localhost:11434")

# Recommendation fan-out (concurrent embedding calls per request)
RECOMMEND_FANOUT = int(os.getenv("RECOMMEND_FANOUT", "8"))

# Summary cache lifetime
SUMMARY_CACHE_TTL_SEC = int(os.getenv("SUMMARY_CACHE_TTL_SEC", "3600"))
SUMMARY_MAX_OUTPUT_TOKENS = int(os.getenv("SUMMARY_MAX_OUTPUT_TOKENS", "500"))
SUMMARY_TIMEOUT_SEC = float(os.getenv("SUMMARY_TIMEOUT_SEC", "30"))

VERSION = "1.0.0"


def are_vector_features_enabled():
    """Check if vector features are enabled."""
    return os.getenv("VECTOR_ENABLED", "true").lower() == "true"


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "true").lower() == "true"


def ensure_db_directory():
    """Ensure the database directory exists."""
    Path(DB_PATH).parent.mkdir(parents=True, exist_ok=True)


def get_vector_store():
    """
    Get the configured vector store implementation.

    The strategy is chosen once here; orchestrators only ever ask the store
    whether it is available. Disabled vector features yield the no-op store.
    """
    from src.vector.index import NullVectorStore, SimpleInMemoryVectorStore

    if not are_vector_features_enabled():
        return NullVectorStore()

    provider = os.getenv("VECTOR_PROVIDER", VECTOR_PROVIDER)
    if provider == "redis":
        from src.vector.redis_store import RedisVectorStore
        return RedisVectorStore.from_url(
            os.getenv("REDIS_URL", REDIS_URL),
            timeout=STORE_TIMEOUT_SEC,
        )
    elif provider == "none":
        return NullVectorStore()
    else:
        # Default to memory store for unknown providers
        return SimpleInMemoryVectorStore()


def get_text_generator():
    """Get the configured text-generation capability."""
    from src.vector.embeddings import OllamaTextGenerator
    return OllamaTextGenerator(model_name=OLLAMA_MODEL, host=OLLAMA_HOST)


def get_embedding_provider(text_generator=None):
    """Get configured embedding provider implementation."""
    from src.vector.embeddings import DeterministicHashEmbedding, PromptedEmbeddingProvider

    provider = os.getenv("EMBED_PROVIDER", EMBED_PROVIDER)
    if provider == "hash":
        return DeterministicHashEmbedding(dimension=EMBED_DIM)
    return PromptedEmbeddingProvider(
        text_generator or get_text_generator(),
        dimension=EMBED_DIM,
        max_output_tokens=EMBED_MAX_OUTPUT_TOKENS,
    )


def get_vector_codec(embedding_provider=None):
    """Get a VectorCodec wrapping the configured embedding provider."""
    from src.vector.embeddings import VectorCodec
    return VectorCodec(
        embedding_provider or get_embedding_provider(),
        dimension=EMBED_DIM,
        timeout=EMBED_TIMEOUT_SEC,
        max_attempts=EMBED_MAX_ATTEMPTS,
    )


def validate_vector_config():
    """Validate vector configuration and return any issues."""
    issues = []

    if VECTOR_PROVIDER not in ["redis", "memory", "none"]:
        issues.append(f"Invalid VECTOR_PROVIDER: {VECTOR_PROVIDER}")

    if EMBED_PROVIDER not in ["prompt", "hash"]:
        issues.append(f"Invalid EMBED_PROVIDER: {EMBED_PROVIDER}")

    if EMBED_DIM < 1:
        issues.append("EMBED_DIM must be >= 1")

    if EMBED_MAX_ATTEMPTS < 1:
        issues.append("EMBED_MAX_ATTEMPTS must be >= 1")

    if RECOMMEND_FANOUT < 1:
        issues.append("RECOMMEND_FANOUT must be >= 1")

    return issues
