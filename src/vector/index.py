"""
Vector store interface and process-local implementations.
The store is a best-effort accelerator; the catalog stays the source of truth
for which books exist.
"""

from abc import ABC, abstractmethod
import asyncio
from typing import Dict, Optional, Set

from .types import EmbeddingVector


class IVectorStore(ABC):
    """Abstract interface for vector storage operations.

    Implementations never raise from these methods: backend failures surface
    as False, None or an empty set.
    """

    name = "abstract"

    @abstractmethod
    async def upsert(self, record_id: str, vector: EmbeddingVector) -> bool:
        """Store or overwrite the vector for record_id and add it to the index set."""
        pass

    @abstractmethod
    async def fetch(self, record_id: str) -> Optional[EmbeddingVector]:
        """Return the stored vector, or None when absent or unreadable."""
        pass

    @abstractmethod
    async def delete(self, record_id: str) -> bool:
        """Remove the vector and index membership. Deleting a missing id succeeds."""
        pass

    @abstractmethod
    async def enumerate_ids(self) -> Set[str]:
        """Return every id currently in the index set."""
        pass

    @abstractmethod
    async def is_available(self) -> bool:
        """Liveness probe used to choose between semantic and keyword search."""
        pass


class SimpleInMemoryVectorStore(IVectorStore):
    """In-memory implementation of IVectorStore for development and tests."""

    name = "memory"

    def __init__(self):
        self._vectors: Dict[str, EmbeddingVector] = {}  # record_id -> vector
        self._index: Set[str] = set()
        self._lock = asyncio.Lock()

    async def upsert(self, record_id: str, vector: EmbeddingVector) -> bool:
        async with self._lock:
            self._index.add(record_id)
            self._vectors[record_id] = list(vector)
        return True

    async def fetch(self, record_id: str) -> Optional[EmbeddingVector]:
        async with self._lock:
            vector = self._vectors.get(record_id)
        return list(vector) if vector is not None else None

    async def delete(self, record_id: str) -> bool:
        async with self._lock:
            self._vectors.pop(record_id, None)
            self._index.discard(record_id)
        return True

    async def enumerate_ids(self) -> Set[str]:
        async with self._lock:
            return set(self._index)

    async def is_available(self) -> bool:
        return True

    async def clear(self) -> None:
        """Clear all records from the store."""
        async with self._lock:
            self._vectors.clear()
            self._index.clear()


class NullVectorStore(IVectorStore):
    """No-op store used when no vector backend is configured.

    Always reports unavailable so searches take the keyword path.
    """

    name = "none"

    async def upsert(self, record_id: str, vector: EmbeddingVector) -> bool:
        return False

    async def fetch(self, record_id: str) -> Optional[EmbeddingVector]:
        return None

    async def delete(self, record_id: str) -> bool:
        return False

    async def enumerate_ids(self) -> Set[str]:
        return set()

    async def is_available(self) -> bool:
        return False
