"""
Recommendations from a user's library.

Cached vectors are read from the vector store when it is available; only
uncached books are embedded live, with bounded concurrency, and the fresh
vectors are written back for the next request.
"""

import asyncio
import random
from typing import List, Optional, Tuple

from util.logging import logger
from ..vector.embeddings import VectorCodec
from ..vector.index import IVectorStore
from ..vector.similarity import cosine_similarity
from ..vector.types import EmbeddingVector
from .catalog import ICatalogProvider, IUserLibraryProvider
from .schema import BookRecord

PROFILE_TITLE = "User Library"


def build_profile_text(owned: List[BookRecord]) -> str:
    """Concatenate owned books into one description for the profile embedding."""
    return " ".join(
        f"{book.title} by {book.author}. {book.description or ''}".strip()
        for book in owned
    )


class RecommendationService:
    """Ranks unowned catalog books by similarity to the user's library profile."""

    def __init__(self, codec: VectorCodec, vector_store: Optional[IVectorStore] = None,
                 catalog: Optional[ICatalogProvider] = None, library: Optional[IUserLibraryProvider] = None,
                 fanout: int = 8):
        self.codec = codec
        self.vector_store = vector_store
        self.catalog = catalog
        self.library = library
        self.fanout = max(1, fanout)

    async def recommend_for_user(self, user_id: str, limit: int = 5) -> List[BookRecord]:
        if self.catalog is None or self.library is None:
            raise RuntimeError("recommend_for_user requires catalog and library providers")
        try:
            owned, catalog = await asyncio.gather(
                self.library.get_owned_items(user_id),
                self.catalog.get_all_items(),
            )
        except Exception as e:
            logger.error(f"Error loading library for user {user_id}: {e}")
            return []
        return await self.recommend(owned, catalog, limit)

    async def recommend(self, owned: List[BookRecord], catalog: List[BookRecord], limit: int = 5) -> List[BookRecord]:
        if limit <= 0 or not catalog:
            return []

        if not owned:
            picks = random.sample(catalog, min(limit, len(catalog)))
            logger.log_recommendation(0, len(catalog), len(picks), strategy="random")
            return picks

        owned_ids = {book.id for book in owned}
        candidates = [book for book in catalog if book.id not in owned_ids]
        if not candidates:
            return []

        profile = BookRecord(id="profile", title=PROFILE_TITLE, author="", description=build_profile_text(owned))
        profile_vector = await self.codec.embed_item(profile)
        if self.codec.is_degraded(profile_vector):
            # Every candidate would score 0; skip the per-book embedding calls
            picks = candidates[:limit]
            logger.log_recommendation(len(owned), len(candidates), len(picks), strategy="catalog_order")
            return picks

        vectors, cache_hits = await self._candidate_vectors(candidates)
        scored = [
            (cosine_similarity(profile_vector, vector), book)
            for book, vector in zip(candidates, vectors)
        ]
        # Stable sort keeps catalog order among equal scores
        scored = sorted(scored, key=lambda pair: pair[0], reverse=True)
        picks = [book for _, book in scored[:limit]]

        logger.log_recommendation(len(owned), len(candidates), len(picks), strategy="similarity", cache_hits=cache_hits)
        return picks

    async def _candidate_vectors(self, candidates: List[BookRecord]) -> Tuple[List[EmbeddingVector], int]:
        use_store = self.vector_store is not None and await self.vector_store.is_available()
        semaphore = asyncio.Semaphore(self.fanout)

        async def _vector_for(book: BookRecord) -> Tuple[EmbeddingVector, bool]:
            if use_store:
                cached = await self.vector_store.fetch(book.id)
                if cached is not None and len(cached) == self.codec.dimension:
                    return cached, True

            async with semaphore:
                vector = await self.codec.embed_item(book)

            if use_store and not self.codec.is_degraded(vector):
                await self.vector_store.upsert(book.id, vector)
            return vector, False

        results = await asyncio.gather(*(_vector_for(book) for book in candidates))
        vectors = [vector for vector, _ in results]
        cache_hits = sum(1 for _, hit in results if hit)
        return vectors, cache_hits
