"""
Semantic search over indexed books, with keyword fallback, plus the indexing
operations that keep the vector store in step with the catalog.
"""

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional

from util.logging import logger
from ..vector.embeddings import VectorCodec
from ..vector.index import IVectorStore
from ..vector.similarity import top_k
from ..vector.types import IndexEntry
from .catalog import ICatalogProvider
from .schema import BookRecord

SEMANTIC_MODE = "semantic"
KEYWORD_MODE = "keyword"


@dataclass
class SearchOutcome:
    books: List[BookRecord] = field(default_factory=list)
    mode: str = KEYWORD_MODE


def keyword_score(query_terms: List[str], book: BookRecord) -> int:
    """Number of query terms that occur as substrings of the book's text."""
    text = book.search_text()
    return sum(1 for term in query_terms if term in text)


class SemanticSearchService:
    """
    Entry point for search and indexing.

    semantic_search() only uses the vector path when the store answers its
    liveness probe and the query embeds to a non-degraded vector. Anything
    else, including errors while ranking or resolving, is served by
    keyword_search() over the catalog.
    """

    def __init__(self, codec: VectorCodec, vector_store: IVectorStore, catalog: ICatalogProvider,
                 index_concurrency: int = 8):
        self.codec = codec
        self.vector_store = vector_store
        self.catalog = catalog
        self.index_concurrency = max(1, index_concurrency)

    async def semantic_search(self, query: str, limit: int = 5) -> SearchOutcome:
        if limit <= 0:
            return SearchOutcome(books=[], mode=KEYWORD_MODE)

        if not await self.vector_store.is_available():
            logger.info("Vector store unavailable, using keyword search")
            return await self._fallback(query, limit, reason="store_unavailable")

        query_vector = await self.codec.embed(query)
        if self.codec.is_degraded(query_vector):
            return await self._fallback(query, limit, reason="embedding_failed")

        try:
            entries = await self._load_entries()
            ranked = top_k(query_vector, [(e.id, e.vector) for e in entries], limit)
            resolved = await asyncio.gather(
                *(self.catalog.get_item_by_id(result.id) for result in ranked)
            )
        except Exception as e:
            logger.error(f"Error in vector semantic search, falling back to keyword search: {e}")
            return await self._fallback(query, limit, reason="vector_path_error")

        # Deleted books no longer resolve; rank order is preserved
        books = [book for book in resolved if book is not None]
        logger.log_search(query, SEMANTIC_MODE, len(books), {"candidates": len(entries)})
        return SearchOutcome(books=books, mode=SEMANTIC_MODE)

    async def _load_entries(self) -> List[IndexEntry]:
        # sorted() gives a deterministic candidate order for tie-breaking
        ids = sorted(await self.vector_store.enumerate_ids())
        vectors = await asyncio.gather(*(self.vector_store.fetch(record_id) for record_id in ids))
        return [
            IndexEntry(id=record_id, vector=vector)
            for record_id, vector in zip(ids, vectors)
            if vector is not None
        ]

    async def _fallback(self, query: str, limit: int, reason: str) -> SearchOutcome:
        books = await self.keyword_search(query, limit)
        logger.log_search(query, KEYWORD_MODE, len(books), {"reason": reason})
        return SearchOutcome(books=books, mode=KEYWORD_MODE)

    async def keyword_search(self, query: str, limit: int = 5) -> List[BookRecord]:
        """Rank catalog books by how many query terms they contain."""
        if limit <= 0:
            return []
        try:
            books = await self.catalog.get_all_items()
        except Exception as e:
            logger.error(f"Error in fallback keyword search: {e}")
            return []

        terms = query.lower().split()
        scored = [(keyword_score(terms, book), book) for book in books]
        scored = sorted(scored, key=lambda pair: pair[0], reverse=True)
        return [book for _, book in scored[:limit]]

    async def index_book(self, book: BookRecord) -> bool:
        """Embed a book and upsert its vector. Degraded embeddings are not stored."""
        vector = await self.codec.embed_item(book)
        if self.codec.is_degraded(vector):
            logger.log_vector_operation("index", book.id, {"reason": "embedding_failed"}, status="failed")
            return False
        return await self.vector_store.upsert(book.id, vector)

    async def remove_book(self, book_id: str) -> bool:
        return await self.vector_store.delete(book_id)

    async def index_all(self, books: Optional[List[BookRecord]] = None) -> List[dict]:
        """Index every catalog book concurrently; returns one result per book in catalog order."""
        if books is None:
            books = await self.catalog.get_all_items()

        semaphore = asyncio.Semaphore(self.index_concurrency)

        async def _index(book: BookRecord) -> dict:
            async with semaphore:
                success = await self.index_book(book)
            return {"id": book.id, "title": book.title, "success": success}

        results = await asyncio.gather(*(_index(book) for book in books))
        logger.log_index_batch(
            total=len(results),
            succeeded=sum(1 for r in results if r["success"]),
            failed_ids=[r["id"] for r in results if not r["success"]],
        )
        return list(results)
