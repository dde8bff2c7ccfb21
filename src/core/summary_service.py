"""
Book summaries: TTL cache in front of durable storage in front of generation.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Optional, Tuple, TypeVar

from util.logging import logger
from ..vector.embeddings import ITextGenerator
from .catalog import ICatalogProvider, ISummaryStore
from .schema import BookRecord

T = TypeVar("T")

SUMMARY_PROMPT = """Generate a concise summary (about 250 words) of the book "{title}" by {author}.
The book is about: {description}.
Focus on the main themes, plot, and significance of the book."""


class TTLCache(Generic[T]):
    """Async-safe key/value cache whose entries expire after `ttl` seconds.

    Create one per process and share it across requests.
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[T, float]] = {}
        self._lock = asyncio.Lock()

    def _expired(self, stored_at: float, ttl: float) -> bool:
        return self._clock() - stored_at >= ttl

    async def get(self, key: str) -> Optional[T]:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, stored_at = entry
            if self._expired(stored_at, self.ttl):
                del self._entries[key]
                return None
            return value

    async def set(self, key: str, value: T) -> None:
        async with self._lock:
            self._entries[key] = (value, self._clock())

    async def is_expired(self, key: str, ttl: Optional[float] = None) -> bool:
        """True when key is absent or older than ttl (defaults to the cache ttl)."""
        async with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return True
        return self._expired(entry[1], self.ttl if ttl is None else ttl)

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()


def fallback_summary(book: BookRecord) -> str:
    """Placeholder text shown when the generator cannot produce a summary."""
    return (
        f'We couldn\'t generate a custom summary for "{book.title}" by {book.author} at this moment.\n\n'
        "Please check back later for a more detailed summary, or explore the book's "
        "description for more information about its content."
    )


@dataclass
class SummaryResult:
    summary: str
    cached: bool
    generated: bool = False


class SummaryService:
    """Returns a summary for a book: cache, then storage, then generation.

    Generated summaries are stored and cached. Fallback text is cached so a
    struggling provider is not hammered, but never stored.
    """

    def __init__(self, text_generator: ITextGenerator, catalog: ICatalogProvider, store: ISummaryStore,
                 cache: TTLCache, max_output_tokens: int = 500, timeout: float = 30.0):
        self.text_generator = text_generator
        self.catalog = catalog
        self.store = store
        self.cache = cache
        self.max_output_tokens = max_output_tokens
        self.timeout = timeout

    async def get_summary(self, book_id: str) -> Optional[SummaryResult]:
        """Returns None when the book does not exist."""
        cached = await self.cache.get(book_id)
        if cached is not None:
            logger.log_cache_event("summary", "hit", book_id)
            return SummaryResult(summary=cached, cached=True)

        stored = await self.store.get_summary(book_id)
        if stored:
            await self.cache.set(book_id, stored)
            return SummaryResult(summary=stored, cached=False)

        book = await self.catalog.get_item_by_id(book_id)
        if book is None:
            return None

        prompt = SUMMARY_PROMPT.format(
            title=book.title,
            author=book.author,
            description=book.description or "Not provided",
        )
        try:
            summary = await asyncio.wait_for(
                self.text_generator.generate(prompt, self.max_output_tokens), self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"Summary generation timed out for book {book_id} after {self.timeout}s")
            summary = None
        except Exception as e:
            logger.warning(f"Summary generation failed for book {book_id}: {type(e).__name__}: {e}")
            summary = None

        if not summary:
            summary = fallback_summary(book)
            await self.cache.set(book_id, summary)
            return SummaryResult(summary=summary, cached=False)

        await self.store.save_summary(book_id, summary)
        await self.cache.set(book_id, summary)
        logger.log_cache_event("summary", "stored", book_id)
        return SummaryResult(summary=summary, cached=False, generated=True)
