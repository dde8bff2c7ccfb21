"""
Catalog, user-library and summary-storage providers.

The catalog is the source of truth for which books exist. Two adapters are
provided: an in-memory one for tests and demos and a SQLite one for local use.
"""

from abc import ABC, abstractmethod
import asyncio
import sqlite3
from typing import Dict, Iterable, List, Optional, Set

from util.logging import logger
from .db import get_db, init_db
from .schema import BookRecord, book_from_row


class ICatalogProvider(ABC):
    """Read access to the book catalog."""

    @abstractmethod
    async def get_all_items(self) -> List[BookRecord]:
        pass

    @abstractmethod
    async def get_item_by_id(self, item_id: str) -> Optional[BookRecord]:
        pass


class IUserLibraryProvider(ABC):
    """Books a user already owns."""

    @abstractmethod
    async def get_owned_items(self, user_id: str) -> List[BookRecord]:
        pass


class ISummaryStore(ABC):
    """Durable storage for generated book summaries."""

    @abstractmethod
    async def get_summary(self, book_id: str) -> Optional[str]:
        pass

    @abstractmethod
    async def save_summary(self, book_id: str, summary: str) -> bool:
        pass


class InMemoryCatalog(ICatalogProvider, IUserLibraryProvider, ISummaryStore):
    """Catalog held in a list; preserves insertion order."""

    def __init__(self, books: Iterable[BookRecord] = (), libraries: Optional[Dict[str, Iterable[str]]] = None):
        self._books: List[BookRecord] = list(books)
        self._libraries: Dict[str, Set[str]] = {
            user_id: set(book_ids) for user_id, book_ids in (libraries or {}).items()
        }
        self._summaries: Dict[str, str] = {}

    def add_book(self, book: BookRecord) -> None:
        self._books = [b for b in self._books if b.id != book.id] + [book]

    def remove_book(self, book_id: str) -> None:
        self._books = [b for b in self._books if b.id != book_id]

    def add_to_library(self, user_id: str, book_id: str) -> None:
        self._libraries.setdefault(user_id, set()).add(book_id)

    async def get_all_items(self) -> List[BookRecord]:
        return list(self._books)

    async def get_item_by_id(self, item_id: str) -> Optional[BookRecord]:
        return next((b for b in self._books if b.id == str(item_id)), None)

    async def get_owned_items(self, user_id: str) -> List[BookRecord]:
        owned = self._libraries.get(user_id, set())
        return [b for b in self._books if b.id in owned]

    async def get_summary(self, book_id: str) -> Optional[str]:
        return self._summaries.get(str(book_id))

    async def save_summary(self, book_id: str, summary: str) -> bool:
        self._summaries[str(book_id)] = summary
        return True


class SqliteCatalog(ICatalogProvider, IUserLibraryProvider, ISummaryStore):
    """Catalog backed by the local SQLite database (see db.init_db)."""

    BOOK_COLUMNS = "id, title, author, year, genre, description, cover_image"

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path
        init_db(db_path)

    def _rows_to_books(self, rows) -> List[BookRecord]:
        books = []
        for row in rows:
            try:
                books.append(book_from_row(row))
            except ValueError as e:
                logger.warning(f"Skipping invalid book row {dict(row)}: {e}")
        return books

    def _query_books(self, sql: str, params: tuple = ()) -> List[BookRecord]:
        with get_db(self.db_path) as conn:
            rows = conn.execute(sql, params).fetchall()
        return self._rows_to_books(rows)

    def create_book(self, title: str, author: str, description: str = None, year: int = None,
                    genre: str = None, cover_image: str = None) -> BookRecord:
        """Insert a book and return it (synchronous; used by seeding and tests)."""
        with get_db(self.db_path) as conn:
            cursor = conn.execute(
                "INSERT INTO books (title, author, year, genre, description, cover_image) VALUES (?, ?, ?, ?, ?, ?)",
                (title, author, year, genre, description, cover_image)
            )
            conn.commit()
            book_id = cursor.lastrowid
        return BookRecord(id=str(book_id), title=title, author=author, description=description,
                          year=year, genre=genre, cover_image=cover_image)

    def add_to_library(self, user_id: str, book_id: str) -> bool:
        try:
            with get_db(self.db_path) as conn:
                conn.execute(
                    "INSERT OR IGNORE INTO user_library (user_id, book_id) VALUES (?, ?)",
                    (user_id, int(book_id))
                )
                conn.commit()
            return True
        except sqlite3.Error as e:
            logger.error(f"Error adding book {book_id} to library of {user_id}: {e}")
            return False

    async def get_all_items(self) -> List[BookRecord]:
        return await asyncio.to_thread(
            self._query_books, f"SELECT {self.BOOK_COLUMNS} FROM books ORDER BY id"
        )

    async def get_item_by_id(self, item_id: str) -> Optional[BookRecord]:
        try:
            numeric_id = int(item_id)
        except (TypeError, ValueError):
            return None
        books = await asyncio.to_thread(
            self._query_books, f"SELECT {self.BOOK_COLUMNS} FROM books WHERE id = ?", (numeric_id,)
        )
        return books[0] if books else None

    async def get_owned_items(self, user_id: str) -> List[BookRecord]:
        sql = (
            "SELECT b.id, b.title, b.author, b.year, b.genre, b.description, b.cover_image "
            "FROM books b JOIN user_library ul ON ul.book_id = b.id "
            "WHERE ul.user_id = ? ORDER BY ul.added_at, b.id"
        )
        return await asyncio.to_thread(self._query_books, sql, (user_id,))

    def _get_summary(self, book_id: int) -> Optional[str]:
        with get_db(self.db_path) as conn:
            row = conn.execute("SELECT summary FROM book_summaries WHERE book_id = ?", (book_id,)).fetchone()
        return row["summary"] if row else None

    def _save_summary(self, book_id: int, summary: str) -> None:
        with get_db(self.db_path) as conn:
            conn.execute(
                "INSERT OR REPLACE INTO book_summaries (book_id, summary, created_at) VALUES (?, ?, CURRENT_TIMESTAMP)",
                (book_id, summary)
            )
            conn.commit()

    async def get_summary(self, book_id: str) -> Optional[str]:
        try:
            return await asyncio.to_thread(self._get_summary, int(book_id))
        except (ValueError, sqlite3.Error) as e:
            logger.error(f"Error getting summary for book {book_id}: {e}")
            return None

    async def save_summary(self, book_id: str, summary: str) -> bool:
        try:
            await asyncio.to_thread(self._save_summary, int(book_id), summary)
            return True
        except (ValueError, sqlite3.Error) as e:
            logger.error(f"Error saving summary for book {book_id}: {e}")
            return False
