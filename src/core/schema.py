"""
Domain records and the mapping from persistence rows to them.
Rows are validated here, at the boundary, rather than trusted downstream.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

REQUIRED_BOOK_FIELDS = ("id", "title", "author")


@dataclass(frozen=True)
class BookRecord:
    id: str
    title: str
    author: str
    description: Optional[str] = None
    year: Optional[int] = None
    genre: Optional[str] = None
    cover_image: Optional[str] = None

    def search_text(self) -> str:
        """Lower-cased text scanned by keyword search."""
        return f"{self.title} {self.author} {self.description or ''}".lower()


def book_from_row(row: Mapping[str, Any]) -> BookRecord:
    """
    Map a persistence row (sqlite3.Row, dict) to a BookRecord.

    Raises ValueError when a required field is missing or blank.
    """
    keys = set(row.keys())
    missing = [
        field for field in REQUIRED_BOOK_FIELDS
        if field not in keys or row[field] is None or not str(row[field]).strip()
    ]
    if missing:
        raise ValueError(f"Book row missing required fields: {', '.join(missing)}")

    year = row["year"] if "year" in keys else None
    return BookRecord(
        id=str(row["id"]),
        title=str(row["title"]),
        author=str(row["author"]),
        description=row["description"] if "description" in keys else None,
        year=int(year) if year is not None else None,
        genre=row["genre"] if "genre" in keys else None,
        cover_image=row["cover_image"] if "cover_image" in keys else None,
    )


def book_to_dict(book: BookRecord) -> dict:
    return {
        "id": book.id,
        "title": book.title,
        "author": book.author,
        "description": book.description,
        "year": book.year,
        "genre": book.genre,
        "cover_image": book.cover_image,
    }
