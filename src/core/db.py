"""
SQLite connection handling and schema for the local catalog adapter.
"""

import sqlite3
from contextlib import contextmanager
from typing import Generator, Optional
from . import config


@contextmanager
def get_db(db_path: Optional[str] = None) -> Generator[sqlite3.Connection, None, None]:
    """Get a SQLite database connection with name-addressable rows."""
    conn = sqlite3.connect(db_path or config.DB_PATH)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: Optional[str] = None):
    """Initialize the database with required tables."""
    if db_path is None:
        config.ensure_db_directory()

    with get_db(db_path) as conn:
        cursor = conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS books (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                author TEXT NOT NULL,
                year INTEGER,
                genre TEXT,
                description TEXT,
                cover_image TEXT
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS user_library (
                user_id TEXT NOT NULL,
                book_id INTEGER NOT NULL REFERENCES books(id) ON DELETE CASCADE,
                added_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (user_id, book_id)
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS book_summaries (
                book_id INTEGER PRIMARY KEY REFERENCES books(id) ON DELETE CASCADE,
                summary TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''')

        cursor.execute('CREATE INDEX IF NOT EXISTS idx_user_library_user ON user_library(user_id)')

        conn.commit()


def health_check(db_path: Optional[str] = None) -> bool:
    """Check database health."""
    try:
        with get_db(db_path) as conn:
            conn.execute("SELECT 1")
            return True
    except sqlite3.Error:
        return False
