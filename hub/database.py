"""Database schema and connection management for SQLite."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Optional

from hub import config


def _contains_ci(haystack: Optional[str], needle: Optional[str]) -> int:
    """
    Case-insensitive substring test registered as the ``contains_ci`` SQL function.

    SQLite's own LIKE/lower() only fold ASCII, so matching is done in Python.
    """
    if haystack is None or needle is None:
        return 0
    return 1 if needle.casefold() in haystack.casefold() else 0


def init_database() -> None:
    """
    Initialize database and create tables if they don't exist.
    """
    db_path = Path(config.DATABASE_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection() as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS users (
                user_id TEXT PRIMARY KEY,
                username TEXT UNIQUE NOT NULL,
                password_hash TEXT NOT NULL,
                api_key TEXT UNIQUE,
                created_at TEXT NOT NULL,
                key_updated_at TEXT
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS files (
                file_id TEXT PRIMARY KEY,
                original_name TEXT NOT NULL,
                blob_reference TEXT NOT NULL,
                location_hint TEXT,
                description TEXT,
                owner_id TEXT NOT NULL,
                mime_type TEXT,
                size_bytes INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                FOREIGN KEY(owner_id) REFERENCES users(user_id)
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_files_owner ON files(owner_id)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_files_created_at ON files(created_at)
        """)

        conn.commit()


@contextmanager
def get_db_connection() -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.
    """
    conn = sqlite3.connect(config.DATABASE_PATH)
    conn.row_factory = sqlite3.Row
    conn.create_function("contains_ci", 2, _contains_ci, deterministic=True)
    try:
        yield conn
    finally:
        conn.close()


def get_row_value(row: sqlite3.Row, column: str, default: Any = None) -> Any:
    """
    Read a column that may be absent from the row or NULL.
    """
    if column not in row.keys():
        return default
    value = row[column]
    return default if value is None else value
