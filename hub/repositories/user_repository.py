"""Accounts table: credentials and the one live API key per user."""

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from common.logging_config import get_logger
from hub.database import get_db_connection, get_row_value
from hub.exceptions import MetadataPersistError, MetadataStoreError

logger = get_logger(__name__)

_USER_COLUMNS = "user_id, username, password_hash, api_key, created_at, key_updated_at"

# Columns a user may be looked up by
_LOOKUP_COLUMNS = ("user_id", "username", "api_key")


@dataclass
class User:
    user_id: str
    username: str
    password_hash: str
    api_key: Optional[str]
    created_at: datetime
    key_updated_at: Optional[datetime]

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> 'User':
        key_updated_at = get_row_value(row, "key_updated_at")
        return cls(
            user_id=row["user_id"],
            username=row["username"],
            password_hash=row["password_hash"],
            api_key=row["api_key"],
            created_at=datetime.fromisoformat(row["created_at"]),
            key_updated_at=datetime.fromisoformat(key_updated_at) if key_updated_at else None,
        )


class UserRepository:
    @staticmethod
    def create_user(
        user_id: str,
        username: str,
        password_hash: str,
        api_key: str,
        created_at: datetime,
    ) -> User:
        """
        Insert a new account.

        Raises:
            sqlite3.IntegrityError: If the username (or key) is already taken
            MetadataPersistError: On any other database failure
        """
        stamp = created_at.isoformat()
        try:
            with get_db_connection() as conn:
                conn.execute(
                    f"INSERT INTO users ({_USER_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
                    (user_id, username, password_hash, api_key, stamp, stamp),
                )
                conn.commit()
        except sqlite3.IntegrityError:
            raise
        except sqlite3.Error as e:
            logger.error(f"Could not store user '{username}': {e}")
            raise MetadataPersistError(f"Could not store user: {e}") from e

        logger.debug(f"Stored user '{username}' [user_id={user_id}]")
        return User(user_id, username, password_hash, api_key, created_at, created_at)

    @staticmethod
    def _fetch_one(column: str, value: str) -> Optional[User]:
        if column not in _LOOKUP_COLUMNS:
            raise ValueError(f"Cannot look users up by {column!r}")
        try:
            with get_db_connection() as conn:
                row = conn.execute(
                    f"SELECT {_USER_COLUMNS} FROM users WHERE {column} = ?", (value,)
                ).fetchone()
        except sqlite3.Error as e:
            raise MetadataStoreError(f"Metadata store unavailable: {e}") from e
        return User.from_row(row) if row is not None else None

    @staticmethod
    def get_by_username(username: str) -> Optional[User]:
        return UserRepository._fetch_one("username", username)

    @staticmethod
    def get_by_user_id(user_id: str) -> Optional[User]:
        return UserRepository._fetch_one("user_id", user_id)

    @staticmethod
    def get_by_api_key(api_key: str) -> Optional[User]:
        return UserRepository._fetch_one("api_key", api_key)

    @staticmethod
    def update_api_key(user_id: str, api_key: str, updated_at: datetime) -> None:
        """Replace the user's key; the old one stops matching immediately."""
        try:
            with get_db_connection() as conn:
                conn.execute(
                    "UPDATE users SET api_key = ?, key_updated_at = ? WHERE user_id = ?",
                    (api_key, updated_at.isoformat(), user_id),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise MetadataPersistError(f"Could not rotate API key: {e}") from e
        logger.info(f"API key rotated [user_id={user_id}]")
