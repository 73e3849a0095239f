"""File record repository: the metadata store adapter."""

import sqlite3
from datetime import datetime
from typing import List, Optional

from common.logging_config import get_logger
from hub.database import get_db_connection, get_row_value
from hub.exceptions import MetadataPersistError, MetadataStoreError
from hub.types import FileRecord
from hub.utils import generate_uuid

logger = get_logger(__name__)

_SELECT_RECORDS = """
    SELECT f.file_id, f.original_name, f.blob_reference, f.location_hint, f.description,
           f.owner_id, f.mime_type, f.size_bytes, f.created_at, u.username AS owner_label
    FROM files f
    LEFT JOIN users u ON u.user_id = f.owner_id
"""

_INSERTION_ORDER = "ORDER BY f.rowid"


def _row_to_record(row: sqlite3.Row, resolve_owner: bool) -> FileRecord:
    return FileRecord(
        file_id=row["file_id"],
        original_name=row["original_name"],
        blob_reference=row["blob_reference"],
        location_hint=row["location_hint"],
        description=row["description"],
        owner_id=row["owner_id"],
        created_at=datetime.fromisoformat(row["created_at"]),
        mime_type=row["mime_type"],
        size_bytes=get_row_value(row, "size_bytes", 0),
        owner_label=row["owner_label"] if resolve_owner else None,
    )


class FileRepository:
    @staticmethod
    def create(record: FileRecord) -> FileRecord:
        """
        Persist a new FileRecord and return it with its assigned id.

        Raises:
            MetadataPersistError: If the insert fails for any database reason
        """
        file_id = generate_uuid()

        try:
            with get_db_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    INSERT INTO files (file_id, original_name, blob_reference, location_hint, description,
                                       owner_id, mime_type, size_bytes, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        file_id,
                        record.original_name,
                        record.blob_reference,
                        record.location_hint,
                        record.description,
                        record.owner_id,
                        record.mime_type,
                        record.size_bytes,
                        record.created_at.isoformat(),
                    )
                )
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to persist file record [blob_reference={record.blob_reference}]: {e}")
            raise MetadataPersistError(f"Could not save metadata for '{record.original_name}': {e}") from e

        logger.info(f"File record created [file_id={file_id}] name={record.original_name}")
        return record.with_id(file_id)

    @staticmethod
    def find_by_id(file_id: str, resolve_owner: bool = False) -> Optional[FileRecord]:
        try:
            with get_db_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(f"{_SELECT_RECORDS} WHERE f.file_id = ?", (file_id,))
                row = cursor.fetchone()
        except sqlite3.Error as e:
            raise MetadataStoreError(f"Metadata store unavailable: {e}") from e

        if row is None:
            return None
        return _row_to_record(row, resolve_owner)

    @staticmethod
    def find_all(resolve_owner: bool = True) -> List[FileRecord]:
        try:
            with get_db_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(f"{_SELECT_RECORDS} {_INSERTION_ORDER}")
                rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise MetadataStoreError(f"Metadata store unavailable: {e}") from e

        return [_row_to_record(row, resolve_owner) for row in rows]

    @staticmethod
    def find_by_text_match(substring: str, resolve_owner: bool = True) -> List[FileRecord]:
        """
        Case-insensitive substring match on original name OR description.
        """
        try:
            with get_db_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    f"""
                    {_SELECT_RECORDS}
                    WHERE contains_ci(f.original_name, ?) OR contains_ci(f.description, ?)
                    {_INSERTION_ORDER}
                    """,
                    (substring, substring)
                )
                rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise MetadataStoreError(f"Metadata store unavailable: {e}") from e

        return [_row_to_record(row, resolve_owner) for row in rows]
