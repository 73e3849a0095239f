"""Pydantic schemas for file endpoints."""

from typing import List, Optional

from pydantic import BaseModel

from hub.types import FileRecord


class FileRecordResponse(BaseModel):
    """Response model for one file record."""
    file_id: str
    original_name: str
    blob_reference: str
    location_hint: Optional[str] = None
    description: Optional[str] = None
    owner_id: str
    owner_label: Optional[str] = None
    mime_type: Optional[str] = None
    size_bytes: int = 0
    created_at: str

    @classmethod
    def from_record(cls, record: FileRecord) -> 'FileRecordResponse':
        return cls(
            file_id=record.file_id,
            original_name=record.original_name,
            blob_reference=record.blob_reference,
            location_hint=record.location_hint,
            description=record.description,
            owner_id=record.owner_id,
            owner_label=record.owner_label,
            mime_type=record.mime_type,
            size_bytes=record.size_bytes,
            created_at=record.created_at.isoformat(),
        )


class ListFilesResponse(BaseModel):
    """Response model for file listing and search."""
    files: List[FileRecordResponse]
