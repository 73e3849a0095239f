"""Hub data type definitions."""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import AsyncIterator, Optional


@dataclass(frozen=True)
class FileRecord:
    """
    Durable metadata describing one uploaded file and pointing at its blob.

    ``owner_label`` is only populated on reads that resolve the owner.
    """
    file_id: Optional[str]
    original_name: str
    blob_reference: str
    location_hint: Optional[str]
    description: Optional[str]
    owner_id: str
    created_at: datetime
    mime_type: Optional[str] = None
    size_bytes: int = 0
    owner_label: Optional[str] = None

    def with_id(self, file_id: str) -> 'FileRecord':
        return replace(self, file_id=file_id)


@dataclass(frozen=True)
class BlobLocation:
    """Where the storage provider put a finished upload."""
    reference: str
    location_hint: Optional[str] = None


@dataclass(frozen=True)
class BlobMetadata:
    """Provider-side framing information for a blob."""
    mime_type: Optional[str]
    name: Optional[str]


@dataclass(frozen=True)
class DownloadHandle:
    """
    An open download: the caller owns ``stream`` and must consume or close it.
    """
    stream: AsyncIterator[bytes]
    content_type: str
    file_name: str
    record: FileRecord
