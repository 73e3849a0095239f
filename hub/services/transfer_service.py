"""Transfer pipeline: streams file bytes between clients and the blob store."""

import asyncio
import unicodedata
from typing import AsyncIterator, List, Optional
from urllib.parse import quote

from common.constants import DEFAULT_MIME_TYPE, STREAM_PIECE_SIZE_BYTES
from common.logging_config import get_logger
from hub.exceptions import (
    FileRecordNotFoundError,
    InvalidInputError,
    MetadataPersistError,
    NoFilesFoundError,
)
from hub.repositories.file_repository import FileRepository
from hub.storage.base import BlobReadStream, BlobStore
from hub.types import DownloadHandle, FileRecord
from hub.utils import utc_now

logger = get_logger(__name__)


async def iter_upload_file(upload_file, piece_size: int = STREAM_PIECE_SIZE_BYTES) -> AsyncIterator[bytes]:
    """
    Read a Starlette ``UploadFile`` piece by piece.

    Args:
        upload_file: Multipart file part received by a route
        piece_size: Maximum bytes per yielded piece

    Yields:
        Consecutive non-empty byte pieces
    """
    while True:
        piece = await upload_file.read(piece_size)
        if not piece:
            break
        yield piece


def content_disposition(file_name: str) -> str:
    """
    Build an ``attachment`` Content-Disposition header value.

    The plain ``filename`` parameter carries an ASCII approximation for old
    clients, ``filename*`` carries the exact UTF-8 name.
    """
    cleaned = "".join(ch for ch in file_name if ch not in '"\\' and unicodedata.category(ch)[0] != "C")
    fallback = unicodedata.normalize("NFKD", cleaned).encode("ascii", "ignore").decode("ascii").strip()
    if not fallback:
        fallback = "download"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(file_name, safe='')}"


class TransferService:
    def __init__(self, blob_store: BlobStore, file_repo: Optional[FileRepository] = None):
        self.blob_store = blob_store
        self.file_repo = file_repo or FileRepository()

    async def upload(
        self,
        source: Optional[AsyncIterator[bytes]],
        original_name: str,
        mime_type: Optional[str],
        description: Optional[str],
        owner_id: str,
    ) -> FileRecord:
        """
        Relay an upload into the blob store, then persist its FileRecord.

        Each piece is written before the next one is read from ``source``.
        If anything fails while the blob is being written the partial blob
        is aborted and no record is created.

        Parameters:
            source: Async iterator of the file's bytes
            original_name: Client-supplied file name, kept verbatim
            mime_type: Content type reported by the client
            description: Optional searchable text
            owner_id: Authenticated uploader

        Returns:
            The persisted FileRecord with its assigned id

        Raises:
            InvalidInputError: If there is no stream or no file name
            UpstreamStorageError: If the blob store fails
            MetadataPersistError: If the blob was stored but the record was not
        """
        if source is None:
            raise InvalidInputError("No file was provided")
        if not original_name or not original_name.strip():
            raise InvalidInputError("File name is required")

        mime_type = mime_type or DEFAULT_MIME_TYPE
        logger.info(f"Upload started: '{original_name}' ({mime_type}) [owner_id={owner_id}]")

        sink = await self.blob_store.open_write_sink(original_name, mime_type)
        size_bytes = 0
        try:
            async for piece in source:
                if not piece:
                    continue
                await sink.write(piece)
                size_bytes += len(piece)
            location = await sink.close()
        except (Exception, asyncio.CancelledError) as e:
            logger.warning(f"Upload of '{original_name}' failed after {size_bytes} bytes: {e!r}")
            await sink.abort()
            raise

        record = FileRecord(
            file_id=None,
            original_name=original_name,
            blob_reference=location.reference,
            location_hint=location.location_hint,
            description=description,
            owner_id=owner_id,
            created_at=utc_now(),
            mime_type=mime_type,
            size_bytes=size_bytes,
        )

        try:
            saved = self.file_repo.create(record)
        except MetadataPersistError:
            logger.error(
                f"Orphaned blob {location.reference}: stored '{original_name}' but its record was not saved"
            )
            raise

        logger.info(f"Upload finished: '{original_name}' -> {saved.file_id} ({size_bytes} bytes)")
        return saved

    async def list_files(self) -> List[FileRecord]:
        records = self.file_repo.find_all(resolve_owner=True)
        if not records:
            raise NoFilesFoundError("No files found")
        return records

    async def search(self, query: Optional[str]) -> List[FileRecord]:
        if query is None or not query.strip():
            raise InvalidInputError("Search query is required")

        records = self.file_repo.find_by_text_match(query, resolve_owner=True)
        logger.debug(f"Search '{query}' matched {len(records)} file(s)")
        if not records:
            raise NoFilesFoundError(f"No files matching '{query}'")
        return records

    async def get_file(self, file_id: str) -> FileRecord:
        record = self.file_repo.find_by_id(file_id, resolve_owner=True)
        if record is None:
            raise FileRecordNotFoundError(f"File {file_id} not found")
        return record

    async def download(self, file_id: str) -> DownloadHandle:
        """
        Open a download for a stored file.

        The provider's metadata is fetched again so the content type reflects
        the blob as it is now. The returned stream has not been read yet;
        closing it releases the upstream read whether or not it was started.

        Raises:
            FileRecordNotFoundError: If no record has this id
            BlobNotFoundError: If the provider no longer has the blob
            UpstreamStorageError: If the provider fails
        """
        record = self.file_repo.find_by_id(file_id)
        if record is None:
            raise FileRecordNotFoundError(f"File {file_id} not found")

        metadata = await self.blob_store.get_metadata(record.blob_reference)
        stream = await self.blob_store.open_read_stream(record.blob_reference)

        file_name = record.original_name or metadata.name or file_id
        content_type = metadata.mime_type or DEFAULT_MIME_TYPE

        logger.info(f"Download started: {file_id} '{file_name}' ({content_type})")
        return DownloadHandle(
            stream=BlobReadStream(self._relay(stream, file_id), release=getattr(stream, "aclose", None)),
            content_type=content_type,
            file_name=file_name,
            record=record,
        )

    async def _relay(self, stream: AsyncIterator[bytes], file_id: str) -> AsyncIterator[bytes]:
        sent = 0
        try:
            async for piece in stream:
                sent += len(piece)
                yield piece
        except Exception as e:
            logger.error(f"Download of {file_id} broke after {sent} bytes: {e}")
            raise
        logger.info(f"Download finished: {file_id} ({sent} bytes)")
