"""Directory-backed blob store: blob bytes plus a JSON sidecar per reference."""

import asyncio
import json
import re
from pathlib import Path
from typing import AsyncIterator, BinaryIO, Optional

from common.constants import STREAM_PIECE_SIZE_BYTES
from common.logging_config import get_logger
from hub.exceptions import BlobNotFoundError, UpstreamStorageError
from hub.storage.base import BlobReadStream, BlobStore, BlobWriteSink
from hub.types import BlobLocation, BlobMetadata
from hub.utils import generate_uuid

logger = get_logger(__name__)

_REFERENCE_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")


async def _run(func, *args):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func, *args)


class LocalBlobWriteSink(BlobWriteSink):
    """Writes into ``<reference>.part`` and renames it into place on close."""

    def __init__(self, store: 'LocalBlobStore', reference: str, name: str, mime_type: str, handle: BinaryIO):
        self._store = store
        self._reference = reference
        self._name = name
        self._mime_type = mime_type
        self._handle: Optional[BinaryIO] = handle
        self.bytes_written = 0

    async def write(self, data: bytes) -> None:
        if self._handle is None:
            raise UpstreamStorageError(f"Blob {self._reference} is no longer writable")
        try:
            await _run(self._handle.write, data)
        except OSError as e:
            raise UpstreamStorageError(f"Local blob write failed for {self._reference}: {e}") from e
        self.bytes_written += len(data)

    async def close(self) -> BlobLocation:
        if self._handle is None:
            raise UpstreamStorageError(f"Blob {self._reference} is no longer writable")

        handle, self._handle = self._handle, None
        part_path = self._store.get_part_path(self._reference)
        blob_path = self._store.get_blob_path(self._reference)
        sidecar = json.dumps({"name": self._name, "mime_type": self._mime_type})

        def finish() -> None:
            handle.close()
            self._store.get_meta_path(self._reference).write_text(sidecar, encoding="utf-8")
            part_path.replace(blob_path)

        try:
            await _run(finish)
        except OSError as e:
            await _run(self._store.discard, self._reference)
            raise UpstreamStorageError(f"Local blob commit failed for {self._reference}: {e}") from e

        logger.info(f"Stored blob {self._reference} ({self.bytes_written} bytes)")
        return BlobLocation(reference=self._reference, location_hint=blob_path.resolve().as_uri())

    async def abort(self) -> None:
        if self._handle is None:
            return
        handle, self._handle = self._handle, None

        def discard() -> None:
            handle.close()
            self._store.discard(self._reference)

        await _run(discard)
        logger.info(f"Aborted blob {self._reference} after {self.bytes_written} bytes")


class LocalBlobStore(BlobStore):
    """
    Blob store kept in a local directory.

    Layout per reference: ``<ref>.blob`` (content), ``<ref>.json`` (name and
    mime type), and ``<ref>.part`` while an upload is in flight.
    """

    def __init__(self, root: Path, piece_size: int = STREAM_PIECE_SIZE_BYTES):
        self.root = Path(root)
        self.piece_size = piece_size

    def get_blob_path(self, reference: str) -> Path:
        return self.root / f"{reference}.blob"

    def get_meta_path(self, reference: str) -> Path:
        return self.root / f"{reference}.json"

    def get_part_path(self, reference: str) -> Path:
        return self.root / f"{reference}.part"

    def discard(self, reference: str) -> None:
        for path in (self.get_part_path(reference), self.get_meta_path(reference)):
            if path.exists():
                path.unlink()

    def _check_reference(self, reference: str) -> None:
        if not _REFERENCE_PATTERN.match(reference or ""):
            raise BlobNotFoundError(f"Blob {reference!r} not found")

    async def open_write_sink(self, name: str, mime_type: str) -> LocalBlobWriteSink:
        reference = generate_uuid()
        part_path = self.get_part_path(reference)

        def open_part() -> BinaryIO:
            self.root.mkdir(parents=True, exist_ok=True)
            return open(part_path, "wb")

        try:
            handle = await _run(open_part)
        except OSError as e:
            raise UpstreamStorageError(f"Cannot open local blob for writing: {e}") from e

        logger.debug(f"Opened blob {reference} for '{name}' ({mime_type})")
        return LocalBlobWriteSink(self, reference, name, mime_type, handle)

    async def get_metadata(self, reference: str) -> BlobMetadata:
        self._check_reference(reference)
        blob_path = self.get_blob_path(reference)
        meta_path = self.get_meta_path(reference)

        def read_sidecar() -> Optional[str]:
            if not blob_path.exists() or not meta_path.exists():
                return None
            return meta_path.read_text(encoding="utf-8")

        try:
            raw = await _run(read_sidecar)
        except OSError as e:
            raise UpstreamStorageError(f"Cannot read metadata for blob {reference}: {e}") from e
        if raw is None:
            raise BlobNotFoundError(f"Blob {reference} not found")

        try:
            data = json.loads(raw)
        except ValueError as e:
            raise UpstreamStorageError(f"Corrupt metadata for blob {reference}: {e}") from e

        return BlobMetadata(mime_type=data.get("mime_type"), name=data.get("name"))

    async def open_read_stream(self, reference: str) -> BlobReadStream:
        self._check_reference(reference)
        blob_path = self.get_blob_path(reference)

        try:
            handle = await _run(open, blob_path, "rb")
        except FileNotFoundError:
            raise BlobNotFoundError(f"Blob {reference} not found")
        except OSError as e:
            raise UpstreamStorageError(f"Cannot open blob {reference}: {e}") from e

        async def release() -> None:
            await _run(handle.close)

        return BlobReadStream(self._iter_pieces(handle, reference), release=release)

    async def _iter_pieces(self, handle: BinaryIO, reference: str) -> AsyncIterator[bytes]:
        while True:
            try:
                piece = await _run(handle.read, self.piece_size)
            except OSError as e:
                raise UpstreamStorageError(f"Read failed for blob {reference}: {e}") from e
            if not piece:
                break
            yield piece
