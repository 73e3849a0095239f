"""Shared pytest fixtures for all tests."""

import tempfile
from pathlib import Path
from typing import AsyncIterator, Generator

import pytest

from cli.config import Config
from hub.database import init_database
from hub.exceptions import BlobNotFoundError, UpstreamStorageError
from hub.storage.base import BlobReadStream, BlobStore, BlobWriteSink
from hub.types import BlobLocation, BlobMetadata


class MemoryWriteSink(BlobWriteSink):
    """Write sink that keeps the blob in memory and can be told to fail."""

    def __init__(self, store: 'MemoryBlobStore', name: str, mime_type: str):
        self.store = store
        self.name = name
        self.mime_type = mime_type
        self.buffer = bytearray()
        self.closed = False
        self.aborted = False

    async def write(self, data: bytes) -> None:
        if self.store.fail_after_bytes is not None and len(self.buffer) + len(data) > self.store.fail_after_bytes:
            raise UpstreamStorageError("provider rejected write")
        self.buffer.extend(data)

    async def close(self) -> BlobLocation:
        reference = f"blob-{len(self.store.blobs) + 1}"
        self.store.blobs[reference] = {
            "data": bytes(self.buffer),
            "name": self.name,
            "mime_type": self.mime_type,
        }
        self.closed = True
        return BlobLocation(reference=reference, location_hint=f"memory://{reference}")

    async def abort(self) -> None:
        self.aborted = True


class MemoryBlobStore(BlobStore):
    """
    In-memory blob store recording every call made to it.

    Read streams yield 4-byte pieces and record their reference in
    ``closed_streams`` once the stream is released. With
    ``fail_read_after_pieces`` set, reads raise UpstreamStorageError after
    that many pieces.
    """

    def __init__(self):
        self.blobs = {}
        self.calls = []
        self.sinks = []
        self.closed_streams = []
        self.fail_after_bytes = None
        self.fail_read_after_pieces = None

    async def open_write_sink(self, name: str, mime_type: str) -> MemoryWriteSink:
        self.calls.append(("open_write_sink", name, mime_type))
        sink = MemoryWriteSink(self, name, mime_type)
        self.sinks.append(sink)
        return sink

    async def get_metadata(self, reference: str) -> BlobMetadata:
        self.calls.append(("get_metadata", reference))
        if reference not in self.blobs:
            raise BlobNotFoundError(f"Blob {reference} not found")
        blob = self.blobs[reference]
        return BlobMetadata(mime_type=blob["mime_type"], name=blob["name"])

    async def open_read_stream(self, reference: str) -> BlobReadStream:
        self.calls.append(("open_read_stream", reference))
        if reference not in self.blobs:
            raise BlobNotFoundError(f"Blob {reference} not found")

        async def release() -> None:
            self.closed_streams.append(reference)

        return BlobReadStream(self._iter(reference), release=release)

    async def _iter(self, reference: str) -> AsyncIterator[bytes]:
        data = self.blobs[reference]["data"]
        for index, start in enumerate(range(0, len(data), 4)):
            if self.fail_read_after_pieces is not None and index >= self.fail_read_after_pieces:
                raise UpstreamStorageError("provider connection reset")
            yield data[start:start + 4]


async def byte_source(*pieces: bytes) -> AsyncIterator[bytes]:
    for piece in pieces:
        yield piece


async def collect(stream: AsyncIterator[bytes]) -> bytes:
    data = b""
    async for piece in stream:
        data += piece
    return data


@pytest.fixture
def test_db(monkeypatch) -> Generator[Path, None, None]:
    """
    Create a temporary test database for each test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        monkeypatch.setattr("hub.config.DATABASE_PATH", str(db_path))
        init_database()
        yield db_path


@pytest.fixture
def memory_store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Returns:
        Path to temporary .lanshare directory
    """
    config_dir = tmp_path / '.lanshare'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.

    Returns:
        Config instance with temp config file
    """
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for testing file uploads.

    Returns:
        Path to sample text file
    """
    file_path = tmp_path / 'test.txt'
    file_path.write_text('Sample content for testing')
    return file_path
