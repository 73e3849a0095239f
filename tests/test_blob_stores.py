"""Tests for the local blob store and the backend factory."""

import json

import pytest

from conftest import collect
from hub.exceptions import BlobNotFoundError, UpstreamStorageError
from hub.storage import DriveBlobStore, LocalBlobStore, create_blob_store


@pytest.fixture
def local_store(tmp_path):
    return LocalBlobStore(tmp_path / "blobs", piece_size=4)


class TestLocalBlobStore:
    @pytest.mark.asyncio
    async def test_write_close_read(self, local_store):
        sink = await local_store.open_write_sink("notes.txt", "text/plain")
        await sink.write(b"hello ")
        await sink.write(b"world")
        location = await sink.close()

        assert location.location_hint.startswith("file://")
        stream = await local_store.open_read_stream(location.reference)
        assert await collect(stream) == b"hello world"

        metadata = await local_store.get_metadata(location.reference)
        assert metadata.name == "notes.txt"
        assert metadata.mime_type == "text/plain"

    @pytest.mark.asyncio
    async def test_read_yields_bounded_pieces(self, local_store):
        sink = await local_store.open_write_sink("digits", "text/plain")
        await sink.write(b"0123456789")
        location = await sink.close()

        stream = await local_store.open_read_stream(location.reference)
        pieces = [p async for p in stream]

        assert pieces == [b"0123", b"4567", b"89"]

    @pytest.mark.asyncio
    async def test_sidecar_written_next_to_blob(self, local_store):
        sink = await local_store.open_write_sink("a.bin", "application/octet-stream")
        location = await sink.close()

        sidecar = json.loads(local_store.get_meta_path(location.reference).read_text())
        assert sidecar == {"name": "a.bin", "mime_type": "application/octet-stream"}
        assert local_store.get_blob_path(location.reference).read_bytes() == b""
        assert not local_store.get_part_path(location.reference).exists()

    @pytest.mark.asyncio
    async def test_abort_discards_partial_upload(self, local_store):
        sink = await local_store.open_write_sink("big.iso", "application/octet-stream")
        await sink.write(b"partial")
        await sink.abort()
        await sink.abort()

        assert list(local_store.root.iterdir()) == []

    @pytest.mark.asyncio
    async def test_write_after_close_fails(self, local_store):
        sink = await local_store.open_write_sink("a.txt", "text/plain")
        await sink.close()

        with pytest.raises(UpstreamStorageError):
            await sink.write(b"late")

    @pytest.mark.asyncio
    async def test_closing_unread_stream(self, local_store):
        sink = await local_store.open_write_sink("digits", "text/plain")
        await sink.write(b"0123456789")
        location = await sink.close()

        stream = await local_store.open_read_stream(location.reference)
        await stream.aclose()

        assert stream.closed
        assert [p async for p in stream] == []

    @pytest.mark.asyncio
    async def test_missing_sidecar_is_unknown_blob(self, local_store):
        sink = await local_store.open_write_sink("a.txt", "text/plain")
        location = await sink.close()
        local_store.get_meta_path(location.reference).unlink()

        with pytest.raises(BlobNotFoundError):
            await local_store.get_metadata(location.reference)

    @pytest.mark.asyncio
    async def test_corrupt_sidecar(self, local_store):
        sink = await local_store.open_write_sink("a.txt", "text/plain")
        location = await sink.close()
        local_store.get_meta_path(location.reference).write_text("{not json")

        with pytest.raises(UpstreamStorageError, match="Corrupt metadata"):
            await local_store.get_metadata(location.reference)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reference", [
        "3f2b9c1e-0d4a-4c55-9a51-2b6f0e7d1c11",
        "../../etc/passwd",
        "",
    ])
    async def test_unknown_reference(self, local_store, reference):
        with pytest.raises(BlobNotFoundError):
            await local_store.get_metadata(reference)
        with pytest.raises(BlobNotFoundError):
            await local_store.open_read_stream(reference)


class TestCreateBlobStore:
    def test_local_backend(self, monkeypatch, tmp_path):
        monkeypatch.setattr("hub.config.BLOB_BACKEND", "local")
        monkeypatch.setattr("hub.config.BLOB_STORAGE_PATH", str(tmp_path))

        store = create_blob_store()

        assert isinstance(store, LocalBlobStore)
        assert store.root == tmp_path

    def test_drive_backend(self, monkeypatch):
        monkeypatch.setattr("hub.config.BLOB_BACKEND", "drive")
        monkeypatch.setattr("hub.config.GOOGLE_CLIENT_ID", "client")
        monkeypatch.setattr("hub.config.GOOGLE_CLIENT_SECRET", "secret")
        monkeypatch.setattr("hub.config.GOOGLE_REFRESH_TOKEN", "refresh")
        monkeypatch.setattr("hub.config.GOOGLE_DRIVE_FOLDER_ID", "folder")

        store = create_blob_store()

        assert isinstance(store, DriveBlobStore)
        assert store.folder_id == "folder"

    def test_drive_backend_without_credentials(self, monkeypatch):
        monkeypatch.setattr("hub.config.BLOB_BACKEND", "drive")
        monkeypatch.setattr("hub.config.GOOGLE_CLIENT_ID", None)

        with pytest.raises(ValueError):
            create_blob_store()

    def test_unknown_backend(self, monkeypatch):
        monkeypatch.setattr("hub.config.BLOB_BACKEND", "s3")

        with pytest.raises(ValueError, match="Unknown blob backend"):
            create_blob_store()
