"""Tests for the Google Drive blob store against a mocked Drive API."""

import json

import httpx
import pytest

from conftest import collect
from hub.exceptions import BlobNotFoundError, UpstreamStorageError
from hub.storage.drive_store import DriveBlobStore

SESSION_URL = "https://www.googleapis.com/upload/drive/v3/files?uploadType=resumable&upload_id=session-1"


class ScriptedBody(httpx.AsyncByteStream):
    """Response body that yields fixed pieces, optionally fails, and records being closed."""

    def __init__(self, pieces, error=None):
        self.pieces = list(pieces)
        self.error = error
        self.closed = False

    async def __aiter__(self):
        for piece in self.pieces:
            yield piece
        if self.error is not None:
            raise self.error

    async def aclose(self):
        self.closed = True


class FakeDrive:
    """Minimal stand-in for the OAuth token endpoint and the Drive v3 files API."""

    def __init__(self):
        self.token_calls = 0
        self.init_requests = []
        self.put_ranges = []
        self.put_bodies = []
        self.deleted_sessions = []
        self.files = {"drv-1": {"name": "remote.txt", "mimeType": "text/plain", "content": b"drive bytes"}}
        self.fail_put_status = None
        self.init_status = 200
        self.media_body = None
        self.token_status = 200
        self.auth_headers = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "oauth2.googleapis.com":
            self.token_calls += 1
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_grant"})
            return httpx.Response(200, json={"access_token": f"token-{self.token_calls}", "expires_in": 3600})

        self.auth_headers.append(request.headers.get("Authorization"))

        if request.method == "POST" and request.url.path == "/upload/drive/v3/files":
            self.init_requests.append({
                "params": dict(request.url.params),
                "body": json.loads(request.content),
                "content_type": request.headers.get("X-Upload-Content-Type"),
            })
            if self.init_status != 200:
                return httpx.Response(self.init_status, json={"error": {"message": "parent folder not found"}})
            return httpx.Response(200, headers={"Location": SESSION_URL})

        if request.url.params.get("upload_id") == "session-1":
            if request.method == "DELETE":
                self.deleted_sessions.append(str(request.url))
                return httpx.Response(499)
            return self._put(request)

        if request.method == "GET" and request.url.path.startswith("/drive/v3/files/"):
            file_id = request.url.path.rsplit("/", 1)[-1]
            if file_id not in self.files:
                return httpx.Response(404, json={"error": {"code": 404, "message": "File not found"}})
            entry = self.files[file_id]
            if request.url.params.get("alt") == "media":
                if self.media_body is not None:
                    return httpx.Response(200, stream=self.media_body)
                return httpx.Response(200, content=entry["content"])
            return httpx.Response(200, json={"name": entry["name"], "mimeType": entry["mimeType"]})

        return httpx.Response(400, json={"error": "unexpected request"})

    def _put(self, request: httpx.Request) -> httpx.Response:
        if self.fail_put_status:
            return httpx.Response(self.fail_put_status, json={"error": {"message": "backend error"}})

        content_range = request.headers["Content-Range"]
        self.put_ranges.append(content_range)
        self.put_bodies.append(request.content)

        if content_range.endswith("/*"):
            received = sum(len(b) for b in self.put_bodies)
            return httpx.Response(308, headers={"Range": f"bytes=0-{received - 1}"})

        data = b"".join(self.put_bodies)
        self.files["drv-new"] = {"name": "upload", "mimeType": "text/plain", "content": data}
        return httpx.Response(200, json={"id": "drv-new", "name": "upload", "webViewLink": "https://drive.google.com/file/d/drv-new/view"})


@pytest.fixture
def drive():
    return FakeDrive()


@pytest.fixture
def store(drive):
    client = httpx.AsyncClient(transport=httpx.MockTransport(drive.handler))
    return DriveBlobStore(
        client_id="client",
        client_secret="secret",
        refresh_token="refresh",
        folder_id="folder-9",
        http_client=client,
        piece_size=4,
    )


class TestDriveUpload:
    @pytest.mark.asyncio
    async def test_resumable_upload_sends_bounded_pieces(self, store, drive):
        sink = await store.open_write_sink("notes.txt", "text/plain")
        await sink.write(b"abcdefghij")
        location = await sink.close()

        assert drive.put_ranges == ["bytes 0-3/*", "bytes 4-7/*", "bytes 8-9/10"]
        assert drive.put_bodies == [b"abcd", b"efgh", b"ij"]
        assert location.reference == "drv-new"
        assert location.location_hint == "https://drive.google.com/file/d/drv-new/view"

    @pytest.mark.asyncio
    async def test_initiation_carries_name_type_and_folder(self, store, drive):
        sink = await store.open_write_sink("notes.txt", "text/plain")
        await sink.abort()

        request = drive.init_requests[0]
        assert request["body"] == {"name": "notes.txt", "mimeType": "text/plain", "parents": ["folder-9"]}
        assert request["params"]["uploadType"] == "resumable"
        assert "webViewLink" in request["params"]["fields"]
        assert request["content_type"] == "text/plain"

    @pytest.mark.asyncio
    async def test_piece_boundary_is_held_until_close(self, store, drive):
        sink = await store.open_write_sink("four.txt", "text/plain")
        await sink.write(b"abcd")

        assert drive.put_ranges == []

        await sink.close()
        assert drive.put_ranges == ["bytes 0-3/4"]

    @pytest.mark.asyncio
    async def test_empty_upload(self, store, drive):
        sink = await store.open_write_sink("empty", "text/plain")
        await sink.close()

        assert drive.put_ranges == ["bytes */0"]

    @pytest.mark.asyncio
    async def test_failed_piece_raises_and_abort_cancels_session(self, store, drive):
        drive.fail_put_status = 503
        sink = await store.open_write_sink("big.iso", "application/octet-stream")

        with pytest.raises(UpstreamStorageError):
            await sink.write(b"0123456789")

        await sink.abort()
        await sink.abort()
        assert drive.deleted_sessions == [SESSION_URL]

    @pytest.mark.asyncio
    async def test_expired_session_is_upstream_failure_not_missing_blob(self, store, drive):
        drive.fail_put_status = 404
        sink = await store.open_write_sink("big.iso", "application/octet-stream")

        with pytest.raises(UpstreamStorageError) as exc_info:
            await sink.write(b"0123456789")

        assert not isinstance(exc_info.value, BlobNotFoundError)

    @pytest.mark.asyncio
    async def test_initiation_404_is_upstream_failure(self, store, drive):
        drive.init_status = 404

        with pytest.raises(UpstreamStorageError):
            await store.open_write_sink("notes.txt", "text/plain")

    @pytest.mark.asyncio
    async def test_access_token_is_cached(self, store, drive):
        sink = await store.open_write_sink("notes.txt", "text/plain")
        await sink.write(b"abcdefghij")
        await sink.close()

        assert drive.token_calls == 1
        assert set(drive.auth_headers) == {"Bearer token-1"}

    @pytest.mark.asyncio
    async def test_token_refresh_failure(self, store, drive):
        drive.token_status = 400

        with pytest.raises(UpstreamStorageError, match="Token refresh failed"):
            await store.open_write_sink("notes.txt", "text/plain")


class TestDriveRead:
    @pytest.mark.asyncio
    async def test_metadata(self, store):
        metadata = await store.get_metadata("drv-1")

        assert metadata.name == "remote.txt"
        assert metadata.mime_type == "text/plain"

    @pytest.mark.asyncio
    async def test_read_stream(self, store):
        stream = await store.open_read_stream("drv-1")

        assert await collect(stream) == b"drive bytes"

    @pytest.mark.asyncio
    async def test_unknown_reference(self, store):
        with pytest.raises(BlobNotFoundError):
            await store.get_metadata("missing")
        with pytest.raises(BlobNotFoundError):
            await store.open_read_stream("missing")

    @pytest.mark.asyncio
    async def test_upload_then_read_back(self, store):
        sink = await store.open_write_sink("notes.txt", "text/plain")
        await sink.write(b"hello ")
        await sink.write(b"drive")
        location = await sink.close()

        stream = await store.open_read_stream(location.reference)
        assert await collect(stream) == b"hello drive"

    @pytest.mark.asyncio
    async def test_closing_unread_stream_closes_response(self, store, drive):
        drive.media_body = ScriptedBody([b"never read"])

        stream = await store.open_read_stream("drv-1")
        await stream.aclose()

        assert drive.media_body.closed

    @pytest.mark.asyncio
    async def test_read_error_mid_stream(self, store, drive):
        drive.media_body = ScriptedBody([b"first piece"], error=httpx.ReadError("connection reset"))

        stream = await store.open_read_stream("drv-1")
        first = await stream.__anext__()
        with pytest.raises(UpstreamStorageError, match="broke"):
            await stream.__anext__()

        assert first == b"first piece"
        assert drive.media_body.closed


def test_missing_credentials_rejected():
    with pytest.raises(ValueError):
        DriveBlobStore(client_id="", client_secret="secret", refresh_token="refresh")
