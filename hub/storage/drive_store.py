"""Google Drive v3 blob store over the REST API (httpx)."""

import asyncio
import time
from typing import AsyncIterator, Iterable, Optional
from urllib.parse import quote

import httpx

from common.constants import DRIVE_UPLOAD_PIECE_BYTES
from common.logging_config import get_logger
from hub.exceptions import BlobNotFoundError, UpstreamStorageError
from hub.storage.base import BlobReadStream, BlobStore, BlobWriteSink
from hub.types import BlobLocation, BlobMetadata

logger = get_logger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"
DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files"
DRIVE_UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"

# Refresh the access token this many seconds before Google says it expires
TOKEN_EXPIRY_MARGIN_SECONDS = 60

UPLOAD_RESULT_FIELDS = "id,name,mimeType,webViewLink"


def _describe_failure(response: httpx.Response) -> str:
    try:
        error = response.json().get("error")
    except ValueError:
        error = None
    if isinstance(error, dict):
        return f"{response.status_code} {error.get('message', '')}".strip()
    if isinstance(error, str):
        return f"{response.status_code} {error}"
    return f"{response.status_code} {response.text[:200]}".strip()


class DriveUploadSink(BlobWriteSink):
    """
    Resumable upload session.

    Bytes are buffered until more than one piece is available, then sent
    with an open-ended ``Content-Range``; ``close`` sends the remainder with
    the final total. At most one piece is held in memory.
    """

    def __init__(self, store: 'DriveBlobStore', session_url: str, piece_size: int):
        self._store = store
        self._session_url = session_url
        self._piece_size = piece_size
        self._buffer = bytearray()
        self._offset = 0
        self._finished = False

    async def write(self, data: bytes) -> None:
        if self._finished:
            raise UpstreamStorageError("Upload session already finished")

        self._buffer.extend(data)
        while len(self._buffer) > self._piece_size:
            piece = bytes(self._buffer[:self._piece_size])
            del self._buffer[:self._piece_size]
            await self._put_piece(piece, final=False)

    async def close(self) -> BlobLocation:
        if self._finished:
            raise UpstreamStorageError("Upload session already finished")

        piece = bytes(self._buffer)
        self._buffer.clear()
        response = await self._put_piece(piece, final=True)
        self._finished = True

        try:
            data = response.json()
            reference = data["id"]
        except (ValueError, KeyError) as e:
            raise UpstreamStorageError(f"Drive upload finished without a file id: {e}") from e

        logger.info(f"Uploaded blob {reference} to Drive ({self._offset} bytes)")
        return BlobLocation(reference=reference, location_hint=data.get("webViewLink"))

    async def abort(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._buffer.clear()

        try:
            await self._store.http.delete(self._session_url)
            logger.info(f"Cancelled Drive upload session after {self._offset} bytes")
        except httpx.HTTPError as e:
            logger.warning(f"Could not cancel Drive upload session: {e}")

    async def _put_piece(self, piece: bytes, final: bool) -> httpx.Response:
        start = self._offset
        end = start + len(piece) - 1

        if final:
            total = start + len(piece)
            content_range = f"bytes {start}-{end}/{total}" if piece else f"bytes */{total}"
            expected = (200, 201)
        else:
            content_range = f"bytes {start}-{end}/*"
            expected = (308,)

        response = await self._store.send(
            "PUT",
            self._session_url,
            expected=expected,
            content=piece,
            headers={"Content-Range": content_range},
        )

        if not final:
            acknowledged = response.headers.get("Range")
            if acknowledged and not acknowledged.endswith(f"-{end}"):
                raise UpstreamStorageError(
                    f"Drive acknowledged {acknowledged} but {content_range} was sent"
                )

        self._offset += len(piece)
        return response


class DriveBlobStore(BlobStore):
    """
    Blob store backed by a Google Drive account.

    Authenticates with an OAuth2 refresh token; access tokens are cached
    until shortly before expiry. Blob references are Drive file ids and the
    location hint is the file's ``webViewLink``.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        folder_id: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        piece_size: int = DRIVE_UPLOAD_PIECE_BYTES,
    ):
        if not (client_id and client_secret and refresh_token):
            raise ValueError("Drive storage needs a client id, client secret and refresh token")

        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self.folder_id = folder_id
        self.piece_size = piece_size
        self._owns_client = http_client is None
        self.http = http_client or httpx.AsyncClient(timeout=None)
        self._access_token: Optional[str] = None
        self._token_expires_at = 0.0
        self._token_lock = asyncio.Lock()

    async def _get_access_token(self) -> str:
        async with self._token_lock:
            if self._access_token and time.monotonic() < self._token_expires_at:
                return self._access_token

            try:
                response = await self.http.post(
                    TOKEN_URL,
                    data={
                        "client_id": self._client_id,
                        "client_secret": self._client_secret,
                        "refresh_token": self._refresh_token,
                        "grant_type": "refresh_token",
                    },
                )
            except httpx.HTTPError as e:
                raise UpstreamStorageError(f"Cannot reach Google token endpoint: {e}") from e

            if response.status_code != 200:
                raise UpstreamStorageError(f"Token refresh failed: {_describe_failure(response)}")

            data = response.json()
            self._access_token = data["access_token"]
            expires_in = int(data.get("expires_in", 3600))
            self._token_expires_at = time.monotonic() + max(expires_in - TOKEN_EXPIRY_MARGIN_SECONDS, 0)
            logger.debug(f"Refreshed Drive access token (expires in {expires_in}s)")
            return self._access_token

    async def _auth_headers(self, extra: Optional[dict] = None) -> dict:
        headers = {"Authorization": f"Bearer {await self._get_access_token()}"}
        if extra:
            headers.update(extra)
        return headers

    async def send(
        self,
        method: str,
        url: str,
        expected: Iterable[int] = (200,),
        missing_on_404: bool = False,
        **kwargs
    ) -> httpx.Response:
        """
        Send one authenticated request and check its status.

        Args:
            missing_on_404: Treat 404 as an unknown blob. Only reads set this:
                on the upload path a 404 means the session is gone.

        Raises:
            BlobNotFoundError: On HTTP 404 when ``missing_on_404`` is set
            UpstreamStorageError: On transport errors or any other unexpected status
        """
        kwargs["headers"] = await self._auth_headers(kwargs.get("headers"))
        try:
            response = await self.http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise UpstreamStorageError(f"Drive request failed: {method} {url}: {e}") from e

        if response.status_code not in expected:
            if response.status_code == 404 and missing_on_404:
                raise BlobNotFoundError(f"Drive returned 404 for {method} {url}")
            raise UpstreamStorageError(f"Drive request failed: {method} {url}: {_describe_failure(response)}")

        return response

    async def open_write_sink(self, name: str, mime_type: str) -> DriveUploadSink:
        metadata = {"name": name, "mimeType": mime_type}
        if self.folder_id:
            metadata["parents"] = [self.folder_id]

        response = await self.send(
            "POST",
            DRIVE_UPLOAD_URL,
            params={"uploadType": "resumable", "fields": UPLOAD_RESULT_FIELDS},
            json=metadata,
            headers={"X-Upload-Content-Type": mime_type},
        )

        session_url = response.headers.get("Location")
        if not session_url:
            raise UpstreamStorageError("Drive did not return an upload session URL")

        logger.debug(f"Opened Drive upload session for '{name}' ({mime_type})")
        return DriveUploadSink(self, session_url, self.piece_size)

    async def get_metadata(self, reference: str) -> BlobMetadata:
        response = await self.send(
            "GET",
            f"{DRIVE_FILES_URL}/{quote(reference, safe='')}",
            params={"fields": "name,mimeType"},
            missing_on_404=True,
        )
        data = response.json()
        return BlobMetadata(mime_type=data.get("mimeType"), name=data.get("name"))

    async def open_read_stream(self, reference: str) -> BlobReadStream:
        request = self.http.build_request(
            "GET",
            f"{DRIVE_FILES_URL}/{quote(reference, safe='')}",
            params={"alt": "media"},
            headers=await self._auth_headers(),
        )

        try:
            response = await self.http.send(request, stream=True)
        except httpx.HTTPError as e:
            raise UpstreamStorageError(f"Cannot open Drive blob {reference}: {e}") from e

        if response.status_code != 200:
            await response.aread()
            await response.aclose()
            if response.status_code == 404:
                raise BlobNotFoundError(f"Blob {reference} not found on Drive")
            raise UpstreamStorageError(f"Cannot open Drive blob {reference}: {_describe_failure(response)}")

        return BlobReadStream(self._iter_response(response, reference), release=response.aclose)

    async def _iter_response(self, response: httpx.Response, reference: str) -> AsyncIterator[bytes]:
        try:
            async for piece in response.aiter_bytes():
                yield piece
        except httpx.HTTPError as e:
            raise UpstreamStorageError(f"Drive stream for {reference} broke: {e}") from e

    async def close(self) -> None:
        if self._owns_client:
            await self.http.aclose()
