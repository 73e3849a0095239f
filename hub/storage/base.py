"""Blob relay contract shared by every storage provider."""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Awaitable, Callable, Optional

from hub.types import BlobLocation, BlobMetadata


class BlobReadStream:
    """
    Async iterator over a blob's pieces that owns the upstream resource.

    ``release`` runs exactly once: when the pieces run out, when reading
    fails, or on ``aclose``, including an ``aclose`` before the first read.
    """

    def __init__(self, pieces: AsyncIterator[bytes], release: Optional[Callable[[], Awaitable[None]]] = None):
        self._pieces = pieces
        self._release = release
        self.closed = False

    def __aiter__(self) -> 'BlobReadStream':
        return self

    async def __anext__(self) -> bytes:
        if self.closed:
            raise StopAsyncIteration
        try:
            return await self._pieces.__anext__()
        except BaseException:
            await self.aclose()
            raise

    async def aclose(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            aclose = getattr(self._pieces, "aclose", None)
            if aclose is not None:
                await aclose()
        finally:
            if self._release is not None:
                await self._release()


class BlobWriteSink(ABC):
    """
    Write side of one blob upload.

    ``write`` returns only once the provider can take more bytes, so a
    producer that awaits each write never runs ahead of the destination.
    Exactly one of ``close`` or ``abort`` ends the sink.
    """

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """Append bytes to the blob."""

    @abstractmethod
    async def close(self) -> BlobLocation:
        """Finish the upload and return where the provider stored it."""

    @abstractmethod
    async def abort(self) -> None:
        """Discard the partial upload. Safe to call more than once."""


class BlobStore(ABC):
    """Remote (or local) object storage addressed by opaque reference strings."""

    @abstractmethod
    async def open_write_sink(self, name: str, mime_type: str) -> BlobWriteSink:
        """Start an upload tagged with a display name and content type."""

    @abstractmethod
    async def get_metadata(self, reference: str) -> BlobMetadata:
        """
        Fetch the provider's current name and content type for a blob.

        Raises:
            BlobNotFoundError: If the reference is unknown
            UpstreamStorageError: If the provider fails
        """

    @abstractmethod
    async def open_read_stream(self, reference: str) -> BlobReadStream:
        """
        Open a blob for reading.

        The upstream read is started before this returns, so an unknown
        reference fails here rather than mid-stream. The returned stream
        releases the upstream when exhausted, failed or closed, even if it
        was never read.
        """

    async def close(self) -> None:
        """Release provider connections."""
        return None
