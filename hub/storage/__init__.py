"""Blob relay adapters."""

from pathlib import Path

from common.logging_config import get_logger
from hub import config
from hub.storage.base import BlobStore, BlobWriteSink
from hub.storage.drive_store import DriveBlobStore
from hub.storage.local_store import LocalBlobStore

logger = get_logger(__name__)


def create_blob_store() -> BlobStore:
    """
    Build the blob store selected by LANSHARE_BLOB_BACKEND.

    Raises:
        ValueError: If the backend name is unknown or its settings are incomplete
    """
    backend = config.BLOB_BACKEND

    if backend == "local":
        logger.info(f"Using local blob storage at {config.BLOB_STORAGE_PATH}")
        return LocalBlobStore(Path(config.BLOB_STORAGE_PATH))

    if backend == "drive":
        logger.info("Using Google Drive blob storage")
        return DriveBlobStore(
            client_id=config.GOOGLE_CLIENT_ID,
            client_secret=config.GOOGLE_CLIENT_SECRET,
            refresh_token=config.GOOGLE_REFRESH_TOKEN,
            folder_id=config.GOOGLE_DRIVE_FOLDER_ID,
        )

    raise ValueError(f"Unknown blob backend: {backend!r} (expected 'local' or 'drive')")


__all__ = [
    "BlobStore",
    "BlobWriteSink",
    "DriveBlobStore",
    "LocalBlobStore",
    "create_blob_store",
]
