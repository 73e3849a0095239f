"""Project-wide constants shared by the hub and the CLI."""

STREAM_PIECE_SIZE_BYTES: int = 64 * 1024  # 64 KiB relay piece

# Drive resumable uploads require every non-final piece to be a multiple of 256 KiB
DRIVE_UPLOAD_PIECE_BYTES: int = 32 * 256 * 1024  # 8 MiB

DEFAULT_MIME_TYPE: str = "application/octet-stream"

DEFAULT_HUB_PORT: int = 8000

PEER_CHANNEL_PATH: str = "/peers/channel"
