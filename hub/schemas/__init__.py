"""Pydantic schemas for API requests and responses."""

from hub.schemas.auth import ApiKeyResponse, Credentials
from hub.schemas.common import ErrorResponse, error_responses
from hub.schemas.files import FileRecordResponse, ListFilesResponse
from hub.schemas.peers import ListPeersResponse, PeerResponse

__all__ = [
    "ApiKeyResponse",
    "Credentials",
    "ErrorResponse",
    "error_responses",
    "FileRecordResponse",
    "ListFilesResponse",
    "ListPeersResponse",
    "PeerResponse",
]
