"""Service layer for business logic."""

from hub.services.auth_service import AuthService
from hub.services.transfer_service import TransferService, content_disposition, iter_upload_file

__all__ = [
    "AuthService",
    "TransferService",
    "content_disposition",
    "iter_upload_file",
]
