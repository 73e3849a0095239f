"""Repository layer for data access."""

from hub.repositories.user_repository import UserRepository
from hub.repositories.file_repository import FileRepository

__all__ = [
    "UserRepository",
    "FileRepository",
]
