"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class RegisterCommand:
    """Register a new user account."""

    username: str
    password: str
    command: Literal["register"] = "register"


@dataclass(frozen=True)
class LoginCommand:
    """Login with username and password."""

    username: str
    password: str
    command: Literal["login"] = "login"


@dataclass(frozen=True)
class UploadCommand:
    """Upload one file with an optional description."""

    path: str
    description: str | None = None
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class ListCommand:
    """List every file in the pool."""

    command: Literal["list"] = "list"


@dataclass(frozen=True)
class SearchCommand:
    """Search files by name or description."""

    query: str
    command: Literal["search"] = "search"


@dataclass(frozen=True)
class DownloadCommand:
    """Download file by id."""

    file_id: str
    output_path: str | None = None
    command: Literal["download"] = "download"


@dataclass(frozen=True)
class PeersCommand:
    """List online peers."""

    command: Literal["peers"] = "peers"


@dataclass(frozen=True)
class OnlineCommand:
    """Hold the peer channel open under a peer id."""

    peer_id: str
    command: Literal["online"] = "online"


CommandRequest = (
    RegisterCommand
    | LoginCommand
    | UploadCommand
    | ListCommand
    | SearchCommand
    | DownloadCommand
    | PeersCommand
    | OnlineCommand
)
