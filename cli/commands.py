"""Command handler functions for CLI operations."""

from typing import Optional

from common.logging_config import get_logger
from cli.config import Config
from cli.hub_client import HubClient
from cli.models import (
    DownloadCommand,
    ListCommand,
    LoginCommand,
    OnlineCommand,
    PeersCommand,
    RegisterCommand,
    SearchCommand,
    UploadCommand,
)
from cli.peer_channel import stay_online

logger = get_logger(__name__)


_client: Optional[HubClient] = None


def init_client(config: Config) -> HubClient:
    """
    Replace the shared HubClient with one built from ``config``.
    """
    global _client
    if _client is not None:
        _client.close()
    _client = HubClient(config)
    return _client


def get_client() -> HubClient:
    """
    Get or create the shared HubClient instance.
    """
    global _client
    if _client is None:
        logger.debug("Creating new HubClient instance")
        _client = HubClient(Config())
    return _client


def handle_register(cmd: RegisterCommand, client: Optional[HubClient] = None) -> str:
    """
    Handle 'register' command.

    Args:
        cmd: RegisterCommand with username and password
        client: Optional HubClient for dependency injection (testing)

    Returns:
        Success or error message
    """
    if client is None:
        client = get_client()
    return client.register(cmd.username, cmd.password)


def handle_login(cmd: LoginCommand, client: Optional[HubClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.login(cmd.username, cmd.password)


def handle_upload(cmd: UploadCommand, client: Optional[HubClient] = None) -> str:
    """
    Handle 'upload' command.

    Args:
        cmd: UploadCommand with path and optional description
        client: Optional HubClient for dependency injection (testing)

    Returns:
        Success or error message with the stored file id
    """
    logger.info(f"Executing upload command: path={cmd.path}")
    if client is None:
        client = get_client()
    return client.upload(cmd.path, cmd.description)


def handle_list(cmd: ListCommand, client: Optional[HubClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.list_files()


def handle_search(cmd: SearchCommand, client: Optional[HubClient] = None) -> str:
    logger.info(f"Executing search command: query={cmd.query!r}")
    if client is None:
        client = get_client()
    return client.search(cmd.query)


def handle_download(cmd: DownloadCommand, client: Optional[HubClient] = None) -> str:
    """
    Handle 'download' command.

    Args:
        cmd: DownloadCommand with file_id and optional output_path
        client: Optional HubClient for dependency injection (testing)

    Returns:
        Success or error message with download results
    """
    logger.info(f"Executing download command: file_id={cmd.file_id} output_path={cmd.output_path}")
    if client is None:
        client = get_client()
    return client.download(cmd.file_id, cmd.output_path)


def handle_peers(cmd: PeersCommand, client: Optional[HubClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.list_peers()


def handle_online(cmd: OnlineCommand, client: Optional[HubClient] = None) -> str:
    """
    Handle 'online' command. Blocks until Ctrl-C or until the hub closes the channel.
    """
    if client is None:
        client = get_client()
    return stay_online(client.config.get_channel_url(), cmd.peer_id)


HANDLERS = {
    RegisterCommand: handle_register,
    LoginCommand: handle_login,
    UploadCommand: handle_upload,
    ListCommand: handle_list,
    SearchCommand: handle_search,
    DownloadCommand: handle_download,
    PeersCommand: handle_peers,
    OnlineCommand: handle_online,
}
