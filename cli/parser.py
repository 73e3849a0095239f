"""Command parser for CLI input."""

import shlex

from cli.models import (
    CommandRequest,
    DownloadCommand,
    ListCommand,
    LoginCommand,
    OnlineCommand,
    PeersCommand,
    RegisterCommand,
    SearchCommand,
    UploadCommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0].lower()
    parser = _PARSERS.get(command_name)
    if parser is None:
        raise ParseError(f"Unknown command: {tokens[0]}")
    return parser(tokens[1:])


def _parse_register(args: list[str]) -> RegisterCommand:
    """Parse 'register <username> <password>' command."""
    if len(args) != 2:
        raise ParseError("register requires exactly 2 arguments: <username> <password>")

    username, password = args
    return RegisterCommand(username=username, password=password)


def _parse_login(args: list[str]) -> LoginCommand:
    """Parse 'login <username> <password>' command."""
    if len(args) != 2:
        raise ParseError("login requires exactly 2 arguments: <username> <password>")

    username, password = args
    return LoginCommand(username=username, password=password)


def _parse_upload(args: list[str]) -> UploadCommand:
    """Parse 'upload <path> [description...]'; the description is the rest of the line."""
    if not args:
        raise ParseError("upload requires a file path: upload <path> [description...]")

    description = " ".join(args[1:]) or None
    return UploadCommand(path=args[0], description=description)


def _parse_list(args: list[str]) -> ListCommand:
    if args:
        raise ParseError("list takes no arguments (use search <text> to filter)")
    return ListCommand()


def _parse_search(args: list[str]) -> SearchCommand:
    query = " ".join(args).strip()
    if not query:
        raise ParseError("search requires text to look for: search <text...>")
    return SearchCommand(query=query)


def _parse_download(args: list[str]) -> DownloadCommand:
    """Parse 'download <file_id> [output_path]' command."""
    if not 1 <= len(args) <= 2:
        raise ParseError("download requires 1 or 2 arguments: <file_id> [output_path]")

    output_path = args[1] if len(args) > 1 else None
    return DownloadCommand(file_id=args[0], output_path=output_path)


def _parse_peers(args: list[str]) -> PeersCommand:
    if args:
        raise ParseError("peers takes no arguments")
    return PeersCommand()


def _parse_online(args: list[str]) -> OnlineCommand:
    if len(args) != 1:
        raise ParseError("online requires exactly 1 argument: <peer_id>")
    return OnlineCommand(peer_id=args[0])


_PARSERS = {
    "register": _parse_register,
    "login": _parse_login,
    "upload": _parse_upload,
    "list": _parse_list,
    "search": _parse_search,
    "download": _parse_download,
    "peers": _parse_peers,
    "online": _parse_online,
}
