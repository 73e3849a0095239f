"""Custom completer for LanShare CLI with file path autocompletion."""

from pathlib import Path
from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMANDS

PATH_COMMANDS = ("upload",)


class LanShareCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - Local file path completion for the path argument of 'upload'
    """

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        if tokens[0].lower() not in PATH_COMMANDS:
            return

        # Only the first argument is a path, the rest is the description
        arg_index = len(tokens) if is_typing_new_token else len(tokens) - 1
        if arg_index != 1:
            return

        current_word = "" if is_typing_new_token else tokens[-1]
        yield from self._complete_paths(current_word)

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_paths(self, partial: str) -> Iterable[Completion]:
        """
        Complete entries of the directory named by ``partial``.

        Directories complete with a trailing slash so completion can continue
        into them. Hidden entries are only offered once a dot is typed.
        """
        if partial.endswith("/"):
            directory, prefix = partial, ""
        else:
            head, _, prefix = partial.rpartition("/")
            directory = f"{head}/" if head or partial.startswith("/") else ""

        search_dir = Path(directory).expanduser() if directory else Path.cwd()
        if not search_dir.is_dir():
            return

        try:
            entries = sorted(search_dir.iterdir(), key=lambda p: p.name)
        except OSError:
            return

        for entry in entries:
            if not entry.name.startswith(prefix):
                continue
            if entry.name.startswith(".") and not prefix.startswith("."):
                continue
            suffix = "/" if entry.is_dir() else ""
            yield Completion(
                f"{directory}{entry.name}{suffix}",
                start_position=-len(partial),
                display=f"{entry.name}{suffix}",
            )
