"""Interactive prompt loop."""

import os
import sys

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from cli.commands import HANDLERS
from cli.completer import LanShareCompleter
from cli.constants import HELP_TEXT, LOGO, PROMPT_TEXT, STYLE, WELCOME_HELP, WELCOME_TITLE
from cli.parser import ParseError, parse_command

EXIT_WORDS = ("exit", "quit")


def clear_screen() -> None:
    os.system("cls" if sys.platform == "win32" else "clear")


def show_welcome() -> None:
    print(LOGO)
    print(WELCOME_TITLE)
    print(WELCOME_HELP)


def dispatch_command(cmd_obj) -> str:
    """Run the handler registered for a parsed command and return its message."""
    handler = HANDLERS.get(type(cmd_obj))
    if handler is None:
        return f"Unknown command type: {type(cmd_obj).__name__}"
    return handler(cmd_obj)


def run_line(line: str) -> bool:
    """
    Execute one input line.

    Returns:
        False when the user asked to leave, True otherwise
    """
    word = line.lower()
    if word in EXIT_WORDS:
        print("Goodbye!")
        return False
    if word == "help":
        print(HELP_TEXT)
    elif word == "clear":
        clear_screen()
        show_welcome()
    else:
        try:
            print(dispatch_command(parse_command(line)))
        except ParseError as e:
            print(f"Error: {e}")
    return True


def repl_loop() -> None:
    session: PromptSession = PromptSession(
        completer=LanShareCompleter(), history=InMemoryHistory(), style=STYLE
    )

    clear_screen()
    show_welcome()

    while True:
        try:
            line = session.prompt([("class:prompt", PROMPT_TEXT)]).strip()
        except KeyboardInterrupt:
            continue
        except EOFError:
            print("\nGoodbye!")
            break

        if line and not run_line(line):
            break
