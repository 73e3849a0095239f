"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = ["register", "login", "upload", "list", "search", "download", "peers", "online", "clear", "exit", "help"]

STYLE = Style.from_dict(
    {
        "prompt": "#2E9E6B bold",
        "command": "#0088ff bold",
    }
)

TEAL = "\033[38;2;46;158;107m"
GREEN = "\033[32m"
RESET = "\033[0m"

LOGO = f"""{TEAL}
 _                 ____  _
| |    __ _ _ __  / ___|| |__   __ _ _ __ ___
| |   / _` | '_ \\ \\___ \\| '_ \\ / _` | '__/ _ \\
| |__| (_| | | | | ___) | | | | (_| | | |  __/
|_____\\__,_|_| |_||____/|_| |_|\\__,_|_|  \\___|
{RESET}"""

WELCOME_TITLE = "LanShare CLI - shared file pool"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "lanshare> "

DOWNLOADS_DIR = "downloads"

UPLOAD_READ_SIZE = 64 * 1024

HELP_TEXT = """Available commands:
  register <username> <password>        Register new user account
  login <username> <password>           Login and get API key
  upload <path> [description...]        Upload a file with an optional description
  list                                  List every shared file
  search <text...>                      Find files whose name or description contains text
  download <file_id> [output_path]      Download a file (defaults to downloads/<original name>)
  peers                                 Show peers that are online
  online <peer_id>                      Stay online as <peer_id> until Ctrl-C
  clear                                 Clear screen and redisplay welcome message
  help                                  Show this help
  exit                                  Exit REPL

Examples:
  register alice mypassword123
  login alice mypassword123
  upload ./report.pdf quarterly numbers
  search report
  download 3f2b9c1e-0d4a-4c55-9a51-2b6f0e7d1c11 downloads/copy.pdf
  online alice-laptop"""
