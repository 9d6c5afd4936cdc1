"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = [
    "login", "logout", "whoami",
    "ls", "starred", "shared", "inbox", "path", "info",
    "mkdir", "upload", "star", "delete", "share", "access",
    "clear", "exit", "help",
]

# Commands that take an entity id as their first argument
ID_COMMANDS = ("ls", "path", "info", "star", "delete", "share", "access")

SYNC_FLAG = "--sync"

STYLE = Style.from_dict(
    {
        "prompt": "#2E9CCA bold",
        "account": "#7FB800",
    }
)

BLUE = "\033[38;2;46;156;202m"
GREEN = "\033[32m"
RESET = "\033[0m"

LOGO = f"""{BLUE}
  _          _                 ___      _
 | |   ___ _| |__ _ ___ _ _   |   \\ _ _(_)_ _____
 | |__/ -_) _` / _` / -_) '_|  | |) | '_| \\ V / -_)
 |____\\___\\__,_\\__, \\___|_|    |___/|_| |_|\\_/\\___|
               |___/
{RESET}"""

WELCOME_TITLE = "LedgerDrive CLI - local-first drive with ledger replication"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "drive> "

LOGIN_FAILED_TEXT = "Login failed: invalid account or credentials."
RETRY_TEXT = "Operation failed. Please try again."
NOT_LOGGED_IN_TEXT = "Not logged in. Use 'login <account>' first."

HELP_TEXT = """Available commands:
  login <account> [secret]            Log in (prompts for the secret when omitted)
  logout                              Log out and forget the stored key
  whoami                              Show the current account
  ls [folder-id]                      List a folder (root when omitted)
  starred                             List starred entities
  shared                              List entities you have shared
  inbox                               List entities shared with you
  path <folder-id>                    Show the folder breadcrumb
  info <id>                           Show entity details
  mkdir <name> [parent-id]            Create a folder
  upload <local-path> [parent-id]     Record a local file in the drive
  star <id>                           Toggle the star flag
  delete <id>                         Delete an entity
  share <id> <account>                Share an entity with another account
  access <id> <account>               Check whether an account may read an entity
  clear                               Clear screen and redisplay welcome message
  help                                Show this help
  exit                                Exit REPL

Mutations are applied locally. Add --sync to also publish the change to the
ledger; you will be asked for your secret.
Examples:
  login alice
  mkdir Projects
  upload notes.txt 1kq2x9c4e8f0a1b2c3 --sync
  share 1kq2x9c4e8f0a1b2c3 bob --sync
  access 1kq2x9c4e8f0a1b2c3 bob"""
