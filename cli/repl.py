"""REPL with prompt_toolkit for user interaction."""

import os
import sys
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from cli.commands import (
    handle_access,
    handle_delete,
    handle_inbox,
    handle_info,
    handle_list,
    handle_login,
    handle_logout,
    handle_mkdir,
    handle_path,
    handle_share,
    handle_shared,
    handle_star,
    handle_starred,
    handle_upload,
    handle_whoami,
)
from cli.completer import DriveCompleter
from cli.constants import (
    HELP_TEXT,
    LOGO,
    NOT_LOGGED_IN_TEXT,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
from cli.models import (
    AccessCommand,
    DeleteCommand,
    InboxCommand,
    InfoCommand,
    ListCommand,
    LoginCommand,
    LogoutCommand,
    MkdirCommand,
    PathCommand,
    ShareCommand,
    SharedCommand,
    StarCommand,
    StarredCommand,
    UploadCommand,
    WhoamiCommand,
)
from cli.parser import ParseError, parse_command
from common.logging_config import get_logger
from drive.exceptions import NotLoggedInError
from drive.session import DriveSession

logger = get_logger(__name__)


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_welcome() -> None:
    print(LOGO)
    print(WELCOME_TITLE)
    print(WELCOME_HELP)


async def dispatch_command(cmd_obj, session: DriveSession, password: Optional[str] = None) -> str:
    """Dispatch parsed command to appropriate handler."""
    if isinstance(cmd_obj, LoginCommand):
        return await handle_login(cmd_obj, session)
    elif isinstance(cmd_obj, LogoutCommand):
        return await handle_logout(session)
    elif isinstance(cmd_obj, WhoamiCommand):
        return handle_whoami(session)
    elif isinstance(cmd_obj, ListCommand):
        return handle_list(cmd_obj, session)
    elif isinstance(cmd_obj, StarredCommand):
        return handle_starred(session)
    elif isinstance(cmd_obj, SharedCommand):
        return handle_shared(session)
    elif isinstance(cmd_obj, InboxCommand):
        return handle_inbox(session)
    elif isinstance(cmd_obj, PathCommand):
        return handle_path(cmd_obj, session)
    elif isinstance(cmd_obj, InfoCommand):
        return handle_info(cmd_obj, session)
    elif isinstance(cmd_obj, MkdirCommand):
        return await handle_mkdir(cmd_obj, session, password)
    elif isinstance(cmd_obj, UploadCommand):
        return await handle_upload(cmd_obj, session, password)
    elif isinstance(cmd_obj, StarCommand):
        return await handle_star(cmd_obj, session, password)
    elif isinstance(cmd_obj, DeleteCommand):
        return await handle_delete(cmd_obj, session, password)
    elif isinstance(cmd_obj, ShareCommand):
        return await handle_share(cmd_obj, session, password)
    elif isinstance(cmd_obj, AccessCommand):
        return handle_access(cmd_obj, session)
    else:
        return f"Unknown command type: {type(cmd_obj)}"


async def _collect_secret(cmd_obj, prompt: PromptSession):
    """Ask for the secret a command needs; returns (command, password)."""
    if isinstance(cmd_obj, LoginCommand) and cmd_obj.secret is None:
        secret = await prompt.prompt_async("secret: ", is_password=True)
        return LoginCommand(account=cmd_obj.account, secret=secret), None
    if getattr(cmd_obj, "sync", False):
        password = await prompt.prompt_async("secret (for ledger sync): ", is_password=True)
        return cmd_obj, password or None
    return cmd_obj, None


async def repl_loop(session: DriveSession) -> None:
    """Start interactive REPL with prompt_toolkit."""
    prompt: PromptSession = PromptSession(
        completer=DriveCompleter(session), history=InMemoryHistory(), style=STYLE
    )

    clear_screen()
    show_welcome()

    resumed = session.resume()
    if resumed:
        print(f"Resumed session for {resumed}\n")

    while True:
        try:
            user_input = await prompt.prompt_async([("class:prompt", PROMPT_TEXT)])
            line = user_input.strip()

            if not line:
                continue

            if line == "exit":
                print("Goodbye!")
                break

            if line == "help":
                print(HELP_TEXT)
                continue

            if line == "clear":
                clear_screen()
                show_welcome()
                continue

            cmd_obj, password = await _collect_secret(parse_command(line), prompt)
            print(await dispatch_command(cmd_obj, session, password))

        except ParseError as e:
            print(f"Error: {e}")
        except NotLoggedInError:
            print(NOT_LOGGED_IN_TEXT)
        except KeyboardInterrupt:
            continue
        except EOFError:
            print("\nGoodbye!")
            break

    pending = await session.files.wait_for_pending() if session.current_account else []
    if pending:
        logger.info(f"Flushed {len(pending)} pending ledger emissions before exit")
