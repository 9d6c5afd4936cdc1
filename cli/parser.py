"""Command parser for CLI input."""

import shlex

from cli.constants import SYNC_FLAG
from cli.models import (
    AccessCommand,
    CommandRequest,
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


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        One of the command dataclasses from cli.models

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

    command_name, args = tokens[0], tokens[1:]
    sync = SYNC_FLAG in args
    args = [arg for arg in args if arg != SYNC_FLAG]

    if command_name in _NO_ARGS:
        if args or sync:
            raise ParseError(f"{command_name} takes no arguments")
        return _NO_ARGS[command_name]()

    if command_name == "login":
        return _parse_login(args, sync)
    elif command_name == "ls":
        _reject_sync("ls", sync)
        return ListCommand(folder_id=_optional(args, "ls", "[folder-id]"))
    elif command_name == "path":
        _reject_sync("path", sync)
        return PathCommand(folder_id=_exactly_one(args, "path", "<folder-id>"))
    elif command_name == "info":
        _reject_sync("info", sync)
        return InfoCommand(file_id=_exactly_one(args, "info", "<id>"))
    elif command_name == "mkdir":
        return _parse_create(args, sync, MkdirCommand, "<name> [parent-id]")
    elif command_name == "upload":
        return _parse_create(args, sync, UploadCommand, "<local-path> [parent-id]")
    elif command_name == "star":
        return StarCommand(file_id=_exactly_one(args, "star", "<id>"), sync=sync)
    elif command_name == "delete":
        return DeleteCommand(file_id=_exactly_one(args, "delete", "<id>"), sync=sync)
    elif command_name == "share":
        file_id, account = _exactly_two(args, "share", "<id> <account>")
        return ShareCommand(file_id=file_id, account=account, sync=sync)
    elif command_name == "access":
        _reject_sync("access", sync)
        file_id, account = _exactly_two(args, "access", "<id> <account>")
        return AccessCommand(file_id=file_id, account=account)
    else:
        raise ParseError(f"Unknown command: {command_name}")


_NO_ARGS = {
    "logout": LogoutCommand,
    "whoami": WhoamiCommand,
    "starred": StarredCommand,
    "shared": SharedCommand,
    "inbox": InboxCommand,
}


def _parse_login(args: list[str], sync: bool) -> LoginCommand:
    """Parse 'login <account> [secret]' command."""
    _reject_sync("login", sync)
    if len(args) not in (1, 2):
        raise ParseError("login requires <account> and optionally <secret>")
    return LoginCommand(account=args[0], secret=args[1] if len(args) == 2 else None)


def _parse_create(args: list[str], sync: bool, command_cls, usage: str):
    if len(args) not in (1, 2):
        raise ParseError(f"{command_cls.command} requires {usage}")
    parent_id = args[1] if len(args) == 2 else None
    return command_cls(args[0], parent_id=parent_id, sync=sync)


def _reject_sync(name: str, sync: bool) -> None:
    if sync:
        raise ParseError(f"{name} does not accept {SYNC_FLAG}")


def _optional(args: list[str], name: str, usage: str):
    if len(args) > 1:
        raise ParseError(f"{name} accepts at most one argument: {usage}")
    return args[0] if args else None


def _exactly_one(args: list[str], name: str, usage: str) -> str:
    if len(args) != 1:
        raise ParseError(f"{name} requires exactly 1 argument: {usage}")
    return args[0]


def _exactly_two(args: list[str], name: str, usage: str) -> tuple[str, str]:
    if len(args) != 2:
        raise ParseError(f"{name} requires exactly 2 arguments: {usage}")
    return args[0], args[1]
