"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal, Optional


@dataclass(frozen=True)
class LoginCommand:
    """Log in with account id and secret."""

    account: str
    secret: Optional[str] = None
    command: Literal["login"] = "login"


@dataclass(frozen=True)
class LogoutCommand:
    command: Literal["logout"] = "logout"


@dataclass(frozen=True)
class WhoamiCommand:
    command: Literal["whoami"] = "whoami"


@dataclass(frozen=True)
class ListCommand:
    """List children of a folder; root when folder_id is None."""

    folder_id: Optional[str] = None
    command: Literal["ls"] = "ls"


@dataclass(frozen=True)
class StarredCommand:
    command: Literal["starred"] = "starred"


@dataclass(frozen=True)
class SharedCommand:
    command: Literal["shared"] = "shared"


@dataclass(frozen=True)
class InboxCommand:
    """List entities other accounts share with the current one."""

    command: Literal["inbox"] = "inbox"


@dataclass(frozen=True)
class PathCommand:
    folder_id: str
    command: Literal["path"] = "path"


@dataclass(frozen=True)
class InfoCommand:
    file_id: str
    command: Literal["info"] = "info"


@dataclass(frozen=True)
class MkdirCommand:
    """Create a folder."""

    name: str
    parent_id: Optional[str] = None
    sync: bool = False
    command: Literal["mkdir"] = "mkdir"


@dataclass(frozen=True)
class UploadCommand:
    """Record a local file as a drive entity."""

    path: str
    parent_id: Optional[str] = None
    sync: bool = False
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class StarCommand:
    file_id: str
    sync: bool = False
    command: Literal["star"] = "star"


@dataclass(frozen=True)
class DeleteCommand:
    file_id: str
    sync: bool = False
    command: Literal["delete"] = "delete"


@dataclass(frozen=True)
class ShareCommand:
    """Share an entity with another account."""

    file_id: str
    account: str
    sync: bool = False
    command: Literal["share"] = "share"


@dataclass(frozen=True)
class AccessCommand:
    """Check read access of an account to an entity."""

    file_id: str
    account: str
    command: Literal["access"] = "access"


MutationCommand = MkdirCommand | UploadCommand | StarCommand | DeleteCommand | ShareCommand

CommandRequest = (
    LoginCommand
    | LogoutCommand
    | WhoamiCommand
    | ListCommand
    | StarredCommand
    | SharedCommand
    | InboxCommand
    | PathCommand
    | InfoCommand
    | MutationCommand
    | AccessCommand
)
