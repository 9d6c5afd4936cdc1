"""Command handler functions for CLI operations."""

import mimetypes
from pathlib import Path
from typing import List, Optional

from common.constants import CONTENT_INLINE_LIMIT
from common.logging_config import get_logger
from common.types import Entity, EntityKind
from cli.constants import GREEN, LOGIN_FAILED_TEXT, NOT_LOGGED_IN_TEXT, RESET, RETRY_TEXT
from cli.models import (
    AccessCommand,
    DeleteCommand,
    InfoCommand,
    ListCommand,
    LoginCommand,
    MkdirCommand,
    PathCommand,
    ShareCommand,
    StarCommand,
    UploadCommand,
)
from drive.exceptions import AuthenticationError, DriveException, NetworkError, NotFoundError, NotLoggedInError
from drive.services.access_service import AccessDecision
from drive.session import DriveSession

logger = get_logger(__name__)


async def handle_login(cmd: LoginCommand, session: DriveSession) -> str:
    """
    Handle 'login' command.

    Args:
        cmd: LoginCommand with account and secret (the REPL fills in a prompted secret)
        session: Active DriveSession

    Returns:
        Success or error message
    """
    try:
        result = await session.login(cmd.account, cmd.secret or "")
    except AuthenticationError:
        return LOGIN_FAILED_TEXT
    except NetworkError as e:
        logger.warning(f"Login aborted, ledger unreachable: {e}")
        return "Could not reach the ledger. Please try again."

    if result.from_cache:
        return f"Logged in as {result.account} (local cache)"
    if not result.ledger_available:
        return f"Logged in as {result.account} (history unavailable, starting empty)"
    return f"Logged in as {result.account}, restored {result.restored} entities"


async def handle_logout(session: DriveSession) -> str:
    account = session.current_account
    await session.logout()
    return f"Logged out {account}" if account else "No active session"


def handle_whoami(session: DriveSession) -> str:
    return session.current_account or NOT_LOGGED_IN_TEXT


def handle_list(cmd: ListCommand, session: DriveSession) -> str:
    """List a folder's children, or the root."""
    files = session.files
    if cmd.folder_id is not None and files.get_entity(cmd.folder_id) is None:
        return f"Folder not found: {cmd.folder_id}"
    return format_entity_list(files.list_entities(cmd.folder_id))


def handle_starred(session: DriveSession) -> str:
    return format_entity_list(session.files.list_starred())


def handle_shared(session: DriveSession) -> str:
    return format_entity_list(session.files.list_shared(), show_shares=True)


def handle_inbox(session: DriveSession) -> str:
    return format_entity_list(session.files.list_shared_with_me(), show_owner=True)


def handle_path(cmd: PathCommand, session: DriveSession) -> str:
    path = session.files.folder_path(cmd.folder_id)
    if not path:
        return f"Folder not found: {cmd.folder_id}"
    return "/" + "/".join(entity.name for entity in path)


def handle_info(cmd: InfoCommand, session: DriveSession) -> str:
    entity = session.files.get_entity(cmd.file_id)
    if entity is None:
        return f"Not found: {cmd.file_id}"

    lines = [
        f"id:        {entity.id}",
        f"name:      {entity.name}",
        f"type:      {entity.kind.value}",
        f"owner:     {entity.owner}",
        f"created:   {entity.created_at}",
        f"modified:  {entity.modified_at}",
    ]
    if not entity.is_folder:
        lines.append(f"size:      {format_file_size(entity.size)}")
        lines.append(f"mime:      {entity.mime_type or '-'}")
    lines.append(f"parent:    {entity.parent_id or '/'}")
    lines.append(f"starred:   {'yes' if entity.starred else 'no'}")
    if entity.shared:
        lines.append(f"shared:    {', '.join(entity.shared_with)}")
    return "\n".join(lines)


async def handle_mkdir(cmd: MkdirCommand, session: DriveSession, password: Optional[str] = None) -> str:
    try:
        result = await session.files.create_entity(
            cmd.name, EntityKind.FOLDER.value, parent_id=cmd.parent_id, password=password
        )
    except DriveException as e:
        return _mutation_failed("mkdir", e)
    return f"Created folder {result.entity.name} [{result.entity.id}]"


async def handle_upload(cmd: UploadCommand, session: DriveSession, password: Optional[str] = None) -> str:
    """
    Handle 'upload' command.

    Only metadata is recorded. Small text files also carry their content.
    """
    local_path = Path(cmd.path)
    if not local_path.is_file():
        return f"File not found: {cmd.path}"

    size = local_path.stat().st_size
    mime_type, _ = mimetypes.guess_type(local_path.name)
    content = _read_inline_content(local_path, size)

    try:
        result = await session.files.create_entity(
            local_path.name,
            EntityKind.FILE.value,
            parent_id=cmd.parent_id,
            size=size,
            mime_type=mime_type or "application/octet-stream",
            content=content,
            password=password,
        )
    except DriveException as e:
        return _mutation_failed("upload", e)

    return f"Uploaded {result.entity.name} ({format_file_size(size)}) [{result.entity.id}]"


def _read_inline_content(local_path: Path, size: int) -> Optional[str]:
    if not 0 < size < CONTENT_INLINE_LIMIT:
        return None
    try:
        return local_path.read_text(encoding="utf-8")
    except (UnicodeDecodeError, OSError) as e:
        logger.debug(f"Content not inlined for {local_path.name}: {e}")
        return None


async def handle_star(cmd: StarCommand, session: DriveSession, password: Optional[str] = None) -> str:
    try:
        result = await session.files.toggle_star(cmd.file_id, password=password)
    except DriveException as e:
        return _mutation_failed("star", e)
    state = "Starred" if result.entity.starred else "Unstarred"
    return f"{state} {result.entity.name}"


async def handle_delete(cmd: DeleteCommand, session: DriveSession, password: Optional[str] = None) -> str:
    try:
        result = await session.files.delete_entity(cmd.file_id, password=password)
    except DriveException as e:
        return _mutation_failed("delete", e)
    return f"Deleted {result.entity.name}"


async def handle_share(cmd: ShareCommand, session: DriveSession, password: Optional[str] = None) -> str:
    try:
        result = await session.files.share_entity(cmd.file_id, cmd.account, password=password)
    except DriveException as e:
        return _mutation_failed("share", e)
    return f"Shared {result.entity.name} with {cmd.account}"


def handle_access(cmd: AccessCommand, session: DriveSession) -> str:
    try:
        decision = session.access.check_access(cmd.file_id, cmd.account)
    except NotFoundError:
        return f"Not found: {cmd.file_id}"
    if decision == AccessDecision.ALLOWED:
        return f"{GREEN}allowed{RESET}: {cmd.account} may read {cmd.file_id}"
    return f"denied: {cmd.account} may not read {cmd.file_id}"


def _mutation_failed(command: str, error: DriveException) -> str:
    if isinstance(error, NotLoggedInError):
        return NOT_LOGGED_IN_TEXT
    logger.warning(f"Command '{command}' failed: {type(error).__name__}: {error}")
    return RETRY_TEXT


def format_entity_list(entities: List[Entity], show_owner: bool = False, show_shares: bool = False) -> str:
    """
    Format entities as one line each, folders first.

    Args:
        entities: Entities to format
        show_owner: Append the owning account
        show_shares: Append the share recipients

    Returns:
        Formatted listing, or a placeholder when empty
    """
    if not entities:
        return "(empty)"

    ordered = sorted(entities, key=lambda e: (not e.is_folder, e.name.lower()))
    lines = []
    for entity in ordered:
        marker = "*" if entity.starred else " "
        if entity.is_folder:
            line = f"{marker} {entity.name}/  [{entity.id}]"
        else:
            line = f"{marker} {entity.name}  {format_file_size(entity.size)}  [{entity.id}]"
        if show_owner:
            line += f"  owner={entity.owner}"
        if show_shares:
            line += f"  with={','.join(entity.shared_with)}"
        lines.append(line)
    return "\n".join(lines)


def format_file_size(size_bytes: int) -> str:
    """
    Format a byte count with binary units (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string such as "1.50 MiB" or "512 B"
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    size = size_bytes / 1024.0
    for unit in ['KiB', 'MiB', 'GiB', 'TiB']:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0
    return f"{size:.2f} PiB"
