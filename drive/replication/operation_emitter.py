"""
Operation emitter for drive metadata mutations.

Builds the canonical event payload for each mutation and broadcasts it to
the ledger under the account's posting authority.
"""

from typing import Iterable

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from common.constants import NAMESPACE_ID
from common.logging_config import get_logger
from common.types import Entity, inline_content, unique_accounts
from drive.schemas.events import (
    DeleteData,
    EventPayload,
    FileDeleteEvent,
    FileMetadataEvent,
    FileShareEvent,
    FileStarEvent,
    MetadataData,
    ShareData,
    StarData,
    dump_event_payload,
)
from ledger.client import LedgerClient

logger = get_logger(__name__)


def build_metadata_event(entity: Entity) -> FileMetadataEvent:
    """
    Build a file_metadata event describing a newly created entity.

    Content is only carried for files below the inline size limit.
    """
    return FileMetadataEvent(
        data=MetadataData(
            id=entity.id,
            name=entity.name,
            kind=entity.kind.value,
            size=entity.size,
            mime_type=entity.mime_type,
            parent_id=entity.parent_id,
            created_at=entity.created_at,
            modified_at=entity.modified_at,
            shared=entity.shared,
            shared_with=list(entity.shared_with),
            content=inline_content(entity.kind, entity.size, entity.content),
        )
    )


def build_star_event(file_id: str, starred: bool) -> FileStarEvent:
    return FileStarEvent(data=StarData(id=file_id, starred=starred))


def build_delete_event(file_id: str) -> FileDeleteEvent:
    return FileDeleteEvent(data=DeleteData(id=file_id))


def build_share_event(file_id: str, shared_with: Iterable[str]) -> FileShareEvent:
    return FileShareEvent(data=ShareData(id=file_id, shared_with=list(unique_accounts(shared_with))))


async def emit_event(
    ledger: LedgerClient,
    account: str,
    event: EventPayload,
    private_key: Ed25519PrivateKey,
    namespace_id: str = NAMESPACE_ID,
) -> str:
    """
    Broadcast one drive event.

    Args:
        ledger: Ledger client
        account: Signing account
        event: Event payload to broadcast
        private_key: Account posting key
        namespace_id: Custom JSON namespace

    Returns:
        Ledger transaction id

    Raises:
        NetworkError: If the ledger is unreachable or rejects the operation
    """
    transaction_id = await ledger.broadcast(
        namespace_id,
        dump_event_payload(event),
        [account],
        private_key,
    )

    logger.info(
        f"Emitted {event.type} operation [account={account}, file_id={event.data.id}, "
        f"transaction_id={transaction_id}]"
    )

    return transaction_id
