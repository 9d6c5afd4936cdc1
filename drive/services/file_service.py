"""
File service: the write coordinator and local reads.

Every mutation is a two-phase dual write. Phase 1 applies the change to the
local cache under the account's mutation lock and is the operation's result.
Phase 2, only when a password is supplied, runs as an independent task that
decrypts the session key and broadcasts the event; its outcome goes to the
SyncNotifier and never undoes phase 1.
"""

import asyncio
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from common.logging_config import get_logger
from common.types import Entity, EntityKind, inline_content
from drive.auth import SecretStore, private_key_from_material, validate_account_id
from drive.exceptions import DriveException, NotFoundError, PartialSyncWarning, ValidationError
from drive.replication.operation_emitter import (
    build_delete_event,
    build_metadata_event,
    build_share_event,
    build_star_event,
    emit_event,
)
from drive.repositories.entity_repository import LocalCacheStore
from drive.repositories.session_repository import SessionRepository
from drive.schemas.events import EventPayload
from drive.services.sync_notifier import SyncNotifier, SyncReport
from drive.utils import generate_file_id, get_current_timestamp
from ledger.client import LedgerClient

logger = get_logger(__name__)


@dataclass(frozen=True)
class MutationResult:
    """
    Result of a committed local mutation.

    Attributes:
        entity: Entity after the change (the removed entity for deletes)
        event: Event payload that describes the change
        emission: Remote emission task, None when no password was given
    """
    entity: Entity
    event: EventPayload
    emission: Optional["asyncio.Task[SyncReport]"] = None


class FileService:
    def __init__(
        self,
        account: str,
        cache: LocalCacheStore,
        ledger: LedgerClient,
        sessions: SessionRepository,
        secret_store: SecretStore,
        notifier: SyncNotifier,
        locks: Optional[Dict[str, asyncio.Lock]] = None,
    ):
        self.account = account
        self.cache = cache
        self.ledger = ledger
        self.sessions = sessions
        self.secret_store = secret_store
        self.notifier = notifier
        self._locks = locks if locks is not None else defaultdict(asyncio.Lock)
        self._pending: Set[asyncio.Task] = set()

    def _lock(self) -> asyncio.Lock:
        return self._locks[self.account]

    async def create_entity(
        self,
        name: str,
        kind: str,
        parent_id: Optional[str] = None,
        size: int = 0,
        mime_type: str = "",
        content: Optional[str] = None,
        password: Optional[str] = None,
    ) -> MutationResult:
        """
        Create a file or folder.

        The parent is not checked against existing folders.

        Raises:
            ValidationError: On an empty name, unknown kind or negative size
        """
        if not name or not name.strip():
            raise ValidationError("Name must not be empty")
        try:
            entity_kind = EntityKind(kind)
        except ValueError:
            raise ValidationError(f"Unknown entity kind: {kind!r}")
        if size < 0:
            raise ValidationError("Size must not be negative")

        if entity_kind == EntityKind.FOLDER:
            size, mime_type, content = 0, "", None

        now = get_current_timestamp()
        entity = Entity(
            id=generate_file_id(),
            name=name.strip(),
            kind=entity_kind,
            owner=self.account,
            created_at=now,
            modified_at=now,
            size=size,
            mime_type=mime_type or "",
            parent_id=parent_id,
            content=inline_content(entity_kind, size, content),
        )
        event = build_metadata_event(entity)

        async with self._lock():
            await asyncio.to_thread(self.cache.put, self.account, entity)

        logger.info(f"Created {entity_kind.value} '{entity.name}' [account={self.account}, id={entity.id}]")
        return MutationResult(entity=entity, event=event, emission=self._schedule_emission(event, password))

    async def toggle_star(self, file_id: str, password: Optional[str] = None) -> MutationResult:
        async with self._lock():
            entity = self._require(file_id)
            updated = entity.with_star(not entity.starred)
            await asyncio.to_thread(self.cache.put, self.account, updated)

        event = build_star_event(file_id, updated.starred)
        logger.info(f"Set starred={updated.starred} [account={self.account}, id={file_id}]")
        return MutationResult(entity=updated, event=event, emission=self._schedule_emission(event, password))

    async def delete_entity(self, file_id: str, password: Optional[str] = None) -> MutationResult:
        """
        Remove an entity from the cache.

        Children of a deleted folder are left in place.
        """
        async with self._lock():
            entity = self._require(file_id)
            await asyncio.to_thread(self.cache.remove, self.account, file_id)

        event = build_delete_event(file_id)
        logger.info(f"Deleted '{entity.name}' [account={self.account}, id={file_id}]")
        return MutationResult(entity=entity, event=event, emission=self._schedule_emission(event, password))

    async def share_entity(self, file_id: str, target_account: str, password: Optional[str] = None) -> MutationResult:
        """
        Add target_account to the entity's share list.

        Raises:
            ValidationError: If target_account is malformed or is the owner
            NotFoundError: If file_id is not cached for this account
        """
        validate_account_id(target_account)
        if target_account == self.account:
            raise ValidationError("Cannot share an entity with its owner")

        async with self._lock():
            entity = self._require(file_id)
            updated = entity.with_share(entity.shared_with + (target_account,))
            await asyncio.to_thread(self.cache.put, self.account, updated)

        event = build_share_event(file_id, updated.shared_with)
        logger.info(
            f"Shared '{entity.name}' with {target_account} "
            f"[account={self.account}, id={file_id}, shared_with={len(updated.shared_with)}]"
        )
        return MutationResult(entity=updated, event=event, emission=self._schedule_emission(event, password))

    def _require(self, file_id: str) -> Entity:
        entity = self.cache.get(self.account, file_id)
        if entity is None:
            logger.warning(f"Mutation target not found [account={self.account}, id={file_id}]")
            raise NotFoundError(f"File '{file_id}' not found")
        return entity

    def _schedule_emission(self, event: EventPayload, password: Optional[str]) -> Optional[asyncio.Task]:
        if not password:
            return None
        task = asyncio.create_task(self._emit(event, password))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _emit(self, event: EventPayload, password: str) -> SyncReport:
        file_id = event.data.id
        try:
            ciphertext = self.sessions.get_ciphertext()
            if not ciphertext:
                raise PartialSyncWarning("No session key stored")
            key_material = await asyncio.to_thread(self.secret_store.decrypt, ciphertext, password)
            private_key = private_key_from_material(key_material)
            transaction_id = await emit_event(self.ledger, self.account, event, private_key)
            report = SyncReport(self.account, event.type, file_id, transaction_id=transaction_id)
        except DriveException as e:
            logger.warning(
                f"Remote emission failed, local change kept [account={self.account}, "
                f"type={event.type}, id={file_id}]: {type(e).__name__}: {e}"
            )
            warning = e if isinstance(e, PartialSyncWarning) else PartialSyncWarning(str(e))
            report = SyncReport(self.account, event.type, file_id, warning=warning)

        self.notifier.publish(report)
        return report

    async def wait_for_pending(self) -> List[SyncReport]:
        """Wait for outstanding remote emissions and return their reports."""
        if not self._pending:
            return []
        results = await asyncio.gather(*list(self._pending), return_exceptions=True)
        reports = []
        for result in results:
            if isinstance(result, BaseException):
                logger.error(f"Remote emission task crashed: {result!r}")
            else:
                reports.append(result)
        return reports

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def get_entity(self, file_id: str) -> Optional[Entity]:
        return self.cache.get(self.account, file_id)

    def list_all(self) -> List[Entity]:
        return self.cache.list_entities(self.account)

    def list_entities(self, parent_id: Optional[str] = None) -> List[Entity]:
        """Children of a folder; the root when parent_id is None."""
        return [entity for entity in self.list_all() if entity.parent_id == parent_id]

    def list_starred(self) -> List[Entity]:
        return [entity for entity in self.list_all() if entity.starred]

    def list_shared(self) -> List[Entity]:
        return [entity for entity in self.list_all() if entity.shared]

    def list_shared_with_me(self) -> List[Entity]:
        """Entities in other accounts' tables that are shared with this account."""
        shared = []
        for owner, entities in self.cache.iter_accounts():
            if owner == self.account:
                continue
            shared.extend(e for e in entities if e.shared and self.account in e.shared_with)
        return shared

    def folder_path(self, folder_id: Optional[str]) -> List[Entity]:
        """
        Breadcrumb from the root down to folder_id.

        Stops early at a missing parent or a cycle.
        """
        path: List[Entity] = []
        seen = set()
        current = folder_id
        while current is not None and current not in seen:
            seen.add(current)
            entity = self.get_entity(current)
            if entity is None:
                break
            path.append(entity)
            current = entity.parent_id
        path.reverse()
        return path
