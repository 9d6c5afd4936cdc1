"""
Drive session context.

A DriveSession is built once at startup and owns every collaborator the
engine needs: ledger client, local cache, session repository, secret store
and sync notifier. Components receive it (or its parts) explicitly.
"""

import asyncio
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Optional

from common.logging_config import get_logger
from drive.auth import SecretStore
from drive.config import DriveConfig
from drive.exceptions import (
    AuthenticationError,
    NetworkError,
    NotFoundError,
    NotLoggedInError,
    ValidationError,
)
from drive.replication.operation_applier import StateReconciler
from drive.replication.operation_log import OperationLogReader
from drive.repositories.entity_repository import LocalCacheStore
from drive.repositories.session_repository import SessionRepository
from drive.services.access_service import AccessService
from drive.services.auth_service import CredentialVerifier
from drive.services.file_service import FileService
from drive.services.sync_notifier import SyncNotifier
from ledger.client import HttpLedgerClient, LedgerClient

logger = get_logger(__name__)

LOGIN_FAILED_MESSAGE = "Invalid account or credentials"


@dataclass(frozen=True)
class LoginResult:
    """
    Outcome of a successful login.

    Attributes:
        account: Logged-in account id
        restored: Entities restored from the ledger (0 when the cache was already populated)
        skipped: Unparsable drive events skipped while reading the history
        from_cache: True if the account's table already existed locally
        ledger_available: False if the history fetch failed and the table started empty
    """
    account: str
    restored: int = 0
    skipped: int = 0
    from_cache: bool = False
    ledger_available: bool = True


class DriveSession:
    def __init__(
        self,
        config: Optional[DriveConfig] = None,
        ledger: Optional[LedgerClient] = None,
        cache: Optional[LocalCacheStore] = None,
        sessions: Optional[SessionRepository] = None,
        secret_store: Optional[SecretStore] = None,
        notifier: Optional[SyncNotifier] = None,
    ):
        self.config = config or DriveConfig()
        self.ledger = ledger or HttpLedgerClient(
            self.config.ledger_nodes,
            timeout=self.config.ledger_timeout,
            max_retries=self.config.ledger_max_retries,
        )
        self.cache = cache or LocalCacheStore(self.config.entities_path)
        self.sessions = sessions or SessionRepository(self.config.session_path)
        self.secret_store = secret_store or SecretStore(rounds=self.config.kdf_rounds)
        self.notifier = notifier or SyncNotifier()

        self.verifier = CredentialVerifier(self.ledger)
        self.reader = OperationLogReader(self.ledger)
        self.access = AccessService(self.cache)

        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._files: Optional[FileService] = None

    @property
    def current_account(self) -> Optional[str]:
        return self._files.account if self._files else None

    @property
    def files(self) -> FileService:
        if self._files is None:
            raise NotLoggedInError("No active session")
        return self._files

    async def login(self, account: str, secret: str) -> LoginResult:
        """
        Verify credentials, store the encrypted key, and populate the cache once.

        Raises:
            AuthenticationError: With one generic message for a malformed id,
                an unknown account, or a key mismatch
            NetworkError: If the authority record cannot be fetched
        """
        try:
            keypair = await self.verifier.verify(account, secret)
        except (ValidationError, NotFoundError, AuthenticationError) as e:
            logger.warning(f"Login failed for '{account}': {type(e).__name__}")
            raise AuthenticationError(LOGIN_FAILED_MESSAGE) from e

        if self._files is not None:
            await self.logout()

        ciphertext = await asyncio.to_thread(self.secret_store.encrypt, keypair.key_material, secret)
        self.sessions.save(account, ciphertext)

        result = await self._populate(account)
        self._files = self._build_files(account)

        logger.info(
            f"Logged in {account} [restored={result.restored}, skipped={result.skipped}, "
            f"from_cache={result.from_cache}, ledger_available={result.ledger_available}]"
        )
        return result

    async def _populate(self, account: str) -> LoginResult:
        if self.cache.has_account(account):
            return LoginResult(account=account, from_cache=True)

        try:
            batch = await self.reader.read(account, self.config.history_window)
        except NetworkError as e:
            logger.warning(f"History fetch failed for {account}, starting with empty table: {e}")
            await asyncio.to_thread(self.cache.initialize_account, account, [])
            return LoginResult(account=account, ledger_available=False)

        entities = StateReconciler().replay(batch)
        await asyncio.to_thread(self.cache.initialize_account, account, entities)
        return LoginResult(account=account, restored=len(entities), skipped=batch.skipped)

    def _build_files(self, account: str) -> FileService:
        return FileService(
            account,
            self.cache,
            self.ledger,
            self.sessions,
            self.secret_store,
            self.notifier,
            locks=self._locks,
        )

    def resume(self) -> Optional[str]:
        """
        Restore the stored account without contacting the ledger.

        Returns:
            The resumed account id, or None if no session is stored or the
            account's table is missing from the cache
        """
        account = self.sessions.get_account()
        if not account or not self.sessions.get_ciphertext():
            return None
        if not self.cache.has_account(account):
            logger.warning(f"No cached table for {account}, a fresh login is required")
            return None
        self._files = self._build_files(account)
        logger.info(f"Resumed session for {account}")
        return account

    async def logout(self) -> None:
        """Finish pending emissions, then erase the stored key and account."""
        if self._files is not None:
            await self._files.wait_for_pending()
            logger.info(f"Logged out {self._files.account}")
        self._files = None
        self.sessions.clear()

    async def aclose(self) -> None:
        if self._files is not None:
            await self._files.wait_for_pending()
        await self.ledger.aclose()
