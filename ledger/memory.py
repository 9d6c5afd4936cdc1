"""
In-memory ledger.

Keeps accounts and append-only histories in process memory. Used by tests
and for running the drive offline; broadcasts are verified against the
signing account's posting authority like a real node would.
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from common.constants import CUSTOM_JSON_OP, NAMESPACE_ID, POSTING_ROLE
from common.logging_config import get_logger
from drive.auth import derive_keypair, public_key_to_string, sign_payload, verify_signature
from drive.exceptions import BroadcastRejectedError, NetworkError
from ledger.client import Authority, HistoryRecord, LedgerClient, build_custom_json, signing_bytes

logger = get_logger(__name__)


class InMemoryLedger(LedgerClient):
    """
    Process-local ledger implementing the LedgerClient contract.

    Attributes:
        failures: Map of method name ('get_authority', 'get_account_history',
            'broadcast') to an exception raised on every call to it
        calls: Per-method call counters
    """

    def __init__(self):
        self._authorities: Dict[str, Authority] = {}
        self._history: Dict[str, List[HistoryRecord]] = {}
        self.failures: Dict[str, Exception] = {}
        self.calls: Dict[str, int] = {
            "get_authority": 0,
            "get_account_history": 0,
            "broadcast": 0,
        }

    def create_account(self, account: str, secret: Optional[str] = None, public_keys: Optional[List[str]] = None) -> Authority:
        """
        Register an account.

        Args:
            account: Account id
            secret: Login secret; its derived posting key is added to the authority
            public_keys: Extra posting keys to register

        Returns:
            The stored authority record
        """
        keys = list(public_keys or [])
        if secret is not None:
            keys.insert(0, derive_keypair(account, secret).public_key)

        authority: Authority = {
            "owner": [],
            "active": [],
            POSTING_ROLE: [(key, 1) for key in keys],
        }
        self._authorities[account] = authority
        self._history.setdefault(account, [])
        logger.debug(f"Created ledger account {account} [keys={len(keys)}]")
        return authority

    def append_operation(
        self,
        account: str,
        op_type: str,
        op_payload: Dict[str, Any],
        timestamp: Optional[str] = None,
    ) -> HistoryRecord:
        """Append a raw operation to an account's history without any checks."""
        history = self._history.setdefault(account, [])
        record = HistoryRecord(
            sequence=len(history),
            timestamp=timestamp or datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S"),
            op_type=op_type,
            op_payload=op_payload,
        )
        history.append(record)
        return record

    def append_event(
        self,
        account: str,
        event: Any,
        namespace_id: str = NAMESPACE_ID,
        timestamp: Optional[str] = None,
    ) -> HistoryRecord:
        """Append a custom JSON event; dicts are serialized, strings stored verbatim."""
        json_payload = event if isinstance(event, str) else json.dumps(event)
        operation = build_custom_json(namespace_id, json_payload, [account])
        return self.append_operation(account, CUSTOM_JSON_OP, operation, timestamp=timestamp)

    def history(self, account: str) -> List[HistoryRecord]:
        return list(self._history.get(account, []))

    def _check_failure(self, method: str) -> None:
        self.calls[method] += 1
        failure = self.failures.get(method)
        if failure is not None:
            raise failure

    async def get_authority(self, account: str) -> Optional[Authority]:
        self._check_failure("get_authority")
        authority = self._authorities.get(account)
        if authority is None:
            return None
        return {role: list(keys) for role, keys in authority.items()}

    async def get_account_history(self, account: str, limit: int) -> List[HistoryRecord]:
        self._check_failure("get_account_history")
        history = self._history.get(account, [])
        return list(history[-limit:]) if limit > 0 else []

    async def broadcast(
        self,
        namespace_id: str,
        json_payload: str,
        signing_accounts: List[str],
        private_key: Ed25519PrivateKey,
    ) -> str:
        self._check_failure("broadcast")
        if not signing_accounts:
            raise BroadcastRejectedError("At least one signing account is required")

        operation = build_custom_json(namespace_id, json_payload, signing_accounts)
        public_key = public_key_to_string(private_key.public_key())
        signature = sign_payload(private_key, signing_bytes(operation))

        for account in signing_accounts:
            authority = self._authorities.get(account)
            if authority is None:
                raise BroadcastRejectedError(f"Unknown signing account: {account}")
            posting_keys = {key for key, _ in authority.get(POSTING_ROLE, [])}
            if public_key not in posting_keys or not verify_signature(public_key, signing_bytes(operation), signature):
                raise BroadcastRejectedError(f"Missing posting authority for {account}")

        record = self.append_operation(signing_accounts[0], CUSTOM_JSON_OP, operation)
        transaction_id = uuid.uuid4().hex
        logger.debug(f"Broadcast accepted [account={signing_accounts[0]}, sequence={record.sequence}]")
        return transaction_id


class UnreachableLedger(InMemoryLedger):
    """Ledger whose every call fails with NetworkError."""

    def __init__(self):
        super().__init__()
        error = NetworkError("Ledger unreachable")
        self.failures = {
            "get_authority": error,
            "get_account_history": error,
            "broadcast": error,
        }
