"""
Ledger collaborator contract and JSON-RPC client.

The drive engine only needs three remote calls: authority lookup, account
history, and broadcast of a namespaced custom JSON operation.
"""

import asyncio
import json
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from common.constants import CUSTOM_JSON_OP
from common.logging_config import get_logger
from drive.auth import public_key_to_string, sign_payload
from drive.config import LEDGER_BACKOFF_MULTIPLIER, LEDGER_MAX_RETRIES, LEDGER_TIMEOUT
from drive.exceptions import BroadcastRejectedError, LedgerRPCError, NetworkError

logger = get_logger(__name__)

AUTHORITY_ROLES = ("owner", "active", "posting")

Authority = Dict[str, List[Tuple[str, int]]]


@dataclass(frozen=True)
class HistoryRecord:
    """
    One raw operation from an account's history.

    Attributes:
        sequence: Ledger-assigned position in the account history
        timestamp: Timestamp the ledger recorded for the operation
        op_type: Operation type name (e.g. 'custom_json')
        op_payload: Operation body as returned by the ledger
    """
    sequence: int
    timestamp: str
    op_type: str
    op_payload: Dict[str, Any] = field(default_factory=dict)


def build_custom_json(namespace_id: str, json_payload: str, signing_accounts: List[str]) -> Dict[str, Any]:
    return {
        "id": namespace_id,
        "json": json_payload,
        "required_auths": [],
        "required_posting_auths": list(signing_accounts),
    }


def signing_bytes(operation: Dict[str, Any]) -> bytes:
    """Canonical bytes a custom JSON operation is signed over."""
    return json.dumps([CUSTOM_JSON_OP, operation], sort_keys=True, separators=(",", ":")).encode('utf-8')


def parse_authority(account: Dict[str, Any]) -> Authority:
    """
    Extract role -> [(public key, weight)] from an account record.

    Args:
        account: Account object as returned by get_accounts

    Returns:
        Authority mapping; roles missing from the record map to empty lists
    """
    authority: Authority = {}
    for role in AUTHORITY_ROLES:
        key_auths = (account.get(role) or {}).get("key_auths") or []
        authority[role] = [(str(key), int(weight)) for key, weight in key_auths]
    return authority


def parse_history(rows: List[Any]) -> List[HistoryRecord]:
    """
    Convert raw get_account_history rows into HistoryRecords.

    Rows that do not have the [sequence, {timestamp, op: [type, body]}] shape
    are dropped with a debug log.
    """
    records = []
    for row in rows:
        try:
            sequence, entry = row
            op_type, op_payload = entry["op"]
            records.append(HistoryRecord(
                sequence=int(sequence),
                timestamp=str(entry.get("timestamp", "")),
                op_type=str(op_type),
                op_payload=op_payload if isinstance(op_payload, dict) else {},
            ))
        except (TypeError, ValueError, KeyError) as e:
            logger.debug(f"Dropping malformed history row: {e}")
    return records


class LedgerClient(ABC):
    """Operation contract of the remote append-only ledger."""

    @abstractmethod
    async def get_authority(self, account: str) -> Optional[Authority]:
        """Return the account's authority record, or None if the account does not exist."""

    @abstractmethod
    async def get_account_history(self, account: str, limit: int) -> List[HistoryRecord]:
        """Return up to `limit` most recent operations, oldest first."""

    @abstractmethod
    async def broadcast(
        self,
        namespace_id: str,
        json_payload: str,
        signing_accounts: List[str],
        private_key: Ed25519PrivateKey,
    ) -> str:
        """Sign and append a custom JSON operation. Returns the transaction id."""

    async def aclose(self) -> None:
        return None


class HttpLedgerClient(LedgerClient):
    """JSON-RPC ledger client with node failover and retry logic."""

    def __init__(
        self,
        nodes: List[str],
        timeout: float = LEDGER_TIMEOUT,
        max_retries: int = LEDGER_MAX_RETRIES,
        backoff_multiplier: float = LEDGER_BACKOFF_MULTIPLIER,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize ledger client.

        Args:
            nodes: Ordered list of JSON-RPC endpoints; later nodes are fallbacks
            timeout: Request timeout in seconds
            max_retries: Extra passes over the node list after a full failure
            backoff_multiplier: Delay before pass n is backoff_multiplier ** n seconds
            transport: Optional httpx transport (used by tests)
        """
        if not nodes:
            raise ValueError("At least one ledger node is required")

        self.nodes = list(nodes)
        self.max_retries = max_retries
        self.backoff_multiplier = backoff_multiplier
        self.session = httpx.AsyncClient(timeout=timeout, transport=transport)
        logger.info(f"Initialized HttpLedgerClient [nodes={len(self.nodes)}]")

    async def _call(self, method: str, params: Any) -> Any:
        """
        Perform a JSON-RPC call, failing over between nodes.

        Raises:
            NetworkError: If every node failed on every attempt, or the node
                answered with a JSON-RPC error
        """
        request_id = str(uuid.uuid4())
        body = {"jsonrpc": "2.0", "method": method, "params": params, "id": request_id}
        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries + 1):
            for node in self.nodes:
                try:
                    response = await self.session.post(node, json=body)
                except httpx.HTTPError as e:
                    last_error = e
                    logger.warning(
                        f"Network error calling {method} on {node}: {type(e).__name__} [request_id={request_id}]"
                    )
                    continue

                if response.status_code >= 500:
                    last_error = NetworkError(f"{node} returned HTTP {response.status_code}")
                    logger.warning(
                        f"Server error calling {method} on {node}: status={response.status_code} [request_id={request_id}]"
                    )
                    continue

                if response.status_code >= 400:
                    raise LedgerRPCError(f"Ledger rejected {method}: HTTP {response.status_code}")

                try:
                    payload = response.json()
                except ValueError as e:
                    last_error = e
                    logger.warning(f"Invalid JSON from {node} for {method} [request_id={request_id}]")
                    continue

                if not isinstance(payload, dict):
                    last_error = NetworkError(f"{node} returned a non-object response")
                    logger.warning(f"Invalid response shape from {node} for {method} [request_id={request_id}]")
                    continue

                if payload.get("error"):
                    error = payload["error"]
                    message = error.get("message") if isinstance(error, dict) else str(error)
                    raise LedgerRPCError(f"Ledger error for {method}: {message}")

                logger.debug(f"Ledger call succeeded: {method} on {node} [request_id={request_id}]")
                return payload.get("result")

            if attempt < self.max_retries:
                delay = self.backoff_multiplier ** attempt
                logger.warning(
                    f"All ledger nodes failed (attempt {attempt + 1}/{self.max_retries + 1}) for {method}, "
                    f"retrying in {delay}s [request_id={request_id}]"
                )
                await asyncio.sleep(delay)

        logger.error(f"Ledger unreachable for {method}: {last_error} [request_id={request_id}]")
        raise NetworkError(f"Ledger unreachable: {last_error}")

    async def get_authority(self, account: str) -> Optional[Authority]:
        result = await self._call("condenser_api.get_accounts", [[account]])
        if not result:
            return None
        if not isinstance(result, list) or not isinstance(result[0], dict):
            raise NetworkError(f"Malformed account record for {account}")
        return parse_authority(result[0])

    async def get_account_history(self, account: str, limit: int) -> List[HistoryRecord]:
        rows = await self._call("condenser_api.get_account_history", [account, -1, limit])
        if rows and not isinstance(rows, list):
            raise NetworkError(f"Malformed account history for {account}")
        return parse_history(rows or [])

    async def broadcast(
        self,
        namespace_id: str,
        json_payload: str,
        signing_accounts: List[str],
        private_key: Ed25519PrivateKey,
    ) -> str:
        operation = build_custom_json(namespace_id, json_payload, signing_accounts)
        envelope = {
            "public_key": public_key_to_string(private_key.public_key()),
            "signature": sign_payload(private_key, signing_bytes(operation)),
        }
        try:
            result = await self._call("drive_api.broadcast_custom_json", [operation, envelope])
        except LedgerRPCError as e:
            raise BroadcastRejectedError(str(e)) from e
        if isinstance(result, dict):
            return str(result.get("id") or result.get("trx_id") or "")
        return str(result or "")

    async def aclose(self) -> None:
        await self.session.aclose()
