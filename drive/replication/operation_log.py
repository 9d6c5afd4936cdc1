"""
Operation log reader.

Fetches a bounded window of an account's ledger history, keeps only this
application's custom JSON events, validates them into tagged variants and
hands them over oldest first.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from pydantic import ValidationError as PayloadValidationError

from common.constants import APP_TAG, CUSTOM_JSON_OP, DEFAULT_HISTORY_WINDOW, NAMESPACE_ID
from common.logging_config import get_logger
from drive.exceptions import ValidationError
from drive.schemas.events import EventPayload, parse_event_payload
from ledger.client import HistoryRecord, LedgerClient

logger = get_logger(__name__)


@dataclass(frozen=True)
class LedgerEvent:
    """
    One decoded drive event.

    Attributes:
        sequence: Ledger-assigned position in the author's history
        timestamp: Timestamp the ledger recorded
        author: Account that signed the operation
        payload: Validated tagged-variant payload
    """
    sequence: int
    timestamp: str
    author: str
    payload: EventPayload

    @property
    def type(self) -> str:
        return self.payload.type


class OperationLogBatch:
    """
    Result of one history read.

    Iterating yields the decoded events oldest first. The batch can be
    consumed once; read again to get a fresh window.
    """

    def __init__(self, account: str, events: List[LedgerEvent], fetched: int, ignored: int, skipped: int):
        self.account = account
        self.fetched = fetched
        self.ignored = ignored
        self.skipped = skipped
        self.count = len(events)
        self._events: Iterator[LedgerEvent] = iter(events)

    def __iter__(self) -> Iterator[LedgerEvent]:
        return self._events

    def __next__(self) -> LedgerEvent:
        return next(self._events)


class OperationLogReader:
    """Reads drive events for an account from the ledger."""

    def __init__(self, ledger: LedgerClient, namespace_id: str = NAMESPACE_ID, app_tag: str = APP_TAG):
        self.ledger = ledger
        self.namespace_id = namespace_id
        self.app_tag = app_tag

    async def read(self, account: str, window: int = DEFAULT_HISTORY_WINDOW) -> OperationLogBatch:
        """
        Fetch and decode the most recent `window` history records.

        Args:
            account: Account whose history is read
            window: Number of most recent records to fetch

        Returns:
            OperationLogBatch of decoded events in ascending sequence order

        Raises:
            ValidationError: If window is below 1
            NetworkError: If the ledger cannot be reached
        """
        if window < 1:
            raise ValidationError(f"History window must be at least 1, got {window}")

        records = await self.ledger.get_account_history(account, window)

        events: List[LedgerEvent] = []
        ignored = 0
        skipped = 0

        for record in records:
            if not self._is_drive_operation(record):
                ignored += 1
                continue

            signers = self._signers(record)
            if signers and account not in signers:
                logger.debug(f"Ignoring drive event at sequence {record.sequence} not signed by {account}")
                ignored += 1
                continue

            data = self._load_json(record)
            if data is None:
                skipped += 1
                continue

            if data.get("app") != self.app_tag:
                ignored += 1
                continue

            event = self._decode(account, record, data)
            if event is None:
                skipped += 1
                continue
            events.append(event)

        events.sort(key=lambda e: e.sequence)

        if skipped:
            logger.warning(f"Skipped {skipped} unparsable drive event(s) [account={account}]")
        logger.info(
            f"Read operation log [account={account}, fetched={len(records)}, "
            f"events={len(events)}, ignored={ignored}, skipped={skipped}]"
        )

        return OperationLogBatch(account, events, fetched=len(records), ignored=ignored, skipped=skipped)

    def _is_drive_operation(self, record: HistoryRecord) -> bool:
        return record.op_type == CUSTOM_JSON_OP and record.op_payload.get("id") == self.namespace_id

    @staticmethod
    def _load_json(record: HistoryRecord) -> Optional[Dict[str, Any]]:
        raw = record.op_payload.get("json")
        try:
            data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
        except ValueError as e:
            logger.debug(f"Unparsable JSON at sequence {record.sequence}: {e}")
            return None
        return data if isinstance(data, dict) else None

    def _decode(self, account: str, record: HistoryRecord, data: Dict[str, Any]) -> Optional[LedgerEvent]:
        """
        Validate one drive event.

        Returns:
            LedgerEvent, or None when the payload does not match any event variant
        """
        try:
            payload = parse_event_payload(data)
        except PayloadValidationError as e:
            logger.debug(f"Invalid drive event at sequence {record.sequence}: {e.error_count()} error(s)")
            return None

        return LedgerEvent(
            sequence=record.sequence,
            timestamp=record.timestamp,
            author=account,
            payload=payload,
        )

    @staticmethod
    def _signers(record: HistoryRecord) -> List[str]:
        posting = record.op_payload.get("required_posting_auths") or []
        active = record.op_payload.get("required_auths") or []
        return [str(signer) for signer in list(posting) + list(active)]
