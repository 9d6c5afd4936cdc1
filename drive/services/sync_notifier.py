"""Notification channel for remote emission outcomes."""

from dataclasses import dataclass
from typing import Callable, List, Optional

from common.logging_config import get_logger
from drive.exceptions import PartialSyncWarning

logger = get_logger(__name__)


@dataclass(frozen=True)
class SyncReport:
    """
    Outcome of one remote emission.

    Attributes:
        account: Account the event was emitted for
        event_type: Wire type of the event (e.g. 'file_star')
        file_id: Target entity id
        transaction_id: Ledger transaction id when the broadcast succeeded
        warning: PartialSyncWarning when it failed
    """
    account: str
    event_type: str
    file_id: str
    transaction_id: Optional[str] = None
    warning: Optional[PartialSyncWarning] = None

    @property
    def success(self) -> bool:
        return self.warning is None


class SyncNotifier:
    """Fans SyncReports out to subscribers and keeps a bounded history."""

    def __init__(self, history_size: int = 100):
        self._subscribers: List[Callable[[SyncReport], None]] = []
        self.history_size = history_size
        self.reports: List[SyncReport] = []

    def subscribe(self, callback: Callable[[SyncReport], None]) -> Callable[[], None]:
        """
        Register a callback.

        Returns:
            Function that removes the callback again
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, report: SyncReport) -> None:
        self.reports.append(report)
        if len(self.reports) > self.history_size:
            del self.reports[:-self.history_size]

        for callback in list(self._subscribers):
            try:
                callback(report)
            except Exception as e:
                logger.error(f"Sync subscriber failed: {e}", exc_info=True)

    @property
    def failures(self) -> List[SyncReport]:
        return [report for report in self.reports if not report.success]
