"""Session repository: the current account id and its encrypted key."""

import json
from pathlib import Path
from typing import Optional

from common.logging_config import get_logger

logger = get_logger(__name__)


class SessionRepository:
    """
    Stores one plain account id and one ciphertext.

    Both are overwritten on login and erased on logout.
    """

    def __init__(self, session_path: Optional[Path] = None):
        """
        Initialize the session repository.

        Args:
            session_path: JSON file path; None keeps the session in memory only
        """
        self.session_path = Path(session_path) if session_path else None
        self.data = self._load()

    def _load(self) -> dict:
        if self.session_path is None or not self.session_path.exists():
            return {}
        try:
            with open(self.session_path, 'r') as f:
                data = json.load(f)
            return data if isinstance(data, dict) else {}
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable session file {self.session_path}: {e}")
            return {}

    def _save(self) -> None:
        if self.session_path is None:
            return
        try:
            self.session_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.session_path, 'w') as f:
                json.dump(self.data, f, indent=2)
        except IOError as e:
            logger.warning(f"Failed to save session to {self.session_path}: {e}")

    def get_account(self) -> Optional[str]:
        return self.data.get('account')

    def get_ciphertext(self) -> Optional[str]:
        return self.data.get('ciphertext')

    def save(self, account: str, ciphertext: str) -> None:
        """
        Replace the stored session.

        Args:
            account: Logged-in account id
            ciphertext: Encrypted private key material
        """
        self.data = {'account': account, 'ciphertext': ciphertext}
        self._save()
        logger.debug(f"Session stored for {account}")

    def clear(self) -> None:
        self.data = {}
        if self.session_path is not None and self.session_path.exists():
            try:
                self.session_path.unlink()
            except OSError as e:
                logger.warning(f"Failed to remove session file {self.session_path}: {e}")
        logger.debug("Session cleared")
