"""Configuration settings for the drive engine."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from common.constants import DEFAULT_HISTORY_WINDOW


DATA_DIR = os.environ.get("DRIVE_DATA_DIR", str(Path.home() / ".ledgerdrive"))

LEDGER_NODES = [
    node.strip()
    for node in os.environ.get(
        "DRIVE_LEDGER_NODES",
        "https://api.hive.blog,https://api.openhive.network"
    ).split(",")
    if node.strip()
]

HISTORY_WINDOW = int(os.environ.get("DRIVE_HISTORY_WINDOW", str(DEFAULT_HISTORY_WINDOW)))

KDF_ROUNDS = int(os.environ.get("DRIVE_KDF_ROUNDS", "64"))

LEDGER_TIMEOUT = float(os.environ.get("DRIVE_LEDGER_TIMEOUT", "10"))

LEDGER_MAX_RETRIES = int(os.environ.get("DRIVE_LEDGER_MAX_RETRIES", "2"))

LEDGER_BACKOFF_MULTIPLIER = 2

SESSION_FILENAME = "session.json"
ENTITIES_FILENAME = "entities.json"


@dataclass
class DriveConfig:
    """Settings a DriveSession is built from."""
    data_dir: Optional[Path] = field(default_factory=lambda: Path(DATA_DIR))
    ledger_nodes: List[str] = field(default_factory=lambda: list(LEDGER_NODES))
    history_window: int = HISTORY_WINDOW
    kdf_rounds: int = KDF_ROUNDS
    ledger_timeout: float = LEDGER_TIMEOUT
    ledger_max_retries: int = LEDGER_MAX_RETRIES

    @property
    def session_path(self) -> Optional[Path]:
        return self.data_dir / SESSION_FILENAME if self.data_dir else None

    @property
    def entities_path(self) -> Optional[Path]:
        return self.data_dir / ENTITIES_FILENAME if self.data_dir else None
