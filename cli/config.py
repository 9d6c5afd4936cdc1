"""Configuration management for the drive CLI."""

import json
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional

from common.logging_config import get_logger
from drive import config as drive_config
from drive.config import DriveConfig

logger = get_logger(__name__)


class Config:
    """Manages CLI configuration stored in JSON file."""

    DEFAULT_CONFIG = {
        "ledger_nodes": list(drive_config.LEDGER_NODES),
        "data_dir": drive_config.DATA_DIR,
        "history_window": drive_config.HISTORY_WINDOW,
        "timeout": drive_config.LEDGER_TIMEOUT,
        "max_retries": drive_config.LEDGER_MAX_RETRIES,
    }

    def __init__(self, config_path: Path):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.ledgerdrive/config.json)
        """
        self.config_path = config_path
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            self.config_path = Path(tempfile.gettempdir()) / '.ledgerdrive' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        config = self._defaults()
        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("config root must be an object")
                config.update(data)
                return config
            except (json.JSONDecodeError, ValueError, IOError) as e:
                logger.warning(f"Unreadable config {self.config_path}, using defaults: {e}")
                backup_path = self.config_path.with_suffix('.json.bak')
                try:
                    shutil.copy(self.config_path, backup_path)
                except IOError as copy_error:
                    logger.warning(f"Could not back up config: {copy_error}")
                return config

        self.data = config
        self.save()
        return config

    def _defaults(self) -> dict:
        config = dict(self.DEFAULT_CONFIG)
        config["ledger_nodes"] = list(config["ledger_nodes"])
        return config

    def save(self) -> None:
        """Save current configuration to file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(self.data, f, indent=2)
        except IOError as e:
            logger.warning(f"Could not save config {self.config_path}: {e}")

    def get_ledger_nodes(self) -> List[str]:
        nodes = self.data.get('ledger_nodes') or drive_config.LEDGER_NODES
        if isinstance(nodes, str):
            nodes = [node.strip() for node in nodes.split(",") if node.strip()]
        return list(nodes)

    def set_ledger_nodes(self, nodes: List[str]) -> None:
        self.data['ledger_nodes'] = list(nodes)
        self.save()

    def get_data_dir(self) -> Optional[Path]:
        data_dir = self.data.get('data_dir')
        return Path(data_dir).expanduser() if data_dir else None

    def get_history_window(self) -> int:
        return int(self.data.get('history_window', drive_config.HISTORY_WINDOW))

    def to_drive_config(self) -> DriveConfig:
        """
        Build the DriveConfig for a DriveSession.

        Returns:
            DriveConfig with nodes, data dir, window and retry policy from this file
        """
        return DriveConfig(
            data_dir=self.get_data_dir(),
            ledger_nodes=self.get_ledger_nodes(),
            history_window=self.get_history_window(),
            ledger_timeout=float(self.data.get('timeout', drive_config.LEDGER_TIMEOUT)),
            ledger_max_retries=int(self.data.get('max_retries', drive_config.LEDGER_MAX_RETRIES)),
        )
