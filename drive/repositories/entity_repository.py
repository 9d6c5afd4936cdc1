"""
Local cache store for drive entities.

Holds the per-account entity table (owner -> ordered entities) that serves
every read once an account has been populated. Persisted to a JSON file so
the table survives restarts independently of ledger availability.
"""

import json
import os
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from common.logging_config import get_logger
from common.types import Entity

logger = get_logger(__name__)


class LocalCacheStore:
    """
    Thread-safe owner -> entities table.

    This is the only component that touches the entity collections. Entities
    are immutable, so a put() publishes a complete record in one step.
    """

    def __init__(self, cache_path: Optional[str] = None):
        """
        Initialize the cache store.

        Args:
            cache_path: Path to the JSON file; None keeps the table in memory only
        """
        self._cache_path = Path(cache_path) if cache_path else None
        self._cache_lock = threading.RLock()
        self._file_lock = threading.Lock()
        self._tables: Dict[str, Dict[str, Entity]] = {}

        self._load_from_disk()

        logger.info(f"Local cache store initialized [path={self._cache_path}]")

    def has_account(self, owner: str) -> bool:
        with self._cache_lock:
            return owner in self._tables

    def initialize_account(self, owner: str, entities: Iterable[Entity]) -> bool:
        """
        Populate an account's table the first time it is seen.

        Args:
            owner: Account id
            entities: Reconciled entities (may be empty)

        Returns:
            True if the table was created, False if it already existed
        """
        with self._cache_lock:
            if owner in self._tables:
                return False
            self._tables[owner] = {entity.id: entity for entity in entities}
            count = len(self._tables[owner])

        self._save_to_disk()
        logger.info(f"Initialized cache for {owner} [entities={count}]")
        return True

    def list_entities(self, owner: str) -> List[Entity]:
        with self._cache_lock:
            return list(self._tables.get(owner, {}).values())

    def get(self, owner: str, entity_id: str) -> Optional[Entity]:
        with self._cache_lock:
            return self._tables.get(owner, {}).get(entity_id)

    def put(self, owner: str, entity: Entity) -> None:
        """
        Insert an entity, or replace the one with the same id in place.
        """
        with self._cache_lock:
            self._tables.setdefault(owner, {})[entity.id] = entity
        self._save_to_disk()
        logger.debug(f"Cached entity [owner={owner}, id={entity.id}]")

    def remove(self, owner: str, entity_id: str) -> bool:
        """
        Remove an entity.

        Returns:
            True if an entity was removed, False if the id was not cached
        """
        with self._cache_lock:
            table = self._tables.get(owner)
            if table is None or entity_id not in table:
                return False
            del table[entity_id]

        self._save_to_disk()
        logger.debug(f"Removed cached entity [owner={owner}, id={entity_id}]")
        return True

    def iter_accounts(self) -> List[Tuple[str, List[Entity]]]:
        """Snapshot of every (owner, entities) pair."""
        with self._cache_lock:
            return [(owner, list(table.values())) for owner, table in self._tables.items()]

    def clear(self) -> None:
        with self._cache_lock:
            self._tables = {}
        self._save_to_disk()

    def _load_from_disk(self) -> bool:
        """
        Load the table from the JSON file.

        Returns:
            True if load succeeded, False if file missing or corrupted
        """
        if self._cache_path is None or not self._cache_path.exists():
            return False

        try:
            with self._file_lock:
                with open(self._cache_path, 'r') as f:
                    data = json.load(f)

            tables = {
                owner: {entity.id: entity for entity in (Entity.from_dict(item) for item in items)}
                for owner, items in data.items()
            }
        except (json.JSONDecodeError, IOError, KeyError, TypeError, ValueError, AttributeError) as e:
            backup_path = self._cache_path.with_suffix('.json.bak')
            logger.warning(
                f"Failed to load entity cache from {self._cache_path}: {e}, "
                f"starting with empty cache (backup at {backup_path})"
            )
            try:
                shutil.copy(self._cache_path, backup_path)
            except OSError as copy_error:
                logger.warning(f"Could not back up corrupt cache: {copy_error}")
            return False

        with self._cache_lock:
            self._tables = tables

        total = sum(len(table) for table in tables.values())
        logger.info(
            f"Entity cache loaded from {self._cache_path} "
            f"({total} entit(ies) across {len(tables)} account(s))"
        )
        return True

    def _save_to_disk(self) -> None:
        """
        Persist the table atomically.

        Continues with the in-memory table only if the save fails.
        """
        if self._cache_path is None:
            return

        with self._cache_lock:
            data = {
                owner: [entity.to_dict() for entity in table.values()]
                for owner, table in self._tables.items()
            }

        try:
            self._cache_path.parent.mkdir(parents=True, exist_ok=True)
            with self._file_lock:
                fd, tmp_path = tempfile.mkstemp(dir=self._cache_path.parent, suffix='.tmp')
                try:
                    with os.fdopen(fd, 'w') as f:
                        json.dump(data, f, indent=2)
                    os.replace(tmp_path, self._cache_path)
                except BaseException:
                    if os.path.exists(tmp_path):
                        os.unlink(tmp_path)
                    raise
        except (IOError, OSError) as e:
            logger.warning(
                f"Failed to save entity cache to {self._cache_path}: {e}, "
                "continuing with in-memory cache only"
            )
