"""Read authorization across every cached account table."""

from enum import Enum
from typing import Optional, Tuple

from common.logging_config import get_logger
from common.types import Entity
from drive.exceptions import NotFoundError, UnauthorizedAccessError
from drive.repositories.entity_repository import LocalCacheStore

logger = get_logger(__name__)


class AccessDecision(str, Enum):
    ALLOWED = "allowed"
    DENIED = "denied"


class AccessService:
    """
    Resolves whether an account may read a file id.

    Scans every account's cached entities, so cost grows linearly with the
    total number of cached entities.
    """

    def __init__(self, cache: LocalCacheStore):
        self.cache = cache

    def _find(self, file_id: str) -> Optional[Tuple[str, Entity]]:
        for owner, entities in self.cache.iter_accounts():
            for entity in entities:
                if entity.id == file_id:
                    return owner, entity
        return None

    def check_access(self, file_id: str, requester: str) -> AccessDecision:
        """
        Decide read access for requester.

        Returns:
            ALLOWED for the owner or a listed share recipient, DENIED otherwise

        Raises:
            NotFoundError: If no cached account holds file_id
        """
        found = self._find(file_id)
        if found is None:
            raise NotFoundError(f"File '{file_id}' not found")

        owner, entity = found
        if requester == owner:
            return AccessDecision.ALLOWED
        if entity.shared and requester in entity.shared_with:
            return AccessDecision.ALLOWED

        logger.debug(f"Access denied [file_id={file_id}, requester={requester}, owner={owner}]")
        return AccessDecision.DENIED

    def verify_file_access(self, file_id: str, requester: str) -> bool:
        """Boolean form of check_access; unknown ids are simply not accessible."""
        try:
            return self.check_access(file_id, requester) == AccessDecision.ALLOWED
        except NotFoundError:
            return False

    def get_accessible_entity(self, file_id: str, requester: str) -> Entity:
        """
        Return the entity if requester may read it.

        Raises:
            NotFoundError: If no cached account holds file_id
            UnauthorizedAccessError: If requester may not read it
        """
        if self.check_access(file_id, requester) != AccessDecision.ALLOWED:
            raise UnauthorizedAccessError(f"Access to '{file_id}' denied for {requester}")
        _owner, entity = self._find(file_id)
        return entity
