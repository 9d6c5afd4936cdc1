"""Repository layer for local state."""

from drive.repositories.entity_repository import LocalCacheStore
from drive.repositories.session_repository import SessionRepository

__all__ = [
    "LocalCacheStore",
    "SessionRepository",
]
