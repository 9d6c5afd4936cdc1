"""Service layer for business logic."""

from drive.services.access_service import AccessDecision, AccessService
from drive.services.auth_service import CredentialVerifier
from drive.services.file_service import FileService, MutationResult
from drive.services.sync_notifier import SyncNotifier, SyncReport

__all__ = [
    "AccessDecision",
    "AccessService",
    "CredentialVerifier",
    "FileService",
    "MutationResult",
    "SyncNotifier",
    "SyncReport",
]
