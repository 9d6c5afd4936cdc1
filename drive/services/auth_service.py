"""Credential verification against the ledger authority record."""

from common.constants import POSTING_ROLE
from common.logging_config import get_logger
from drive.auth import KeyPair, derive_keypair, validate_account_id
from drive.exceptions import AuthenticationError, NotFoundError
from ledger.client import LedgerClient

logger = get_logger(__name__)


class CredentialVerifier:
    def __init__(self, ledger: LedgerClient, role: str = POSTING_ROLE):
        self.ledger = ledger
        self.role = role

    async def verify(self, account: str, secret: str) -> KeyPair:
        """
        Check that (account, secret) derives a key listed in the account's authority.

        Args:
            account: Account id
            secret: Login secret

        Returns:
            The derived keypair

        Raises:
            ValidationError: If the account id is malformed
            NotFoundError: If the ledger has no such account
            AuthenticationError: If the derived key is not in the role's key set
            NetworkError: If the ledger cannot be reached
        """
        validate_account_id(account)
        keypair = derive_keypair(account, secret, self.role)

        authority = await self.ledger.get_authority(account)
        if authority is None:
            logger.warning(f"Verification failed: account '{account}' not found")
            raise NotFoundError(f"Account '{account}' not found")

        keys = {key for key, _weight in authority.get(self.role, [])}
        if keypair.public_key not in keys:
            logger.warning(f"Verification failed: derived key not in {self.role} authority of '{account}'")
            raise AuthenticationError("Derived key does not match account authority")

        logger.info(f"Verified credentials for {account} [role={self.role}]")
        return keypair
