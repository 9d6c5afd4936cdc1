"""Authentication and security utilities."""

import base64
import binascii
import hashlib
import os
import re
from dataclasses import dataclass

import bcrypt
from cryptography.exceptions import InvalidSignature, InvalidTag
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.serialization import Encoding, NoEncryption, PrivateFormat, PublicFormat

from common.constants import ACCOUNT_ID_PATTERN, POSTING_ROLE, PUBLIC_KEY_PREFIX
from drive.config import KDF_ROUNDS
from drive.exceptions import DecryptionFailedError, ValidationError

_ACCOUNT_RE = re.compile(ACCOUNT_ID_PATTERN)

TOKEN_VERSION = 1
SALT_BYTES = 16
NONCE_BYTES = 12
KEY_BYTES = 32


@dataclass(frozen=True)
class KeyPair:
    """Deterministic signing keypair derived from login credentials."""
    private_key: Ed25519PrivateKey
    public_key: str

    @property
    def key_material(self) -> str:
        """Hex encoding of the raw private key, the form kept in the secret store."""
        raw = self.private_key.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())
        return raw.hex()


def validate_account_id(account: str) -> str:
    """
    Check an account id against the ledger naming rules.

    Args:
        account: Account id (3-16 chars of lowercase letters, digits, dot, hyphen)

    Returns:
        The account id unchanged

    Raises:
        ValidationError: If the id does not match the pattern
    """
    if not isinstance(account, str) or not _ACCOUNT_RE.match(account):
        raise ValidationError(f"Invalid account id: {account!r}")
    return account


def derive_keypair(account: str, secret: str, role: str = POSTING_ROLE) -> KeyPair:
    """
    Derive the keypair for (account, secret, role).

    The seed is SHA-256 over account + role + secret, so the same login
    always yields the same key.
    """
    seed = hashlib.sha256(f"{account}{role}{secret}".encode('utf-8')).digest()
    private_key = Ed25519PrivateKey.from_private_bytes(seed)
    return KeyPair(private_key=private_key, public_key=public_key_to_string(private_key.public_key()))


def public_key_to_string(public_key: Ed25519PublicKey) -> str:
    raw = public_key.public_bytes(Encoding.Raw, PublicFormat.Raw)
    return f"{PUBLIC_KEY_PREFIX}{raw.hex()}"


def public_key_from_string(text: str) -> Ed25519PublicKey:
    if not text.startswith(PUBLIC_KEY_PREFIX):
        raise ValidationError(f"Unsupported public key format: {text[:8]!r}")
    try:
        raw = bytes.fromhex(text[len(PUBLIC_KEY_PREFIX):])
        return Ed25519PublicKey.from_public_bytes(raw)
    except ValueError as e:
        raise ValidationError(f"Malformed public key: {e}") from e


def private_key_from_material(key_material: str) -> Ed25519PrivateKey:
    try:
        return Ed25519PrivateKey.from_private_bytes(bytes.fromhex(key_material))
    except ValueError as e:
        raise DecryptionFailedError("Stored key material is not a valid private key") from e


def sign_payload(private_key: Ed25519PrivateKey, payload: bytes) -> str:
    return private_key.sign(payload).hex()


def verify_signature(public_key: str, payload: bytes, signature: str) -> bool:
    """
    Verify a hex signature over payload.

    Returns:
        True if the signature matches, False otherwise
    """
    try:
        public_key_from_string(public_key).verify(bytes.fromhex(signature), payload)
        return True
    except (InvalidSignature, ValidationError, ValueError):
        return False


class SecretStore:
    """
    Password-based authenticated encryption for session key material.

    The password is stretched with bcrypt-pbkdf into an AES-256-GCM key.
    Tokens are urlsafe base64 of version | salt | nonce | ciphertext.
    """

    def __init__(self, rounds: int = KDF_ROUNDS):
        self.rounds = rounds

    def _derive_key(self, password: str, salt: bytes) -> bytes:
        return bcrypt.kdf(
            password=password.encode('utf-8'),
            salt=salt,
            desired_key_bytes=KEY_BYTES,
            rounds=self.rounds,
        )

    def encrypt(self, key_material: str, password: str) -> str:
        """
        Encrypt key material under a password.

        Args:
            key_material: Secret to protect
            password: Password the key is derived from

        Returns:
            Encoded ciphertext token
        """
        if not password:
            raise ValidationError("Password must not be empty")

        salt = os.urandom(SALT_BYTES)
        nonce = os.urandom(NONCE_BYTES)
        aesgcm = AESGCM(self._derive_key(password, salt))
        header = bytes([TOKEN_VERSION]) + salt
        ciphertext = aesgcm.encrypt(nonce, key_material.encode('utf-8'), header)
        return base64.urlsafe_b64encode(header + nonce + ciphertext).decode('ascii')

    def decrypt(self, token: str, password: str) -> str:
        """
        Decrypt a token produced by encrypt().

        Raises:
            DecryptionFailedError: On a wrong password or a corrupt token
        """
        if not password:
            raise DecryptionFailedError("Password must not be empty")

        try:
            blob = base64.urlsafe_b64decode(token.encode('ascii'))
        except (binascii.Error, ValueError, AttributeError) as e:
            raise DecryptionFailedError("Ciphertext is not valid base64") from e

        minimum = 1 + SALT_BYTES + NONCE_BYTES + 16
        if len(blob) < minimum or blob[0] != TOKEN_VERSION:
            raise DecryptionFailedError("Ciphertext is truncated or has an unknown version")

        header = blob[:1 + SALT_BYTES]
        salt = header[1:]
        nonce = blob[1 + SALT_BYTES:1 + SALT_BYTES + NONCE_BYTES]
        ciphertext = blob[1 + SALT_BYTES + NONCE_BYTES:]

        try:
            plaintext = AESGCM(self._derive_key(password, salt)).decrypt(nonce, ciphertext, header)
        except InvalidTag as e:
            raise DecryptionFailedError("Wrong password or corrupt ciphertext") from e

        return plaintext.decode('utf-8')
