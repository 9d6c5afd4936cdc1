"""Custom exception classes for the drive engine."""


class DriveException(Exception):
    """
    Base exception class for all drive-related errors.
    """
    pass


class ValidationError(DriveException):
    """
    Raised when an account id or other input is malformed.
    """
    pass


class NotFoundError(DriveException):
    """
    Raised when an account or file does not exist.
    """
    pass


class AuthenticationError(DriveException):
    """
    Raised when a derived key does not match the account's authority.
    """
    pass


class DecryptionFailedError(AuthenticationError):
    """
    Raised when a stored ciphertext cannot be decrypted (wrong password or corrupt payload).
    """
    pass


class UnauthorizedAccessError(DriveException):
    """
    Raised when an account attempts to read a file it neither owns nor was shared.
    """
    pass


class NotLoggedInError(DriveException):
    """
    Raised when an operation needs an active session and there is none.
    """
    pass


class NetworkError(DriveException):
    """
    Raised when the ledger is unreachable or answers with an error.
    """
    pass


class BroadcastRejectedError(NetworkError):
    """
    Raised when the ledger refuses a broadcast operation.
    """
    pass


class PartialSyncWarning(DriveException):
    """
    Local commit succeeded but the remote emission failed.

    Never raised to the mutation caller; delivered through the sync notifier.
    """
    pass


class LedgerRPCError(NetworkError):
    """
    Raised when a ledger node answers with a JSON-RPC error or a 4xx status.
    """
    pass
