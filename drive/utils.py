"""Utility helper functions for the drive engine."""

import secrets
import time
from datetime import datetime, timezone


def generate_file_id() -> str:
    """
    Generate a new entity id.

    Returns:
        Base36 millisecond timestamp followed by random hex
    """
    millis = int(time.time() * 1000)
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    stamp = ""
    while millis:
        millis, remainder = divmod(millis, 36)
        stamp = digits[remainder] + stamp
    return f"{stamp or '0'}{secrets.token_hex(6)}"


def get_current_timestamp() -> str:
    """
    Get current timestamp in ISO format.

    Returns:
        Current UTC timestamp as ISO format string with millisecond precision
    """
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')
