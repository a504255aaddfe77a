"""Request signing for the AlphaCloud open API."""

import hashlib
import time


def current_timestamp() -> int:
    """Get the current Unix time in whole seconds."""
    return int(time.time())


def sign(app_id: str, app_secret: str, timestamp: int) -> str:
    """Compute the ``sign`` header for a request.

    The API expects the hex encoded SHA-512 of the application ID, the
    application secret and the decimal timestamp, concatenated as UTF-8.

    Args:
        app_id: Application ID.
        app_secret: Application secret.
        timestamp: Unix timestamp in seconds, as sent in the ``timeStamp`` header.

    Returns:
        Lowercase hex digest.
    """
    payload = f"{app_id}{app_secret}{int(timestamp):d}".encode("utf-8")
    return hashlib.sha512(payload).hexdigest()
