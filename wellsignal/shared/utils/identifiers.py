"""Log-safe identifiers.

Log lines carry a keyed digest in place of a raw id. Digests are scoped by
kind ("user", "alert", ...) so equal strings of different kinds never
correlate, and they are stable across every process sharing LOG_HASH_SALT.
"""
import hashlib
import hmac
import logging
from typing import Optional

logger = logging.getLogger(__name__)

MIN_SALT_LENGTH = 32

_log_key: Optional[bytes] = None


def configure_log_salt(salt: str) -> None:
    """Install the key used by hash_identifier(). Call once at startup.

    Raises:
        ValueError: If salt is shorter than MIN_SALT_LENGTH
    """
    global _log_key
    if not salt or len(salt) < MIN_SALT_LENGTH:
        logger.critical(
            "LOG_SALT_REJECTED",
            extra={"salt_length": len(salt or ""), "min_length": MIN_SALT_LENGTH}
        )
        raise ValueError(f"Log salt must be at least {MIN_SALT_LENGTH} characters")

    _log_key = salt.encode()


def hash_identifier(value: str, kind: str = "user") -> str:
    """HMAC-SHA256 hex digest of ``kind:value``.

    Raises:
        RuntimeError: If configure_log_salt() has not been called
    """
    if _log_key is None:
        raise RuntimeError("Log salt not configured. Call configure_log_salt() first.")

    return hmac.new(_log_key, f"{kind}:{value}".encode(), hashlib.sha256).hexdigest()
