"""Shared utilities for the wellsignal platform."""
from .dates import as_utc, days_ago, parse_timestamp, utc_day, utc_now
from .identifiers import configure_log_salt, hash_identifier

__all__ = [
    "as_utc",
    "days_ago",
    "parse_timestamp",
    "utc_day",
    "utc_now",
    "configure_log_salt",
    "hash_identifier",
]
