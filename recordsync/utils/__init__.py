"""Shared utilities for configuration, logging, and error handling"""

from recordsync.utils.errors import (
    ConfigurationError,
    MalformedRecordError,
    SyncError,
    TransientStoreError,
)
from recordsync.utils.retry import exponential_backoff_retry

__all__ = [
    "ConfigurationError",
    "MalformedRecordError",
    "SyncError",
    "TransientStoreError",
    "exponential_backoff_retry",
]
