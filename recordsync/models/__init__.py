"""Data models for the record synchronizer."""

from recordsync.models.config import (
    AppConfig,
    LoggingConfig,
    RetryConfig,
    StateConfig,
    SyncConfig,
)
from recordsync.models.record import Record, RecordId

__all__ = [
    "Record",
    "RecordId",
    "AppConfig",
    "LoggingConfig",
    "RetryConfig",
    "StateConfig",
    "SyncConfig",
]
