"""Exception hierarchy for synchronization operations."""

from typing import Any


class SyncError(Exception):
    """Base exception for synchronization operations."""

    pass


class ConfigurationError(SyncError):
    """Raised when configuration is invalid or missing.

    Fatal at startup: the orchestrator refuses to begin when it sees one.
    """

    pass


class TransientStoreError(SyncError):
    """Raised when a read from the source or a write to the target fails.

    The page or delta window that raised it is retried; cursors and
    watermarks are not advanced until the retry succeeds.
    """

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation


class MalformedRecordError(SyncError):
    """Raised when a source document is missing its id or updated_at."""

    def __init__(self, message: str, document: dict[str, Any] | None = None):
        super().__init__(message)
        self.document = document or {}
