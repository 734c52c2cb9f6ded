"""Checkpoint persistence for resuming synchronization after a restart."""

import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

import structlog
from pydantic import ValidationError

from recordsync.sync.models import SyncCheckpoint
from recordsync.utils.errors import TransientStoreError

log = structlog.stdlib.get_logger()


class CheckpointStore(ABC):
    """Get/set contract for the persisted watermark and full-sync flag."""

    @abstractmethod
    def load(self) -> SyncCheckpoint | None:
        """Return the saved checkpoint, or None if nothing was ever saved.

        Raises:
            TransientStoreError: If the backing store cannot be read
        """
        pass

    @abstractmethod
    def save(self, checkpoint: SyncCheckpoint) -> None:
        """Persist the checkpoint, replacing any previous one.

        Raises:
            TransientStoreError: If the backing store cannot be written
        """
        pass


class MemoryCheckpointStore(CheckpointStore):
    """Checkpoint held in process memory; lost on restart."""

    def __init__(self, checkpoint: SyncCheckpoint | None = None):
        self._checkpoint = checkpoint

    def load(self) -> SyncCheckpoint | None:
        return self._checkpoint.model_copy() if self._checkpoint else None

    def save(self, checkpoint: SyncCheckpoint) -> None:
        self._checkpoint = checkpoint.model_copy()


class JsonFileCheckpointStore(CheckpointStore):
    """Checkpoint stored as a JSON document on local disk."""

    def __init__(self, path: str | Path):
        """
        Initialize the file-backed checkpoint store.

        Args:
            path: Location of the JSON checkpoint file
        """
        self._path = Path(path)
        log.info("checkpoint_store_initialized", path=str(self._path))

    def load(self) -> SyncCheckpoint | None:
        """
        Load the checkpoint from disk.

        A missing file means no sync has ever completed. A file that cannot be
        parsed is treated the same way, which triggers a full sync; replaying a
        full sync is safe because target writes are idempotent.

        Returns:
            SyncCheckpoint if found and valid, None otherwise

        Raises:
            TransientStoreError: If the file exists but cannot be read
        """
        if not self._path.exists():
            log.info("no_checkpoint_found", path=str(self._path))
            return None

        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            log.error("failed_to_read_checkpoint", path=str(self._path), error=str(e))
            raise TransientStoreError(f"Failed to read checkpoint: {e}", operation="load") from e

        try:
            checkpoint = SyncCheckpoint.model_validate_json(raw)
        except ValidationError as e:
            log.warning("invalid_checkpoint_ignored", path=str(self._path), error=str(e))
            return None

        log.info(
            "checkpoint_loaded",
            full_sync_completed=checkpoint.full_sync_completed,
            last_synced_at=checkpoint.last_synced_at,
        )
        return checkpoint

    def save(self, checkpoint: SyncCheckpoint) -> None:
        """
        Write the checkpoint atomically (temp file then rename).

        Raises:
            TransientStoreError: If the file cannot be written
        """
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(checkpoint.model_dump_json())
                os.replace(tmp_path, self._path)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            log.error("failed_to_save_checkpoint", path=str(self._path), error=str(e))
            raise TransientStoreError(f"Failed to save checkpoint: {e}", operation="save") from e

        log.debug(
            "checkpoint_saved",
            full_sync_completed=checkpoint.full_sync_completed,
            last_synced_at=checkpoint.last_synced_at,
        )
