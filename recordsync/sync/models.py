"""Data models for synchronization operations."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from recordsync.models.record import Record, RecordId


class SyncPhase(str, Enum):
    """Orchestrator phases."""

    UNINITIALIZED = "uninitialized"
    FULL_SYNC = "full_sync"
    STEADY_STATE = "steady_state"


class PageCursor(BaseModel):
    """Position within one full-sync pass.

    A ``None`` boundary means the start of the pass. Cursors are only
    meaningful within the pass that produced them and are never persisted.
    """

    boundary_id: RecordId | None = Field(
        default=None, description="Sort key of the last record handed to the target"
    )
    has_more: bool = Field(default=True, description="Whether another page remains")

    model_config = {"frozen": True}


class PageResult(BaseModel):
    """Outcome of one full-sync page."""

    records: list[Record] = Field(default_factory=list, description="Records written this page")
    next_cursor: PageCursor = Field(default=..., description="Cursor for the following page")
    records_read: int = Field(default=0, ge=0, description="Documents read, excluding the sentinel")
    inserted: int = Field(default=0, ge=0, description="Records new to the target")
    replaced: int = Field(default=0, ge=0, description="Records that replaced a target entry")
    skipped: int = Field(default=0, ge=0, description="Malformed documents skipped")
    errors: list[str] = Field(default_factory=list, description="Malformed record messages")

    @property
    def has_more(self) -> bool:
        return self.next_cursor.has_more

    @property
    def records_written(self) -> int:
        return self.inserted + self.replaced


class FullSyncResult(BaseModel):
    """Totals for a full-sync pass driven to exhaustion."""

    pages: int = Field(default=0, ge=0, description="Number of page calls made")
    inserted: int = Field(default=0, ge=0)
    replaced: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    started_at: datetime = Field(default=..., description="Pass start timestamp")
    completed_at: datetime = Field(default=..., description="Pass completion timestamp")
    errors: list[str] = Field(default_factory=list)

    @property
    def records_written(self) -> int:
        return self.inserted + self.replaced


class DeltaResult(BaseModel):
    """Outcome of one delta-sync cycle."""

    changed: list[Record] = Field(default_factory=list, description="Records re-applied")
    since: datetime = Field(default=..., description="Exclusive lower bound used for the query")
    previous_watermark: datetime = Field(default=..., description="Watermark passed in")
    new_watermark: datetime = Field(default=..., description="Watermark to adopt")
    inserted: int = Field(default=0, ge=0)
    replaced: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    errors: list[str] = Field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.changed)

    @property
    def records_written(self) -> int:
        return self.inserted + self.replaced


class SyncState(BaseModel):
    """Orchestrator-owned state: phase plus cursor or watermark."""

    phase: SyncPhase = Field(default=SyncPhase.UNINITIALIZED)
    cursor: PageCursor | None = Field(default=None, description="Valid only in FULL_SYNC")
    watermark: datetime | None = Field(default=None, description="Valid only in STEADY_STATE")
    full_sync_started_at: datetime | None = Field(
        default=None, description="Becomes the watermark when the pass completes"
    )


class SyncCheckpoint(BaseModel):
    """Persisted state needed to resume after a restart."""

    full_sync_completed: bool = Field(
        default=False, description="Whether a full sync has ever run to exhaustion"
    )
    last_synced_at: datetime | None = Field(default=None, description="Current watermark")

    model_config = {
        "json_schema_extra": {
            "example": {
                "full_sync_completed": True,
                "last_synced_at": "2024-01-15T14:30:00Z",
            }
        }
    }
