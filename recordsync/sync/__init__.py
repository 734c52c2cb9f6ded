"""Full-sync, delta-sync and orchestration components."""

from recordsync.sync.checkpoint_store import (
    CheckpointStore,
    JsonFileCheckpointStore,
    MemoryCheckpointStore,
)
from recordsync.sync.delta_syncer import DeltaSyncer
from recordsync.sync.models import (
    DeltaResult,
    FullSyncResult,
    PageCursor,
    PageResult,
    SyncCheckpoint,
    SyncPhase,
    SyncState,
)
from recordsync.sync.observer import StatsObserver, SyncObserver
from recordsync.sync.orchestrator import SyncOrchestrator
from recordsync.sync.paginated_syncer import PaginatedSyncer

__all__ = [
    "CheckpointStore",
    "DeltaResult",
    "DeltaSyncer",
    "FullSyncResult",
    "JsonFileCheckpointStore",
    "MemoryCheckpointStore",
    "PageCursor",
    "PageResult",
    "PaginatedSyncer",
    "StatsObserver",
    "SyncCheckpoint",
    "SyncObserver",
    "SyncOrchestrator",
    "SyncPhase",
    "SyncState",
]
