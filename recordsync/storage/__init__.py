"""Record store interfaces and implementations"""

from recordsync.storage.event_sink import EventSinkTarget
from recordsync.storage.memory_store import MemorySourceStore, MemoryTargetStore
from recordsync.storage.record_store import (
    FilterOperator,
    QueryFilter,
    SortOrder,
    SourceStore,
    TargetStore,
)

__all__ = [
    "EventSinkTarget",
    "FilterOperator",
    "MemorySourceStore",
    "MemoryTargetStore",
    "QueryFilter",
    "SortOrder",
    "SourceStore",
    "TargetStore",
]
