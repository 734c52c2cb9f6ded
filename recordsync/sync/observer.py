"""Observability hooks for the sync engine.

Syncers and the orchestrator report per-call results here instead of
keeping counters of their own; aggregation is the observer's job.
"""

from recordsync.sync.models import DeltaResult, PageResult, SyncPhase
from recordsync.utils.errors import MalformedRecordError


class SyncObserver:
    """No-op observer. Subclass and override the hooks you need."""

    def on_page_synced(self, result: PageResult) -> None:
        pass

    def on_full_sync_completed(self, pages: int) -> None:
        pass

    def on_delta_synced(self, result: DeltaResult) -> None:
        pass

    def on_malformed_record(self, error: MalformedRecordError) -> None:
        pass

    def on_cycle_failed(self, phase: SyncPhase, error: Exception) -> None:
        pass


class StatsObserver(SyncObserver):
    """Aggregates sync totals across cycles."""

    def __init__(self) -> None:
        self.pages_synced = 0
        self.full_syncs_completed = 0
        self.delta_cycles = 0
        self.records_inserted = 0
        self.records_replaced = 0
        self.failed_cycles = 0
        self.malformed_records: list[MalformedRecordError] = []

    @property
    def records_written(self) -> int:
        return self.records_inserted + self.records_replaced

    def on_page_synced(self, result: PageResult) -> None:
        self.pages_synced += 1
        self.records_inserted += result.inserted
        self.records_replaced += result.replaced

    def on_full_sync_completed(self, pages: int) -> None:
        self.full_syncs_completed += 1

    def on_delta_synced(self, result: DeltaResult) -> None:
        self.delta_cycles += 1
        self.records_inserted += result.inserted
        self.records_replaced += result.replaced

    def on_malformed_record(self, error: MalformedRecordError) -> None:
        self.malformed_records.append(error)

    def on_cycle_failed(self, phase: SyncPhase, error: Exception) -> None:
        self.failed_cycles += 1

    def summary(self) -> dict[str, int]:
        """Totals as a plain dict, for logging."""
        return {
            "pages_synced": self.pages_synced,
            "full_syncs_completed": self.full_syncs_completed,
            "delta_cycles": self.delta_cycles,
            "records_inserted": self.records_inserted,
            "records_replaced": self.records_replaced,
            "malformed_records": len(self.malformed_records),
            "failed_cycles": self.failed_cycles,
        }
