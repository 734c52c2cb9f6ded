"""Watermark-based incremental synchronization."""

from datetime import datetime, timedelta

import structlog

from recordsync.models.record import UPDATED_AT_KEY
from recordsync.storage.record_store import (
    FilterOperator,
    QueryFilter,
    SortOrder,
    SourceStore,
    TargetStore,
)
from recordsync.sync.models import DeltaResult
from recordsync.sync.observer import SyncObserver
from recordsync.sync.record_applier import RecordApplier
from recordsync.utils.errors import ConfigurationError

log = structlog.stdlib.get_logger()


class DeltaSyncer:
    """Re-applies records whose ``updated_at`` is newer than a watermark.

    The query reaches ``overlap_window`` behind the watermark so that writes
    stamped right at the previous boundary are picked up again. Re-delivery is
    harmless because target writes are upserts. Hard deletes in the source are
    not visible to this query.
    """

    def __init__(
        self,
        source: SourceStore,
        target: TargetStore,
        observer: SyncObserver | None = None,
    ):
        """
        Initialize the delta syncer.

        Args:
            source: Store to read from
            target: Store to upsert into
            observer: Receives delta results and malformed records
        """
        self._observer = observer or SyncObserver()
        self._applier = RecordApplier(source, target, self._observer)

    def sync_since(
        self, watermark: datetime, overlap_window: timedelta = timedelta(0)
    ) -> DeltaResult:
        """
        Copy every record changed after ``watermark - overlap_window``.

        Args:
            watermark: Timestamp below which the target is known to be current
            overlap_window: Backward extension of the query boundary

        Returns:
            DeltaResult with the changed records and the watermark to adopt.
            ``new_watermark`` is never lower than ``watermark``.

        Raises:
            ConfigurationError: If overlap_window is negative
            TransientStoreError: If the read or a write fails. No watermark is
                produced and the same window is re-queried next cycle.
        """
        if overlap_window < timedelta(0):
            raise ConfigurationError(f"Overlap window must not be negative, got {overlap_window}")

        since = watermark - overlap_window
        documents = self._applier.read(
            QueryFilter(field=UPDATED_AT_KEY, operator=FilterOperator.GT, value=since),
            SortOrder(field=UPDATED_AT_KEY, descending=False),
        )

        outcome = self._applier.apply(documents)

        new_watermark = max([watermark] + [record.updated_at for record in outcome.records])

        result = DeltaResult(
            changed=outcome.records,
            since=since,
            previous_watermark=watermark,
            new_watermark=new_watermark,
            inserted=outcome.inserted,
            replaced=outcome.replaced,
            skipped=outcome.skipped,
            errors=outcome.errors,
        )

        if result.has_changes or result.skipped:
            log.info(
                "delta_synced",
                since=since,
                previous_watermark=watermark,
                new_watermark=new_watermark,
                inserted=result.inserted,
                replaced=result.replaced,
                skipped=result.skipped,
            )
        else:
            log.debug("delta_no_changes", since=since, watermark=watermark)

        self._applier.report(outcome)
        self._observer.on_delta_synced(result)
        return result
