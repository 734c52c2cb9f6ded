"""Shared read, parse and upsert steps used by both syncers."""

from dataclasses import dataclass, field
from typing import Any

import structlog

from recordsync.models.record import ID_KEY, Record
from recordsync.storage.record_store import QueryFilter, SortOrder, SourceStore, TargetStore
from recordsync.sync.observer import SyncObserver
from recordsync.utils.errors import MalformedRecordError, TransientStoreError

log = structlog.stdlib.get_logger()


@dataclass
class ApplyOutcome:
    """Records written by one batch and the malformed documents skipped."""

    records: list[Record] = field(default_factory=list)
    inserted: int = 0
    replaced: int = 0
    malformed: list[MalformedRecordError] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.malformed)

    @property
    def errors(self) -> list[str]:
        return [str(error) for error in self.malformed]


class RecordApplier:
    """Reads documents from the source and upserts them into the target."""

    def __init__(self, source: SourceStore, target: TargetStore, observer: SyncObserver):
        self._source = source
        self._target = target
        self._observer = observer

    def read(
        self,
        query_filter: QueryFilter | None,
        sort: SortOrder,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Query the source.

        Raises:
            TransientStoreError: If the source read fails
        """
        try:
            return self._source.find(query_filter=query_filter, sort=sort, limit=limit)
        except TransientStoreError:
            log.warning("source_read_failed", sort_field=sort.field, limit=limit)
            raise
        except Exception as e:
            log.warning("source_read_failed", sort_field=sort.field, limit=limit, error=str(e))
            raise TransientStoreError(f"Source read failed: {e}", operation="find") from e

    def apply(self, documents: list[dict[str, Any]]) -> ApplyOutcome:
        """Parse documents and upsert the well-formed ones, in order.

        Malformed documents are skipped and collected in the outcome; they
        never block the rest of the batch. Pass the outcome to ``report``
        once the batch has been accepted.

        Raises:
            TransientStoreError: If a target write fails. Records before the
                failing one may already be written; replaying them is safe.
        """
        outcome = ApplyOutcome()

        for document in documents:
            try:
                record = Record.from_document(document)
            except MalformedRecordError as e:
                log.warning(
                    "malformed_record_skipped", record_id=document.get(ID_KEY), error=str(e)
                )
                outcome.malformed.append(e)
                continue

            if self._upsert(record):
                outcome.replaced += 1
            else:
                outcome.inserted += 1
            outcome.records.append(record)

        return outcome

    def report(self, outcome: ApplyOutcome) -> None:
        """Hand the malformed documents of an accepted batch to the observer.

        Called once per batch, so a batch that is retried is reported only
        for the attempt that succeeded.
        """
        for error in outcome.malformed:
            self._observer.on_malformed_record(error)

    def _upsert(self, record: Record) -> bool:
        try:
            return self._target.upsert(record.id, record)
        except TransientStoreError:
            log.warning("target_write_failed", record_id=record.id)
            raise
        except Exception as e:
            log.warning("target_write_failed", record_id=record.id, error=str(e))
            raise TransientStoreError(
                f"Target write failed for record {record.id!r}: {e}", operation="upsert"
            ) from e
