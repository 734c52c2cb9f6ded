"""Cursor-paginated full synchronization."""

from datetime import datetime
from typing import Callable

import structlog

from recordsync.models.record import ID_KEY
from recordsync.storage.record_store import (
    FilterOperator,
    QueryFilter,
    SortOrder,
    SourceStore,
    TargetStore,
    ordering_key,
)
from recordsync.sync.models import FullSyncResult, PageCursor, PageResult
from recordsync.sync.observer import SyncObserver
from recordsync.sync.record_applier import RecordApplier
from recordsync.utils.errors import ConfigurationError
from recordsync.utils.timeutil import utc_now

log = structlog.stdlib.get_logger()


class PaginatedSyncer:
    """Copies the source into the target one page at a time.

    Pages are ordered by ``sort_key`` descending. Each page asks for one more
    document than it keeps; the extra document only signals that another page
    exists. The cursor boundary is the sort key of the last kept document and
    the next page starts strictly below it, so no document is returned twice
    or skipped while sort keys stay stable.

    Documents whose sort key is missing or unorderable cannot be paged past.
    They are fetched in one extra query on the last page, so well-formed ones
    are still copied and malformed ones still reach the observer.
    """

    def __init__(
        self,
        source: SourceStore,
        target: TargetStore,
        sort_key: str = ID_KEY,
        observer: SyncObserver | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the paginated syncer.

        Args:
            source: Store to read from
            target: Store to upsert into
            sort_key: Stable, append-only field to paginate on
            observer: Receives page results and malformed records
            clock: Function returning the current time
        """
        self._sort_key = sort_key
        self._clock = clock
        self._observer = observer or SyncObserver()
        self._applier = RecordApplier(source, target, self._observer)

    def sync_page(self, limit: int, cursor: PageCursor | None = None) -> PageResult:
        """
        Copy one page of records into the target.

        The last page also carries every document without an orderable sort
        key, so it may hold more than ``limit`` records.

        Args:
            limit: Maximum number of records in the page
            cursor: Cursor returned by the previous page, or None to start

        Returns:
            PageResult with the records written and the next cursor

        Raises:
            ConfigurationError: If limit is not positive
            TransientStoreError: If the read or a write fails. The caller keeps
                its cursor and retries the same page.
        """
        if limit <= 0:
            raise ConfigurationError(f"Page limit must be greater than 0, got {limit}")

        cursor = cursor or PageCursor()
        query_filter = None
        if cursor.boundary_id is not None:
            query_filter = QueryFilter(
                field=self._sort_key, operator=FilterOperator.LT, value=cursor.boundary_id
            )

        documents = self._applier.read(
            query_filter, SortOrder(field=self._sort_key, descending=True), limit=limit + 1
        )

        ordered = [
            document
            for document in documents
            if ordering_key(document.get(self._sort_key)) is not None
        ]
        has_more = len(ordered) > limit
        documents = ordered[:limit]
        boundary_id = documents[-1][self._sort_key] if has_more else None
        if not has_more:
            documents += self._read_unordered()

        outcome = self._applier.apply(documents)

        result = PageResult(
            records=outcome.records,
            next_cursor=PageCursor(boundary_id=boundary_id, has_more=has_more),
            records_read=len(documents),
            inserted=outcome.inserted,
            replaced=outcome.replaced,
            skipped=outcome.skipped,
            errors=outcome.errors,
        )

        log.info(
            "page_synced",
            boundary_id=cursor.boundary_id,
            next_boundary_id=boundary_id,
            has_more=has_more,
            records_read=result.records_read,
            inserted=result.inserted,
            replaced=result.replaced,
            skipped=result.skipped,
        )
        self._applier.report(outcome)
        self._observer.on_page_synced(result)

        return result

    def sync_all(self, batch_size: int) -> FullSyncResult:
        """
        Drive ``sync_page`` until the source is exhausted.

        A source with N >= 1 records takes at most ceil(N / batch_size) pages.
        An empty source still takes one page to learn that it is empty.

        Any store error propagates; nothing here retries.

        Args:
            batch_size: Records per page

        Returns:
            FullSyncResult with totals for the pass
        """
        started_at = self._clock()
        cursor = PageCursor()
        pages = 0
        inserted = replaced = skipped = 0
        errors: list[str] = []

        while cursor.has_more:
            result = self.sync_page(batch_size, cursor)
            pages += 1
            inserted += result.inserted
            replaced += result.replaced
            skipped += result.skipped
            errors.extend(result.errors)
            cursor = result.next_cursor

        log.info("full_sync_pass_completed", pages=pages, inserted=inserted, replaced=replaced)

        return FullSyncResult(
            pages=pages,
            inserted=inserted,
            replaced=replaced,
            skipped=skipped,
            started_at=started_at,
            completed_at=self._clock(),
            errors=errors,
        )

    def _read_unordered(self) -> list[dict]:
        documents = self._applier.read(
            QueryFilter(field=self._sort_key, operator=FilterOperator.UNORDERED),
            SortOrder(field=ID_KEY, descending=True),
        )
        if documents:
            log.warning(
                "documents_without_sort_key",
                sort_key=self._sort_key,
                count=len(documents),
            )
        return documents

