"""In-memory record stores.

The source store behaves like a timestamped document datastore: ids are
assigned in increasing insertion order, ``created_at``/``updated_at`` are set
on insert, and ``updated_at`` is bumped on every update.
"""

import copy
import itertools
from datetime import datetime
from typing import Any, Callable, Mapping

import structlog

from recordsync.models.record import (
    CREATED_AT_KEY,
    ID_KEY,
    UPDATED_AT_KEY,
    Record,
    RecordId,
)
from recordsync.storage.record_store import (
    QueryFilter,
    SortOrder,
    SourceStore,
    TargetStore,
    ordering_key,
)
from recordsync.utils.timeutil import utc_now

log = structlog.stdlib.get_logger()


class MemorySourceStore(SourceStore):
    """Source store backed by a dict of documents."""

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        """
        Initialize an empty source store.

        Args:
            clock: Function returning the timestamp assigned on writes
        """
        self._clock = clock
        self._documents: dict[RecordId, dict[str, Any]] = {}
        self._ids = itertools.count(1)

    def insert(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Insert a new document, assigning its id and timestamps.

        Returns:
            Copy of the stored document
        """
        now = self._clock()
        document = copy.deepcopy(dict(fields))
        document[ID_KEY] = next(self._ids)
        document[CREATED_AT_KEY] = now
        document[UPDATED_AT_KEY] = now
        self._documents[document[ID_KEY]] = document

        log.debug("source_document_inserted", record_id=document[ID_KEY])
        return copy.deepcopy(document)

    def put_document(self, document: Mapping[str, Any]) -> None:
        """Store a document verbatim, without assigning id or timestamps.

        Used to import pre-existing data, including documents that lack
        required keys.
        """
        stored = copy.deepcopy(dict(document))
        key = stored.get(ID_KEY)
        if key is None:
            # Keyless documents still need a slot; they are never findable by id.
            key = f"__keyless_{len(self._documents)}"
        self._documents[key] = stored

    def update(self, match: Mapping[str, Any], set_fields: Mapping[str, Any]) -> int:
        """Set fields on every document whose keys equal ``match``.

        Returns:
            Number of documents updated
        """
        now = self._clock()
        updated = 0
        for document in self._documents.values():
            if all(document.get(key) == value for key, value in match.items()):
                document.update(copy.deepcopy(dict(set_fields)))
                document[UPDATED_AT_KEY] = now
                updated += 1

        log.debug("source_documents_updated", match=dict(match), updated=updated)
        return updated

    def find_one(self, match: Mapping[str, Any]) -> dict[str, Any] | None:
        """Return the first document whose keys equal ``match``, or None."""
        for document in self._documents.values():
            if all(document.get(key) == value for key, value in match.items()):
                return copy.deepcopy(document)
        return None

    def find(
        self,
        query_filter: QueryFilter | None = None,
        sort: SortOrder | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        documents = [
            document
            for document in self._documents.values()
            if query_filter is None or query_filter.matches(document)
        ]

        if sort is not None:
            # Documents missing the sort field, or holding an unorderable value,
            # go last in either direction.
            keyed = [(ordering_key(d.get(sort.field)), d) for d in documents]
            present = [(key, d) for key, d in keyed if key is not None]
            absent = [d for key, d in keyed if key is None]
            present.sort(key=lambda item: item[0], reverse=sort.descending)
            documents = [d for _, d in present] + absent

        if limit is not None:
            documents = documents[:limit]

        return [copy.deepcopy(document) for document in documents]

    def __len__(self) -> int:
        return len(self._documents)


class MemoryTargetStore(TargetStore):
    """Target store backed by a dict keyed by record id."""

    def __init__(self) -> None:
        self._records: dict[RecordId, Record] = {}

    def upsert(self, record_id: RecordId, record: Record) -> bool:
        replaced = record_id in self._records
        self._records[record_id] = record.model_copy(deep=True)
        return replaced

    def get(self, record_id: RecordId) -> Record | None:
        return self._records.get(record_id)

    def all(self) -> list[Record]:
        return list(self._records.values())

    def ids(self) -> set[RecordId]:
        return set(self._records.keys())

    def __len__(self) -> int:
        return len(self._records)
