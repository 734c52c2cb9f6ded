"""Source and target store interfaces consumed by the sync engine."""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from recordsync.models.record import Record, RecordId

_DATETIME = TypeAdapter(datetime)

# Rank of each orderable kind; lower ranks sort first
_NUMBER_RANK = 0
_STRING_RANK = 1
_DATETIME_RANK = 2


def ordering_key(value: Any) -> tuple[int, Any] | None:
    """Return a sort key for a document value, or None if the value has no order.

    Values of different kinds never compare directly: numbers sort before
    strings and strings before timestamps. Naive timestamps are treated as UTC.
    """
    if isinstance(value, (int, float)):
        return (_NUMBER_RANK, value)
    if isinstance(value, str):
        return (_STRING_RANK, value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return (_DATETIME_RANK, value)
    return None


class FilterOperator(str, Enum):
    """Comparison operators a source store must support."""

    LT = "lt"
    GT = "gt"
    # Field is missing or holds a value with no ordering
    UNORDERED = "unordered"


class QueryFilter(BaseModel):
    """Single-field comparison filter, e.g. ``id < 42`` or ``updated_at > t``."""

    field: str = Field(default=..., description="Document key to compare")
    operator: FilterOperator = Field(default=..., description="Comparison operator")
    value: Any = Field(default=None, description="Value to compare against")

    def matches(self, document: Mapping[str, Any]) -> bool:
        """Evaluate the filter against a document.

        Documents whose field is missing or unorderable only match ``UNORDERED``.
        ISO strings are read as timestamps when compared against a timestamp.
        """
        key = self._document_key(document)
        if self.operator is FilterOperator.UNORDERED:
            return key is None

        bound = ordering_key(self.value)
        if key is None or bound is None:
            return False
        if self.operator is FilterOperator.LT:
            return key < bound
        return key > bound

    def _document_key(self, document: Mapping[str, Any]) -> tuple[int, Any] | None:
        value = document.get(self.field)
        if isinstance(value, str) and isinstance(self.value, datetime):
            try:
                value = _DATETIME.validate_python(value)
            except ValidationError:
                return None
        return ordering_key(value)


class SortOrder(BaseModel):
    """Sort order for ``SourceStore.find``."""

    field: str = Field(default=..., description="Document key to sort by")
    descending: bool = Field(default=True)


class SourceStore(ABC):
    """Read-only access to the store records are copied from.

    Implementations raise ``TransientStoreError`` for read failures.
    """

    @abstractmethod
    def find(
        self,
        query_filter: QueryFilter | None = None,
        sort: SortOrder | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Return documents matching the filter, in the requested order.

        Documents whose sort field is missing or unorderable come last.

        Args:
            query_filter: Optional comparison filter
            sort: Optional sort order
            limit: Maximum number of documents to return

        Returns:
            List of flat documents (id, created_at, updated_at plus fields)
        """
        pass


class TargetStore(ABC):
    """Write-only access to the store records are copied into.

    Implementations raise ``TransientStoreError`` for write failures.
    """

    @abstractmethod
    def upsert(self, record_id: RecordId, record: Record) -> bool:
        """Insert the record if absent, replace it if present.

        Args:
            record_id: Identifier to key the write on
            record: Record to store

        Returns:
            True if an existing record was replaced, False if inserted
        """
        pass
