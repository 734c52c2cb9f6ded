"""Pydantic model for records moved between the source and target stores."""

import copy
from datetime import datetime, timezone
from typing import Any, Mapping

from pydantic import BaseModel, Field, ValidationError, field_validator

from recordsync.utils.errors import MalformedRecordError

RecordId = int | str

# Keys a store document carries alongside the application fields
ID_KEY = "id"
CREATED_AT_KEY = "created_at"
UPDATED_AT_KEY = "updated_at"
RESERVED_KEYS = frozenset({ID_KEY, CREATED_AT_KEY, UPDATED_AT_KEY})


class Record(BaseModel):
    """A source record: stable id, opaque field payload and store timestamps."""

    id: RecordId = Field(default=..., description="Store-assigned, totally ordered identifier")
    fields: dict[str, Any] = Field(
        default_factory=dict, description="Application fields, copied verbatim"
    )
    created_at: datetime | None = Field(default=None, description="Store insert timestamp")
    updated_at: datetime = Field(default=..., description="Store last-write timestamp")

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": 3,
                "fields": {"name": "Google", "owner": "test3", "amount": 5000001},
                "created_at": "2024-01-15T14:30:00Z",
                "updated_at": "2024-01-15T14:30:00Z",
            }
        }
    }

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_timezone(cls, v: datetime | None) -> datetime | None:
        """Treat naive timestamps as UTC so watermark comparisons never mix kinds."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "Record":
        """Build a Record from a raw store document.

        Every key other than id/created_at/updated_at is treated as an
        application field and deep-copied.

        Args:
            document: Flat mapping as returned by a source store

        Returns:
            Record instance

        Raises:
            MalformedRecordError: If id or updated_at is missing or unparsable
        """
        missing = [key for key in (ID_KEY, UPDATED_AT_KEY) if document.get(key) is None]
        if missing:
            raise MalformedRecordError(
                f"Document missing required keys: {', '.join(missing)}",
                document=dict(document),
            )

        fields = {key: value for key, value in document.items() if key not in RESERVED_KEYS}

        try:
            return cls(
                id=document[ID_KEY],
                fields=copy.deepcopy(fields),
                created_at=document.get(CREATED_AT_KEY),
                updated_at=document[UPDATED_AT_KEY],
            )
        except ValidationError as e:
            raise MalformedRecordError(
                f"Document {document.get(ID_KEY)!r} has invalid id or timestamps: {e}",
                document=dict(document),
            ) from e

    def to_document(self) -> dict[str, Any]:
        """Flatten the record back into a store document."""
        document = copy.deepcopy(self.fields)
        document[ID_KEY] = self.id
        document[CREATED_AT_KEY] = self.created_at
        document[UPDATED_AT_KEY] = self.updated_at
        return document
