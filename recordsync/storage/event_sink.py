"""Target wrapper that emits one event per record written."""

import structlog

from recordsync.models.record import Record, RecordId
from recordsync.storage.record_store import TargetStore

log = structlog.stdlib.get_logger()


class EventSinkTarget(TargetStore):
    """Logs every record sent to the wrapped target, then forwards the upsert."""

    def __init__(self, target: TargetStore):
        """
        Initialize the event sink.

        Args:
            target: Target store that receives the writes
        """
        self._target = target
        self.events_sent = 0

    def upsert(self, record_id: RecordId, record: Record) -> bool:
        log.info(
            "event_being_sent",
            record_id=record_id,
            updated_at=record.updated_at,
            fields=record.fields,
        )
        replaced = self._target.upsert(record_id, record)
        self.events_sent += 1
        return replaced
