"""Sample data helpers for exercising the synchronizer against in-memory stores."""

import time
from typing import Any, Callable

import structlog

from recordsync.storage.memory_store import MemorySourceStore

log = structlog.stdlib.get_logger()

SAMPLE_RECORDS: list[dict[str, Any]] = [
    {"name": "GE", "owner": "test", "amount": 1000000},
    {"name": "Exxon", "owner": "test2", "amount": 5000000},
    {"name": "Google", "owner": "test3", "amount": 5000001},
]


def load_sample_records(
    source: MemorySourceStore,
    pause: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    Insert the sample records into the source store.

    Args:
        source: Store to seed
        pause: Seconds to wait between inserts so timestamps differ
        sleep: Function used to wait

    Returns:
        Number of records inserted
    """
    for index, fields in enumerate(SAMPLE_RECORDS):
        if index and pause:
            sleep(pause)
        source.insert(fields)

    log.info("sample_records_loaded", count=len(SAMPLE_RECORDS))
    return len(SAMPLE_RECORDS)


def touch_record(source: MemorySourceStore, name: str, owner: str = "test4") -> int:
    """Change the owner of the named record, bumping its updated_at."""
    updated = source.update({"name": name}, {"owner": owner})
    log.info("record_touched", name=name, owner=owner, updated=updated)
    return updated


def read_record(source: MemorySourceStore, name: str) -> dict[str, Any] | None:
    """Print the named record to stdout for inspection."""
    document = source.find_one({"name": name})
    print(document)
    return document
