"""Shared fixtures: deterministic clock and failure-injecting stores."""

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from recordsync.models.record import Record, RecordId
from recordsync.storage.memory_store import MemorySourceStore, MemoryTargetStore
from recordsync.storage.record_store import QueryFilter, SortOrder, SourceStore, TargetStore
from recordsync.utils.errors import TransientStoreError

EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeClock:
    """Returns the current fake time and then moves it forward by ``step``."""

    def __init__(self, start: datetime = EPOCH, step: timedelta = timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now += self.step
        return current

    def advance(self, delta: timedelta) -> None:
        self.now += delta


class FlakyTarget(TargetStore):
    """Target that fails the next ``failures`` upserts, then delegates."""

    def __init__(self, target: TargetStore | None = None, failures: int = 0):
        self.target = target or MemoryTargetStore()
        self.failures = failures
        self.calls = 0

    def upsert(self, record_id: RecordId, record: Record) -> bool:
        self.calls += 1
        if self.failures > 0:
            self.failures -= 1
            raise TransientStoreError("target unavailable", operation="upsert")
        return self.target.upsert(record_id, record)


class FlakySource(SourceStore):
    """Source that fails the next ``failures`` reads with ``error``, then delegates."""

    def __init__(self, source: SourceStore, failures: int = 0, error: Exception | None = None):
        self.source = source
        self.failures = failures
        self.error = error or TransientStoreError("source unavailable", operation="find")

    def find(
        self,
        query_filter: QueryFilter | None = None,
        sort: SortOrder | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        if self.failures > 0:
            self.failures -= 1
            raise self.error
        return self.source.find(query_filter=query_filter, sort=sort, limit=limit)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def source(clock: FakeClock) -> MemorySourceStore:
    return MemorySourceStore(clock=clock)


@pytest.fixture
def target() -> MemoryTargetStore:
    return MemoryTargetStore()


@pytest.fixture
def sleeps() -> list[float]:
    """Records backoff delays instead of sleeping."""
    return []


@pytest.fixture
def fake_sleep(sleeps: list[float]):
    return sleeps.append


@pytest.fixture
def make_clock():
    return FakeClock


@pytest.fixture
def make_flaky_target():
    return FlakyTarget


@pytest.fixture
def make_flaky_source():
    return FlakySource
