"""Property-based tests for watermark-based delta synchronization.

Properties covered: delta correctness, watermark monotonicity, overlap safety
and failure semantics.
"""

from datetime import datetime, timedelta, timezone

import pytest
import structlog
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from recordsync.storage.memory_store import MemorySourceStore, MemoryTargetStore
from recordsync.sync.delta_syncer import DeltaSyncer
from recordsync.sync.observer import StatsObserver
from recordsync.sync.paginated_syncer import PaginatedSyncer
from recordsync.utils.errors import ConfigurationError, TransientStoreError

log = structlog.stdlib.get_logger()


class TestDeltaCorrectness:
    """Property: a record updated after the watermark is re-applied exactly once."""

    @given(
        record_count=st.integers(min_value=1, max_value=20),
        data=st.data(),
    )
    @settings(
        max_examples=100, suppress_health_check=[HealthCheck.function_scoped_fixture], deadline=None
    )
    def test_updated_record_included_once(self, make_clock, record_count: int, data):
        clock = make_clock()
        source = MemorySourceStore(clock=clock)
        target = MemoryTargetStore()
        documents = [source.insert({"n": i}) for i in range(record_count)]
        PaginatedSyncer(source, target).sync_all(5)

        watermark = clock()
        chosen = data.draw(st.sampled_from(documents))
        source.update({"id": chosen["id"]}, {"n": -1})
        updated_at = source.find_one({"id": chosen["id"]})["updated_at"]

        result = DeltaSyncer(source, target).sync_since(watermark, timedelta(0))

        changed_ids = [record.id for record in result.changed]
        assert changed_ids.count(chosen["id"]) == 1
        assert result.new_watermark >= updated_at
        assert target.get(chosen["id"]).fields == {"n": -1}

    def test_scenario_after_full_sync(self, clock, source, target):
        """B modified after the full sync is picked up; A and C may be re-delivered."""
        t0 = clock()
        a = source.insert({"name": "A"})
        b = source.insert({"name": "B"})
        c = source.insert({"name": "C"})
        PaginatedSyncer(source, target).sync_all(2)

        source.update({"name": "B"}, {"owner": "test4"})
        t4 = source.find_one({"name": "B"})["updated_at"]

        result = DeltaSyncer(source, target).sync_since(t0, timedelta(0))

        assert {record.id for record in result.changed} == {a["id"], b["id"], c["id"]}
        assert result.new_watermark == t4
        assert target.get(b["id"]).fields["owner"] == "test4"
        assert len(target) == 3

    def test_only_changed_record_when_watermark_is_current(self, clock, source, target):
        source.insert({"name": "A"})
        source.insert({"name": "B"})
        c = source.insert({"name": "C"})
        PaginatedSyncer(source, target).sync_all(2)

        source.update({"name": "B"}, {"owner": "test4"})

        result = DeltaSyncer(source, target).sync_since(c["updated_at"], timedelta(0))

        assert [record.fields["name"] for record in result.changed] == ["B"]
        assert result.replaced == 1
        assert result.inserted == 0

    def test_record_absent_from_target_is_inserted(self, clock, source, target):
        watermark = clock()
        source.insert({"name": "late"})

        result = DeltaSyncer(source, target).sync_since(watermark)

        assert result.inserted == 1
        assert result.replaced == 0
        assert len(target) == 1


class TestWatermarkMonotonicity:
    """Property: new_watermark never decreases, including cycles with no changes."""

    @given(
        operations=st.lists(
            st.sampled_from(["insert", "update", "sync", "idle"]), min_size=1, max_size=30
        ),
        overlap_seconds=st.integers(min_value=0, max_value=5),
    )
    @settings(
        max_examples=100, suppress_health_check=[HealthCheck.function_scoped_fixture], deadline=None
    )
    def test_watermark_sequence_is_non_decreasing(
        self, make_clock, operations: list[str], overlap_seconds: int
    ):
        clock = make_clock()
        source = MemorySourceStore(clock=clock)
        syncer = DeltaSyncer(source, MemoryTargetStore())
        overlap = timedelta(seconds=overlap_seconds)
        watermark = clock()
        history = [watermark]

        for index, operation in enumerate(operations):
            if operation == "insert":
                source.insert({"step": index})
            elif operation == "update" and len(source):
                source.update({"id": 1}, {"step": index})
            elif operation == "idle":
                clock.advance(timedelta(seconds=2))
            else:
                watermark = syncer.sync_since(watermark, overlap).new_watermark
                history.append(watermark)

        assert history == sorted(history)

    def test_no_changes_keeps_watermark(self, clock, source, target):
        source.insert({"name": "A"})
        watermark = clock.now + timedelta(hours=1)

        result = DeltaSyncer(source, target).sync_since(watermark, timedelta(seconds=3))

        assert result.changed == []
        assert result.new_watermark == watermark


class TestOverlapSafety:
    """Property: a write stamped inside the overlap window is still captured."""

    @given(overlap_ms=st.integers(min_value=2, max_value=60_000))
    @settings(
        max_examples=100, suppress_health_check=[HealthCheck.function_scoped_fixture], deadline=None
    )
    def test_write_half_a_window_behind_watermark_is_captured(self, make_clock, overlap_ms: int):
        clock = make_clock()
        source = MemorySourceStore(clock=clock)
        document = source.insert({"name": "edge"})
        overlap = timedelta(milliseconds=overlap_ms)
        watermark = document["updated_at"] + overlap / 2

        result = DeltaSyncer(source, MemoryTargetStore()).sync_since(watermark, overlap)

        assert [record.id for record in result.changed] == [document["id"]]
        assert result.since == watermark - overlap
        assert result.new_watermark == watermark

    def test_write_at_watermark_missed_without_overlap(self, source, target):
        document = source.insert({"name": "edge"})

        result = DeltaSyncer(source, target).sync_since(document["updated_at"], timedelta(0))

        assert result.changed == []

    def test_negative_overlap_is_a_configuration_error(self, clock, source, target):
        with pytest.raises(ConfigurationError):
            DeltaSyncer(source, target).sync_since(clock(), timedelta(seconds=-1))


class TestDeltaFailures:
    """A failed batch produces no watermark; the same window replays next time."""

    def test_failed_write_then_replay(self, clock, source, make_flaky_target):
        watermark = clock()
        source.insert({"name": "A"})
        source.insert({"name": "B"})
        target = make_flaky_target(failures=1)
        syncer = DeltaSyncer(source, target)

        with pytest.raises(TransientStoreError):
            syncer.sync_since(watermark)

        result = syncer.sync_since(watermark)

        assert len(result.changed) == 2
        assert len(target.target) == 2

    def test_malformed_record_does_not_block_batch(self, clock, source, target):
        watermark = clock()
        source.insert({"name": "good"})
        source.put_document({"name": "no-id", "updated_at": clock()})

        result = DeltaSyncer(source, target).sync_since(watermark)

        assert [record.fields["name"] for record in result.changed] == ["good"]
        assert result.skipped == 1
        assert len(target) == 1

    def test_naive_and_string_timestamps_do_not_block_batch(self, clock, source, target):
        """Imported documents with naive or ISO-string timestamps sync next to valid ones."""
        watermark = clock.now - timedelta(days=1)
        valid = source.insert({"name": "valid"})
        source.put_document({"id": 99, "name": "naive", "updated_at": datetime(2024, 6, 1)})
        source.put_document({"id": 98, "name": "iso", "updated_at": "2024-06-02T00:00:00Z"})
        source.put_document({"id": 97, "name": "unorderable", "updated_at": ["not", "a", "time"]})

        result = DeltaSyncer(source, target).sync_since(watermark)

        assert {record.id for record in result.changed} == {valid["id"], 98, 99}
        assert result.new_watermark == datetime(2024, 6, 2, tzinfo=timezone.utc)
        assert target.get(99).updated_at == datetime(2024, 6, 1, tzinfo=timezone.utc)

    def test_malformed_record_reported_once_after_retry(self, clock, source, make_flaky_target):
        watermark = clock()
        source.put_document({"name": "no-id", "updated_at": clock()})
        source.put_document({"id": 5, "name": "valid", "updated_at": clock()})
        stats = StatsObserver()
        syncer = DeltaSyncer(source, make_flaky_target(failures=1), observer=stats)

        with pytest.raises(TransientStoreError):
            syncer.sync_since(watermark)
        assert stats.malformed_records == []

        syncer.sync_since(watermark)

        assert len(stats.malformed_records) == 1
