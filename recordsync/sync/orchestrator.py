"""Synchronization orchestrator: full sync once, then fixed-delay delta polling."""

import threading
import time
from datetime import datetime
from typing import Callable

import structlog

from recordsync.models.config import RetryConfig, SyncConfig
from recordsync.storage.record_store import SourceStore, TargetStore
from recordsync.sync.checkpoint_store import CheckpointStore, MemoryCheckpointStore
from recordsync.sync.delta_syncer import DeltaSyncer
from recordsync.sync.models import (
    DeltaResult,
    PageCursor,
    PageResult,
    SyncCheckpoint,
    SyncPhase,
    SyncState,
)
from recordsync.sync.observer import SyncObserver
from recordsync.sync.paginated_syncer import PaginatedSyncer
from recordsync.utils.errors import ConfigurationError, TransientStoreError
from recordsync.utils.retry import exponential_backoff_retry
from recordsync.utils.timeutil import utc_now

log = structlog.stdlib.get_logger()


class SyncOrchestrator:
    """Decides between full and delta sync and drives the polling loop.

    Phases move ``UNINITIALIZED -> FULL_SYNC -> STEADY_STATE``, or straight to
    ``STEADY_STATE`` when the checkpoint records a completed full sync. Nothing
    moves back to ``FULL_SYNC`` except ``request_full_sync``.

    Every cycle runs under one lock, so a page and a delta cycle never write
    to the target at the same time. The orchestrator owns the cursor and the
    watermark; syncers only return new values.
    """

    def __init__(
        self,
        source: SourceStore,
        target: TargetStore,
        config: SyncConfig | None = None,
        retry_config: RetryConfig | None = None,
        checkpoint_store: CheckpointStore | None = None,
        observer: SyncObserver | None = None,
        clock: Callable[[], datetime] = utc_now,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the orchestrator.

        Args:
            source: Read-only store to copy from
            target: Write-only store to copy into
            config: Batch size, poll interval, overlap window and sort key
            retry_config: Backoff applied to failed pages and delta windows
            checkpoint_store: Persistence for the watermark (in memory if None)
            observer: Receives per-cycle results and failures
            clock: Function returning the current time
            sleep: Function used for backoff waits between retries
        """
        self._config = config or SyncConfig()
        self._retry_config = retry_config or RetryConfig()
        self._checkpoint_store = checkpoint_store or MemoryCheckpointStore()
        self._observer = observer or SyncObserver()
        self._clock = clock
        self._sleep = sleep

        self._paginated = PaginatedSyncer(
            source,
            target,
            sort_key=self._config.sort_key,
            observer=self._observer,
            clock=clock,
        )
        self._delta = DeltaSyncer(source, target, observer=self._observer)

        self._state = SyncState()
        self._last_watermark: datetime | None = None
        self._full_sync_pages = 0
        self._full_sync_requested = False
        self._cycle = 0

        self._guard = threading.Lock()
        self._stop_event = threading.Event()

        log.info("sync_orchestrator_initialized", sort_key=self._config.sort_key)

    @property
    def state(self) -> SyncState:
        return self._state.model_copy()

    @property
    def phase(self) -> SyncPhase:
        return self._state.phase

    @property
    def watermark(self) -> datetime | None:
        return self._state.watermark

    @property
    def cursor(self) -> PageCursor | None:
        return self._state.cursor

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def start(self) -> SyncState:
        """
        Validate configuration and load the checkpoint to pick the first phase.

        Calling this is optional; ``run_cycle`` initializes on first use.

        Returns:
            The state after initialization

        Raises:
            ConfigurationError: If the configuration is invalid
            TransientStoreError: If the checkpoint cannot be loaded after retries
        """
        self._validate_config()
        with self._guard:
            if self._state.phase is SyncPhase.UNINITIALIZED:
                self._with_retry(self._initialize)()
        return self.state

    def run(self, max_cycles: int | None = None) -> int:
        """
        Run cycles until stopped.

        Full-sync pages run back to back. After a delta cycle, or after any
        failed cycle, the loop waits ``poll_interval`` measured from the end of
        that cycle. A stop signal is honoured between cycles and cuts the wait
        short; an in-flight cycle always completes. A stopped orchestrator
        stays stopped.

        Args:
            max_cycles: Optional cap on the number of cycles to run

        Returns:
            Number of cycles run

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        self._validate_config()

        log.info(
            "orchestrator_started",
            batch_size=self._config.batch_size,
            poll_interval_ms=self._config.poll_interval_ms,
            overlap_window_ms=self._config.overlap_window_ms,
            max_cycles=max_cycles,
        )

        cycles = 0
        while not self._stop_event.is_set():
            result = self.run_cycle()
            cycles += 1

            if max_cycles is not None and cycles >= max_cycles:
                break

            if isinstance(result, PageResult) and self._state.phase is SyncPhase.FULL_SYNC:
                continue

            self._stop_event.wait(self._config.poll_interval)

        log.info("orchestrator_stopped", cycles=cycles, phase=self._state.phase.value)
        return cycles

    def run_cycle(self) -> PageResult | DeltaResult | None:
        """
        Run one full-sync page or one delta cycle.

        Transient store errors are retried with exponential backoff. If the
        retries run out, the cycle is abandoned without advancing the cursor
        or watermark and the failure goes to the observer.

        Returns:
            The page or delta result, or None if the cycle failed

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        with self._guard:
            self._cycle += 1
            structlog.contextvars.bind_contextvars(sync_cycle=self._cycle)
            phase = self._state.phase

            try:
                if self._full_sync_requested:
                    self._full_sync_requested = False
                    self._enter_full_sync()

                if self._state.phase is SyncPhase.UNINITIALIZED:
                    self._with_retry(self._initialize)()

                phase = self._state.phase
                if phase is SyncPhase.FULL_SYNC:
                    return self._full_sync_step()
                return self._delta_step()

            except ConfigurationError:
                raise
            except TransientStoreError as e:
                log.warning("sync_cycle_failed", phase=phase.value, error=str(e))
                self._observer.on_cycle_failed(phase, e)
                return None
            except Exception as e:
                log.exception("sync_cycle_crashed", phase=phase.value, error=str(e))
                self._observer.on_cycle_failed(phase, e)
                return None
            finally:
                structlog.contextvars.unbind_contextvars("sync_cycle")

    def stop(self) -> None:
        """Ask the loop to exit after the in-flight cycle."""
        log.info("orchestrator_stop_requested", phase=self._state.phase.value)
        self._stop_event.set()

    def request_full_sync(self) -> None:
        """Restart from a fresh full sync at the next cycle.

        The watermark is kept; when the new pass completes it becomes the later
        of the old watermark and the new pass start time.
        """
        log.info("full_sync_requested", phase=self._state.phase.value)
        self._full_sync_requested = True

    def _validate_config(self) -> None:
        problems = []
        if self._config.batch_size <= 0:
            problems.append(f"batch_size must be greater than 0, got {self._config.batch_size}")
        if self._config.poll_interval_ms <= 0:
            problems.append(
                f"poll_interval_ms must be greater than 0, got {self._config.poll_interval_ms}"
            )
        if self._config.overlap_window_ms < 0:
            problems.append(
                f"overlap_window_ms must not be negative, got {self._config.overlap_window_ms}"
            )

        if problems:
            log.error("orchestrator_configuration_invalid", problems=problems)
            raise ConfigurationError("; ".join(problems))

    def _with_retry(self, func: Callable) -> Callable:
        return exponential_backoff_retry(
            max_retries=self._retry_config.max_retries,
            base_delay=self._retry_config.base_delay,
            max_delay=self._retry_config.max_delay,
            exceptions=(TransientStoreError,),
            sleep=self._sleep,
        )(func)

    def _initialize(self) -> None:
        checkpoint = self._checkpoint_store.load()

        if checkpoint and checkpoint.full_sync_completed and checkpoint.last_synced_at:
            log.info("resuming_from_checkpoint", watermark=checkpoint.last_synced_at)
            self._last_watermark = checkpoint.last_synced_at
            self._enter_steady_state(checkpoint.last_synced_at)
        else:
            self._enter_full_sync()

    def _enter_full_sync(self) -> None:
        started_at = self._clock()
        self._full_sync_pages = 0
        self._state = SyncState(
            phase=SyncPhase.FULL_SYNC,
            cursor=PageCursor(),
            full_sync_started_at=started_at,
        )
        log.info("full_sync_started", started_at=started_at)

    def _enter_steady_state(self, watermark: datetime) -> None:
        self._state = SyncState(phase=SyncPhase.STEADY_STATE, watermark=watermark)

    def _full_sync_step(self) -> PageResult:
        result = self._with_retry(self._paginated.sync_page)(
            self._config.batch_size, self._state.cursor
        )
        self._full_sync_pages += 1

        if result.has_more:
            self._state = self._state.model_copy(update={"cursor": result.next_cursor})
        else:
            self._complete_full_sync()

        return result

    def _complete_full_sync(self) -> None:
        # Writes made during the pass are newer than its start time.
        watermark = self._state.full_sync_started_at
        if self._last_watermark is not None:
            watermark = max(watermark, self._last_watermark)

        self._with_retry(self._checkpoint_store.save)(
            SyncCheckpoint(full_sync_completed=True, last_synced_at=watermark)
        )

        self._last_watermark = watermark
        self._enter_steady_state(watermark)

        log.info("full_sync_completed", pages=self._full_sync_pages, watermark=watermark)
        self._observer.on_full_sync_completed(self._full_sync_pages)

    def _delta_step(self) -> DeltaResult:
        watermark = self._state.watermark
        result = self._with_retry(self._delta.sync_since)(watermark, self._config.overlap_window)

        if result.new_watermark > watermark:
            self._with_retry(self._checkpoint_store.save)(
                SyncCheckpoint(full_sync_completed=True, last_synced_at=result.new_watermark)
            )

        self._last_watermark = result.new_watermark
        self._state = self._state.model_copy(update={"watermark": result.new_watermark})
        return result
