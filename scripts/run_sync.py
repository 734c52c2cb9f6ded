#!/usr/bin/env python3
"""
Run the record synchronizer against seeded in-memory stores.

This script:
- Seeds the source store with sample records
- Full-syncs them into the target in pages, then polls for changes
- Optionally modifies a record mid-run to show a delta cycle picking it up
- Prints a summary of what was written

Usage:
    python scripts/run_sync.py [--config CONFIG_PATH] [--cycles N] [--touch NAME]
                               [--touch-after N] [--full-sync]

Exit codes: 0 when source and target match, 1 when they differ, 2 for a
configuration error, 3 when a store stays unavailable after retries.
"""

import argparse
import sys

import structlog

from recordsync.demo import load_sample_records, read_record, touch_record
from recordsync.storage.event_sink import EventSinkTarget
from recordsync.storage.memory_store import MemorySourceStore, MemoryTargetStore
from recordsync.sync.checkpoint_store import JsonFileCheckpointStore, MemoryCheckpointStore
from recordsync.sync.observer import StatsObserver
from recordsync.sync.orchestrator import SyncOrchestrator
from recordsync.utils.config_loader import ConfigLoader
from recordsync.utils.errors import ConfigurationError, TransientStoreError
from recordsync.utils.logging_config import configure_logging_from_config

log = structlog.stdlib.get_logger()


def perform_sync(
    config_path: str | None = None,
    cycles: int = 10,
    touch: str | None = None,
    touch_after: int = 3,
    full_sync: bool = False,
) -> dict:
    """
    Seed the source, run the orchestrator and collect statistics.

    Args:
        config_path: Optional path to configuration file
        cycles: Total number of cycles to run
        touch: Name of a sample record to modify mid-run
        touch_after: Number of cycles to run before modifying the record
        full_sync: If True, force a full sync even if the checkpoint says one completed

    Returns:
        Dictionary with sync statistics
    """
    config_loader = ConfigLoader()
    config = config_loader.load_config(config_path)
    config_loader.validate_config(config)
    configure_logging_from_config(config.logging)

    source = MemorySourceStore()
    target = MemoryTargetStore()
    sink = EventSinkTarget(target)
    load_sample_records(source, pause=0.3)

    if config.state.checkpoint_path:
        checkpoint_store = JsonFileCheckpointStore(config.state.checkpoint_path)
    else:
        checkpoint_store = MemoryCheckpointStore()

    stats = StatsObserver()
    orchestrator = SyncOrchestrator(
        source,
        sink,
        config=config.sync,
        retry_config=config.retry,
        checkpoint_store=checkpoint_store,
        observer=stats,
    )
    orchestrator.start()
    if full_sync:
        orchestrator.request_full_sync()

    try:
        if touch:
            ran = orchestrator.run(max_cycles=min(touch_after, cycles))
            touch_record(source, touch)
            read_record(source, touch)
            if cycles > ran:
                orchestrator.run(max_cycles=cycles - ran)
        else:
            orchestrator.run(max_cycles=cycles)
    except KeyboardInterrupt:
        orchestrator.stop()

    summary = {
        "phase": orchestrator.phase.value,
        "watermark": orchestrator.watermark.isoformat() if orchestrator.watermark else None,
        "source_records": len(source),
        "target_records": len(target),
        "events_sent": sink.events_sent,
        **stats.summary(),
    }
    log.info("sync_run_completed", **summary)
    return summary


def main():
    """Main entry point for the sync runner."""
    parser = argparse.ArgumentParser(description="Run the record synchronizer")
    parser.add_argument("--config", type=str, help="Path to configuration file", default=None)
    parser.add_argument("--cycles", type=int, default=10, help="Number of cycles to run")
    parser.add_argument("--touch", type=str, default=None, help="Sample record name to modify")
    parser.add_argument(
        "--touch-after", type=int, default=3, help="Cycles to run before modifying the record"
    )
    parser.add_argument(
        "--full-sync",
        action="store_true",
        help="Force a full sync even if a checkpoint exists",
    )

    args = parser.parse_args()

    try:
        summary = perform_sync(
            config_path=args.config,
            cycles=args.cycles,
            touch=args.touch,
            touch_after=args.touch_after,
            full_sync=args.full_sync,
        )
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)
    except TransientStoreError as e:
        print(f"Store error: {e}", file=sys.stderr)
        sys.exit(3)

    print("\n" + "=" * 60)
    print("SYNCHRONIZATION SUMMARY")
    print("=" * 60)
    print(f"Phase: {summary['phase']}")
    print(f"Watermark: {summary['watermark']}")
    print(f"Source Records: {summary['source_records']}")
    print(f"Target Records: {summary['target_records']}")
    print(f"Events Sent: {summary['events_sent']}")
    print(f"Pages Synced: {summary['pages_synced']}")
    print(f"Delta Cycles: {summary['delta_cycles']}")
    print(f"Failed Cycles: {summary['failed_cycles']}")
    print("=" * 60)

    sys.exit(0 if summary["source_records"] == summary["target_records"] else 1)


if __name__ == "__main__":
    main()
