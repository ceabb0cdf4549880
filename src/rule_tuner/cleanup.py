"""
rule-tuner Cleanup

Prunes run records and artifact snapshots down to the retention caps.

Usage:
    python -m rule_tuner.cleanup
    python -m rule_tuner.cleanup --keep-runs 5 --keep-snapshots 2 --dry-run
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from rule_tuner.domain.value_objects import SnapshotHandle
from rule_tuner.infrastructure.artifact_store import FileArtifactStore
from rule_tuner.infrastructure.run_records import RunRecordStore
from rule_tuner.infrastructure.snapshot_store import SnapshotStore, FileSnapshotStore
from rule_tuner.tuner_config import load_config


@dataclass
class CleanupResult:
    """Files removed (or removable, on a dry run) by one cleanup"""
    run_records: list[Path] = field(default_factory=list)
    snapshots: list[SnapshotHandle] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.run_records) + len(self.snapshots)


def enforce_retention(
    run_records: RunRecordStore,
    snapshot_store: SnapshotStore,
    dry_run: bool = False,
) -> CleanupResult:
    """
    Prune both stores to their caps

    Args:
        run_records: Run record store (cap = its ``keep``)
        snapshot_store: Snapshot store (cap = its ``max_per_artifact``)
        dry_run: Only report what would be deleted

    Returns:
        CleanupResult
    """
    return CleanupResult(
        run_records=run_records.prune(dry_run=dry_run),
        snapshots=snapshot_store.prune(dry_run=dry_run),
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="rule-tuner: Prune old run records and artifact snapshots",
    )
    parser.add_argument(
        "--keep-runs",
        type=int,
        default=None,
        help="Run records to keep (default: TUNER_KEEP_RUN_RECORDS or 10)",
    )
    parser.add_argument(
        "--keep-snapshots",
        type=int,
        default=None,
        help="Snapshots to keep per artifact (default: TUNER_KEEP_SNAPSHOTS or 3)",
    )
    parser.add_argument("--results-dir", default=None, help="Directory of run records")
    parser.add_argument("--snapshot-dir", default=None, help="Directory of artifact snapshots")
    parser.add_argument("--rules-dir", default=None, help="Directory of rule-set artifacts")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List what would be deleted without deleting anything",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    try:
        config = load_config()
    except ValueError as e:
        print(f"ERROR: Invalid configuration: {e}")
        return 1
    logging.basicConfig(level=logging.INFO if config.reporting.verbose else logging.WARNING)

    keep_runs = args.keep_runs if args.keep_runs is not None else config.retention.run_records
    keep_snapshots = (
        args.keep_snapshots if args.keep_snapshots is not None else config.retention.snapshots_per_artifact
    )

    try:
        run_records = RunRecordStore(args.results_dir or config.paths.results_dir, keep=keep_runs)
        snapshot_store = FileSnapshotStore(
            FileArtifactStore(args.rules_dir or config.paths.rules_dir),
            args.snapshot_dir or config.paths.snapshot_dir,
            max_per_artifact=keep_snapshots,
        )
    except ValueError as e:
        print(f"ERROR: {e}")
        return 1

    result = enforce_retention(run_records, snapshot_store, dry_run=args.dry_run)

    verb = "Would delete" if args.dry_run else "Deleted"
    print(f"\n=== Cleanup{' (dry run)' if args.dry_run else ''} ===\n")
    for path in result.run_records:
        print(f"  {verb} run record: {path.name}")
    for handle in result.snapshots:
        print(f"  {verb} snapshot: {handle.artifact_id} @ {handle.taken_at.isoformat()}")
    print(f"\n  {verb} {result.total} item(s)\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
