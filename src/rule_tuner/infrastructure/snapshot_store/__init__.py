"""
Snapshot store package

Provides point-in-time snapshots of artifacts behind one interface,
regardless of the underlying storage.
"""

from rule_tuner.infrastructure.snapshot_store.base import SnapshotStore
from rule_tuner.infrastructure.snapshot_store.filesystem import FileSnapshotStore
from rule_tuner.infrastructure.snapshot_store.memory import InMemorySnapshotStore

__all__ = ["FileSnapshotStore", "InMemorySnapshotStore", "SnapshotStore"]
