"""
In-memory snapshot store
"""

from rule_tuner.domain.value_objects import SnapshotHandle
from rule_tuner.infrastructure.snapshot_store.base import SnapshotStore


class InMemorySnapshotStore(SnapshotStore):
    """Snapshot store keyed by (artifact_id, taken_at_ns) in a dict"""

    def __init__(self, artifact_store, max_per_artifact: int = 3):
        super().__init__(artifact_store, max_per_artifact)
        self._snapshots: dict[SnapshotHandle, bytes] = {}

    def _put(self, handle: SnapshotHandle, content: bytes) -> None:
        self._snapshots[handle] = bytes(content)

    def _get(self, handle: SnapshotHandle) -> bytes | None:
        return self._snapshots.get(handle)

    def _delete(self, handle: SnapshotHandle) -> None:
        self._snapshots.pop(handle, None)

    def _handles(self, artifact_id: str) -> list[SnapshotHandle]:
        return [h for h in self._snapshots if h.artifact_id == artifact_id]

    def _artifact_ids(self) -> list[str]:
        return list({h.artifact_id for h in self._snapshots})
