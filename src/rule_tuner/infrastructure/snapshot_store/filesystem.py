"""
Filesystem snapshot store

Stores each snapshot as ``<snapshot_dir>/<artifact_id>.<taken_at_ns>.snapshot``.
"""

import re
from pathlib import Path

from rule_tuner.domain.value_objects import SnapshotHandle
from rule_tuner.infrastructure.artifact_store.base import check_artifact_id
from rule_tuner.infrastructure.artifact_store.filesystem import atomic_write_bytes
from rule_tuner.infrastructure.snapshot_store.base import SnapshotStore

SNAPSHOT_SUFFIX = ".snapshot"
_SNAPSHOT_NAME_RE = re.compile(r"^(?P<artifact_id>.+)\.(?P<taken_at_ns>\d+)\.snapshot$")


class FileSnapshotStore(SnapshotStore):
    """Snapshot store backed by a directory"""

    def __init__(self, artifact_store, snapshot_dir: str | Path, max_per_artifact: int = 3):
        """
        Args:
            artifact_store: Store the snapshotted artifacts are read from
            snapshot_dir: Directory holding snapshot files
            max_per_artifact: Maximum number of unpinned snapshots kept per artifact
        """
        super().__init__(artifact_store, max_per_artifact)
        self.snapshot_dir = Path(snapshot_dir)

    def _path(self, handle: SnapshotHandle) -> Path:
        artifact_id = check_artifact_id(handle.artifact_id)
        return self.snapshot_dir / f"{artifact_id}.{handle.taken_at_ns}{SNAPSHOT_SUFFIX}"

    def _scan(self) -> list[SnapshotHandle]:
        if not self.snapshot_dir.exists():
            return []
        handles = []
        for path in self.snapshot_dir.glob(f"*{SNAPSHOT_SUFFIX}"):
            m = _SNAPSHOT_NAME_RE.match(path.name)
            if m:
                handles.append(SnapshotHandle(m.group("artifact_id"), int(m.group("taken_at_ns"))))
        return handles

    def _put(self, handle: SnapshotHandle, content: bytes) -> None:
        atomic_write_bytes(self._path(handle), content)

    def _get(self, handle: SnapshotHandle) -> bytes | None:
        path = self._path(handle)
        if not path.exists():
            return None
        return path.read_bytes()

    def _delete(self, handle: SnapshotHandle) -> None:
        self._path(handle).unlink(missing_ok=True)

    def _handles(self, artifact_id: str) -> list[SnapshotHandle]:
        return [h for h in self._scan() if h.artifact_id == artifact_id]

    def _artifact_ids(self) -> list[str]:
        return list({h.artifact_id for h in self._scan()})
