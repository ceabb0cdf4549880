"""
Snapshot store base class

Owns snapshot storage and the retention policy. Backends only implement raw
put/get/delete/list; capture ordering, pinning, and pruning live here so every
backend behaves the same.
"""

import logging
import time
from abc import ABC, abstractmethod

from rule_tuner.domain.value_objects import SnapshotHandle
from rule_tuner.exceptions import ArtifactNotFound, SnapshotUnavailable
from rule_tuner.infrastructure.artifact_store.base import ArtifactStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_PER_ARTIFACT = 3


class SnapshotStore(ABC):
    """Timestamped snapshots of artifacts with a per-artifact retention cap"""

    def __init__(
        self,
        artifact_store: ArtifactStore,
        max_per_artifact: int = DEFAULT_MAX_PER_ARTIFACT,
    ):
        """
        Args:
            artifact_store: Store the snapshotted artifacts are read from
            max_per_artifact: Maximum number of unpinned snapshots kept per artifact
        """
        if max_per_artifact < 1:
            raise ValueError("max_per_artifact must be at least 1")
        self.artifact_store = artifact_store
        self.max_per_artifact = max_per_artifact
        self._pins: dict[SnapshotHandle, int] = {}

    # -- backend hooks --

    @abstractmethod
    def _put(self, handle: SnapshotHandle, content: bytes) -> None:
        pass

    @abstractmethod
    def _get(self, handle: SnapshotHandle) -> bytes | None:
        pass

    @abstractmethod
    def _delete(self, handle: SnapshotHandle) -> None:
        pass

    @abstractmethod
    def _handles(self, artifact_id: str) -> list[SnapshotHandle]:
        pass

    @abstractmethod
    def _artifact_ids(self) -> list[str]:
        pass

    # -- public API --

    def _next_timestamp(self, artifact_id: str) -> int:
        now = time.time_ns()
        latest = self.latest(artifact_id)
        if latest is not None and now <= latest.taken_at_ns:
            now = latest.taken_at_ns + 1
        return now

    def snapshot(self, artifact_id: str, pin: bool = False) -> SnapshotHandle:
        """
        Capture the current content of an artifact

        Args:
            artifact_id: Artifact to snapshot
            pin: Pin the new snapshot before retention runs

        Returns:
            SnapshotHandle: Handle of the new snapshot

        Raises:
            SnapshotUnavailable: If the artifact cannot be read or the snapshot cannot be stored
        """
        try:
            content = self.artifact_store.read(artifact_id)
        except (ArtifactNotFound, OSError) as e:
            raise SnapshotUnavailable(f"Cannot read {artifact_id} for snapshot: {e}") from e

        handle = SnapshotHandle(artifact_id=artifact_id, taken_at_ns=self._next_timestamp(artifact_id))
        try:
            self._put(handle, content)
        except OSError as e:
            raise SnapshotUnavailable(f"Cannot store snapshot of {artifact_id}: {e}") from e

        if pin:
            self.pin(handle)
        logger.debug("Snapshot %s @ %s", artifact_id, handle.taken_at.isoformat())
        self.prune(artifact_id)
        return handle

    def restore(self, handle: SnapshotHandle) -> bytes:
        """
        Get the content captured by a snapshot

        Raises:
            SnapshotUnavailable: If the snapshot no longer exists
        """
        try:
            content = self._get(handle)
        except OSError as e:
            raise SnapshotUnavailable(f"Cannot read snapshot {handle}: {e}") from e
        if content is None:
            raise SnapshotUnavailable(f"Snapshot not found: {handle}")
        return content

    def latest(self, artifact_id: str) -> SnapshotHandle | None:
        """Most recent snapshot of an artifact, if any"""
        handles = self.handles(artifact_id)
        return handles[-1] if handles else None

    def handles(self, artifact_id: str) -> list[SnapshotHandle]:
        """Snapshots of an artifact, oldest first"""
        return sorted(self._handles(artifact_id))

    def artifacts(self) -> list[str]:
        """Artifacts that have at least one snapshot"""
        return sorted(self._artifact_ids())

    def pin(self, handle: SnapshotHandle) -> None:
        """Protect a snapshot from pruning (reference counted)"""
        self._pins[handle] = self._pins.get(handle, 0) + 1

    def unpin(self, handle: SnapshotHandle) -> None:
        count = self._pins.get(handle, 0)
        if count <= 1:
            self._pins.pop(handle, None)
        else:
            self._pins[handle] = count - 1

    def is_pinned(self, handle: SnapshotHandle) -> bool:
        return handle in self._pins

    def prune(self, artifact_id: str | None = None, dry_run: bool = False) -> list[SnapshotHandle]:
        """
        Delete the oldest unpinned snapshots beyond the per-artifact cap

        Pinned snapshots are never deleted, so an artifact holding more pins
        than the cap keeps all of them until they are released. The cap is
        only guaranteed once every pin on the artifact is gone.

        Args:
            artifact_id: Artifact to prune (all artifacts when None)
            dry_run: Only report what would be deleted

        Returns:
            list[SnapshotHandle]: Deleted (or deletable) snapshots
        """
        targets = [artifact_id] if artifact_id is not None else self.artifacts()
        removed: list[SnapshotHandle] = []
        for target in targets:
            handles = self.handles(target)
            excess = len(handles) - self.max_per_artifact
            for handle in handles:
                if excess <= 0:
                    break
                if self.is_pinned(handle):
                    continue
                if not dry_run:
                    self._delete(handle)
                    logger.info("Pruned snapshot %s @ %s", target, handle.taken_at.isoformat())
                removed.append(handle)
                excess -= 1
        return removed
