"""
In-memory artifact store
"""

from rule_tuner.exceptions import ArtifactNotFound
from rule_tuner.infrastructure.artifact_store.base import ArtifactStore, check_artifact_id


class InMemoryArtifactStore(ArtifactStore):
    """Artifact store backed by a dict. Used by tests and dry runs."""

    def __init__(self, artifacts: dict[str, bytes] | None = None):
        self._artifacts: dict[str, bytes] = {}
        for artifact_id, content in (artifacts or {}).items():
            self.write(artifact_id, content)

    def read(self, artifact_id: str) -> bytes:
        check_artifact_id(artifact_id)
        try:
            return self._artifacts[artifact_id]
        except KeyError:
            raise ArtifactNotFound(artifact_id)

    def write(self, artifact_id: str, content: bytes) -> None:
        check_artifact_id(artifact_id)
        # bytes are immutable, replacing the reference is atomic
        self._artifacts[artifact_id] = bytes(content)

    def exists(self, artifact_id: str) -> bool:
        check_artifact_id(artifact_id)
        return artifact_id in self._artifacts

    def list_artifacts(self) -> list[str]:
        return sorted(self._artifacts)
