"""
Filesystem artifact store

Stores each artifact as ``<rules_dir>/<artifact_id>.json`` and replaces files atomically.
"""

import logging
import os
import tempfile
from pathlib import Path

from rule_tuner.exceptions import ArtifactNotFound
from rule_tuner.infrastructure.artifact_store.base import ArtifactStore, check_artifact_id

logger = logging.getLogger(__name__)

ARTIFACT_SUFFIX = ".json"


def atomic_write_bytes(path: Path, content: bytes) -> None:
    """
    Write bytes to a temporary file in the target directory, then rename it over the target

    Readers observe either the old or the new content, never a partial write.

    Args:
        path: Destination path
        content: Bytes to write
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


class FileArtifactStore(ArtifactStore):
    """Artifact store backed by a directory of JSON files"""

    def __init__(self, root_dir: str | Path):
        """
        Args:
            root_dir: Directory holding the artifact files
        """
        self.root_dir = Path(root_dir)

    def _path(self, artifact_id: str) -> Path:
        return self.root_dir / f"{check_artifact_id(artifact_id)}{ARTIFACT_SUFFIX}"

    def read(self, artifact_id: str) -> bytes:
        path = self._path(artifact_id)
        if not path.exists():
            raise ArtifactNotFound(artifact_id)
        return path.read_bytes()

    def write(self, artifact_id: str, content: bytes) -> None:
        path = self._path(artifact_id)
        atomic_write_bytes(path, content)
        logger.debug("Wrote artifact %s (%d bytes)", artifact_id, len(content))

    def exists(self, artifact_id: str) -> bool:
        return self._path(artifact_id).exists()

    def list_artifacts(self) -> list[str]:
        if not self.root_dir.exists():
            return []
        return sorted(p.stem for p in self.root_dir.glob(f"*{ARTIFACT_SUFFIX}") if not p.name.startswith("."))
