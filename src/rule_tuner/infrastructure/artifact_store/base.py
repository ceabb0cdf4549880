"""
Artifact store base class

Defines the abstract contract every rule-set artifact backend implements.
"""

import re
from abc import ABC, abstractmethod

_ARTIFACT_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


def check_artifact_id(artifact_id: str) -> str:
    """
    Validate an artifact ID

    Raises:
        ValueError: If the ID is empty or could escape the store's namespace
    """
    if not isinstance(artifact_id, str) or not _ARTIFACT_ID_RE.match(artifact_id):
        raise ValueError(f"Invalid artifact ID: {artifact_id!r}")
    return artifact_id


class ArtifactStore(ABC):
    """Abstract base class for artifact stores"""

    @abstractmethod
    def read(self, artifact_id: str) -> bytes:
        """
        Read the current content of an artifact

        Raises:
            ArtifactNotFound: If the artifact does not exist
        """
        pass

    @abstractmethod
    def write(self, artifact_id: str, content: bytes) -> None:
        """Replace the content of an artifact atomically (never a partial write)"""
        pass

    @abstractmethod
    def exists(self, artifact_id: str) -> bool:
        """Whether the artifact exists"""
        pass

    @abstractmethod
    def list_artifacts(self) -> list[str]:
        """IDs of all stored artifacts, sorted"""
        pass
