"""
Artifact store package

Provides a unified interface to rule-set artifact storage.
"""

from rule_tuner.infrastructure.artifact_store.base import ArtifactStore, check_artifact_id
from rule_tuner.infrastructure.artifact_store.filesystem import FileArtifactStore, atomic_write_bytes
from rule_tuner.infrastructure.artifact_store.memory import InMemoryArtifactStore

__all__ = [
    "ArtifactStore",
    "FileArtifactStore",
    "InMemoryArtifactStore",
    "atomic_write_bytes",
    "check_artifact_id",
]
