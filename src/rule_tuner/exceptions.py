"""
Pipeline Exceptions

Error taxonomy shared by the evaluator, mutation applier, and orchestrator.
"""


class TunerError(Exception):
    """Base class for all pipeline errors"""
    pass


class EvaluatorUnavailable(TunerError):
    """Scoring call failed. Fatal to the run."""
    pass


class ArtifactNotFound(TunerError):
    """The requested artifact does not exist in the store"""

    def __init__(self, artifact_id: str):
        super().__init__(f"Artifact not found: {artifact_id}")
        self.artifact_id = artifact_id


class InvalidArtifactState(TunerError):
    """Artifact was already malformed before a mutation was attempted"""
    pass


class PostconditionFailed(TunerError):
    """A mutation produced an invalid artifact; the result was discarded"""
    pass


class SnapshotUnavailable(TunerError):
    """A snapshot could not be taken or restored"""
    pass
