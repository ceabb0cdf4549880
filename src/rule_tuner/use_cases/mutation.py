"""
Mutation Application

Applies one MutationProposal to its target artifact:

1. the artifact must exist and parse (precondition)
2. a pinned snapshot is taken before anything is written
3. the patched table must validate (postcondition) or nothing is written
4. the new content replaces the old one atomically

An applied mutation can be rolled back from its snapshot until it is released.
"""

import logging

from rule_tuner.domain.entities import AppliedMutation, MutationProposal
from rule_tuner.domain.ruleset import (
    ArtifactValidationError,
    apply_patch,
    parse_rule_table,
    serialize_rule_table,
    validate_rule_table,
)
from rule_tuner.exceptions import (
    ArtifactNotFound,
    InvalidArtifactState,
    PostconditionFailed,
    SnapshotUnavailable,
    TunerError,
)
from rule_tuner.infrastructure.artifact_store.base import ArtifactStore
from rule_tuner.infrastructure.snapshot_store.base import SnapshotStore

logger = logging.getLogger(__name__)


def _describe(error: Exception) -> str:
    return f"{type(error).__name__}: {error}"


class MutationApplier:
    """Applies proposals with snapshot-before-write and supports rollback"""

    def __init__(self, artifact_store: ArtifactStore, snapshot_store: SnapshotStore):
        self.artifact_store = artifact_store
        self.snapshot_store = snapshot_store

    def _failed(self, proposal: MutationProposal, error: Exception, snapshot=None) -> AppliedMutation:
        logger.warning("Mutation on %s failed: %s", proposal.target_artifact, _describe(error))
        return AppliedMutation(
            proposal=proposal,
            succeeded=False,
            error=_describe(error),
            snapshot=snapshot,
        )

    def apply(self, proposal: MutationProposal) -> AppliedMutation:
        """
        Apply one proposal

        Never raises for per-proposal problems: a missing or malformed target,
        an unavailable snapshot, or an invalid result all come back as a failed
        AppliedMutation with the artifact left untouched.

        Args:
            proposal: Proposal to apply

        Returns:
            AppliedMutation: Outcome, carrying the pre-write snapshot on success
        """
        artifact_id = proposal.target_artifact

        try:
            current = parse_rule_table(self.artifact_store.read(artifact_id), artifact_id)
        except ArtifactNotFound as e:
            return self._failed(proposal, e)
        except (ArtifactValidationError, OSError) as e:
            return self._failed(proposal, InvalidArtifactState(str(e)))

        try:
            handle = self.snapshot_store.snapshot(artifact_id, pin=True)
        except SnapshotUnavailable as e:
            return self._failed(proposal, e)

        try:
            patched = apply_patch(current, proposal.patch)
            validate_rule_table(patched)
        except ArtifactValidationError as e:
            self.snapshot_store.unpin(handle)
            return self._failed(proposal, PostconditionFailed(str(e)))

        try:
            self.artifact_store.write(artifact_id, serialize_rule_table(patched))
        except OSError as e:
            self.snapshot_store.unpin(handle)
            return self._failed(proposal, e)

        logger.info(
            "Applied %s to %s (v%d -> v%d): %s",
            proposal.kind.value, artifact_id, current.version, patched.version, proposal.rationale,
        )
        return AppliedMutation(
            proposal=proposal,
            succeeded=True,
            affected_artifacts={artifact_id},
            snapshot=handle,
        )

    def rollback(self, applied: AppliedMutation) -> bool:
        """
        Restore the artifact to its pre-mutation content

        Idempotent: restoring the same snapshot twice writes the same bytes.

        Args:
            applied: A successfully applied mutation

        Returns:
            bool: True if the content was restored

        Raises:
            SnapshotUnavailable: If the snapshot can no longer be read
        """
        if not applied.succeeded or applied.snapshot is None:
            return False
        content = self.snapshot_store.restore(applied.snapshot)
        try:
            self.artifact_store.write(applied.snapshot.artifact_id, content)
        except OSError as e:
            raise SnapshotUnavailable(
                f"Cannot restore {applied.snapshot.artifact_id}: {e}"
            ) from e
        logger.info(
            "Rolled back %s to snapshot @ %s",
            applied.snapshot.artifact_id, applied.snapshot.taken_at.isoformat(),
        )
        return True

    def release(self, applied: AppliedMutation) -> None:
        """Unpin the snapshot of a decided mutation and re-apply retention"""
        if applied.snapshot is None:
            return
        self.snapshot_store.unpin(applied.snapshot)
        try:
            self.snapshot_store.prune(applied.snapshot.artifact_id)
        except (OSError, TunerError) as e:
            logger.warning("Snapshot pruning failed for %s: %s", applied.snapshot.artifact_id, e)
