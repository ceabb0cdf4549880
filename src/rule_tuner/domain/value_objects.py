"""
Domain Value Objects

Defines immutable data structures representing proposal priorities, mutation kinds,
structured rule patches, and snapshots.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from rule_tuner.domain.constants import PRIORITY_WEIGHTS


class Priority(str, Enum):
    """Declared priority of a mutation proposal"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def weight(self) -> int:
        return PRIORITY_WEIGHTS[self.value]


class MutationKind(str, Enum):
    """Kind of change a proposal makes to the rule set"""
    RULE_ADDITION = "rule_addition"
    RULE_ADJUSTMENT = "rule_adjustment"
    THRESHOLD_CHANGE = "threshold_change"


PATCH_OPS = ("insert", "update", "delete")


@dataclass(frozen=True)
class RulePatch:
    """
    Structured edit against a rule table

    - insert: append ``rows`` whose key is not already present
    - update: apply ``changes`` to every row matching all ``match`` fields
    - delete: remove rows matching ``match`` (or listed in ``rows``)
    """
    op: str
    rows: tuple[dict, ...] = ()
    match: dict = field(default_factory=dict)
    changes: dict = field(default_factory=dict)

    def __post_init__(self):
        if self.op not in PATCH_OPS:
            raise ValueError(f"Unknown patch op: {self.op} (available: {list(PATCH_OPS)})")
        if self.op == "insert" and not self.rows:
            raise ValueError("insert patch requires at least one row")
        if self.op == "update" and (not self.match or not self.changes):
            raise ValueError("update patch requires both match and changes")
        if self.op == "delete" and not self.match and not self.rows:
            raise ValueError("delete patch requires match or rows")

    def to_dict(self) -> dict:
        return {
            "op": self.op,
            "rows": [dict(r) for r in self.rows],
            "match": dict(self.match),
            "changes": dict(self.changes),
        }


@dataclass(frozen=True, order=True)
class SnapshotHandle:
    """Reference to one stored snapshot, ordered by artifact then capture time"""
    artifact_id: str
    taken_at_ns: int

    @property
    def taken_at(self) -> datetime:
        return datetime.fromtimestamp(self.taken_at_ns / 1_000_000_000, tz=timezone.utc)


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time copy of one artifact"""
    handle: SnapshotHandle
    content: bytes

    @property
    def artifact_id(self) -> str:
        return self.handle.artifact_id

    @property
    def taken_at(self) -> datetime:
        return self.handle.taken_at
