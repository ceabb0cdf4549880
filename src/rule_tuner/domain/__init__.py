"""
Domain Layer

Defines constants, entities, value objects, and the rule-set schema that form the
core of the improvement pipeline. Has no dependencies on external libraries.
"""

from rule_tuner.domain.constants import (
    DEFAULT_ARTIFACTS,
    DEFAULT_INDUSTRY_WEIGHT,
    DEFAULT_TASK_WEIGHT,
    PRIORITY_WEIGHTS,
)
from rule_tuner.domain.entities import (
    AppliedMutation,
    CaseResult,
    CategoryStats,
    IterationResult,
    MutationOutcome,
    MutationProposal,
    RunReport,
    RunState,
    ScoreReport,
)
from rule_tuner.domain.ruleset import (
    ArtifactValidationError,
    RuleTable,
    apply_patch,
    parse_rule_table,
    serialize_rule_table,
    validate_rule_table,
)
from rule_tuner.domain.value_objects import (
    MutationKind,
    Priority,
    RulePatch,
    Snapshot,
    SnapshotHandle,
)

__all__ = [
    # constants
    "DEFAULT_ARTIFACTS",
    "DEFAULT_INDUSTRY_WEIGHT",
    "DEFAULT_TASK_WEIGHT",
    "PRIORITY_WEIGHTS",
    # entities
    "AppliedMutation",
    "CaseResult",
    "CategoryStats",
    "IterationResult",
    "MutationOutcome",
    "MutationProposal",
    "RunReport",
    "RunState",
    "ScoreReport",
    # rule set
    "ArtifactValidationError",
    "RuleTable",
    "apply_patch",
    "parse_rule_table",
    "serialize_rule_table",
    "validate_rule_table",
    # value objects
    "MutationKind",
    "Priority",
    "RulePatch",
    "Snapshot",
    "SnapshotHandle",
]
