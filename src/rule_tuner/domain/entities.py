"""
Domain Entities

Defines the primary data structures flowing through one improvement run:
score reports, mutation proposals and their outcomes, and run reports.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum

from rule_tuner.domain.value_objects import MutationKind, Priority, RulePatch, SnapshotHandle


@dataclass
class CaseResult:
    """Classification outcome for one sampled posting"""
    sample_id: str
    expected_industry: str
    detected_industry: str
    task_accuracy: float
    industry_accuracy: float
    overall_score: float
    false_positives: list[str] = field(default_factory=list)
    false_negatives: list[str] = field(default_factory=list)
    fragments: list[str] = field(default_factory=list)  # title and lines of the posting

    @property
    def misclassified(self) -> bool:
        return self.expected_industry != self.detected_industry


@dataclass
class CategoryStats:
    """Error statistics for one expected category"""
    sample_count: int
    error_count: int
    examples: list[str] = field(default_factory=list)
    task_accuracy: float = 0.0
    industry_accuracy: float = 0.0
    overall_score: float = 0.0


@dataclass
class ScoreReport:
    """Aggregate accuracy metrics plus itemized failure cases"""
    sample_count: int
    task_accuracy: float
    industry_accuracy: float
    overall_score: float
    per_category_stats: dict[str, CategoryStats] = field(default_factory=dict)
    raw_cases: list[CaseResult] = field(default_factory=list)
    problem_cases: list[CaseResult] = field(default_factory=list)

    def __post_init__(self):
        if self.sample_count < 0:
            raise ValueError("sample_count must be non-negative")
        for name in ("task_accuracy", "industry_accuracy", "overall_score"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")


@dataclass
class MutationProposal:
    """Candidate, not-yet-applied change to one rule-set artifact"""
    kind: MutationKind
    priority: Priority
    estimated_improvement: float  # advisory only, used for ranking
    target_artifact: str
    patch: RulePatch
    rationale: str

    def __post_init__(self):
        if not 0.0 <= self.estimated_improvement <= 1.0:
            raise ValueError(
                f"estimated_improvement must be within [0, 1], got {self.estimated_improvement}"
            )

    @property
    def rank_score(self) -> float:
        return self.priority.weight * self.estimated_improvement


@dataclass
class AppliedMutation:
    """Result of applying one proposal"""
    proposal: MutationProposal
    succeeded: bool
    error: str | None = None
    affected_artifacts: set[str] = field(default_factory=set)
    snapshot: SnapshotHandle | None = None


@dataclass
class MutationOutcome:
    """Audit record of one mutation within an iteration"""
    target_artifact: str
    kind: str
    priority: str
    rationale: str
    status: str  # accepted / rolled_back / failed
    error: str | None = None


@dataclass
class IterationResult:
    """Result of one orchestrator round"""
    iteration: int
    score_before: float
    score_after: float
    accepted_mutation_count: int
    elapsed_ms: int
    regression_detected: bool = False
    mutations: list[MutationOutcome] = field(default_factory=list)

    @property
    def improvement(self) -> float:
        return self.score_after - self.score_before


class RunState(str, Enum):
    """Orchestrator state machine"""
    RUNNING = "running"
    GOAL_REACHED = "goal_reached"
    EXHAUSTED = "exhausted"
    ABORTED = "aborted"


@dataclass(frozen=True)
class RunReport:
    """Ordered sequence of iteration results for one run. Immutable once the run ends."""
    run_id: str
    config: dict
    state: RunState
    stop_reason: str
    iterations: tuple[IterationResult, ...] = ()
    error: str | None = None
    started_at: str = ""
    finished_at: str = ""

    @property
    def initial_score(self) -> float | None:
        return self.iterations[0].score_before if self.iterations else None

    @property
    def final_score(self) -> float | None:
        return self.iterations[-1].score_after if self.iterations else None

    @property
    def total_accepted(self) -> int:
        return sum(r.accepted_mutation_count for r in self.iterations)

    @property
    def total_elapsed_ms(self) -> int:
        return sum(r.elapsed_ms for r in self.iterations)

    def target_reached(self, target_score: float) -> bool:
        final = self.final_score
        return final is not None and final >= target_score

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary"""
        return {
            "run_id": self.run_id,
            "config": self.config,
            "state": self.state.value,
            "stop_reason": self.stop_reason,
            "error": self.error,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "iterations": [asdict(r) for r in self.iterations],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RunReport":
        iterations = tuple(
            IterationResult(
                **{k: v for k, v in r.items() if k != "mutations"},
                mutations=[MutationOutcome(**m) for m in r.get("mutations", [])],
            )
            for r in data.get("iterations", [])
        )
        return cls(
            run_id=data["run_id"],
            config=data.get("config", {}),
            state=RunState(data["state"]),
            stop_reason=data.get("stop_reason", ""),
            iterations=iterations,
            error=data.get("error"),
            started_at=data.get("started_at", ""),
            finished_at=data.get("finished_at", ""),
        )
