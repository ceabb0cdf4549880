"""
Use Cases Layer

Scoring, failure analysis, mutation application, and the improvement loop
called from the runner.
"""

from rule_tuner.use_cases.analysis import Analyzer, looks_like_non_task
from rule_tuner.use_cases.evaluation import (
    Evaluator,
    RuleBasedEvaluator,
    build_score_report,
    cases_frame,
    evaluate_posting,
    load_rule_set,
)
from rule_tuner.use_cases.mutation import MutationApplier
from rule_tuner.use_cases.orchestration import TuningOrchestrator

__all__ = [
    # analysis
    "Analyzer",
    "looks_like_non_task",
    # evaluation
    "Evaluator",
    "RuleBasedEvaluator",
    "build_score_report",
    "cases_frame",
    "evaluate_posting",
    "load_rule_set",
    # mutation
    "MutationApplier",
    # orchestration
    "TuningOrchestrator",
]
