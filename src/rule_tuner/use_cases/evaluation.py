"""
Evaluation

Scores the live rule set against a labelled corpus and aggregates the
per-sample outcomes into a ScoreReport.
"""

import logging
import random
from abc import ABC, abstractmethod
from dataclasses import asdict

import pandas as pd

from rule_tuner.corpus_loader import Corpus, JobPosting
from rule_tuner.domain.constants import (
    DEFAULT_ARTIFACTS,
    MAX_PROBLEM_CASES,
    PROBLEM_CASE_THRESHOLD,
)
from rule_tuner.domain.entities import CaseResult, CategoryStats, ScoreReport
from rule_tuner.domain.ruleset import ArtifactValidationError, parse_rule_table
from rule_tuner.exceptions import EvaluatorUnavailable, TunerError
from rule_tuner.infrastructure.artifact_store.base import ArtifactStore
from rule_tuner.scoring.classifier import RuleSet, detect_industry, detect_tasks, split_lines
from rule_tuner.scoring.scorer import clamp01, overall_score, task_accuracy
from rule_tuner.scoring.text_scorers import tasks_similar
from rule_tuner.tuner_config import ScoringConfig

logger = logging.getLogger(__name__)

# Example sample IDs kept per category
MAX_CATEGORY_EXAMPLES = 3


class Evaluator(ABC):
    """Scores the current rule set"""

    @abstractmethod
    def score(self, sample_size: int) -> ScoreReport:
        """
        Score the live rule set on a sample

        Args:
            sample_size: Number of samples to score

        Returns:
            ScoreReport

        Raises:
            EvaluatorUnavailable: If scoring cannot be performed
        """
        pass


def load_rule_set(artifact_store: ArtifactStore) -> RuleSet:
    """
    Read and parse the four rule-set artifacts

    Raises:
        ArtifactNotFound: If an artifact is missing
        ArtifactValidationError: If an artifact is malformed
    """
    tables = {
        artifact_id: parse_rule_table(artifact_store.read(artifact_id), artifact_id)
        for artifact_id in DEFAULT_ARTIFACTS
    }
    return RuleSet.from_tables(tables)


def evaluate_posting(
    posting: JobPosting,
    rules: RuleSet,
    config: ScoringConfig,
) -> CaseResult:
    """
    Classify one posting and compare against its labels

    Args:
        posting: Labelled posting
        rules: Live rule set
        config: Score weights and task match threshold

    Returns:
        CaseResult
    """
    detected = detect_tasks(posting.text, rules)

    false_negatives = [
        expected for expected in posting.tasks
        if not any(tasks_similar(expected, d, config.match_threshold) for d in detected)
    ]
    false_positives = [
        d for d in detected
        if not any(tasks_similar(expected, d, config.match_threshold) for expected in posting.tasks)
    ]
    matched = len(posting.tasks) - len(false_negatives)

    task_acc = task_accuracy(matched, len(posting.tasks), len(false_positives))
    detected_industry = detect_industry(f"{posting.title}\n{posting.text}", rules)
    industry_acc = 1.0 if detected_industry == posting.industry else 0.0

    return CaseResult(
        sample_id=posting.posting_id,
        expected_industry=posting.industry,
        detected_industry=detected_industry,
        task_accuracy=task_acc,
        industry_accuracy=industry_acc,
        overall_score=overall_score(task_acc, industry_acc, config.task_weight, config.industry_weight),
        false_positives=false_positives,
        false_negatives=false_negatives,
        fragments=[posting.title] + split_lines(posting.text),
    )


def build_score_report(cases: list[CaseResult], config: ScoringConfig | None = None) -> ScoreReport:
    """
    Aggregate per-sample outcomes

    The aggregate overall score is computed from the aggregate task and
    industry accuracies, not averaged per sample.

    Args:
        cases: Per-sample outcomes
        config: Score weights (defaults when omitted)

    Returns:
        ScoreReport
    """
    if config is None:
        config = ScoringConfig()

    if not cases:
        return ScoreReport(sample_count=0, task_accuracy=0.0, industry_accuracy=0.0, overall_score=0.0)

    df = pd.DataFrame([
        {
            "sample_id": c.sample_id,
            "expected_industry": c.expected_industry,
            "task_accuracy": c.task_accuracy,
            "industry_accuracy": c.industry_accuracy,
            "overall_score": c.overall_score,
            "has_error": bool(c.false_positives or c.false_negatives or c.misclassified),
        }
        for c in cases
    ])

    task_acc = clamp01(float(df["task_accuracy"].mean()))
    industry_acc = clamp01(float(df["industry_accuracy"].mean()))

    per_category = {}
    for category, group in df.groupby("expected_industry", sort=False):
        errors = group[group["has_error"]]
        per_category[category] = CategoryStats(
            sample_count=len(group),
            error_count=len(errors),
            examples=errors["sample_id"].head(MAX_CATEGORY_EXAMPLES).tolist(),
            task_accuracy=float(group["task_accuracy"].mean()),
            industry_accuracy=float(group["industry_accuracy"].mean()),
            overall_score=float(group["overall_score"].mean()),
        )

    problem_cases = [c for c in cases if c.overall_score < PROBLEM_CASE_THRESHOLD][:MAX_PROBLEM_CASES]

    return ScoreReport(
        sample_count=len(cases),
        task_accuracy=task_acc,
        industry_accuracy=industry_acc,
        overall_score=overall_score(task_acc, industry_acc, config.task_weight, config.industry_weight),
        per_category_stats=per_category,
        raw_cases=list(cases),
        problem_cases=problem_cases,
    )


def cases_frame(report: ScoreReport) -> pd.DataFrame:
    """Per-sample outcomes of a report as a table"""
    return pd.DataFrame([asdict(c) for c in report.raw_cases])


class RuleBasedEvaluator(Evaluator):
    """
    Reference evaluator

    Re-reads the rule set from the artifact store on every call so applied
    mutations are always visible, then classifies a seeded random sample of
    the corpus.
    """

    def __init__(
        self,
        artifact_store: ArtifactStore,
        corpus: Corpus,
        config: ScoringConfig | None = None,
    ):
        self.artifact_store = artifact_store
        self.corpus = corpus
        self.config = config or ScoringConfig()
        self._calls = 0

    def _sample(self, sample_size: int) -> list[JobPosting]:
        postings = self.corpus.postings
        if sample_size >= len(postings):
            return list(postings)
        rng = random.Random(self.config.seed * 100_003 + self._calls)
        return rng.sample(postings, sample_size)

    def score(self, sample_size: int) -> ScoreReport:
        if sample_size < 1:
            raise ValueError("sample_size must be at least 1")

        try:
            rules = load_rule_set(self.artifact_store)
        except (TunerError, ArtifactValidationError, OSError) as e:
            raise EvaluatorUnavailable(f"Cannot load rule set: {e}") from e

        sample = self._sample(sample_size)
        self._calls += 1

        try:
            cases = [evaluate_posting(p, rules, self.config) for p in sample]
        except Exception as e:
            raise EvaluatorUnavailable(f"Scoring failed: {e}") from e

        report = build_score_report(cases, self.config)
        logger.debug(
            "Scored %d samples: overall=%.3f task=%.3f industry=%.3f",
            report.sample_count, report.overall_score, report.task_accuracy, report.industry_accuracy,
        )
        return report
