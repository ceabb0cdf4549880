"""
Tests for evaluation

Posting fixtures are scored against the small rule set from conftest
(verbs: develop / manage / review; tech: software, cloud; finance: accounting, audit).
"""

import pytest

from rule_tuner.corpus_loader import Corpus, JobPosting
from rule_tuner.domain.ruleset import apply_patch, parse_rule_table, serialize_rule_table
from rule_tuner.domain.value_objects import RulePatch
from rule_tuner.exceptions import EvaluatorUnavailable
from rule_tuner.tuner_config import ScoringConfig
from rule_tuner.use_cases.evaluation import (
    Evaluator,
    RuleBasedEvaluator,
    build_score_report,
    cases_frame,
    evaluate_posting,
    load_rule_set,
)

FALSE_POSITIVE = JobPosting(
    posting_id="A",
    title="Software Developer",
    industry="tech",
    text="- Develop software services\n- Review pull requests\n- Ability to manage priorities",
    tasks=["Develop software services", "Review pull requests"],
)
FALSE_NEGATIVE = JobPosting(
    posting_id="B",
    title="Accountant",
    industry="finance",
    text="- Reconcile accounts\n- Review audit findings",
    tasks=["Reconcile accounts", "Review audit findings"],
)
MISCLASSIFIED = JobPosting(
    posting_id="C",
    title="Finance Clerk",
    industry="finance",
    text="- Manage cloud software invoices",
    tasks=["Manage cloud software invoices"],
)
NOTHING_DETECTED = JobPosting(
    posting_id="D",
    title="Payroll Officer",
    industry="hr",
    text="- Run payroll",
    tasks=["Run payroll"],
)
POSTINGS = [FALSE_POSITIVE, FALSE_NEGATIVE, MISCLASSIFIED, NOTHING_DETECTED]


@pytest.fixture
def corpus():
    return Corpus(corpus_id="test", description="", postings=list(POSTINGS))


@pytest.fixture
def config():
    return ScoringConfig()


class TestEvaluatePosting:
    def test_false_positive(self, rule_set, config):
        case = evaluate_posting(FALSE_POSITIVE, rule_set, config)
        assert case.false_positives == ["Ability to manage priorities"]
        assert case.false_negatives == []
        assert case.task_accuracy == pytest.approx(2 / 3)
        assert case.detected_industry == "tech"
        assert case.overall_score == pytest.approx(0.7 * 2 / 3 + 0.3)

    def test_false_negative(self, rule_set, config):
        case = evaluate_posting(FALSE_NEGATIVE, rule_set, config)
        assert case.false_negatives == ["Reconcile accounts"]
        assert case.task_accuracy == pytest.approx(0.5)
        assert case.industry_accuracy == 1.0

    def test_misclassified(self, rule_set, config):
        case = evaluate_posting(MISCLASSIFIED, rule_set, config)
        assert case.detected_industry == "tech"
        assert case.misclassified
        assert case.industry_accuracy == 0.0
        assert case.overall_score == pytest.approx(0.7)

    def test_fragments(self, rule_set, config):
        case = evaluate_posting(FALSE_NEGATIVE, rule_set, config)
        assert case.fragments == ["Accountant", "Reconcile accounts", "Review audit findings"]


class TestBuildScoreReport:
    def _cases(self, rule_set, config):
        return [evaluate_posting(p, rule_set, config) for p in POSTINGS]

    def test_overall_is_function_of_aggregate_accuracies(self, rule_set, config):
        """全体スコアはタスク精度と業界精度の集計値から計算される"""
        report = build_score_report(self._cases(rule_set, config), config)
        task = (2 / 3 + 0.5 + 1.0 + 0.0) / 4
        industry = (1.0 + 1.0 + 0.0 + 0.0) / 4
        assert report.sample_count == 4
        assert report.task_accuracy == pytest.approx(task)
        assert report.industry_accuracy == pytest.approx(industry)
        assert report.overall_score == pytest.approx(0.7 * task + 0.3 * industry)

    def test_problem_cases(self, rule_set, config):
        report = build_score_report(self._cases(rule_set, config), config)
        assert [c.sample_id for c in report.problem_cases] == ["D"]

    def test_problem_cases_capped(self, rule_set, config):
        cases = [evaluate_posting(NOTHING_DETECTED, rule_set, config) for _ in range(15)]
        assert len(build_score_report(cases, config).problem_cases) == 10

    def test_per_category_stats(self, rule_set, config):
        report = build_score_report(self._cases(rule_set, config), config)
        assert list(report.per_category_stats) == ["tech", "finance", "hr"]
        finance = report.per_category_stats["finance"]
        assert finance.sample_count == 2
        assert finance.error_count == 2
        assert finance.examples == ["B", "C"]
        assert finance.industry_accuracy == pytest.approx(0.5)

    def test_empty(self):
        report = build_score_report([])
        assert report.sample_count == 0
        assert report.overall_score == 0.0

    def test_cases_frame(self, rule_set, config):
        report = build_score_report(self._cases(rule_set, config), config)
        df = cases_frame(report)
        assert df["sample_id"].tolist() == ["A", "B", "C", "D"]


class TestLoadRuleSet:
    def test_loads_all_tables(self, artifact_store, rule_tables):
        rules = load_rule_set(artifact_store)
        assert rules.task_verbs == rule_tables["task_verbs"]
        assert rules.thresholds == rule_tables["thresholds"]


class TestRuleBasedEvaluator:
    def test_is_an_evaluator(self, artifact_store, corpus):
        assert isinstance(RuleBasedEvaluator(artifact_store, corpus), Evaluator)

    def test_abstract_contract(self):
        with pytest.raises(TypeError):
            Evaluator()

    def test_full_corpus_when_sample_exceeds_size(self, artifact_store, corpus):
        report = RuleBasedEvaluator(artifact_store, corpus).score(30)
        assert [c.sample_id for c in report.raw_cases] == ["A", "B", "C", "D"]

    def test_sampling_is_seeded(self, artifact_store, corpus):
        first = RuleBasedEvaluator(artifact_store, corpus, ScoringConfig(seed=7)).score(2)
        second = RuleBasedEvaluator(artifact_store, corpus, ScoringConfig(seed=7)).score(2)
        assert [c.sample_id for c in first.raw_cases] == [c.sample_id for c in second.raw_cases]
        assert first.sample_count == 2

    def test_sees_applied_changes(self, artifact_store, corpus):
        """書き込まれたルール変更が次の採点に反映される"""
        evaluator = RuleBasedEvaluator(artifact_store, corpus)
        before = evaluator.score(30).overall_score

        verbs = parse_rule_table(artifact_store.read("task_verbs"), "task_verbs")
        verbs = apply_patch(verbs, RulePatch(op="insert", rows=({"keyword": "reconcile"},)))
        artifact_store.write("task_verbs", serialize_rule_table(verbs))

        assert evaluator.score(30).overall_score > before

    def test_missing_artifact(self, artifact_store, corpus):
        artifact_store._artifacts.pop("thresholds")
        with pytest.raises(EvaluatorUnavailable, match="thresholds"):
            RuleBasedEvaluator(artifact_store, corpus).score(4)

    def test_malformed_artifact(self, artifact_store, corpus):
        artifact_store.write("task_verbs", b"{broken")
        with pytest.raises(EvaluatorUnavailable):
            RuleBasedEvaluator(artifact_store, corpus).score(4)

    def test_invalid_sample_size(self, artifact_store, corpus):
        with pytest.raises(ValueError):
            RuleBasedEvaluator(artifact_store, corpus).score(0)
