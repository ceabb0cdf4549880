"""ドメイン定数のテスト"""

from rule_tuner.domain.constants import (
    ARTIFACT_THRESHOLDS,
    DEFAULT_ARTIFACTS,
    DEFAULT_INDUSTRY_WEIGHT,
    DEFAULT_TASK_WEIGHT,
    MAX_PROBLEM_CASES,
    PRIORITY_WEIGHTS,
    PROBLEM_CASE_THRESHOLD,
)
from rule_tuner.domain.value_objects import Priority


def test_priority_weights():
    """優先度の重みが High:3, Medium:2, Low:1 であること"""
    assert PRIORITY_WEIGHTS == {"high": 3, "medium": 2, "low": 1}
    assert Priority.HIGH.weight > Priority.MEDIUM.weight > Priority.LOW.weight


def test_score_weights_sum_to_one():
    """スコアの重みの合計が1であること"""
    assert DEFAULT_TASK_WEIGHT + DEFAULT_INDUSTRY_WEIGHT == 1.0


def test_default_artifacts():
    """既定のアーティファクトが4つで重複しないこと"""
    assert len(DEFAULT_ARTIFACTS) == 4
    assert len(set(DEFAULT_ARTIFACTS)) == 4
    assert ARTIFACT_THRESHOLDS in DEFAULT_ARTIFACTS


def test_problem_case_limits():
    assert PROBLEM_CASE_THRESHOLD == 0.6
    assert MAX_PROBLEM_CASES == 10
