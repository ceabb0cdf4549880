"""
Score calculation

Per-sample and aggregate score formulas shared by every evaluator.
"""

from __future__ import annotations

from rule_tuner.domain.constants import DEFAULT_INDUSTRY_WEIGHT, DEFAULT_TASK_WEIGHT


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def overall_score(
    task_accuracy: float,
    industry_accuracy: float,
    task_weight: float = DEFAULT_TASK_WEIGHT,
    industry_weight: float = DEFAULT_INDUSTRY_WEIGHT,
) -> float:
    """
    Calculate the overall score

    overall = clamp(task_weight * task_accuracy + industry_weight * industry_accuracy, 0, 1)

    Args:
        task_accuracy: Task accuracy (0.0 to 1.0)
        industry_accuracy: Industry accuracy (0.0 to 1.0)
        task_weight: Weight of the task accuracy
        industry_weight: Weight of the industry accuracy

    Returns:
        Overall score (0.0 to 1.0)
    """
    return clamp01(task_weight * task_accuracy + industry_weight * industry_accuracy)


def task_accuracy(matched: int, expected: int, false_positives: int) -> float:
    """
    Task accuracy for one sample

    Matched tasks over expected tasks plus false positives, so every task
    detected by mistake costs accuracy.

    Args:
        matched: Expected tasks that were detected
        expected: Number of expected tasks
        false_positives: Detected tasks that match no expected task

    Returns:
        Task accuracy (0.0 to 1.0). 0.0 when there is nothing to match.
    """
    denominator = expected + false_positives
    if denominator <= 0:
        return 0.0
    return clamp01(matched / denominator)
