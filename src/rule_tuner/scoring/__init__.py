"""
Scoring sub-package

Provides text matching, score formulas, and the heuristic classifier.
"""

from rule_tuner.scoring.classifier import (
    RuleSet,
    detect_industry,
    detect_tasks,
    industry_scores,
    is_task_word,
    split_lines,
)
from rule_tuner.scoring.scorer import clamp01, overall_score, task_accuracy
from rule_tuner.scoring.text_scorers import (
    normalize_text,
    score_exact_match,
    score_f1,
    strip_bullets,
    tasks_similar,
    tokenize,
)

__all__ = [
    # classifier
    "RuleSet",
    "detect_industry",
    "detect_tasks",
    "industry_scores",
    "is_task_word",
    "split_lines",
    # score formulas
    "clamp01",
    "overall_score",
    "task_accuracy",
    # text matching
    "normalize_text",
    "score_exact_match",
    "score_f1",
    "strip_bullets",
    "tasks_similar",
    "tokenize",
]
