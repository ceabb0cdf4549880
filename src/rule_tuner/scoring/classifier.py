"""
Heuristic job-posting classifier

Detects tasks and the industry of a posting using the live rule set.
The heuristics are intentionally simple; the pipeline only depends on them
through the scores they produce.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from rule_tuner.domain.constants import (
    ARTIFACT_INDUSTRY_KEYWORDS,
    ARTIFACT_QUALIFICATION_PATTERNS,
    ARTIFACT_TASK_VERBS,
    ARTIFACT_THRESHOLDS,
    INDUSTRY_PRIORITY_PREFIX,
    MIN_TASK_LENGTH,
    UNKNOWN_INDUSTRY,
)
from rule_tuner.domain.ruleset import RuleTable
from rule_tuner.scoring.text_scorers import normalize_text, strip_bullets, tokenize

DEFAULT_MIN_TASK_LENGTH = 10

# Verbs shorter than this only match whole words
_PREFIX_MATCH_MIN_LENGTH = 5


@dataclass
class RuleSet:
    """The four rule tables the classifier reads"""
    industry_keywords: RuleTable
    task_verbs: RuleTable
    qualification_patterns: RuleTable
    thresholds: RuleTable

    @classmethod
    def from_tables(cls, tables: dict[str, RuleTable]) -> "RuleSet":
        return cls(
            industry_keywords=tables[ARTIFACT_INDUSTRY_KEYWORDS],
            task_verbs=tables[ARTIFACT_TASK_VERBS],
            qualification_patterns=tables[ARTIFACT_QUALIFICATION_PATTERNS],
            thresholds=tables[ARTIFACT_THRESHOLDS],
        )

    def table(self, artifact_id: str) -> RuleTable | None:
        return {
            ARTIFACT_INDUSTRY_KEYWORDS: self.industry_keywords,
            ARTIFACT_TASK_VERBS: self.task_verbs,
            ARTIFACT_QUALIFICATION_PATTERNS: self.qualification_patterns,
            ARTIFACT_THRESHOLDS: self.thresholds,
        }.get(artifact_id)


def split_lines(text: str) -> list[str]:
    """Split posting text into non-empty lines with list markup removed"""
    return [
        line.strip()
        for line in strip_bullets(text).splitlines()
        if line.strip()
    ]


def _contains_phrase(text: str, phrase: str) -> bool:
    return re.search(r"(?<!\w)" + re.escape(phrase) + r"(?!\w)", text) is not None


def is_task_word(word: str, verbs: set[str]) -> bool:
    if word in verbs:
        return True
    return any(len(v) >= _PREFIX_MATCH_MIN_LENGTH and word.startswith(v) for v in verbs)


def detect_tasks(text: str, rules: RuleSet) -> list[str]:
    """
    Detect task lines in a posting

    A line is a task when it is long enough, one of its first three words is a
    task verb, and no qualification pattern matches it.

    Args:
        text: Posting body
        rules: Live rule set

    Returns:
        Detected task lines in posting order
    """
    min_length = rules.thresholds.threshold(MIN_TASK_LENGTH, DEFAULT_MIN_TASK_LENGTH)
    verbs = {normalize_text(v) for v in rules.task_verbs.keywords()}
    patterns = rules.qualification_patterns.compiled_patterns()

    tasks = []
    for line in split_lines(text):
        if len(line) < min_length:
            continue
        normalized = normalize_text(line)
        if any(p.search(normalized) for p in patterns):
            continue
        if any(is_task_word(word, verbs) for word in tokenize(line)[:3]):
            tasks.append(line)
    return tasks


def industry_scores(text: str, rules: RuleSet) -> dict[str, float]:
    """Weighted keyword hits per industry label, in table order"""
    normalized = normalize_text(text)
    scores: dict[str, float] = {}
    for label in rules.industry_keywords.labels():
        hits = sum(
            1
            for keyword in rules.industry_keywords.keywords(label)
            if _contains_phrase(normalized, normalize_text(keyword))
        )
        weight = rules.thresholds.threshold(f"{INDUSTRY_PRIORITY_PREFIX}{label}", 1.0)
        scores[label] = hits * weight
    return scores


def detect_industry(text: str, rules: RuleSet) -> str:
    """
    Detect the industry of a posting

    Highest weighted score wins; ties go to the label listed first.
    Returns "unknown" when no keyword matches.
    """
    best_label = UNKNOWN_INDUSTRY
    best_score = 0.0
    for label, score in industry_scores(text, rules).items():
        if score > best_score:
            best_label, best_score = label, score
    return best_label
