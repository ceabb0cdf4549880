"""
Failure Analysis

Clusters the failures of a ScoreReport by normalized signature and turns
frequent clusters into ranked MutationProposals. Pure: reads the report and
the current rule set, writes nothing.
"""

import re
from collections import Counter

from rule_tuner.domain.constants import (
    ARTIFACT_INDUSTRY_KEYWORDS,
    ARTIFACT_QUALIFICATION_PATTERNS,
    ARTIFACT_TASK_VERBS,
    ARTIFACT_THRESHOLDS,
    INDUSTRY_PRIORITY_PREFIX,
    MIN_TASK_LENGTH,
)
from rule_tuner.domain.entities import MutationProposal, ScoreReport
from rule_tuner.domain.ruleset import apply_patch
from rule_tuner.domain.value_objects import MutationKind, Priority, RulePatch
from rule_tuner.scoring.classifier import RuleSet, is_task_word
from rule_tuner.scoring.text_scorers import normalize_text, tokenize
from rule_tuner.tuner_config import AnalyzerConfig

# (cap, per-occurrence weight) of the advisory improvement estimate
FALSE_POSITIVE_ESTIMATE = (0.30, 0.05)
FALSE_NEGATIVE_ESTIMATE = (0.20, 0.03)
SHORT_TASK_ESTIMATE = 0.10
NON_TASK_ESTIMATE = (0.30, 0.02)
INDUSTRY_KEYWORD_ESTIMATE = (0.25, 0.05)
INDUSTRY_PRIORITY_ESTIMATE = (0.15, 0.03)

MIN_TASK_LENGTH_STEP = -2
INDUSTRY_PRIORITY_STEP = 0.1
# Bounds of a newly inserted industry priority row
INDUSTRY_PRIORITY_BOUNDS = (0.5, 3.0)

MAX_KEYWORDS_PER_PROPOSAL = 5

TASK_WORD_ENDINGS = ("ung", "ion", "ment", "ing", "ern", "ize", "ise", "ate")

BENEFIT_MARKERS = (
    "benefit", "bonus", "flexible", "remote", "vacation", "holiday",
    "pension", "insurance", "we offer", "salary", "allowance",
)
QUALIFICATION_MARKERS = (
    "experience", "knowledge", "degree", "skills", "proficien", "certif",
    "years", "required", "preferred", "ability to",
)

STOP_WORDS = {
    "about", "above", "after", "again", "against", "their", "there", "these",
    "those", "which", "while", "where", "within", "without", "other", "every",
    "being", "would", "could", "should", "under", "until", "among", "across",
    "strong", "excellent", "ability", "able", "years", "including", "through",
    "based", "using", "level", "looking", "join", "team", "teams", "company",
}


def _estimate(count: int, params: tuple[float, float]) -> float:
    cap, weight = params
    return min(cap, count * weight)


def looks_like_non_task(signature: str) -> bool:
    """Whether a fragment reads like a benefit or a qualification"""
    return any(m in signature for m in BENEFIT_MARKERS + QUALIFICATION_MARKERS)


def anchored_pattern(signature: str) -> str:
    return "^" + re.escape(signature) + "$"


def _is_candidate_word(word: str, min_length: int) -> bool:
    return word.isalpha() and len(word) >= min_length and word not in STOP_WORDS


class Analyzer:
    """Turns failure clusters into candidate rule-set mutations"""

    def __init__(self, config: AnalyzerConfig | None = None):
        self.config = config or AnalyzerConfig()

    def _is_frequent(self, count: int, sample_count: int) -> bool:
        return (
            count > self.config.min_occurrences
            or count > self.config.min_sample_fraction * sample_count
        )

    def _frequent_clusters(self, signatures: list[str], sample_count: int) -> list[tuple[str, int]]:
        counts = Counter(s for s in signatures if s)
        return [
            (sig, n) for sig, n in counts.most_common()
            if self._is_frequent(n, sample_count)
        ][: self.config.max_signatures]

    def propose(self, report: ScoreReport, rules: RuleSet) -> list[MutationProposal]:
        """
        Propose mutations from the failures in a report

        Args:
            report: Score report of the current rule set
            rules: Current rule set (used to skip no-op proposals)

        Returns:
            list[MutationProposal]: Sorted by priority weight times estimated
                improvement, descending; ties keep emission order
        """
        sample_count = report.sample_count or len(report.raw_cases)
        proposals: list[MutationProposal] = []

        def emit(proposal: MutationProposal) -> None:
            table = rules.table(proposal.target_artifact)
            if table is None:
                return
            if apply_patch(table, proposal.patch).entries == table.entries:
                return
            proposals.append(proposal)

        false_positives = [normalize_text(f) for c in report.raw_cases for f in c.false_positives]
        false_negatives = [f for c in report.raw_cases for f in c.false_negatives]

        covered = set()
        for proposal in self._false_positive_proposals(false_positives, sample_count):
            covered.add(proposal.patch.rows[0]["pattern"])
            emit(proposal)
        for proposal in self._non_task_proposals(false_positives, sample_count, covered):
            emit(proposal)
        for proposal in self._false_negative_proposals(false_negatives, sample_count, rules):
            emit(proposal)
        for proposal in self._short_task_proposals(false_negatives, sample_count):
            emit(proposal)
        for proposal in self._misclassification_proposals(report, sample_count, rules):
            emit(proposal)

        return sorted(proposals, key=lambda p: (-p.rank_score, -p.priority.weight))

    def _false_positive_proposals(self, signatures, sample_count):
        for sig, n in self._frequent_clusters(signatures, sample_count):
            yield MutationProposal(
                kind=MutationKind.RULE_ADDITION,
                priority=Priority.HIGH,
                estimated_improvement=_estimate(n, FALSE_POSITIVE_ESTIMATE),
                target_artifact=ARTIFACT_QUALIFICATION_PATTERNS,
                patch=RulePatch(op="insert", rows=({"pattern": anchored_pattern(sig), "flags": "i"},)),
                rationale=f"Non-task line detected as a task {n}x: '{sig}'",
            )

    def _non_task_proposals(self, signatures, sample_count, covered):
        non_tasks = [s for s in signatures if s and looks_like_non_task(s)]
        if not non_tasks or len(non_tasks) <= self.config.min_sample_fraction * sample_count:
            return
        rows = []
        for sig in dict.fromkeys(non_tasks):
            pattern = anchored_pattern(sig)
            if pattern not in covered:
                rows.append({"pattern": pattern, "flags": "i"})
        if not rows:
            return
        yield MutationProposal(
            kind=MutationKind.RULE_ADDITION,
            priority=Priority.HIGH,
            estimated_improvement=_estimate(len(non_tasks), NON_TASK_ESTIMATE),
            target_artifact=ARTIFACT_QUALIFICATION_PATTERNS,
            patch=RulePatch(op="insert", rows=tuple(rows)),
            rationale=f"{len(non_tasks)} benefit or qualification lines detected as tasks",
        )

    def _task_words(self, fragment: str, verbs: set[str]) -> list[str]:
        tokens = tokenize(fragment)[:3]
        if any(is_task_word(t, verbs) for t in tokens):
            return []
        words = []
        if tokens and _is_candidate_word(tokens[0], self.config.min_keyword_length):
            words.append(tokens[0])
        for token in tokens[1:]:
            if _is_candidate_word(token, self.config.min_keyword_length) and token.endswith(TASK_WORD_ENDINGS):
                words.append(token)
        return words

    def _false_negative_proposals(self, fragments, sample_count, rules):
        verbs = {normalize_text(v) for v in rules.task_verbs.keywords()}
        originals = {}
        for fragment in fragments:
            originals.setdefault(normalize_text(fragment), fragment)

        proposed: set[str] = set()
        signatures = [normalize_text(f) for f in fragments]
        for sig, n in self._frequent_clusters(signatures, sample_count):
            words = [w for w in self._task_words(originals[sig], verbs) if w not in proposed]
            if not words:
                continue
            proposed.update(words)
            yield MutationProposal(
                kind=MutationKind.RULE_ADDITION,
                priority=Priority.MEDIUM,
                estimated_improvement=_estimate(n, FALSE_NEGATIVE_ESTIMATE),
                target_artifact=ARTIFACT_TASK_VERBS,
                patch=RulePatch(op="insert", rows=tuple({"keyword": w} for w in words)),
                rationale=f"Task missed {n}x, no task verb in '{sig}'",
            )

    def _short_task_proposals(self, fragments, sample_count):
        short = [f for f in fragments if len(f.strip()) < self.config.short_task_length]
        if len(short) <= self.config.min_sample_fraction * sample_count:
            return
        yield MutationProposal(
            kind=MutationKind.THRESHOLD_CHANGE,
            priority=Priority.MEDIUM,
            estimated_improvement=SHORT_TASK_ESTIMATE,
            target_artifact=ARTIFACT_THRESHOLDS,
            patch=RulePatch(
                op="update",
                match={"name": MIN_TASK_LENGTH},
                changes={"value": {"delta": MIN_TASK_LENGTH_STEP}},
            ),
            rationale=f"{len(short)} short tasks missed; lowering {MIN_TASK_LENGTH}",
        )

    def _misclassification_proposals(self, report, sample_count, rules):
        pairs = Counter(
            (c.expected_industry, c.detected_industry)
            for c in report.raw_cases
            if c.misclassified
        )
        existing = {k.lower() for k in rules.industry_keywords.keywords()}
        min_length = self.config.min_keyword_length

        for (expected, detected), n in pairs.most_common():
            if not self._is_frequent(n, sample_count):
                continue
            cluster = [
                c for c in report.raw_cases
                if c.expected_industry == expected and c.detected_industry == detected
            ]
            elsewhere = {
                t
                for c in report.raw_cases if c.expected_industry != expected
                for f in c.fragments for t in tokenize(f)
            }
            document_frequency = Counter(
                t
                for c in cluster
                for t in dict.fromkeys(t for f in c.fragments for t in tokenize(f))
                if _is_candidate_word(t, min_length) and t not in elsewhere and t not in existing
            )
            keywords = [w for w, df in document_frequency.most_common() if df >= 2][:MAX_KEYWORDS_PER_PROPOSAL]
            if keywords:
                yield MutationProposal(
                    kind=MutationKind.RULE_ADDITION,
                    priority=Priority.HIGH,
                    estimated_improvement=_estimate(n, INDUSTRY_KEYWORD_ESTIMATE),
                    target_artifact=ARTIFACT_INDUSTRY_KEYWORDS,
                    patch=RulePatch(
                        op="insert",
                        rows=tuple({"label": expected, "keyword": w} for w in keywords),
                    ),
                    rationale=f"{expected} detected as {detected} {n}x; adding {expected} keywords",
                )

            name = f"{INDUSTRY_PRIORITY_PREFIX}{expected}"
            if rules.thresholds.threshold(name) is None:
                low, high = INDUSTRY_PRIORITY_BOUNDS
                patch = RulePatch(
                    op="insert",
                    rows=({"name": name, "value": 1.0 + INDUSTRY_PRIORITY_STEP, "min": low, "max": high},),
                )
            else:
                patch = RulePatch(
                    op="update",
                    match={"name": name},
                    changes={"value": {"delta": INDUSTRY_PRIORITY_STEP}},
                )
            yield MutationProposal(
                kind=MutationKind.RULE_ADJUSTMENT,
                priority=Priority.MEDIUM,
                estimated_improvement=_estimate(n, INDUSTRY_PRIORITY_ESTIMATE),
                target_artifact=ARTIFACT_THRESHOLDS,
                patch=patch,
                rationale=f"{expected} detected as {detected} {n}x; raising {name}",
            )
