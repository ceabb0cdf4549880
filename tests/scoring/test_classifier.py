"""Tests for the heuristic classifier"""

from rule_tuner.domain.ruleset import apply_patch
from rule_tuner.domain.value_objects import RulePatch
from rule_tuner.scoring.classifier import (
    RuleSet,
    detect_industry,
    detect_tasks,
    industry_scores,
    is_task_word,
    split_lines,
)

POSTING = "\n".join([
    "We are hiring.",
    "- Develop software services",
    "- Review code",
    "- Review it",
    "- 5+ years developing software",
    "- Ability to manage priorities",
    "",
])


def _with_patch(rule_tables, artifact_id, patch) -> RuleSet:
    tables = dict(rule_tables)
    tables[artifact_id] = apply_patch(tables[artifact_id], patch)
    return RuleSet.from_tables(tables)


class TestSplitLines:
    def test_strips_markup_and_blank_lines(self):
        assert split_lines("- a line\n\n  * another  \n") == ["a line", "another"]


class TestIsTaskWord:
    def test_exact(self):
        assert is_task_word("plan", {"plan"})

    def test_prefix_for_long_verbs(self):
        assert is_task_word("developing", {"develop"})

    def test_no_prefix_for_short_verbs(self):
        assert not is_task_word("planet", {"plan"})


class TestDetectTasks:
    def test_detects_task_lines(self, rule_set):
        tasks = detect_tasks(POSTING, rule_set)
        assert tasks == [
            "Develop software services",
            "Review code",
            "Ability to manage priorities",
        ]

    def test_min_task_length(self, rule_tables):
        """min_task_lengthより短い行はタスクにならない"""
        rules = _with_patch(
            rule_tables, "thresholds",
            RulePatch(op="update", match={"name": "min_task_length"}, changes={"value": 8}),
        )
        assert "Review it" in detect_tasks(POSTING, rules)

    def test_qualification_pattern_blocks_line(self, rule_tables):
        rules = _with_patch(
            rule_tables, "qualification_patterns",
            RulePatch(op="insert", rows=({"pattern": "^ability to\\b", "flags": "i"},)),
        )
        assert "Ability to manage priorities" not in detect_tasks(POSTING, rules)

    def test_verb_must_be_in_first_three_words(self, rule_set):
        assert detect_tasks("Our team will then develop apps", rule_set) == []

    def test_new_verb_detected(self, rule_tables):
        rules = _with_patch(
            rule_tables, "task_verbs",
            RulePatch(op="insert", rows=({"keyword": "reconcile"},)),
        )
        assert detect_tasks("Reconcile bank statements", rules) == ["Reconcile bank statements"]


class TestDetectIndustry:
    def test_highest_score_wins(self, rule_set):
        assert detect_industry("Cloud software team", rule_set) == "tech"
        assert detect_industry("Accounting and audit", rule_set) == "finance"

    def test_tie_goes_to_first_label(self, rule_set):
        assert detect_industry("software accounting", rule_set) == "tech"

    def test_unknown(self, rule_set):
        assert detect_industry("nothing relevant here", rule_set) == "unknown"

    def test_whole_words_only(self, rule_set):
        assert industry_scores("softwares", rule_set)["tech"] == 0

    def test_priority_weight(self, rule_tables):
        """業界優先度の重みで同点が解消される"""
        rules = _with_patch(
            rule_tables, "thresholds",
            RulePatch(op="update", match={"name": "industry_priority.finance"}, changes={"value": 2.0}),
        )
        assert industry_scores("software accounting", rules) == {"tech": 1.0, "finance": 2.0}
        assert detect_industry("software accounting", rules) == "finance"
