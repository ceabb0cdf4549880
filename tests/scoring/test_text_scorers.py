"""
Tests for text-based matching functions

Tests for strip_bullets, normalize_text, tokenize, score_exact_match, score_f1, and tasks_similar.
"""

import pytest

from rule_tuner.scoring.text_scorers import (
    normalize_text,
    score_exact_match,
    score_f1,
    strip_bullets,
    tasks_similar,
    tokenize,
)


class TestStripBullets:
    """Tests for strip_bullets"""

    def test_bullet_list_removal(self):
        text = "- item1\n* item2\n• item3"
        assert strip_bullets(text) == "item1\nitem2\nitem3"

    def test_numbered_list_removal(self):
        text = "1. first\n2) second"
        assert strip_bullets(text) == "first\nsecond"

    def test_plain_text_unchanged(self):
        text = "Hello, world!"
        assert strip_bullets(text) == text

    def test_hyphen_inside_line_kept(self):
        assert strip_bullets("Deliver two-week sprints") == "Deliver two-week sprints"


class TestNormalizeText:
    """Tests for normalize_text"""

    def test_lowercase(self):
        assert normalize_text("Hello World") == "hello world"

    def test_whitespace_normalization(self):
        assert normalize_text("hello   world\t again") == "hello world again"

    def test_trailing_punctuation(self):
        assert normalize_text("Review expense claims.") == "review expense claims"
        assert normalize_text("Requirements:") == "requirements"

    def test_bullet_removed(self):
        assert normalize_text("- Run payroll") == "run payroll"

    def test_nfkc(self):
        """全角英数字は半角に正規化される"""
        assert normalize_text("ＡＰＩ") == "api"

    def test_empty(self):
        assert normalize_text("") == ""


class TestTokenize:
    def test_words(self):
        assert tokenize("Design and build REST API services") == [
            "design", "and", "build", "rest", "api", "services",
        ]

    def test_hyphenated_word_is_one_token(self):
        assert tokenize("Deliver two-week sprints") == ["deliver", "two-week", "sprints"]

    def test_punctuation_dropped(self):
        assert tokenize("3+ years, with Python!") == ["3", "years", "with", "python"]


class TestScoreExactMatch:
    def test_match_ignores_case_and_bullets(self):
        assert score_exact_match("Review expense claims", "- review expense claims.") == 1.0

    def test_mismatch(self):
        assert score_exact_match("Review expense claims", "Review invoices") == 0.0


class TestScoreF1:
    def test_identical(self):
        assert score_f1("monitor system alerts", "Monitor system alerts") == 1.0

    def test_partial_overlap(self):
        # common = {review, expense}; precision 2/3, recall 2/3
        assert score_f1("review expense claims", "review expense reports") == pytest.approx(2 / 3)

    def test_no_overlap(self):
        assert score_f1("run payroll", "write reports") == 0.0

    def test_empty(self):
        assert score_f1("", "anything") == 0.0


class TestTasksSimilar:
    def test_exact(self):
        assert tasks_similar("Run payroll", "run payroll.")

    def test_above_threshold(self):
        assert tasks_similar("review expense claims", "review expense reports", threshold=0.6)

    def test_below_threshold(self):
        assert not tasks_similar("review expense claims", "review supplier invoices", threshold=0.6)
