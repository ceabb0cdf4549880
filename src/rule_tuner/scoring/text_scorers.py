"""
Text-based matching functions

Implements text normalization and token F1 used to match detected tasks against
expected tasks and to build failure signatures.
"""

from __future__ import annotations

import re
import unicodedata

_BULLET_RE = re.compile(r"^[\s]*(?:[-*•▪–]|\d+[.)])\s+", flags=re.MULTILINE)
_TOKEN_RE = re.compile(r"[^\W_]+(?:[-'][^\W_]+)*")


def strip_bullets(text: str) -> str:
    """
    Remove list formatting

    - Remove bullet point symbols (-, *, bullet, dash)
    - Remove numbering from numbered lists (1. 2) etc.)

    Args:
        text: Text that may contain list markup

    Returns:
        Text with list markup removed
    """
    return _BULLET_RE.sub("", text)


def normalize_text(text: str) -> str:
    """
    Normalize text

    - Remove list formatting
    - Unicode normalization (NFKC)
    - Convert to lowercase
    - Collapse consecutive whitespace to a single space
    - Strip leading and trailing whitespace and trailing punctuation

    Args:
        text: Text to normalize

    Returns:
        Normalized text
    """
    text = strip_bullets(text)
    text = unicodedata.normalize("NFKC", text)
    text = text.lower()
    text = re.sub(r"\s+", " ", text)
    text = text.strip().rstrip(".;:,")
    return text


def tokenize(text: str) -> list[str]:
    """
    Split normalized text into word tokens

    Args:
        text: Text (normalized or raw)

    Returns:
        List of lower-case tokens
    """
    return _TOKEN_RE.findall(normalize_text(text))


def score_exact_match(expected: str, actual: str) -> float:
    """
    Exact match evaluation

    Returns:
        1.0 (match) or 0.0 (mismatch)
    """
    return 1.0 if normalize_text(expected) == normalize_text(actual) else 0.0


def score_f1(expected: str, actual: str) -> float:
    """
    Calculate token-based F1 score

    Args:
        expected: Expected text
        actual: Actual text

    Returns:
        F1 score (0.0 to 1.0)
    """
    expected_tokens = set(tokenize(expected))
    actual_tokens = set(tokenize(actual))

    if not expected_tokens or not actual_tokens:
        return 0.0

    common = expected_tokens & actual_tokens
    if not common:
        return 0.0

    # Precision: Proportion of actual tokens that match the expected text
    precision = len(common) / len(actual_tokens)
    # Recall: Proportion of expected tokens that were actually produced
    recall = len(common) / len(expected_tokens)

    return 2 * precision * recall / (precision + recall)


def tasks_similar(expected: str, actual: str, threshold: float = 0.6) -> bool:
    """Whether a detected task counts as the expected one"""
    if score_exact_match(expected, actual) == 1.0:
        return True
    return score_f1(expected, actual) >= threshold
