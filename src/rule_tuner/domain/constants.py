"""
Domain Constants

Centrally manages constants shared across the improvement pipeline.
"""

# Ordinal weights used to rank proposals (priority * estimated improvement)
PRIORITY_WEIGHTS = {
    "high": 3,
    "medium": 2,
    "low": 1,
}

# Overall score weighting (task accuracy / industry accuracy)
DEFAULT_TASK_WEIGHT = 0.7
DEFAULT_INDUSTRY_WEIGHT = 0.3

# A sample whose own overall score falls below this is a problem case
PROBLEM_CASE_THRESHOLD = 0.6
MAX_PROBLEM_CASES = 10

# Failure types found in raw cases
FAILURE_FALSE_POSITIVE = "false_positive"
FAILURE_FALSE_NEGATIVE = "false_negative"
FAILURE_MISCLASSIFICATION = "misclassification"

# Default rule-set artifacts
ARTIFACT_INDUSTRY_KEYWORDS = "industry_keywords"
ARTIFACT_TASK_VERBS = "task_verbs"
ARTIFACT_QUALIFICATION_PATTERNS = "qualification_patterns"
ARTIFACT_THRESHOLDS = "thresholds"

DEFAULT_ARTIFACTS = [
    ARTIFACT_INDUSTRY_KEYWORDS,
    ARTIFACT_TASK_VERBS,
    ARTIFACT_QUALIFICATION_PATTERNS,
    ARTIFACT_THRESHOLDS,
]

# Threshold rows read by the evaluator
MIN_TASK_LENGTH = "min_task_length"
INDUSTRY_PRIORITY_PREFIX = "industry_priority."

UNKNOWN_INDUSTRY = "unknown"
