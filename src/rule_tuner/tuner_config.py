"""
Improvement Pipeline Configuration

Manages loading from environment variables and default values.
"""

import os
from dataclasses import dataclass, field, asdict

from rule_tuner.domain.constants import DEFAULT_INDUSTRY_WEIGHT, DEFAULT_TASK_WEIGHT


def _env_bool(key: str, default: bool) -> bool:
    """Convert an environment variable to bool"""
    val = os.environ.get(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int) -> int:
    """Convert an environment variable to int"""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        raise ValueError(f"The value '{val}' of environment variable '{key}' cannot be converted to an integer.")


def _env_float(key: str, default: float) -> float:
    """Convert an environment variable to float"""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        raise ValueError(f"The value '{val}' of environment variable '{key}' cannot be converted to a number.")


def _env_optional_float(key: str, default: float | None) -> float | None:
    """Convert an environment variable to float, treating an empty value as unset"""
    val = os.environ.get(key)
    if val is None:
        return default
    if not val.strip():
        return None
    return _env_float(key, 0.0)


def _env_str(key: str, default: str) -> str:
    """Get an environment variable as a string"""
    return os.environ.get(key, default)


@dataclass
class PipelineConfig:
    """Orchestrator loop configuration"""
    max_iterations: int = 5
    target_score: float = 0.85
    sample_size: int = 30
    max_mutations_per_iteration: int = 3
    max_duration_seconds: float | None = None  # wall-clock bound, checked between iterations

    def __post_init__(self):
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        if not 0.0 <= self.target_score <= 1.0:
            raise ValueError("target_score must be within [0, 1]")
        if self.sample_size < 1:
            raise ValueError("sample_size must be at least 1")
        if self.max_mutations_per_iteration < 1:
            raise ValueError("max_mutations_per_iteration must be at least 1")
        if self.max_duration_seconds is not None and self.max_duration_seconds <= 0:
            raise ValueError("max_duration_seconds must be positive")

    @property
    def validation_sample_size(self) -> int:
        return max(1, self.sample_size // 2)


@dataclass
class AnalyzerConfig:
    """Failure clustering configuration"""
    min_occurrences: int = 2        # a signature needs MORE than this many occurrences
    min_sample_fraction: float = 0.1  # ... or more than this share of the sample
    max_signatures: int = 5         # clusters considered per failure type
    short_task_length: int = 30
    min_keyword_length: int = 5


@dataclass
class ScoringConfig:
    """Reference evaluator configuration"""
    task_weight: float = DEFAULT_TASK_WEIGHT
    industry_weight: float = DEFAULT_INDUSTRY_WEIGHT
    match_threshold: float = 0.6
    seed: int = 42

    def __post_init__(self):
        if self.task_weight < 0 or self.industry_weight < 0:
            raise ValueError("score weights must be non-negative")
        if self.task_weight + self.industry_weight > 1.0 + 1e-9:
            raise ValueError("score weights must not sum above 1")


@dataclass
class RetentionConfig:
    """Snapshot and run-record retention"""
    snapshots_per_artifact: int = 3
    run_records: int = 10

    def __post_init__(self):
        if self.snapshots_per_artifact < 1:
            raise ValueError("snapshots_per_artifact must be at least 1")
        if self.run_records < 1:
            raise ValueError("run_records must be at least 1")


@dataclass
class PathsConfig:
    """Filesystem locations"""
    rules_dir: str = "rules"
    snapshot_dir: str = ".snapshots"
    results_dir: str = "results"
    corpus_path: str = "corpus/job_postings.json"


@dataclass
class ReportingConfig:
    """Run report persistence and console output"""
    save_results: bool = False
    verbose: bool = False


@dataclass
class TunerConfig:
    """Overall improvement pipeline configuration"""
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    analyzer: AnalyzerConfig = field(default_factory=AnalyzerConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    retention: RetentionConfig = field(default_factory=RetentionConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)

    def to_dict(self) -> dict:
        """Convert to dictionary format"""
        return {"tuner_config": asdict(self)}

    @classmethod
    def from_dict(cls, data: dict) -> "TunerConfig":
        """Create from dictionary (handles presence/absence of tuner_config key)"""
        config_data = data.get("tuner_config", data)
        return cls(
            pipeline=PipelineConfig(**config_data.get("pipeline", {})),
            analyzer=AnalyzerConfig(**config_data.get("analyzer", {})),
            scoring=ScoringConfig(**config_data.get("scoring", {})),
            retention=RetentionConfig(**config_data.get("retention", {})),
            paths=PathsConfig(**config_data.get("paths", {})),
            reporting=ReportingConfig(**config_data.get("reporting", {})),
        )


def load_config() -> TunerConfig:
    """
    Load configuration from environment variables

    Uses default values when environment variables are not set.

    Returns:
        TunerConfig
    """
    pipeline = PipelineConfig(
        max_iterations=_env_int("TUNER_MAX_ITERATIONS", 5),
        target_score=_env_float("TUNER_TARGET_SCORE", 0.85),
        sample_size=_env_int("TUNER_SAMPLE_SIZE", 30),
        max_mutations_per_iteration=_env_int("TUNER_MAX_MUTATIONS", 3),
        max_duration_seconds=_env_optional_float("TUNER_MAX_DURATION_SECONDS", None),
    )
    analyzer = AnalyzerConfig(
        min_occurrences=_env_int("TUNER_MIN_OCCURRENCES", 2),
        min_sample_fraction=_env_float("TUNER_MIN_SAMPLE_FRACTION", 0.1),
        max_signatures=_env_int("TUNER_MAX_SIGNATURES", 5),
        short_task_length=_env_int("TUNER_SHORT_TASK_LENGTH", 30),
        min_keyword_length=_env_int("TUNER_MIN_KEYWORD_LENGTH", 5),
    )
    scoring = ScoringConfig(
        task_weight=_env_float("TUNER_TASK_WEIGHT", DEFAULT_TASK_WEIGHT),
        industry_weight=_env_float("TUNER_INDUSTRY_WEIGHT", DEFAULT_INDUSTRY_WEIGHT),
        match_threshold=_env_float("TUNER_MATCH_THRESHOLD", 0.6),
        seed=_env_int("TUNER_SEED", 42),
    )
    retention = RetentionConfig(
        snapshots_per_artifact=_env_int("TUNER_KEEP_SNAPSHOTS", 3),
        run_records=_env_int("TUNER_KEEP_RUN_RECORDS", 10),
    )
    paths = PathsConfig(
        rules_dir=_env_str("TUNER_RULES_DIR", "rules"),
        snapshot_dir=_env_str("TUNER_SNAPSHOT_DIR", ".snapshots"),
        results_dir=_env_str("TUNER_RESULTS_DIR", "results"),
        corpus_path=_env_str("TUNER_CORPUS_PATH", "corpus/job_postings.json"),
    )
    reporting = ReportingConfig(
        save_results=_env_bool("TUNER_SAVE_RESULTS", False),
        verbose=_env_bool("TUNER_VERBOSE", False),
    )
    return TunerConfig(
        pipeline=pipeline,
        analyzer=analyzer,
        scoring=scoring,
        retention=retention,
        paths=paths,
        reporting=reporting,
    )
