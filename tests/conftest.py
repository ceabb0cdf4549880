"""Shared fixtures: a small rule set held in in-memory stores"""

import pytest

from rule_tuner.domain.ruleset import RuleTable, serialize_rule_table
from rule_tuner.infrastructure.artifact_store import InMemoryArtifactStore
from rule_tuner.infrastructure.snapshot_store import InMemorySnapshotStore
from rule_tuner.scoring.classifier import RuleSet


def make_tables() -> dict[str, RuleTable]:
    return {
        "industry_keywords": RuleTable(
            artifact_id="industry_keywords",
            kind="keywords",
            version=1,
            entries=[
                {"label": "tech", "keyword": "software"},
                {"label": "tech", "keyword": "cloud"},
                {"label": "finance", "keyword": "accounting"},
                {"label": "finance", "keyword": "audit"},
            ],
        ),
        "task_verbs": RuleTable(
            artifact_id="task_verbs",
            kind="keywords",
            version=1,
            entries=[{"keyword": "develop"}, {"keyword": "manage"}, {"keyword": "review"}],
        ),
        "qualification_patterns": RuleTable(
            artifact_id="qualification_patterns",
            kind="patterns",
            version=1,
            entries=[{"pattern": "^\\d+\\+? years", "flags": "i"}],
        ),
        "thresholds": RuleTable(
            artifact_id="thresholds",
            kind="thresholds",
            version=1,
            entries=[
                {"name": "min_task_length", "value": 10, "min": 4, "max": 40},
                {"name": "industry_priority.tech", "value": 1.0, "min": 0.5, "max": 3.0},
                {"name": "industry_priority.finance", "value": 1.0, "min": 0.5, "max": 3.0},
            ],
        ),
    }


@pytest.fixture
def rule_tables() -> dict[str, RuleTable]:
    return make_tables()


@pytest.fixture
def rule_set(rule_tables) -> RuleSet:
    return RuleSet.from_tables(rule_tables)


@pytest.fixture
def artifact_store(rule_tables) -> InMemoryArtifactStore:
    return InMemoryArtifactStore(
        {artifact_id: serialize_rule_table(t) for artifact_id, t in rule_tables.items()}
    )


@pytest.fixture
def snapshot_store(artifact_store) -> InMemorySnapshotStore:
    return InMemorySnapshotStore(artifact_store, max_per_artifact=3)
