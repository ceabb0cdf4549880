"""Tests for the run record store"""

import json
import os

import pytest

from rule_tuner.domain.entities import IterationResult, MutationOutcome, RunReport, RunState
from rule_tuner.infrastructure.run_records import RunRecordStore


def _report(run_id: str, final: float = 0.7) -> RunReport:
    return RunReport(
        run_id=run_id,
        config={"max_iterations": 2},
        state=RunState.EXHAUSTED,
        stop_reason="max_iterations",
        iterations=(
            IterationResult(1, 0.5, 0.6, 1, 10, mutations=[
                MutationOutcome("task_verbs", "rule_addition", "medium", "missing verb", "accepted"),
            ]),
            IterationResult(2, 0.6, final, 1, 12),
        ),
    )


def _age(path, seconds):
    """Push a file's mtime into the past so record order is deterministic"""
    stat = os.stat(path)
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns - seconds * 1_000_000_000))


class TestSave:
    def test_writes_record_csv_and_report(self, tmp_path):
        store = RunRecordStore(tmp_path)
        path = store.save(_report("r1"), performance_report="# report\n")
        assert path == tmp_path / "run_r1.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["run_id"] == "r1"
        assert len(data["iterations"]) == 2
        assert (tmp_path / "iterations_r1.csv").exists()
        assert (tmp_path / "performance_r1.md").read_text() == "# report\n"

    def test_without_performance_report(self, tmp_path):
        RunRecordStore(tmp_path).save(_report("r1"))
        assert not (tmp_path / "performance_r1.md").exists()

    def test_load(self, tmp_path):
        store = RunRecordStore(tmp_path)
        store.save(_report("r1"))
        assert store.load("r1") == _report("r1")

    def test_load_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            RunRecordStore(tmp_path).load("nope")


class TestRetention:
    def test_keeps_newest_records(self, tmp_path):
        store = RunRecordStore(tmp_path, keep=2)
        for i, run_id in enumerate(["r1", "r2"]):
            store.save(_report(run_id), performance_report="x")
            _age(store.record_path(run_id), 100 - i * 10)
        store.save(_report("r3"), performance_report="x")

        assert [p.name for p in store.list_records()] == ["run_r2.json", "run_r3.json"]
        # companions of the pruned record are removed too
        assert not (tmp_path / "iterations_r1.csv").exists()
        assert not (tmp_path / "performance_r1.md").exists()

    def test_dry_run(self, tmp_path):
        store = RunRecordStore(tmp_path, keep=5)
        for i, run_id in enumerate(["r1", "r2", "r3"]):
            store.save(_report(run_id))
            _age(store.record_path(run_id), 100 - i * 10)
        store.keep = 1
        doomed = store.prune(dry_run=True)
        assert [p.name for p in doomed] == ["run_r1.json", "run_r2.json"]
        assert len(store.list_records()) == 3

    def test_invalid_keep(self, tmp_path):
        with pytest.raises(ValueError):
            RunRecordStore(tmp_path, keep=0)


class TestHistoryFrame:
    def test_empty(self, tmp_path):
        df = RunRecordStore(tmp_path / "none").history_frame()
        assert df.empty
        assert "score_after" in df.columns

    def test_concatenates_runs(self, tmp_path):
        store = RunRecordStore(tmp_path)
        store.save(_report("r1"))
        _age(store.record_path("r1"), 10)
        store.save(_report("r2", final=0.9))
        df = store.history_frame()
        assert len(df) == 4
        assert df["run_id"].tolist() == ["r1", "r1", "r2", "r2"]
        assert df["score_after"].iloc[-1] == 0.9
